"""
ml_segmentation.py — LLM-assisted answer segmentation.

The model is asked to partition the OCR text into exactly one answer per
question and reply with JSON. Its reply is never trusted as-is: code fences
are stripped, the payload is validated and padded to the question count, and
any failure drops back to structural segmentation.
"""
import asyncio
import json
import logging
import re
from typing import Optional, Sequence

from llm.base import LLMClient
from models import Question, SegmentationResult
from segmentation import enhanced_segmentation, has_page_markers

logger = logging.getLogger(__name__)

ML_CONFIDENCE = 0.95
DEFAULT_TIMEOUT = 30.0

# Greedy: fences inside answer text must not end the payload early
_FENCE_RE = re.compile(r'```(?:json)?\s*([\s\S]*)```', re.IGNORECASE)


# ════════════════════════════════════════════════════════════════════
# PROMPT
# ════════════════════════════════════════════════════════════════════

def build_prompt(text: str, questions: Sequence[Question], has_illustration: bool = False) -> str:
    n = len(questions)
    question_lines = "\n".join(f"{i + 1}. {q.question_text}" for i, q in enumerate(questions))

    instructions = [
        "Identify where each answer starts and ends in the extracted text",
        f"Return exactly {n} answers, in the same order as the questions",
        "If a question appears to be unanswered, return an empty string for that answer",
        "Do not include question numbers or labels such as 'Question 1' in the answers",
    ]
    if has_page_markers(text):
        instructions.append(
            "The text spans several pages separated by '--- PAGE n ---' lines. "
            "Answers may continue across a page break: preserve the original order "
            "across pages and leave the page markers out of the answers"
        )
    if has_illustration:
        instructions.append(
            "The script contains drawings. For every answer set has_diagram to true "
            "if the student drew a diagram for it, and give a one-sentence description "
            "in diagram_descriptions (empty string when there is none)"
        )
        output_format = (
            '{\n'
            '  "segments": ["answer1", "answer2", ...],\n'
            '  "has_diagram": [false, true, ...],\n'
            '  "diagram_descriptions": ["", "labelled plant cell", ...]\n'
            '}'
        )
    else:
        output_format = '{\n  "segments": ["answer1", "answer2", ...]\n}'

    numbered = "\n".join(f"{i + 1}. {line}" for i, line in enumerate(instructions))

    return (
        f"Objective: Segment this extracted text into {n} separate answers.\n\n"
        f"Extracted text from student exam (from OCR):\n\"\"\"\n{text}\n\"\"\"\n\n"
        f"The questions asked were:\n{question_lines}\n\n"
        f"Instructions:\n{numbered}\n\n"
        f"Output format (JSON only, no commentary):\n{output_format}\n"
    )


# ════════════════════════════════════════════════════════════════════
# RESPONSE PARSING
# ════════════════════════════════════════════════════════════════════

def strip_code_fences(raw: str) -> str:
    """
    Remove markdown fencing around a JSON payload.
      '```json\\n{"segments": []}\\n```' → '{"segments": []}'
    Unfenced text is returned trimmed.
    """
    raw = raw.strip()
    if "```" in raw:
        m = _FENCE_RE.search(raw)
        if m:
            return m.group(1).strip()
    return raw


def _fit(values: list, size: int, filler) -> list:
    return (values + [filler] * size)[:size]


def parse_segmentation_response(raw: str, question_count: int) -> tuple[list[str], list[bool], list[str]]:
    """
    Validate the model's reply and normalise it to question_count entries.

    Returns (segments, has_diagram, diagram_descriptions).

    Raises:
        ValueError: If the payload is not JSON or has no 'segments' list.
    """
    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise ValueError(f"Model reply is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("segments"), list):
        raise ValueError("Model reply has no 'segments' list")

    segments = ["" if s is None else str(s).strip() for s in data["segments"]]
    if len(segments) != question_count:
        logger.warning(
            "Model returned %d segments for %d questions; fitting to size",
            len(segments), question_count,
        )

    flags = data.get("has_diagram")
    flags = [bool(f) for f in flags] if isinstance(flags, list) else []

    descriptions = data.get("diagram_descriptions")
    descriptions = ["" if d is None else str(d) for d in descriptions] if isinstance(descriptions, list) else []

    return (
        _fit(segments, question_count, ""),
        _fit(flags, question_count, False),
        _fit(descriptions, question_count, ""),
    )


# ════════════════════════════════════════════════════════════════════
# ADAPTER
# ════════════════════════════════════════════════════════════════════

async def ml_segmentation(
    text: str,
    questions: Sequence[Question],
    client: Optional[LLMClient],
    has_illustration: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> SegmentationResult:
    """
    Segment with the LLM, falling back to enhanced_segmentation on any failure.

    Never raises for model, network, timeout or parse errors.
    """
    question_count = len(questions)

    if question_count == 0 or not text.strip():
        return enhanced_segmentation(text, question_count)

    if client is None:
        logger.info("No LLM client configured, using structural segmentation")
        return enhanced_segmentation(text, question_count)

    prompt = build_prompt(text, questions, has_illustration)

    try:
        raw = await asyncio.wait_for(client.generate(prompt), timeout=timeout)
        segments, flags, descriptions = parse_segmentation_response(raw, question_count)
    except Exception as e:
        logger.warning(
            "ML segmentation failed (%s: %s), falling back to structural segmentation",
            type(e).__name__, e,
        )
        return enhanced_segmentation(text, question_count)

    logger.info("ML segmentation produced %d answers", question_count)
    return SegmentationResult(
        method="ml",
        segments=segments,
        confidence=ML_CONFIDENCE,
        metadata={
            "has_diagram": flags,
            "diagram_descriptions": descriptions,
        },
    )
