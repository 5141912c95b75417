"""
hybrid.py — combine ML, teacher-feedback and structural segmentation.

  1. ML                 — returned immediately when confidence > 0.9
  2. teacher feedback   — only with a teacher id and a correction store
  3. structural         — always computed, the guaranteed candidate
The highest-confidence candidate wins; earlier candidates win ties.
"""
import logging
from typing import Optional, Sequence

from corrections.base import CorrectionStore
from feedback import teacher_feedback_segmentation
from llm.base import LLMClient
from ml_segmentation import DEFAULT_TIMEOUT, ml_segmentation
from models import Question, SegmentationResult
from segmentation import enhanced_segmentation

logger = logging.getLogger(__name__)

ML_SHORT_CIRCUIT = 0.9


async def hybrid_segmentation(
    text: str,
    questions: Sequence[Question],
    client: Optional[LLMClient] = None,
    teacher_id: Optional[str] = None,
    store: Optional[CorrectionStore] = None,
    has_illustration: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> SegmentationResult:
    candidates: list[SegmentationResult] = []

    try:
        ml_result = await ml_segmentation(text, questions, client, has_illustration, timeout)
    except Exception:
        logger.exception("ML segmentation raised unexpectedly")
        ml_result = None

    if ml_result is not None:
        if ml_result.confidence > ML_SHORT_CIRCUIT:
            return ml_result
        if ml_result.method == "ml":
            candidates.append(ml_result)

    if teacher_id and store is not None:
        try:
            candidates.append(
                await teacher_feedback_segmentation(text, questions, teacher_id, store)
            )
        except Exception:
            logger.exception("Teacher-feedback segmentation failed for teacher %s", teacher_id)

    candidates.append(enhanced_segmentation(text, len(questions)))

    best = max(candidates, key=lambda r: r.confidence)
    logger.info(
        "Hybrid segmentation chose '%s' (%.2f) from %s",
        best.method, best.confidence, [c.method for c in candidates],
    )
    return best
