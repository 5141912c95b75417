"""
feedback.py — bias structural segmentation by a teacher's correction history.

Each correction is tagged with the method that produced the text the teacher
edited. The most frequent method in the teacher's recent history is re-run
directly; everything else falls back to enhanced_segmentation.
"""
import logging
from collections import Counter
from typing import Optional, Sequence

from corrections.base import CorrectionStore
from models import CorrectionRecord, Question, SegmentationResult
from segmentation import enhanced_segmentation, has_page_markers, segment_with_method, split_pages

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

# Priority order doubles as the tie-break.
TEACHER_METHOD_CONFIDENCE = {
    "markers": 0.85,
    "paragraphs": 0.8,
    "whitespace": 0.75,
}

_TEACHER_PREFIX = "teacher_"


def _base_method(method: str) -> str:
    if method.startswith(_TEACHER_PREFIX):
        return method[len(_TEACHER_PREFIX):]
    return method


def preferred_method(records: Sequence[CorrectionRecord]) -> Optional[str]:
    """
    Most frequent method among the records, if it can be re-run; else None.

    Every tagged record counts, so a history dominated by 'ml' or 'evenly'
    yields None. Ties go to the earlier method in
    markers > paragraphs > whitespace.
    """
    tally = Counter(
        _base_method(r.segmentation_method)
        for r in records
        if r.segmentation_method
    )
    if not tally:
        return None
    top = max(tally.values())
    for method in TEACHER_METHOD_CONFIDENCE:
        if tally[method] == top:
            return method
    return None


async def teacher_feedback_segmentation(
    text: str,
    questions: Sequence[Question],
    teacher_id: str,
    store: CorrectionStore,
) -> SegmentationResult:
    question_count = len(questions)

    try:
        records = await store.recent_corrections(teacher_id, limit=HISTORY_LIMIT)
    except Exception as e:
        logger.warning(
            "Correction history unavailable for teacher %s (%s: %s), using structural segmentation",
            teacher_id, type(e).__name__, e,
        )
        return enhanced_segmentation(text, question_count)

    method = preferred_method(records)
    if method is None:
        return enhanced_segmentation(text, question_count)

    # Page markers are not answer text; re-run the method on the page bodies
    source = "\n\n".join(split_pages(text)) if has_page_markers(text) else text
    segments = segment_with_method(source, question_count, method) if source.strip() else None
    if segments is None:
        logger.info("Teacher %s prefers '%s' but it does not fit this script", teacher_id, method)
        return enhanced_segmentation(text, question_count)

    logger.info("Using teacher %s preferred method '%s'", teacher_id, method)
    return SegmentationResult(
        method=f"{_TEACHER_PREFIX}{method}",
        segments=segments,
        confidence=TEACHER_METHOD_CONFIDENCE[method],
        metadata={
            "preferred_method": method,
            "corrections_considered": len(records),
        },
    )
