"""
segmentation.py — exam answer-script segmenter.

Splits OCR text from one student's script into one answer per question.

Structural pipeline (enhanced_segmentation):
  1. blank text / no questions    — short-circuit to empty segments
  2. reconcile_pages()            — when '--- PAGE n ---' markers exist, use one
                                    page per answer or flatten and re-split
  3. segment_by_markers()         — 'Question 1' / '2)' / '3 The ...' boundaries
  4. segment_by_paragraphs()      — blank-line separated blocks
  5. segment_by_whitespace()      — wide whitespace gaps
  6. segment_evenly()             — equal character ranges, always applicable

The first strategy that can produce enough segments wins. Confidence values
are fixed per method and only used to rank candidates against the ML and
teacher-feedback paths.
"""
import logging
import re
from typing import NamedTuple, Optional

from models import SegmentationResult

logger = logging.getLogger(__name__)


METHOD_CONFIDENCE = {
    "markers": 0.85,
    "paragraphs": 0.7,
    "whitespace": 0.7,
    "evenly": 0.5,
    "pages": 0.8,
}

# Flattened multi-page text is less trustworthy than a single page stream.
PAGES_PARAGRAPH_CONFIDENCE = 0.6
PAGES_EVENLY_CONFIDENCE = 0.4


# ════════════════════════════════════════════════════════════════════
# MARKER DETECTOR
# ════════════════════════════════════════════════════════════════════

class MarkerMatch(NamedTuple):
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


_MARKER_PATTERNS = (
    # 'Question 1', 'Q2.', 'Q.3:', 'Answer 4', 'Ans 5 -'
    re.compile(
        r'^[ \t]*(?:q(?:uestion)?|ans(?:wer)?)[ \t]*\.?[ \t]*\d+[ \t]*[.:)\-]?',
        re.IGNORECASE | re.MULTILINE,
    ),
    # '1)'
    re.compile(r'^[ \t]*\d+\)', re.MULTILINE),
    # '1. The mitochondria', '2 - Paris', '3: Because'
    re.compile(r'^[ \t]*\d+[ \t.:,)\-]+(?=\w)', re.MULTILINE),
)


def detect_markers(text: str) -> list[MarkerMatch]:
    """
    Find question/answer numbering cues in text.

    Every pattern family is applied and the matches are unioned, then sorted
    by offset. Where two families hit the same physical marker the earliest,
    longest match is kept so a single marker yields a single boundary.

      'Question 1\\nParis\\n2) Berlin'  → [MarkerMatch(0, 10), MarkerMatch(17, 3)]
    """
    found: list[MarkerMatch] = []
    for pattern in _MARKER_PATTERNS:
        for m in pattern.finditer(text):
            if m.end() > m.start():
                found.append(MarkerMatch(m.start(), m.end() - m.start()))

    found.sort(key=lambda mm: (mm.start, -mm.length))

    merged: list[MarkerMatch] = []
    for mm in found:
        if merged and mm.start < merged[-1].end:
            continue
        merged.append(mm)
    return merged


# ════════════════════════════════════════════════════════════════════
# STRUCTURAL SEGMENTERS
# ════════════════════════════════════════════════════════════════════

_PARAGRAPH_BREAK_RE = re.compile(r'\n\s*\n')
_WHITESPACE_GAP_RE = re.compile(r'\n{3,}|\s{5,}')


def segment_by_markers(text: str, question_count: int) -> Optional[list[str]]:
    """
    Cut the text at detected markers, dropping the markers themselves.

    Segment i runs from the end of marker i to the start of marker i+1 (or the
    end of the text). Text before the first marker is discarded; it is
    usually a name/roll-number header. Returns None when there are fewer
    markers than questions.
    """
    markers = detect_markers(text)
    if question_count <= 0 or len(markers) < question_count:
        return None

    segments = []
    for i in range(question_count):
        start = markers[i].end
        end = markers[i + 1].start if i + 1 < len(markers) else len(text)
        segments.append(text[start:end].strip())
    return segments


def _split_blocks(text: str, pattern: re.Pattern, question_count: int) -> Optional[list[str]]:
    blocks = [b.strip() for b in pattern.split(text)]
    blocks = [b for b in blocks if b]
    if question_count <= 0 or len(blocks) < question_count:
        return None
    return blocks[:question_count]


def segment_by_paragraphs(text: str, question_count: int) -> Optional[list[str]]:
    """One answer per blank-line separated paragraph."""
    return _split_blocks(text, _PARAGRAPH_BREAK_RE, question_count)


def segment_by_whitespace(text: str, question_count: int) -> Optional[list[str]]:
    """
    One answer per block separated by 3+ newlines or 5+ whitespace characters.
    Catches layouts where OCR collapsed blank lines into runs of spaces.
    """
    return _split_blocks(text, _WHITESPACE_GAP_RE, question_count)


def segment_evenly(text: str, question_count: int) -> list[str]:
    """
    Divide the text into question_count equal character ranges.

    The last range absorbs the remainder. Always applicable:
      ('short', 5) → ['s', 'h', 'o', 'r', 't']
      (anything, 0) → []
    """
    if question_count <= 0:
        return []

    avg = len(text) // question_count
    segments = []
    for i in range(question_count):
        start = i * avg
        end = len(text) if i + 1 == question_count else (i + 1) * avg
        segments.append(text[start:end].strip())
    return segments


_SEGMENTERS = {
    "markers": segment_by_markers,
    "paragraphs": segment_by_paragraphs,
    "whitespace": segment_by_whitespace,
    "evenly": segment_evenly,
}

STRATEGY_ORDER = ("markers", "paragraphs", "whitespace", "evenly")


def segment_with_method(text: str, question_count: int, method: str) -> Optional[list[str]]:
    """
    Run one named structural strategy.

    Returns None when its precondition does not hold.

    Raises:
        ValueError: If the method is not a structural strategy.
    """
    if method not in _SEGMENTERS:
        raise ValueError(
            f"Unknown segmentation method: '{method}'. "
            f"Supported methods: {', '.join(_SEGMENTERS.keys())}"
        )
    return _SEGMENTERS[method](text, question_count)


# ════════════════════════════════════════════════════════════════════
# MULTI-PAGE RECONCILER
# ════════════════════════════════════════════════════════════════════

# '--- PAGE 2 ---' from the upload pipeline, '=== PAGE 2 ===' from extractors
_PAGE_MARKER_RE = re.compile(r'(?:-{3}|={3})[ \t]*PAGE[ \t]+\d+[ \t]*(?:-{3}|={3})', re.IGNORECASE)


def has_page_markers(text: str) -> bool:
    return bool(_PAGE_MARKER_RE.search(text))


def split_pages(text: str) -> list[str]:
    """Split on page markers → trimmed, non-empty page bodies."""
    return [p.strip() for p in _PAGE_MARKER_RE.split(text) if p.strip()]


def reconcile_pages(text: str, question_count: int) -> Optional[SegmentationResult]:
    """
    Segment a multi-page script.

    * No page markers        → None; caller segments the original text.
    * pages >= questions     → one page per answer ('pages').
    * otherwise              → join pages with blank lines, split by
                               paragraph, else divide evenly.
    """
    if not has_page_markers(text):
        return None

    pages = split_pages(text)
    metadata = {"pages": len(pages)}

    if question_count > 0 and len(pages) >= question_count:
        return SegmentationResult(
            method="pages",
            segments=pages[:question_count],
            confidence=METHOD_CONFIDENCE["pages"],
            metadata=metadata,
        )

    combined = "\n\n".join(pages)
    segments = segment_by_paragraphs(combined, question_count)
    if segments is not None:
        return SegmentationResult(
            method="paragraphs",
            segments=segments,
            confidence=PAGES_PARAGRAPH_CONFIDENCE,
            metadata=metadata,
        )

    return SegmentationResult(
        method="evenly",
        segments=segment_evenly(combined, question_count),
        confidence=PAGES_EVENLY_CONFIDENCE,
        metadata=metadata,
    )


# ════════════════════════════════════════════════════════════════════
# STRATEGY SELECTOR
# ════════════════════════════════════════════════════════════════════

def empty_result(question_count: int) -> SegmentationResult:
    return SegmentationResult(
        method="empty",
        segments=[""] * max(question_count, 0),
        confidence=0.0,
    )


def enhanced_segmentation(text: str, question_count: int) -> SegmentationResult:
    """
    Pick the first structural strategy able to fill every question.

    Order is fixed: markers, paragraphs, whitespace, evenly. Confidence is
    static per method, so priority decides, not score.
    """
    if question_count <= 0 or not text or not text.strip():
        return empty_result(question_count)

    paged = reconcile_pages(text, question_count)
    if paged is not None:
        logger.info("Segmented %d pages with method '%s'", paged.metadata["pages"], paged.method)
        return paged

    for method in STRATEGY_ORDER[:-1]:
        segments = _SEGMENTERS[method](text, question_count)
        if segments is not None:
            logger.info("Segmented %d answers with method '%s'", question_count, method)
            return SegmentationResult(
                method=method,
                segments=segments,
                confidence=METHOD_CONFIDENCE[method],
            )

    logger.info("No structure found, dividing text evenly into %d answers", question_count)
    return SegmentationResult(
        method="evenly",
        segments=segment_evenly(text, question_count),
        confidence=METHOD_CONFIDENCE["evenly"],
    )
