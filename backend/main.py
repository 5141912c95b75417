import os
import logging
from functools import lru_cache
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from dotenv import load_dotenv

from corrections.base import CorrectionStore
from corrections.factory import get_correction_store
from hybrid import hybrid_segmentation
from llm.base import LLMClient
from llm.factory import get_client
from models import SegmentRequest, SegmentationResult
from segmentation import (
    STRATEGY_ORDER,
    detect_markers,
    enhanced_segmentation,
    reconcile_pages,
    segment_with_method,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
load_dotenv()

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))
CORRECTION_STORE = os.getenv("CORRECTION_STORE", "memory")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Answer Segmentation API")

# CORS – allow the grading frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
def get_llm_client() -> Optional[LLMClient]:
    """LLM client for this request, or None when the provider is not configured."""
    try:
        return get_client(LLM_PROVIDER, timeout=LLM_TIMEOUT)
    except ValueError as e:
        logger.warning("ML segmentation disabled: %s", e)
        return None


@lru_cache(maxsize=1)
def get_store() -> Optional[CorrectionStore]:
    """Process-wide correction store, built on first use and shared by every request."""
    try:
        return get_correction_store(CORRECTION_STORE)
    except ValueError as e:
        logger.warning("Teacher feedback disabled: %s", e)
        return None


def _check_request(req: SegmentRequest) -> None:
    if not req.questions:
        raise HTTPException(status_code=400, detail="At least one question is required.")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/segment", response_model=SegmentationResult)
async def segment(req: SegmentRequest):
    """Split one script's OCR text into per-question answers (ML → teacher → structural)."""
    _check_request(req)

    result = await hybrid_segmentation(
        req.text,
        req.questions,
        client=get_llm_client(),
        teacher_id=req.teacher_id,
        store=get_store() if req.teacher_id else None,
        has_illustration=req.has_illustration,
        timeout=LLM_TIMEOUT,
    )

    if req.ocr_confidence is not None:
        result.metadata = {**(result.metadata or {}), "ocr_confidence": req.ocr_confidence}

    logger.info(
        "Segmented %d chars into %d answers via %s (%.2f)",
        len(req.text),
        len(result.segments),
        result.method,
        result.confidence,
    )
    return result


@app.post("/segment/structural", response_model=SegmentationResult)
async def segment_structural(req: SegmentRequest):
    """Structural segmentation only, no external calls."""
    _check_request(req)
    return enhanced_segmentation(req.text, len(req.questions))


@app.post("/debug", response_class=PlainTextResponse)
async def debug_strategies(req: SegmentRequest):
    """Return every structural strategy's output for the text (for debugging)."""
    count = len(req.questions)
    chosen = enhanced_segmentation(req.text, count)

    output = f"=== QUESTIONS: {count} ===\n"
    output += f"=== MARKERS DETECTED: {len(detect_markers(req.text))} ===\n"
    output += f"=== CHOSEN: {chosen.method} ({chosen.confidence:.2f}) ===\n"

    paged = reconcile_pages(req.text, count)
    if paged is not None:
        output += f"\n=== PAGES ({paged.metadata['pages']}) → {paged.method} ===\n"
        for i, seg in enumerate(paged.segments, 1):
            output += f"\n--- ANSWER {i} ---\n{seg}\n"

    for method in STRATEGY_ORDER:
        segments = segment_with_method(req.text, count, method)
        output += f"\n=== {method.upper()} ===\n"
        if segments is None:
            output += "(not applicable)\n"
            continue
        for i, seg in enumerate(segments, 1):
            output += f"\n--- ANSWER {i} ---\n{seg}\n"

    return output
