from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question_text: str
    marks: float = 0


class SegmentationResult(BaseModel):
    method: str
    segments: list[str]
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: Optional[dict[str, Any]] = None


class CorrectionRecord(BaseModel):
    teacher_id: str
    segmentation_method: Optional[str] = None
    original_text: Optional[str] = None
    corrected_text: Optional[str] = None
    answer_id: Optional[str] = None
    created_at: Optional[datetime] = None


class SegmentRequest(BaseModel):
    text: str
    questions: list[Question]
    teacher_id: Optional[str] = None
    has_illustration: bool = False
    ocr_confidence: Optional[float] = None
