"""
Shared test fixtures for the segmentation engine.
Zero network calls. LLM and correction-store collaborators are in-process fakes.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from corrections.base import CorrectionStore
from llm.base import LLMClient
from models import CorrectionRecord, Question


class FakeLLMClient(LLMClient):
    """Returns a canned reply and remembers every prompt it was sent."""

    def __init__(self, reply: str = "", error: Exception = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeCorrectionStore(CorrectionStore):
    def __init__(self, records=None, error: Exception = None):
        self.records = list(records or [])
        self.error = error
        self.calls = []

    async def recent_corrections(self, teacher_id: str, limit: int = 10):
        self.calls.append((teacher_id, limit))
        if self.error is not None:
            raise self.error
        return self.records[:limit]


@pytest.fixture
def make_questions():
    """Build n placeholder questions."""
    def _make(n):
        return [
            Question(id=f"q{i + 1}", question_text=f"Question text {i + 1}", marks=5)
            for i in range(n)
        ]
    return _make


@pytest.fixture
def llm_client():
    return FakeLLMClient


@pytest.fixture
def correction_store():
    return FakeCorrectionStore


@pytest.fixture
def make_corrections():
    """Build correction records for teacher 't1', newest first, one per method tag."""
    def _make(*methods, teacher_id="t1"):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        return [
            CorrectionRecord(
                teacher_id=teacher_id,
                segmentation_method=m,
                original_text="before",
                corrected_text="after",
                created_at=now - timedelta(minutes=i),
            )
            for i, m in enumerate(methods)
        ]
    return _make


MARKER_SCRIPT = "Question 1\nParis\nQuestion 2\nBerlin"
PARAGRAPH_SCRIPT = "Paris is the capital of France.\n\nBerlin is the capital of Germany."
PAGED_SCRIPT = (
    "--- PAGE 1 ---\nPhotosynthesis turns light into chemical energy.\n"
    "--- PAGE 2 ---\nMitosis has four phases.\n"
    "--- PAGE 3 ---\nAn object at rest stays at rest.\n"
)


@pytest.fixture
def marker_script():
    return MARKER_SCRIPT


@pytest.fixture
def paragraph_script():
    return PARAGRAPH_SCRIPT


@pytest.fixture
def paged_script():
    return PAGED_SCRIPT
