from datetime import datetime, timezone
from typing import Iterable, Optional

from models import CorrectionRecord
from .base import CorrectionStore

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(record: CorrectionRecord) -> datetime:
    ts = record.created_at
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class InMemoryCorrectionStore(CorrectionStore):
    """
    List-backed correction history.

    Used for local runs without a database and in tests.
    """

    def __init__(self, records: Optional[Iterable[CorrectionRecord]] = None):
        self._records = list(records or [])

    async def recent_corrections(self, teacher_id: str, limit: int = 10) -> list[CorrectionRecord]:
        mine = [r for r in self._records if r.teacher_id == teacher_id]
        mine.sort(key=_sort_key, reverse=True)
        return mine[:limit]
