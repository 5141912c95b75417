from abc import ABC, abstractmethod

from models import CorrectionRecord


class CorrectionStore(ABC):
    """Read-only access to teachers' past segment corrections."""

    @abstractmethod
    async def recent_corrections(self, teacher_id: str, limit: int = 10) -> list[CorrectionRecord]:
        """
        Fetch a teacher's most recent corrections.

        Args:
            teacher_id: Teacher whose history to read.
            limit: Maximum number of records.

        Returns:
            Records ordered newest first.
        """
        ...
