import os
import logging
from typing import Optional

import httpx

from models import CorrectionRecord
from .base import CorrectionStore

logger = logging.getLogger(__name__)


class SupabaseCorrectionStore(CorrectionStore):
    """
    Correction history from the `segmentation_corrections` table, read through
    the Supabase REST (PostgREST) endpoint.

    Read-only: rows are written by the grading UI when a teacher edits a segment.
    """

    TABLE = "segmentation_corrections"
    COLUMNS = "teacher_id,answer_id,segmentation_method,original_text,corrected_text,created_at"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = (url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_SERVICE_KEY", "")
        self.timeout = timeout
        self.transport = transport
        if not self.url or not self.api_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in .env")

    async def recent_corrections(self, teacher_id: str, limit: int = 10) -> list[CorrectionRecord]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        params = {
            "select": self.COLUMNS,
            "teacher_id": f"eq.{teacher_id}",
            "order": "created_at.desc",
            "limit": str(limit),
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(f"{self.url}/rest/v1/{self.TABLE}", headers=headers, params=params)
            response.raise_for_status()
            rows = response.json()

        logger.info("Loaded %d corrections for teacher %s", len(rows), teacher_id)
        return [CorrectionRecord.model_validate(row) for row in rows]
