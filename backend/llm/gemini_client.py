import os
import logging
from typing import Optional

import httpx

from .base import LLMClient

logger = logging.getLogger(__name__)


class GeminiClient(LLMClient):
    """
    Generative-text client for Google Gemini (generateContent REST API).

    - Single request per call, no retry.
    - Low temperature so repeated runs segment the same way.
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    DEFAULT_MODEL = "gemini-2.0-flash"
    TEMPERATURE = 0.1

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self.model = model or os.getenv("GEMINI_MODEL", self.DEFAULT_MODEL)
        self.timeout = timeout
        self.transport = transport
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY must be set in .env")

    async def generate(self, prompt: str) -> str:
        url = f"{self.BASE_URL}/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.TEMPERATURE},
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(url, params={"key": self.api_key}, json=payload)
            response.raise_for_status()
            result = response.json()

        candidates = result.get("candidates") or []
        if not candidates:
            raise RuntimeError(f"Gemini returned no candidates (model {self.model})")

        parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(p.get("text", "") for p in parts)
        logger.debug("Gemini replied with %d chars", len(text))
        return text.strip()
