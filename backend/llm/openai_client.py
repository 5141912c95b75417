import os
import logging
from typing import Optional

import httpx

from .base import LLMClient

logger = logging.getLogger(__name__)


class OpenAIClient(LLMClient):
    """Generative-text client for the OpenAI chat completions API."""

    BASE_URL = "https://api.openai.com/v1/chat/completions"
    DEFAULT_MODEL = "gpt-4o-mini"
    TEMPERATURE = 0.1

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self.model = model or os.getenv("OPENAI_MODEL", self.DEFAULT_MODEL)
        self.timeout = timeout
        self.transport = transport
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY must be set in .env")

    async def generate(self, prompt: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.TEMPERATURE,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.BASE_URL, headers=headers, json=payload)
            response.raise_for_status()
            result = response.json()

        choices = result.get("choices") or []
        if not choices:
            raise RuntimeError(f"OpenAI returned no choices (model {self.model})")

        text = choices[0].get("message", {}).get("content") or ""
        logger.debug("OpenAI replied with %d chars", len(text))
        return text.strip()
