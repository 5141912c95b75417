from abc import ABC, abstractmethod


class LLMClient(ABC):
    """Abstract base class for generative-text backends."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Send a single prompt and return the model's text reply.

        Args:
            prompt: Full natural-language instruction.

        Returns:
            Raw response text, possibly wrapped in markdown code fences.

        Implementations make exactly one request; callers own fallback.
        """
        ...
