from .base import LLMClient
from .gemini_client import GeminiClient
from .openai_client import OpenAIClient

PROVIDERS = {
    "gemini": GeminiClient,
    "openai": OpenAIClient,
}


def get_client(provider_name: str, timeout: float = 30.0) -> LLMClient:
    """
    Build the LLM client named by LLM_PROVIDER ('gemini' or 'openai').

    The client reads its API key and model from the environment, so a missing
    key surfaces here as ValueError, the same as an unknown provider.
    """
    client_cls = PROVIDERS.get(provider_name)
    if client_cls is None:
        raise ValueError(
            f"Unknown provider: '{provider_name}'. "
            f"Supported providers: {', '.join(PROVIDERS)}"
        )
    return client_cls(timeout=timeout)
