from .client import (
    FakeLLMClient,
    LLMClient,
    LLMResponse,
    MalformedResponseError,
    OpenRouterClient,
    create_client,
)

__all__ = [
    "FakeLLMClient",
    "LLMClient",
    "LLMResponse",
    "MalformedResponseError",
    "OpenRouterClient",
    "create_client",
]
