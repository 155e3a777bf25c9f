from ..config import Settings
from .base import BaseCompletionClient, classify_openai_error
from .chat import ChatCompletionClient
from .responses import ResponsesCompletionClient


def build_completion_client(settings: Settings) -> BaseCompletionClient:
    cls = ResponsesCompletionClient if settings.api == "responses" else ChatCompletionClient
    return cls(
        model=settings.model,
        api_key=settings.openai_api_key,
        temperature=settings.temperature,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
    )


__all__ = [
    "BaseCompletionClient",
    "ChatCompletionClient",
    "ResponsesCompletionClient",
    "build_completion_client",
    "classify_openai_error",
]
