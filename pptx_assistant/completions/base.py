from abc import ABC, abstractmethod
from typing import Optional

import openai
from openai import OpenAI

from ..errors import CompletionError, ConfigError, MalformedResponseError, TransientError

SETUP_HINT = (
    "Set the OPENAI_API_KEY environment variable (or add it to a .env file) "
    "to enable AI features."
)


def classify_openai_error(exc: Exception) -> CompletionError:
    """Map an OpenAI SDK exception onto the assistant's error taxonomy."""
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ConfigError(f"The OpenAI API rejected the credentials: {exc}. {SETUP_HINT}")
    if isinstance(exc, (openai.NotFoundError, openai.BadRequestError)):
        return ConfigError(f"The OpenAI API rejected the request configuration: {exc}")
    if isinstance(exc, (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)):
        return TransientError(str(exc) or type(exc).__name__)
    if isinstance(exc, openai.APIStatusError):
        return TransientError(f"HTTP {exc.status_code}: {exc}")
    return MalformedResponseError(str(exc) or type(exc).__name__)


class BaseCompletionClient(ABC):
    def __init__(
        self,
        model: str,
        api_key: Optional[str],
        temperature: Optional[float] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.model = model
        self.temperature = temperature
        self.client = None
        if api_key:
            self.client = OpenAI(
                api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
            )

    def _require_client(self):
        if self.client is None:
            raise ConfigError(f"No OpenAI API key configured. {SETUP_HINT}")
        return self.client

    @abstractmethod
    def complete(self, prompt: str, max_tokens: int) -> str:
        raise NotImplementedError
