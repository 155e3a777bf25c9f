import logging

import openai
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import MalformedResponseError, TransientError
from .base import BaseCompletionClient, classify_openai_error

logger = logging.getLogger(__name__)


class ChatCompletionClient(BaseCompletionClient):
    """Completion client on top of the Chat Completions API."""

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=15),
        retry=retry_if_exception_type(TransientError),
    )
    def complete(self, prompt: str, max_tokens: int) -> str:
        client = self._require_client()

        request_args = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }
        if self.temperature is not None:
            request_args["temperature"] = self.temperature

        try:
            resp = client.chat.completions.create(**request_args)
        except openai.OpenAIError as exc:
            mapped = classify_openai_error(exc)
            logger.warning("Chat completion failed (%s): %s", type(mapped).__name__, exc)
            raise mapped from exc

        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise MalformedResponseError("Chat completion returned no choices")
        out = (choices[0].message.content or "").strip()
        if not out:
            raise MalformedResponseError("Chat completion returned empty content")
        logger.debug("Chat completion reply: %s", out[:400])
        return out
