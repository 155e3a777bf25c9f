import logging
from typing import List

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


class ResponsesCompletionClient(BaseCompletionClient):
    """Completion client on top of the Responses API."""

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
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            "max_output_tokens": max_tokens,
        }
        if self.temperature is not None:
            request_args["temperature"] = self.temperature

        try:
            resp = client.responses.create(**request_args)
        except openai.OpenAIError as exc:
            mapped = classify_openai_error(exc)
            logger.warning("Responses call failed (%s): %s", type(mapped).__name__, exc)
            raise mapped from exc

        # Aggregate all text outputs; Responses API may return multiple pieces.
        collected_text: List[str] = []
        for output in getattr(resp, "output", []) or []:
            for content in getattr(output, "content", []) or []:
                if getattr(content, "type", None) == "output_text":
                    text_val = getattr(content, "text", None)
                    if text_val:
                        collected_text.append(text_val)

        if not collected_text:
            raw_text = getattr(resp, "output_text", "")
            if raw_text:
                collected_text.append(raw_text)

        out = "\n".join(collected_text).strip()
        if not out:
            logger.warning("Responses API returned empty payload.")
            raise MalformedResponseError("Responses API returned no text output")
        logger.debug("Responses reply: %s", out[:400])
        return out
