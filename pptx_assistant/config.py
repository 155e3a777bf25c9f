"""Runtime settings for the slide assistant, read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_DEEPL_ENDPOINT = "https://api-free.deepl.com/v2/translate"
SUPPORTED_APIS = ("chat", "responses")


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    api: str = "chat"
    temperature: Optional[float] = None
    request_timeout: float = 60.0
    deepl_api_key: Optional[str] = None
    deepl_endpoint: str = DEFAULT_DEEPL_ENDPOINT
    batch_size: int = 10
    batch_pause: float = 0.1
    undo_depth: int = 10
    intent_max_tokens: int = 200
    state_dir: str = os.path.join("~", ".pptx_assistant")


def _number(env: Mapping[str, str], name: str, cast, default):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}.")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env

    api = (env.get("PPTX_ASSISTANT_API") or "chat").strip().lower()
    if api not in SUPPORTED_APIS:
        raise ConfigError(
            f"PPTX_ASSISTANT_API must be one of {', '.join(SUPPORTED_APIS)}, got {api!r}."
        )

    settings = Settings(
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        openai_base_url=env.get("OPENAI_BASE_URL") or None,
        model=env.get("PPTX_ASSISTANT_MODEL") or DEFAULT_MODEL,
        api=api,
        temperature=_number(env, "PPTX_ASSISTANT_TEMPERATURE", float, None),
        request_timeout=_number(env, "PPTX_ASSISTANT_TIMEOUT", float, 60.0),
        deepl_api_key=env.get("DEEPL_API_KEY") or None,
        deepl_endpoint=env.get("DEEPL_ENDPOINT") or DEFAULT_DEEPL_ENDPOINT,
        batch_size=_number(env, "PPTX_ASSISTANT_BATCH_SIZE", int, 10),
        batch_pause=_number(env, "PPTX_ASSISTANT_BATCH_PAUSE", float, 0.1),
        undo_depth=_number(env, "PPTX_ASSISTANT_UNDO_DEPTH", int, 10),
        intent_max_tokens=_number(env, "PPTX_ASSISTANT_INTENT_TOKENS", int, 200),
        state_dir=env.get("PPTX_ASSISTANT_STATE_DIR") or Settings.state_dir,
    )
    if settings.batch_size < 1:
        raise ConfigError("PPTX_ASSISTANT_BATCH_SIZE must be at least 1.")
    if settings.undo_depth < 1:
        raise ConfigError("PPTX_ASSISTANT_UNDO_DEPTH must be at least 1.")
    return settings
