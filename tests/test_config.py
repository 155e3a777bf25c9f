import pytest

from pptx_assistant.config import DEFAULT_DEEPL_ENDPOINT, DEFAULT_MODEL, load_settings
from pptx_assistant.errors import ConfigError


def test_defaults() -> None:
    settings = load_settings({})
    assert settings.model == DEFAULT_MODEL
    assert settings.api == "chat"
    assert settings.openai_api_key is None
    assert settings.deepl_endpoint == DEFAULT_DEEPL_ENDPOINT
    assert settings.batch_size == 10
    assert settings.batch_pause == pytest.approx(0.1)
    assert settings.undo_depth == 10


def test_environment_overrides() -> None:
    settings = load_settings(
        {
            "OPENAI_API_KEY": "sk-test",
            "PPTX_ASSISTANT_MODEL": "gpt-4o",
            "PPTX_ASSISTANT_API": "Responses",
            "PPTX_ASSISTANT_TEMPERATURE": "0.3",
            "PPTX_ASSISTANT_BATCH_SIZE": "5",
            "PPTX_ASSISTANT_UNDO_DEPTH": "3",
            "DEEPL_API_KEY": "dk",
        }
    )
    assert settings.openai_api_key == "sk-test"
    assert settings.model == "gpt-4o"
    assert settings.api == "responses"
    assert settings.temperature == pytest.approx(0.3)
    assert settings.batch_size == 5
    assert settings.undo_depth == 3
    assert settings.deepl_api_key == "dk"


@pytest.mark.parametrize(
    "env",
    [
        {"PPTX_ASSISTANT_API": "completions"},
        {"PPTX_ASSISTANT_BATCH_SIZE": "many"},
        {"PPTX_ASSISTANT_BATCH_SIZE": "0"},
        {"PPTX_ASSISTANT_UNDO_DEPTH": "-1"},
        {"PPTX_ASSISTANT_TIMEOUT": "soon"},
    ],
)
def test_invalid_values(env) -> None:
    with pytest.raises(ConfigError):
        load_settings(env)
