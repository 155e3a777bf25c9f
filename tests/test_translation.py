from unittest.mock import MagicMock

import pytest
import requests

from pptx_assistant.config import Settings
from pptx_assistant.errors import TranslationError
from pptx_assistant.translation import (
    CompletionTranslator,
    DeepLTranslationService,
    FallbackTranslator,
    build_translator,
    canonical_language,
    language_code,
)


def deepl_response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload if payload is not None else {}
    response.text = ""
    return response


class TestLanguages:
    @pytest.mark.parametrize(
        "token, name",
        [("Spanish", "Spanish"), ("español", "Spanish"), ("中文", "Chinese"), ("DEUTSCH", "German")],
    )
    def test_canonical(self, token, name) -> None:
        assert canonical_language(token) == name

    def test_codes_only_when_allowed(self) -> None:
        assert canonical_language("fr") is None
        assert canonical_language("fr", allow_codes=True) == "French"

    def test_language_code(self) -> None:
        assert language_code("Chinese") == "ZH"
        assert language_code("English") == "EN-US"
        assert language_code("Klingon") is None


class TestDeepL:
    def test_posts_text_and_target(self) -> None:
        session = MagicMock()
        session.post.return_value = deepl_response(payload={"translations": [{"text": "Hallo"}]})
        service = DeepLTranslationService("key-1", "https://deepl.test/v2/translate", session=session)

        assert service.translate("Hello", "DE") == "Hallo"
        args, kwargs = session.post.call_args
        assert args[0] == "https://deepl.test/v2/translate"
        assert kwargs["json"] == {"text": ["Hello"], "target_lang": "DE"}
        assert kwargs["headers"]["Authorization"] == "DeepL-Auth-Key key-1"

    def test_http_error(self) -> None:
        session = MagicMock()
        session.post.return_value = deepl_response(403, {"message": "Forbidden"})
        service = DeepLTranslationService("bad", "https://deepl.test", session=session)
        with pytest.raises(TranslationError, match="403"):
            service.translate("Hello", "DE")

    def test_network_error(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.exceptions.ConnectionError("down")
        service = DeepLTranslationService("key", "https://deepl.test", session=session)
        with pytest.raises(TranslationError):
            service.translate("Hello", "DE")

    def test_empty_translations(self) -> None:
        session = MagicMock()
        session.post.return_value = deepl_response(payload={"translations": []})
        service = DeepLTranslationService("key", "https://deepl.test", session=session)
        with pytest.raises(TranslationError):
            service.translate("Hello", "DE")


class TestFallback:
    def test_service_first(self, prefix_service, fake_completion) -> None:
        client = fake_completion("Bonjour")
        translator = FallbackTranslator(prefix_service, CompletionTranslator(client))
        assert translator.translate("Hello", "French") == "FR:Hello"
        assert client.prompts == []

    def test_falls_back_on_service_error(self, fake_completion) -> None:
        service = MagicMock()
        service.translate.side_effect = TranslationError("quota")
        client = fake_completion('"Bonjour"')
        translator = FallbackTranslator(service, CompletionTranslator(client))
        assert translator.translate("Hello", "French") == "Bonjour"
        assert "Translate this text to French" in client.prompts[0]

    def test_falls_back_on_empty_result(self, fake_completion) -> None:
        service = MagicMock()
        service.translate.return_value = "  "
        translator = FallbackTranslator(service, CompletionTranslator(fake_completion("Hola")))
        assert translator.translate("Hello", "Spanish") == "Hola"

    def test_unknown_code_goes_straight_to_model(self, prefix_service, fake_completion) -> None:
        translator = FallbackTranslator(prefix_service, CompletionTranslator(fake_completion("Saluton")))
        assert translator.translate("Hello", "Esperanto") == "Saluton"
        assert prefix_service.calls == []

    def test_no_backend(self) -> None:
        with pytest.raises(TranslationError):
            FallbackTranslator().translate("Hello", "French")


class TestBuildTranslator:
    def test_deepl_only_with_key(self, fake_completion) -> None:
        assert build_translator(Settings(), fake_completion()).service is None
        translator = build_translator(Settings(deepl_api_key="k"), None)
        assert isinstance(translator.service, DeepLTranslationService)
        assert translator.completion is None
