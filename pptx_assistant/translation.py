"""Translation backends: DeepL over HTTP with a language-model fallback."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import requests

from .completions import BaseCompletionClient
from .config import Settings
from .errors import TranslationError

logger = logging.getLogger(__name__)

# canonical name -> (DeepL target code, lowercase aliases)
SUPPORTED_LANGUAGES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "English": ("EN-US", ("english", "inglés", "anglais", "englisch")),
    "Spanish": ("ES", ("spanish", "español", "espanol", "castellano")),
    "French": ("FR", ("french", "français", "francais")),
    "German": ("DE", ("german", "deutsch")),
    "Italian": ("IT", ("italian", "italiano")),
    "Portuguese": ("PT-PT", ("portuguese", "português", "portugues")),
    "Chinese": ("ZH", ("chinese", "中文", "mandarin")),
    "Japanese": ("JA", ("japanese", "日本語")),
    "Korean": ("KO", ("korean", "한국어")),
    "Russian": ("RU", ("russian", "русский")),
    "Arabic": ("AR", ("arabic", "العربية")),
    "Hindi": ("HI", ("hindi", "हिन्दी")),
    "Dutch": ("NL", ("dutch", "nederlands")),
    "Swedish": ("SV", ("swedish", "svenska")),
    "Norwegian": ("NB", ("norwegian", "norsk")),
    "Danish": ("DA", ("danish", "dansk")),
    "Polish": ("PL", ("polish", "polski")),
    "Turkish": ("TR", ("turkish", "türkçe")),
    "Greek": ("EL", ("greek", "ελληνικά")),
    "Czech": ("CS", ("czech", "čeština")),
    "Finnish": ("FI", ("finnish", "suomi")),
    "Ukrainian": ("UK", ("ukrainian", "українська")),
    "Indonesian": ("ID", ("indonesian", "bahasa indonesia")),
    "Vietnamese": ("VI", ("vietnamese", "tiếng việt")),
    "Hebrew": ("HE", ("hebrew", "עברית")),
}

_ALIASES: Dict[str, str] = {
    alias: name for name, (_, aliases) in SUPPORTED_LANGUAGES.items() for alias in aliases
}
_CODES: Dict[str, str] = {
    code.split("-")[0].lower(): name for name, (code, _) in SUPPORTED_LANGUAGES.items()
}


def canonical_language(token: Optional[str], allow_codes: bool = False) -> Optional[str]:
    """Return the canonical English name for ``token`` or None."""
    if not token:
        return None
    key = token.strip().strip("\"'“”.!?").lower()
    if key in _ALIASES:
        return _ALIASES[key]
    if allow_codes and key in _CODES:
        return _CODES[key]
    return None


def language_code(language: str) -> Optional[str]:
    name = canonical_language(language, allow_codes=True)
    if name is None:
        return None
    return SUPPORTED_LANGUAGES[name][0]


def build_translation_prompt(text: str, language: str) -> str:
    return (
        f'Translate this text to {language}: "{text}"\n\n'
        "Requirements:\n"
        "- Maintain professional presentation tone\n"
        "- Preserve numbers, product names and line breaks\n"
        "- Use natural, contextually appropriate language\n\n"
        "Provide ONLY the translated text without explanations or quotes:"
    )


def strip_wrapping_quotes(text: str) -> str:
    out = text.strip()
    for left, right in (('"', '"'), ("“", "”"), ("'", "'")):
        if len(out) >= 2 and out.startswith(left) and out.endswith(right):
            return out[1:-1].strip()
    return out


class BaseTranslationService(ABC):
    @abstractmethod
    def translate(self, text: str, target_language_code: str) -> str:
        raise NotImplementedError


class DeepLTranslationService(BaseTranslationService):
    def __init__(self, api_key: str, endpoint: str, timeout: float = 30.0, session=None):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def translate(self, text: str, target_language_code: str) -> str:
        headers = {
            "Authorization": f"DeepL-Auth-Key {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"text": [text], "target_lang": target_language_code}
        try:
            response = self.session.post(
                self.endpoint, headers=headers, json=payload, timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            raise TranslationError(f"DeepL request failed: {exc}") from exc

        if response.status_code != 200:
            try:
                detail = response.json().get("message", "")
            except ValueError:
                detail = response.text[:200]
            raise TranslationError(f"DeepL API error {response.status_code}: {detail}")

        try:
            translations = response.json().get("translations") or []
        except ValueError as exc:
            raise TranslationError("DeepL returned invalid JSON") from exc
        if not translations:
            raise TranslationError("DeepL returned no translations")
        return translations[0].get("text", "")


class CompletionTranslator:
    """Translate one text through the language model."""

    def __init__(self, client: BaseCompletionClient):
        self.client = client

    def translate(self, text: str, language: str) -> str:
        max_tokens = min(4000, max(200, len(text) * 2))
        return strip_wrapping_quotes(
            self.client.complete(build_translation_prompt(text, language), max_tokens)
        )


class FallbackTranslator:
    def __init__(
        self,
        service: Optional[BaseTranslationService] = None,
        completion: Optional[CompletionTranslator] = None,
    ):
        self.service = service
        self.completion = completion

    def translate(self, text: str, language: str) -> str:
        code = language_code(language)
        if self.service is not None and code:
            try:
                out = self.service.translate(text, code)
            except Exception as exc:
                logger.warning(
                    "Translation service failed for %r (%s); falling back to the language model.",
                    text[:30],
                    exc,
                )
            else:
                if out and out.strip():
                    return out
                logger.warning(
                    "Translation service returned nothing for %r; falling back to the language model.",
                    text[:30],
                )
        if self.completion is None:
            raise TranslationError(f"No translation backend available for {language}.")
        return self.completion.translate(text, language)


def build_translator(
    settings: Settings, completion_client: Optional[BaseCompletionClient]
) -> FallbackTranslator:
    service = None
    if settings.deepl_api_key:
        service = DeepLTranslationService(
            settings.deepl_api_key,
            settings.deepl_endpoint,
            timeout=settings.request_timeout,
        )
    completion = CompletionTranslator(completion_client) if completion_client else None
    return FallbackTranslator(service, completion)
