"""
TRANSLATION SERVICE MODULE
==========================

Translates the assistant's English reply into the user's language through a
LibreTranslate-compatible /translate endpoint.

RULES:
  - Same source and target, or target "en": returned unchanged, no call.
  - Target outside WELL_SUPPORTED_LANGUAGES: returned unchanged, no call. The
    public LibreTranslate instance has poor Kannada/Tamil/Telugu/Malayalam models.
  - Otherwise one POST with a 15 second timeout. Any failure (timeout, non-2xx,
    body without translatedText) returns the original text.

Translation never fails a chat request; ChatService adds a short note to the
reply when translate_detailed() reports that nothing was translated.
"""

import logging
from typing import NamedTuple, Optional

import httpx

from config import TRANSLATION_TIMEOUT_SECONDS, WELL_SUPPORTED_LANGUAGES
from civichub.utils.language import get_language_name

logger = logging.getLogger("CivicHub")


class TranslationResult(NamedTuple):
    text: str
    translated: bool
    # "same_language", "unsupported", "failed" or "" when translated.
    reason: str = ""


def is_language_supported(code: str) -> bool:
    return code in WELL_SUPPORTED_LANGUAGES


class TranslationService:
    """Thin client for a LibreTranslate-compatible API."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = TRANSLATION_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        # Tests pass a client with httpx.MockTransport.
        self.client = client or httpx.Client(timeout=timeout)

    def translate(self, text: str, source_lang: str = "en", target_lang: str = "hi") -> str:
        """Return text translated to target_lang, or the original text."""
        return self.translate_detailed(text, source_lang, target_lang).text

    def translate_detailed(self, text: str, source_lang: str = "en", target_lang: str = "hi") -> TranslationResult:
        if source_lang == target_lang or target_lang == "en":
            return TranslationResult(text, False, "same_language")

        if not is_language_supported(target_lang):
            logger.info(
                "Language %s (%s) has limited translation support. Returning English response.",
                target_lang,
                get_language_name(target_lang),
            )
            return TranslationResult(text, False, "unsupported")

        payload = {"q": text, "source": source_lang, "target": target_lang, "format": "text"}
        if self.api_key:
            payload["api_key"] = self.api_key

        logger.info("Translating reply from %s to %s", source_lang, target_lang)
        try:
            response = self.client.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Translation error: status %s body %s",
                e.response.status_code,
                e.response.text[:500],
            )
            return TranslationResult(text, False, "failed")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Translation error: %s", e)
            return TranslationResult(text, False, "failed")

        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str) or not translated.strip():
            logger.error("Translation response invalid: %r", data)
            return TranslationResult(text, False, "failed")

        logger.info("Translation successful")
        return TranslationResult(translated, True)

    def close(self) -> None:
        self.client.close()
