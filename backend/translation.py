"""Machine translation between Polish and English via the DeepL API."""

import logging
from typing import Literal

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from backend.config import settings
from backend.errors import TranslationError, ValidationError

logger = logging.getLogger(__name__)

Language = Literal["pl", "en"]
SUPPORTED_LANGUAGES = ("pl", "en")


class DeepLTranslator:
    """Async DeepL client. Transport errors are retried; HTTP errors are not."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.deepl_api_key
        self.api_url = api_url or settings.deepl_api_url
        self._transport = transport

    async def translate(self, text: str, source: Language, target: Language) -> str:
        """Translate text from one language to the other.

        Raises:
            ValidationError: On empty text or an unsupported language.
            TranslationError: If the API fails or returns no translation.
        """
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")
        for lang in (source, target):
            if lang not in SUPPORTED_LANGUAGES:
                raise ValidationError(f"Unsupported language: {lang!r}")
        if source == target:
            return text
        if not self.api_key:
            raise TranslationError("DeepL API key is not configured", status_code=500)

        try:
            data = await self._post(
                {
                    "auth_key": self.api_key,
                    "text": text,
                    "source_lang": source.upper(),
                    "target_lang": target.upper(),
                }
            )
        except httpx.TransportError as exc:
            raise TranslationError(f"Could not reach DeepL API: {exc}") from exc
        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, list) or not translations or not isinstance(translations[0], dict):
            raise TranslationError("No translation received from DeepL API")
        translated = translations[0].get("text", "")
        logger.debug("Translated %r (%s->%s) to %r", text, source, target, translated)
        return translated

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _post(self, form: dict[str, str]) -> dict:
        async with httpx.AsyncClient(
            transport=self._transport, timeout=settings.http_timeout_seconds
        ) as client:
            response = await client.post(self.api_url, data=form)
        if response.status_code >= 400:
            logger.error("DeepL API error: %d %s", response.status_code, response.text[:200])
            raise TranslationError(f"DeepL API failed: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise TranslationError("DeepL API returned invalid JSON") from exc
