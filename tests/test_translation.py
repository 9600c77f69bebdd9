"""Tests for the DeepL translator, using httpx's mock transport."""

from urllib.parse import parse_qs

import httpx
import pytest

from backend.errors import TranslationError, ValidationError
from backend.translation import DeepLTranslator

API_URL = "https://deepl.test/v2/translate"


def make_translator(handler, api_key: str = "test-key") -> DeepLTranslator:
    return DeepLTranslator(api_key=api_key, api_url=API_URL, transport=httpx.MockTransport(handler))


class TestDeepLTranslator:
    @pytest.mark.asyncio
    async def test_translate_sends_form(self) -> None:
        seen: list[dict[str, list[str]]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"translations": [{"text": "good morning"}]})

        result = await make_translator(handler).translate("dzień dobry", "pl", "en")

        assert result == "good morning"
        form = seen[0]
        assert form["auth_key"] == ["test-key"]
        assert form["text"] == ["dzień dobry"]
        assert form["source_lang"] == ["PL"]
        assert form["target_lang"] == ["EN"]

    @pytest.mark.asyncio
    async def test_same_language_skips_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await make_translator(handler).translate("kot", "pl", "pl") == "kot"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("text", "source", "target"),
        [("", "pl", "en"), ("   ", "pl", "en"), ("kot", "de", "en"), ("kot", "pl", "fr")],
    )
    async def test_invalid_input(self, text: str, source: str, target: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ValidationError):
            await make_translator(handler).translate(text, source, target)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_missing_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(TranslationError) as exc_info:
            await make_translator(handler, api_key="").translate("kot", "pl", "en")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(456, text="Quota exceeded")

        with pytest.raises(TranslationError, match="456"):
            await make_translator(handler).translate("kot", "pl", "en")
        # HTTP errors are not retried
        assert len(calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"translations": []}, {"message": "?"}, [], {"translations": ["cat"]}, {"translations": {"text": "cat"}}],
    )
    async def test_no_translation(self, body: object) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(TranslationError):
            await make_translator(handler).translate("kot", "pl", "en")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(TranslationError):
            await make_translator(handler).translate("kot", "pl", "en")

    @pytest.mark.asyncio
    async def test_transport_error_retried(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"translations": [{"text": "cat"}]})

        assert await make_translator(handler).translate("kot", "pl", "en") == "cat"
        assert len(calls) == 2
