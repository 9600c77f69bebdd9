"""API route for Polish/English translation."""

from fastapi import APIRouter, Depends

from backend.api.dependencies import get_translator
from backend.api.schemas import TranslateRequest, TranslateResponse
from backend.translation import DeepLTranslator

router = APIRouter(prefix="/api/translate", tags=["translate"])


@router.post("", response_model=TranslateResponse)
async def translate(
    request: TranslateRequest,
    translator: DeepLTranslator = Depends(get_translator),
) -> TranslateResponse:
    translated = await translator.translate(request.text, request.source, request.target)
    return TranslateResponse(translated_text=translated)
