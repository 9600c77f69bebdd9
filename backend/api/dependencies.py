"""Shared service instances for FastAPI dependency injection."""

from functools import lru_cache

from backend.config import settings
from backend.content import ContentGenerator
from backend.database import async_session
from backend.llm_client import get_llm_client
from backend.srs.options import OptionProvider
from backend.srs.repository import SqlReviewRepository
from backend.srs.session import SessionController
from backend.translation import DeepLTranslator


@lru_cache
def get_repository() -> SqlReviewRepository:
    return SqlReviewRepository(async_session)


@lru_cache
def get_controller() -> SessionController:
    """Return the process-wide controller (it tracks in-flight ratings)."""
    repository = get_repository()
    generator = ContentGenerator(get_llm_client()) if settings.anthropic_api_key else None
    return SessionController(repository, option_provider=OptionProvider(repository, generator))


@lru_cache
def get_translator() -> DeepLTranslator:
    return DeepLTranslator()
