"""FastAPI dependencies for the storage, bank and language-model clients.

Routes never touch module-level clients directly; tests replace these
functions through ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache
from typing import Iterator, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..banking.plaid_client import PlaidClient
from ..db import database
from ..utils.openai_client import OpenAIClient

logger = logging.getLogger(__name__)


def get_db() -> Iterator[Session]:
    yield from database.get_db()


def get_read_db() -> Iterator[Optional[Session]]:
    """Public/read-only session for the user lookup fallback, if configured."""
    if database.ReadSessionLocal is None:
        yield None
        return
    db = database.ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def _plaid_client() -> PlaidClient:
    return PlaidClient()


@lru_cache(maxsize=1)
def _openai_client() -> OpenAIClient:
    return OpenAIClient()


def get_plaid_client() -> PlaidClient:
    try:
        return _plaid_client()
    except ValueError as e:
        logger.error(f"Plaid client unavailable: {str(e)}")
        raise HTTPException(status_code=500, detail="Bank service is not configured")


def get_llm_client() -> OpenAIClient:
    try:
        return _openai_client()
    except ValueError as e:
        logger.error(f"OpenAI client unavailable: {str(e)}")
        raise HTTPException(status_code=500, detail="Analysis service is not configured")


def get_optional_llm_client() -> Optional[OpenAIClient]:
    """Language-model client, or None so imports fall back to manual review."""
    try:
        return _openai_client()
    except ValueError as e:
        logger.warning(f"OpenAI client unavailable, verdicts need review: {str(e)}")
        return None
