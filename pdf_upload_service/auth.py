"""
Authentication Module

Function-level key check: the key may arrive in the ``x-functions-key``
header or the ``code`` query parameter.
"""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader, APIKeyQuery

from .config import get_settings


logger = logging.getLogger(__name__)
key_header = APIKeyHeader(name="x-functions-key", auto_error=False)
key_query = APIKeyQuery(name="code", auto_error=False)


async def verify_function_key(
    header_key: Optional[str] = Security(key_header),
    query_key: Optional[str] = Security(key_query),
) -> Optional[str]:
    """
    Verify the function key.

    Raises:
        HTTPException: 500 if auth is required but no key is configured,
            401 if the key is missing or wrong
    """
    settings = get_settings()
    if not settings.auth_required:
        # Local development without a configured key
        return None

    if not settings.function_key:
        raise HTTPException(
            status_code=500,
            detail="Server authentication not configured"
        )

    provided = header_key or query_key
    if not provided or not secrets.compare_digest(provided, settings.function_key):
        logger.warning("Rejected request with missing or invalid function key")
        raise HTTPException(
            status_code=401,
            detail="Invalid function key"
        )

    return provided
