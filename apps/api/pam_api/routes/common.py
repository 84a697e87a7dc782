import logging
import sqlite3
from typing import Awaitable, Optional, TypeVar

import httpx
from fastapi import HTTPException

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_ERRORS = (sqlite3.Error, httpx.HTTPError, HTTPException)


async def call_store(call: Awaitable[T], *, operation: str, child_id: Optional[str] = None) -> T:
    """Await a store-backed call, surfacing backend failures as 502."""
    try:
        return await call
    except STORE_ERRORS as exc:
        logger.exception(
            "store failure",
            extra={"child_id": child_id, "operation": operation},
        )
        raise HTTPException(
            status_code=502,
            detail=f"Stored data is temporarily unavailable ({operation}); please retry shortly.",
        ) from exc
