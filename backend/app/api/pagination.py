"""Page/limit/skip derivation shared by every listing endpoint."""
from typing import Any, Optional

from fastapi import Query
from pydantic import BaseModel

from backend.app.core.config import get_settings

settings = get_settings()


class Pagination(BaseModel):
    page: int
    limit: int
    skip: int


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def derive_pagination(page: Any = None, limit: Any = None) -> Pagination:
    """
    Missing, non-numeric or non-positive values fall back to page 1 and the
    default page size; limit is capped at ``max_page_size``.
    """
    page_number = _positive_int(page, 1)
    page_size = min(_positive_int(limit, settings.default_page_size), settings.max_page_size)
    return Pagination(page=page_number, limit=page_size, skip=(page_number - 1) * page_size)


def pagination_params(
    page: Optional[str] = Query(None, description="Page number, 1-based"),
    limit: Optional[str] = Query(None, description="Results per page"),
) -> Pagination:
    """FastAPI dependency. Takes raw strings; bad input falls back to defaults."""
    return derive_pagination(page, limit)
