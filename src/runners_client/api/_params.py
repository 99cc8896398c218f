"""Query parameter helpers shared by the API modules."""

from __future__ import annotations

__all__ = [
    "cursor_params",
]

from runners_client.constants import DEFAULT_PAGE_SIZE


def cursor_params(cursor: str | None, size: int = DEFAULT_PAGE_SIZE, **extra: str | None) -> dict[str, str]:
    """Build cursor-pagination query params.

    Blank cursors and None extras are omitted; size is always sent.
    """
    if size < 1:
        raise ValueError("size must be >= 1")
    params: dict[str, str] = {}
    for key, value in extra.items():
        if value:
            params[key] = value
    if cursor:
        params["cursor"] = cursor
    params["size"] = str(size)
    return params
