"""Error body parsing for backend responses.

Backend errors have the shape {"status": 401, "errorCode": "...", "message": "..."}.
The user-facing message is taken from, in order:
1. the JSON `message` field (only when the response is JSON)
2. the raw response text
3. "HTTP <status>"
"""

from __future__ import annotations

__all__ = [
    "http_error_from_response",
    "parse_error_message",
]

import httpx

from runners_client.exceptions import HttpError


def parse_error_message(response: httpx.Response) -> tuple[str, str | None]:
    """Extract the server message and error code from an error response.

    Args:
        response: A fully read httpx response.

    Returns:
        Tuple of (message, error_code). error_code is None unless the JSON
        body carries a string `errorCode`.
    """
    error_code: str | None = None
    content_type = response.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            code = data.get("errorCode")
            if isinstance(code, str) and code:
                error_code = code
            message = data.get("message")
            if isinstance(message, str) and message:
                return message, error_code

    text = response.text
    return (text or f"HTTP {response.status_code}"), error_code


def http_error_from_response(response: httpx.Response) -> HttpError:
    """Build an HttpError for a non-2xx response."""
    message, error_code = parse_error_message(response)
    return HttpError(response.status_code, message, error_code=error_code)
