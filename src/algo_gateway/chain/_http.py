"""Response helpers shared by the node clients."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


def error_detail(response: httpx.Response) -> str:
    """Extract the node's error message from a response."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("message", response.text))
    return response.text


def upstream_status(response: httpx.Response) -> int:
    """Client errors keep their status; server errors become 502."""
    return response.status_code if 400 <= response.status_code < 500 else 502
