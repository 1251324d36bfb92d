"""Download-related helpers (safe filenames, headers)."""

from __future__ import annotations

import unicodedata
from urllib.parse import quote

__all__ = ["build_content_disposition"]


def build_content_disposition(filename: str | None, *, default: str = "download") -> str:
    """Return a safe ``Content-Disposition`` header value for ``filename``.

    Both an ASCII fallback ``filename`` and a UTF-8 encoded ``filename*`` are
    emitted so clients can display non-ASCII names correctly.
    """
    stripped = (filename or "").strip()
    cleaned = "".join(ch for ch in stripped if unicodedata.category(ch)[0] != "C").strip()
    candidate = cleaned or default

    fallback = "".join(
        char if 32 <= ord(char) < 127 and char not in {'"', "\\", ";", ":"} else "_"
        for char in candidate
    )
    fallback = fallback.strip("_ ")[:255] or default

    if fallback == candidate:
        return f'attachment; filename="{fallback}"'

    encoded = quote(candidate, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
