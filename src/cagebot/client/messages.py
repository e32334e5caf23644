"""Outbound chat message splitting.

The chat server measures messages after HTML-escaping them and rejects
anything much over 260 characters. It also injects spaces into words longer
than 20 characters, so the usable limit is a little lower.
"""

from __future__ import annotations

import html

from cagebot.core.constants import MESSAGE_LIMIT


def _safe_cut(encoded: str, end: int) -> int:
    """Move ``end`` back so it does not fall inside an HTML entity."""
    amp = encoded.rfind("&", 0, end)
    if amp != -1 and encoded.find(";", amp, end) == -1:
        return amp if amp > 0 else end
    return end


def split_message(message: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split a message into chunks whose escaped length fits the limit.

    Args:
        message: Plain text to send.
        limit: Maximum escaped length per chunk.

    Returns:
        Unescaped chunks, in order. An empty message yields one empty chunk.
    """
    remainder = html.escape(message, quote=True)
    chunks: list[str] = []

    while len(remainder) > limit:
        end = _safe_cut(remainder, limit)
        chunks.append(html.unescape(remainder[:end]))
        remainder = remainder[end:]

    chunks.append(html.unescape(remainder))
    return chunks


__all__ = ["split_message"]
