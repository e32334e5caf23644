"""Tests for outbound message splitting."""

from __future__ import annotations

import html

from cagebot.client.messages import split_message
from cagebot.core.constants import MESSAGE_LIMIT


class TestSplitMessage:
    """Tests for split_message."""

    def test_short_message(self) -> None:
        """Test a short message is sent as is."""
        assert split_message("Chewed out!") == ["Chewed out!"]

    def test_empty_message(self) -> None:
        """Test an empty message yields one empty chunk."""
        assert split_message("") == [""]

    def test_long_message(self) -> None:
        """Test long text is cut into chunks that fit."""
        message = "a" * 600
        chunks = split_message(message)

        assert len(chunks) == 3
        assert "".join(chunks) == message
        assert all(len(html.escape(chunk)) <= MESSAGE_LIMIT for chunk in chunks)

    def test_entities_are_not_split(self) -> None:
        """Test cuts never fall inside an escaped character."""
        message = "x" + "&" * 100
        chunks = split_message(message)

        assert "".join(chunks) == message
        for chunk in chunks:
            assert len(html.escape(chunk)) <= MESSAGE_LIMIT
            assert set(chunk) <= {"x", "&"}
