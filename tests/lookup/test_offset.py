"""Tests for character to byte offset conversion."""

from __future__ import annotations

import io

import pytest

from acmegodoc.errors import EncodingError
from acmegodoc.lookup.offset import byte_offset


@pytest.mark.unit
@pytest.mark.parametrize(
	("text", "count", "expected"),
	[
		("abcdef", 0, 0),
		("abcdef", 1, 1),
		("abcdef", 5, 5),
		("日本語def", 0, 0),
		("日本語def", 1, 3),
		("日本語def", 5, 11),
		("a😀b", 2, 5),
	],
)
def test_byte_offset(text: str, count: int, expected: int) -> None:
	"""Each character contributes its UTF-8 width."""
	assert byte_offset(io.StringIO(text), count) == expected


@pytest.mark.unit
def test_byte_offset_whole_buffer() -> None:
	"""Counting every character gives the encoded length."""
	text = "package p // π"
	assert byte_offset(io.StringIO(text), len(text)) == len(text.encode("utf-8"))


@pytest.mark.unit
def test_byte_offset_past_end() -> None:
	"""Running out of input is an error, not a short count."""
	with pytest.raises(EncodingError, match="end of input"):
		byte_offset(io.StringIO("abc"), 4)


@pytest.mark.unit
def test_byte_offset_negative() -> None:
	with pytest.raises(EncodingError):
		byte_offset(io.StringIO("abc"), -1)


@pytest.mark.unit
def test_byte_offset_keeps_carriage_returns() -> None:
	"""Line endings are counted as they are in the buffer."""
	assert byte_offset(io.StringIO("a\r\nb", newline=""), 3) == 3  # noqa: PLR2004
