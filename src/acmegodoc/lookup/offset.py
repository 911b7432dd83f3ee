"""Convert character offsets to byte offsets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from acmegodoc.errors import EncodingError

if TYPE_CHECKING:
	from typing import TextIO


def byte_offset(reader: TextIO, count: int) -> int:
	"""
	Compute the UTF-8 byte offset of the character at index count.

	Args:
	        reader: Text stream positioned at the start of the buffer
	        count: Number of characters to skip

	Returns:
	        int: Total encoded width of the first count characters

	Raises:
	        EncodingError: If count is negative or the stream ends before count characters

	"""
	if count < 0:
		msg = f"negative character offset {count}"
		raise EncodingError(msg)
	offset = 0
	for i in range(count):
		char = reader.read(1)
		if not char:
			msg = f"unexpected end of input after {i} of {count} characters"
			raise EncodingError(msg)
		offset += len(char.encode("utf-8", "surrogatepass"))
	return offset
