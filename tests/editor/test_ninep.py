"""Tests for the 9P2000 client."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from acmegodoc.editor.ninep import OREAD, TREAD, NinePClient, NinePError, pack_string, unpack_string
from acmegodoc.errors import AdapterError

if TYPE_CHECKING:
	from pathlib import Path

	from .conftest import FakeAcme


class ClosedTransport:
	def sendall(self, data: bytes, /) -> None:
		pass

	def recv(self, bufsize: int, /) -> bytes:  # noqa: ARG002
		return b""

	def close(self) -> None:
		pass


@pytest.mark.unit
def test_strings() -> None:
	data = pack_string("Größe") + pack_string("")
	value, offset = unpack_string(data)
	assert value == "Größe"
	assert unpack_string(data, offset) == ("", len(data))


@pytest.mark.unit
def test_version_and_attach(fake_acme: FakeAcme) -> None:
	client = NinePClient(fake_acme, msize=4096)
	assert client.version() == "9P2000"
	assert client.msize == 4096  # noqa: PLR2004
	root = client.attach("glenda")
	assert client.root == root


@pytest.mark.unit
def test_read_all_in_chunks(fake_acme: FakeAcme) -> None:
	"""A small message size splits a file into many reads."""
	client = NinePClient(fake_acme, msize=32)
	client.version()
	client.attach("glenda")
	fid = client.walk(["7", "body"])
	client.open(fid, OREAD)
	assert client.read_all(fid).decode("utf-8") == fake_acme.windows[7].body
	assert fake_acme.requests.count(TREAD) > 2  # noqa: PLR2004


@pytest.mark.unit
def test_walk_to_missing_window(fake_acme: FakeAcme) -> None:
	client = NinePClient(fake_acme)
	client.attach("glenda")
	with pytest.raises(NinePError, match="file does not exist"):
		client.walk(["9", "tag"])


@pytest.mark.unit
def test_partial_walk(fake_acme: FakeAcme) -> None:
	client = NinePClient(fake_acme)
	client.attach("glenda")
	with pytest.raises(NinePError, match="7/event: file does not exist"):
		client.walk(["7", "event"])


@pytest.mark.unit
def test_walk_before_attach(fake_acme: FakeAcme) -> None:
	with pytest.raises(NinePError, match="walk before attach"):
		NinePClient(fake_acme).walk(["7"])


@pytest.mark.unit
def test_error_reply(fake_acme: FakeAcme) -> None:
	with pytest.raises(NinePError, match="unknown request 200"):
		NinePClient(fake_acme).rpc(200, b"")


@pytest.mark.unit
def test_tag_mismatch(fake_acme: FakeAcme) -> None:
	fake_acme.tag_offset = 1
	with pytest.raises(NinePError, match="does not match request tag"):
		NinePClient(fake_acme).version()


@pytest.mark.unit
def test_connection_closed() -> None:
	with pytest.raises(NinePError, match="connection closed by server"):
		NinePClient(ClosedTransport()).version()


@pytest.mark.unit
def test_context_manager_closes(fake_acme: FakeAcme) -> None:
	with NinePClient(fake_acme) as client:
		client.version()
	assert fake_acme.closed


@pytest.mark.unit
def test_dial_without_server(tmp_path: Path) -> None:
	with pytest.raises(AdapterError, match="cannot connect"):
		NinePClient.dial(tmp_path / "acme")
