"""An in-memory acme file server for the editor adapter tests."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

import pytest

from acmegodoc.editor import ninep

_QID = bytes(13)
WINDOW_FILES = {"tag", "body", "addr", "ctl"}


def reply(msg_type: int, tag: int, body: bytes = b"") -> bytes:
	return struct.pack("<IBH", 7 + len(body), msg_type, tag) + body


def error_reply(tag: int, ename: str) -> bytes:
	return reply(ninep.RERROR, tag, ninep.pack_string(ename))


@dataclass
class FakeWindow:
	tag: str
	body: str
	dot: tuple[int, int] = (0, 0)
	addr: tuple[int, int] = (0, 0)


@dataclass
class FakeAcme:
	"""
	Answers 9P requests the way acme does for the files of its windows.

	Opening a window's addr file resets its address to 0,0; writing
	``addr=dot`` to ctl sets it to the selection.

	"""

	windows: dict[int, FakeWindow] = field(default_factory=dict)
	requests: list[int] = field(default_factory=list)
	writes: list[tuple[str, bytes]] = field(default_factory=list)
	closed: bool = False
	tag_offset: int = 0
	_fids: dict[int, list[str]] = field(default_factory=dict)
	_out: bytearray = field(default_factory=bytearray)

	# Transport

	def sendall(self, data: bytes, /) -> None:
		size, msg_type, tag = struct.unpack_from("<IBH", data)
		assert size == len(data)
		self.requests.append(msg_type)
		self._out += self.handle(msg_type, (tag + self.tag_offset) & 0xFFFF, data[7:])

	def recv(self, bufsize: int, /) -> bytes:
		chunk = bytes(self._out[:bufsize])
		del self._out[:bufsize]
		return chunk

	def close(self) -> None:
		self.closed = True

	# Server

	def _contents(self, path: list[str]) -> bytes:
		window = self.windows[int(path[0])]
		name = path[1]
		if name == "tag":
			return window.tag.encode("utf-8")
		if name == "body":
			return window.body.encode("utf-8")
		if name == "addr":
			return f"{window.addr[0]:11d} {window.addr[1]:11d} ".encode("ascii")
		return b""

	def _walk(self, names: list[str]) -> int:
		walked = 0
		if names and names[0].isdigit() and int(names[0]) in self.windows:
			walked = 1
			if len(names) > 1 and names[1] in WINDOW_FILES:
				walked = 2
		return walked

	def handle(self, msg_type: int, tag: int, body: bytes) -> bytes:  # noqa: PLR0911
		if msg_type == ninep.TVERSION:
			(msize,) = struct.unpack_from("<I", body)
			return reply(msg_type + 1, tag, struct.pack("<I", msize) + ninep.pack_string("9P2000"))

		if msg_type == ninep.TATTACH:
			(fid,) = struct.unpack_from("<I", body)
			self._fids[fid] = []
			return reply(msg_type + 1, tag, _QID)

		if msg_type == ninep.TWALK:
			fid, newfid, nwname = struct.unpack_from("<IIH", body)
			names, offset = [], 10
			for _ in range(nwname):
				name, offset = ninep.unpack_string(body, offset)
				names.append(name)
			walked = self._walk(self._fids[fid] + names)
			if names and walked == 0:
				return error_reply(tag, "file does not exist")
			if walked == len(names):
				self._fids[newfid] = self._fids[fid] + names
			return reply(msg_type + 1, tag, struct.pack("<H", walked) + _QID * walked)

		if msg_type == ninep.TOPEN:
			(fid,) = struct.unpack_from("<I", body)
			path = self._fids[fid]
			if path[1] == "addr":
				self.windows[int(path[0])].addr = (0, 0)
			return reply(msg_type + 1, tag, _QID + struct.pack("<I", 0))

		if msg_type == ninep.TREAD:
			fid, offset, count = struct.unpack_from("<IQI", body)
			data = self._contents(self._fids[fid])[offset : offset + count]
			return reply(msg_type + 1, tag, struct.pack("<I", len(data)) + data)

		if msg_type == ninep.TWRITE:
			fid, _, count = struct.unpack_from("<IQI", body)
			data = body[16 : 16 + count]
			path = self._fids[fid]
			self.writes.append((path[1], data))
			if path[1] == "ctl" and data.strip() == b"addr=dot":
				window = self.windows[int(path[0])]
				window.addr = window.dot
			return reply(msg_type + 1, tag, struct.pack("<I", count))

		if msg_type == ninep.TCLUNK:
			(fid,) = struct.unpack_from("<I", body)
			self._fids.pop(fid, None)
			return reply(msg_type + 1, tag)

		return error_reply(tag, f"unknown request {msg_type}")


@pytest.fixture
def fake_acme() -> FakeAcme:
	"""An acme with one window editing /work/p/main.go."""
	body = "package p\n\n// Größe is a size.\nvar Größe = len(\"x\")\n"
	start = body.index("len")
	return FakeAcme(
		windows={
			7: FakeWindow(
				tag="/work/p/main.go Del Snarf | Look Get",
				body=body,
				dot=(start, start + 3),
			)
		}
	)
