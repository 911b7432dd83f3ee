"""
A minimal 9P2000 client.

Only the messages needed to read and write the files of an acme window
are implemented: version, attach, walk, open, read, write and clunk.
Requests are sent one at a time and each reply is read before the next
request goes out.

"""

from __future__ import annotations

import logging
import socket
import struct
from typing import TYPE_CHECKING, Protocol

from acmegodoc.errors import AdapterError

if TYPE_CHECKING:
	from pathlib import Path
	from types import TracebackType

logger = logging.getLogger(__name__)

VERSION = "9P2000"
DEFAULT_MSIZE = 8192
NOTAG = 0xFFFF
NOFID = 0xFFFFFFFF

# Header size of read/write messages: size[4] type[1] tag[2] fid[4] offset[8] count[4]
IOHDRSZ = 24

OREAD = 0
OWRITE = 1
ORDWR = 2

TVERSION = 100
TATTACH = 104
RERROR = 107
TWALK = 110
TOPEN = 112
TREAD = 116
TWRITE = 118
TCLUNK = 120

_HEADER = struct.Struct("<IBH")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_QID_SIZE = 13


class NinePError(AdapterError):
	"""The server answered a request with an error, or broke the protocol."""


class Transport(Protocol):
	"""The subset of a connected socket the client needs."""

	def sendall(self, data: bytes, /) -> None: ...

	def recv(self, bufsize: int, /) -> bytes: ...

	def close(self) -> None: ...


def pack_string(value: str) -> bytes:
	data = value.encode("utf-8")
	return _U16.pack(len(data)) + data


def unpack_string(data: bytes, offset: int = 0) -> tuple[str, int]:
	"""Decode a length-prefixed string, returning it and the offset just past it."""
	(length,) = _U16.unpack_from(data, offset)
	start = offset + _U16.size
	return data[start : start + length].decode("utf-8"), start + length


class NinePClient:
	"""
	Speaks 9P2000 over a stream connection.

	Fids are allocated by the client; the root fid of the attached tree is
	kept open until the client is closed.

	"""

	def __init__(self, transport: Transport, msize: int = DEFAULT_MSIZE) -> None:
		self.transport = transport
		self.msize = msize
		self.root: int | None = None
		self._next_tag = 0
		self._next_fid = 1

	@classmethod
	def dial(cls, address: str | Path) -> NinePClient:
		"""
		Connect to a 9P server listening on a unix socket.

		Raises:
		        AdapterError: If the socket cannot be reached
		"""
		sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
		try:
			sock.connect(str(address))
		except OSError as e:
			sock.close()
			msg = f"cannot connect to {address}: {e.strerror or e}"
			raise AdapterError(msg) from e
		logger.debug("Connected to %s", address)
		return cls(sock)

	def __enter__(self) -> NinePClient:
		return self

	def __exit__(
		self,
		exc_type: type[BaseException] | None,
		exc_val: BaseException | None,
		exc_tb: TracebackType | None,
	) -> None:
		self.close()

	def close(self) -> None:
		self.transport.close()

	# Message exchange

	def _recv_exact(self, size: int) -> bytes:
		chunks = []
		remaining = size
		while remaining > 0:
			chunk = self.transport.recv(remaining)
			if not chunk:
				msg = "connection closed by server"
				raise NinePError(msg)
			chunks.append(chunk)
			remaining -= len(chunk)
		return b"".join(chunks)

	def rpc(self, msg_type: int, body: bytes, tag: int | None = None) -> bytes:
		"""
		Send one request and return the body of its reply.

		Raises:
		        NinePError: On an Rerror reply or a malformed reply
		"""
		if tag is None:
			tag = self._next_tag
			self._next_tag = (self._next_tag + 1) % NOTAG
		try:
			self.transport.sendall(_HEADER.pack(_HEADER.size + len(body), msg_type, tag) + body)
			(size,) = _U32.unpack(self._recv_exact(_U32.size))
			reply = self._recv_exact(size - _U32.size)
		except OSError as e:
			msg = f"9P connection failed: {e}"
			raise NinePError(msg) from e
		reply_type, reply_tag = reply[0], _U16.unpack_from(reply, 1)[0]
		reply_body = reply[1 + _U16.size :]
		if reply_tag != tag:
			msg = f"reply tag {reply_tag} does not match request tag {tag}"
			raise NinePError(msg)
		if reply_type == RERROR:
			ename, _ = unpack_string(reply_body)
			raise NinePError(ename)
		if reply_type != msg_type + 1:
			msg = f"unexpected reply type {reply_type} to request {msg_type}"
			raise NinePError(msg)
		return reply_body

	def _new_fid(self) -> int:
		fid = self._next_fid
		self._next_fid += 1
		return fid

	# Requests

	def version(self) -> str:
		"""Negotiate the protocol version and message size."""
		reply = self.rpc(TVERSION, _U32.pack(self.msize) + pack_string(VERSION), tag=NOTAG)
		(msize,) = _U32.unpack_from(reply)
		version, _ = unpack_string(reply, _U32.size)
		if version != VERSION:
			msg = f"server speaks {version}, not {VERSION}"
			raise NinePError(msg)
		self.msize = min(self.msize, msize)
		return version

	def attach(self, uname: str, aname: str = "") -> int:
		"""Attach to the server's file tree and return the root fid."""
		fid = self._new_fid()
		self.rpc(TATTACH, _U32.pack(fid) + _U32.pack(NOFID) + pack_string(uname) + pack_string(aname))
		self.root = fid
		return fid

	def walk(self, names: list[str], fid: int | None = None) -> int:
		"""Walk from fid (default: the root) along names and return a new fid."""
		start = self.root if fid is None else fid
		if start is None:
			msg = "walk before attach"
			raise NinePError(msg)
		newfid = self._new_fid()
		body = _U32.pack(start) + _U32.pack(newfid) + _U16.pack(len(names))
		body += b"".join(pack_string(name) for name in names)
		reply = self.rpc(TWALK, body)
		(nwqid,) = _U16.unpack_from(reply)
		if nwqid != len(names):
			msg = f"{'/'.join(names)}: file does not exist"
			raise NinePError(msg)
		return newfid

	def open(self, fid: int, mode: int = OREAD) -> int:
		"""Open fid and return the server's I/O unit (0 if unspecified)."""
		reply = self.rpc(TOPEN, _U32.pack(fid) + bytes([mode]))
		(iounit,) = _U32.unpack_from(reply, _QID_SIZE)
		return iounit

	def read(self, fid: int, offset: int, count: int) -> bytes:
		count = min(count, self.msize - IOHDRSZ)
		reply = self.rpc(TREAD, _U32.pack(fid) + struct.pack("<Q", offset) + _U32.pack(count))
		(length,) = _U32.unpack_from(reply)
		return reply[_U32.size : _U32.size + length]

	def read_all(self, fid: int) -> bytes:
		"""Read an open fid from offset zero until end of file."""
		chunks = []
		offset = 0
		while True:
			data = self.read(fid, offset, self.msize - IOHDRSZ)
			if not data:
				return b"".join(chunks)
			chunks.append(data)
			offset += len(data)

	def write(self, fid: int, offset: int, data: bytes) -> int:
		reply = self.rpc(TWRITE, _U32.pack(fid) + struct.pack("<Q", offset) + _U32.pack(len(data)) + data)
		(count,) = _U32.unpack_from(reply)
		return count

	def clunk(self, fid: int) -> None:
		self.rpc(TCLUNK, _U32.pack(fid))
