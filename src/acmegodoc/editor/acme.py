"""Read the state of an acme window."""

from __future__ import annotations

import getpass
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from acmegodoc.editor.ninep import OREAD, ORDWR, NinePClient, NinePError
from acmegodoc.errors import AdapterError

if TYPE_CHECKING:
	from types import TracebackType

logger = logging.getLogger(__name__)


def default_namespace(environ: dict[str, str] | None = None) -> Path:
	"""
	The plan9port namespace directory.

	``$NAMESPACE`` when set, else ``/tmp/ns.$USER.$DISPLAY`` with a
	trailing ``.0`` screen number dropped from the display.

	"""
	env = os.environ if environ is None else environ
	namespace = env.get("NAMESPACE")
	if namespace:
		return Path(namespace)
	user = env.get("USER") or getpass.getuser()
	display = env.get("DISPLAY") or ":0"
	display = display.removesuffix(".0")
	return Path(f"/tmp/ns.{user}.{display}")  # noqa: S108


@dataclass(frozen=True)
class EditorConfig:
	"""Which acme window to read, and where acme listens."""

	win_id: int
	namespace: Path
	user: str

	@classmethod
	def from_env(
		cls,
		environ: dict[str, str] | None = None,
		winid_env: str = "winid",
		namespace: str | Path | None = None,
	) -> EditorConfig:
		"""
		Build the configuration from the environment acme gives its commands.

		Raises:
		        AdapterError: If the window id variable is missing or not a number

		"""
		env = os.environ if environ is None else environ
		raw = env.get(winid_env)
		if not raw:
			msg = f"${winid_env} not set"
			raise AdapterError(msg)
		try:
			win_id = int(raw)
		except ValueError as e:
			msg = f"invalid window id {raw!r} in ${winid_env}"
			raise AdapterError(msg) from e
		return cls(
			win_id=win_id,
			namespace=Path(namespace) if namespace else default_namespace(env),
			user=env.get("USER") or getpass.getuser(),
		)

	@property
	def address(self) -> Path:
		return self.namespace / "acme"


@dataclass(frozen=True)
class WindowState:
	"""What the lookup needs from the window."""

	filename: str
	q0: int
	"""Selection start, in characters."""

	q1: int
	body: str


class AcmeWindow:
	"""
	One acme window, accessed through acme's 9P file server.

	Files are opened on first use and stay open until the window is
	closed: acme resets a window's address when its addr file is opened,
	so the file must remain open between setting and reading the address.

	"""

	def __init__(self, win_id: int, client: NinePClient) -> None:
		self.win_id = win_id
		self.client = client
		self._fids: dict[str, int] = {}

	@classmethod
	def open(cls, config: EditorConfig) -> AcmeWindow:
		"""
		Connect to acme and check that the window exists.

		Raises:
		        AdapterError: If acme cannot be reached or has no such window
		"""
		client = NinePClient.dial(config.address)
		try:
			client.version()
			client.attach(config.user)
			window = cls(config.win_id, client)
			window._file("tag", OREAD)
		except AdapterError:
			client.close()
			raise
		logger.debug("Opened acme window %d", config.win_id)
		return window

	def __enter__(self) -> AcmeWindow:
		return self

	def __exit__(
		self,
		exc_type: type[BaseException] | None,
		exc_val: BaseException | None,
		exc_tb: TracebackType | None,
	) -> None:
		self.close()

	def close(self) -> None:
		"""Release every open file and the connection."""
		for name, fid in self._fids.items():
			try:
				self.client.clunk(fid)
			except NinePError as e:
				logger.debug("Cannot clunk %s: %s", name, e)
		self._fids.clear()
		self.client.close()

	def _file(self, name: str, mode: int) -> int:
		fid = self._fids.get(name)
		if fid is None:
			try:
				fid = self.client.walk([str(self.win_id), name])
				self.client.open(fid, mode)
			except NinePError as e:
				msg = f"cannot open window {self.win_id} file {name}: {e}"
				raise AdapterError(msg) from e
			self._fids[name] = fid
		return fid

	def read_file(self, name: str) -> bytes:
		"""Read a window file from its start."""
		fid = self._file(name, OREAD)
		try:
			return self.client.read_all(fid)
		except NinePError as e:
			msg = f"cannot read window {self.win_id} file {name}: {e}"
			raise AdapterError(msg) from e

	def ctl(self, command: str) -> None:
		"""Send a control message to the window."""
		fid = self._file("ctl", ORDWR)
		try:
			self.client.write(fid, 0, command.encode("utf-8") + b"\n")
		except NinePError as e:
			msg = f"cannot write ctl {command!r}: {e}"
			raise AdapterError(msg) from e

	def read_addr(self) -> tuple[int, int]:
		"""Read the window's address as character offsets."""
		fid = self._file("addr", ORDWR)
		try:
			data = self.client.read(fid, 0, 64).decode("ascii")
		except (NinePError, UnicodeDecodeError) as e:
			msg = f"cannot read addr: {e}"
			raise AdapterError(msg) from e
		fields = data.split()
		if len(fields) < 2:  # noqa: PLR2004
			msg = f"malformed addr {data!r}"
			raise AdapterError(msg)
		try:
			return int(fields[0]), int(fields[1])
		except ValueError as e:
			msg = f"malformed addr {data!r}"
			raise AdapterError(msg) from e

	def read_filename(self) -> str:
		"""The file name: the first word of the tag."""
		tag = self.read_file("tag").decode("utf-8", "replace")
		name, sep, _ = tag.partition(" ")
		if not sep or not name:
			msg = "cannot get filename from tag"
			raise AdapterError(msg)
		return name

	def read_selection(self) -> tuple[int, int]:
		"""The selection (dot) as character offsets."""
		self.read_addr()
		self.ctl("addr=dot")
		return self.read_addr()

	def read_body(self) -> str:
		try:
			return self.read_file("body").decode("utf-8")
		except UnicodeDecodeError as e:
			msg = f"window body is not valid UTF-8: {e}"
			raise AdapterError(msg) from e

	def read_window(self) -> WindowState:
		"""Read the file name, selection and body."""
		filename = self.read_filename()
		q0, q1 = self.read_selection()
		return WindowState(filename=filename, q0=q0, q1=q1, body=self.read_body())
