"""Keep one running instance per key and pass later launches' details to it."""

from __future__ import annotations

import contextlib
import enum
import logging
import os
import socket
import struct
import sys
import tempfile
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

from filelock import FileLock, Timeout

logger = logging.getLogger(__name__)

_PREFIX = "_d_dtk_single_instance_"
_PROTOCOL_VERSION = 1
_HEADER = struct.Struct(">bq")
_COUNT = struct.Struct(">I")
_NULL_STRING = 0xFFFFFFFF
_ACCEPT_POLL = 0.1


class SingleScope(enum.Enum):
    """Who may share one instance: the same user, the same group, or anyone."""

    USER = "user"
    GROUP = "group"
    WORLD = "world"


_SOCKET_MODES = {
    SingleScope.USER: 0o700,
    SingleScope.GROUP: 0o770,
    SingleScope.WORLD: 0o777,
}


def socket_key(key: str, scope: SingleScope = SingleScope.USER) -> str:
    """The socket name for ``key``; on Linux it carries the user or group id."""
    scope = SingleScope(scope)
    text = _PREFIX
    if sys.platform.startswith("linux"):
        if scope is SingleScope.GROUP:
            text += f"{os.getgid()}_"
        elif scope is SingleScope.USER:
            text += f"{os.getuid()}_"
    return text + key


def _encode_message(pid: int, arguments: Sequence[str]) -> bytes:
    parts = [_HEADER.pack(_PROTOCOL_VERSION, pid), _COUNT.pack(len(arguments))]
    for argument in arguments:
        raw = argument.encode("utf-16-be")
        parts.append(_COUNT.pack(len(raw)))
        parts.append(raw)
    return b"".join(parts)


def _read_exact(sock: socket.socket, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining:
        chunk = sock.recv(remaining)
        if not chunk:
            raise ValueError("connection closed in the middle of a message")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _read_message(sock: socket.socket) -> tuple[int, int, list[str]]:
    version, pid = _HEADER.unpack(_read_exact(sock, _HEADER.size))
    (count,) = _COUNT.unpack(_read_exact(sock, _COUNT.size))
    arguments = []
    for _ in range(count):
        (length,) = _COUNT.unpack(_read_exact(sock, _COUNT.size))
        if length == _NULL_STRING:
            arguments.append("")
            continue
        if length % 2:
            raise ValueError("string length is not a whole number of UTF-16 units")
        arguments.append(_read_exact(sock, length).decode("utf-16-be"))
    return version, pid, arguments


class SingleInstance:
    """Claims a key for one process; later processes report to the first one.

    The first process to :meth:`acquire` a key becomes the primary instance and
    listens on a local socket. Each later process exchanges its pid and
    arguments with the primary, which passes them to its connected callbacks.
    """

    def __init__(
        self,
        key: str,
        scope: SingleScope = SingleScope.USER,
        *,
        directory: str | os.PathLike[str] | None = None,
        pid: int | None = None,
        arguments: Sequence[str] | None = None,
        interval: int = 3000,
    ) -> None:
        if interval < -1:
            raise ValueError(f"interval must be -1 or at least 0, got {interval}")
        self.key = key
        self.scope = SingleScope(scope)
        self.directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        self.pid = os.getpid() if pid is None else int(pid)
        self.arguments = list(sys.argv if arguments is None else arguments)
        self.interval = interval
        self.primary_pid: int | None = None
        self.primary_arguments: list[str] = []
        self._callbacks: list[Callable[[int, list[str]], object]] = []
        self._lock: FileLock | None = None
        self._server: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    @property
    def socket_name(self) -> str:
        return socket_key(self.key, self.scope)

    @property
    def socket_path(self) -> str:
        return str(self.directory / self.socket_name)

    @property
    def lock_path(self) -> str:
        return self.socket_path + ".lock"

    @property
    def is_primary(self) -> bool:
        return self._server is not None

    @property
    def _timeout(self) -> float | None:
        return None if self.interval == -1 else self.interval / 1000.0

    def __enter__(self) -> SingleInstance:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def connect(self, callback: Callable[[int, list[str]], object]) -> None:
        """Call ``callback(pid, arguments)`` for each later instance that starts."""
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {callback!r}")
        self._callbacks.append(callback)

    def acquire(self) -> bool:
        """Become the primary instance; False if another one already runs."""
        if self._lock is not None or self._server is not None:
            logger.warning("acquire called again on the same instance")
            self.close()

        lock = FileLock(self.lock_path)
        try:
            lock.acquire(timeout=0)
        except Timeout:
            logger.debug("another instance holds %s", self.lock_path)
            self._notify_primary()
            return False

        try:
            server = self._listen()
        except OSError as exc:
            logger.warning("listen failed: %s", exc)
            lock.release()
            return False

        self._lock = lock
        self._server = server
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._serve, args=(server, self._stop), daemon=True
        )
        self._thread.start()
        logger.debug("listening on %s", self.socket_path)
        return True

    def close(self) -> None:
        """Stop listening and give up the key."""
        self._stop.set()
        if self._server is not None:
            self._server.close()
            if self._thread is not None:
                self._thread.join(timeout=1.0)
            with contextlib.suppress(FileNotFoundError):
                os.unlink(self.socket_path)
        self._server = None
        self._thread = None
        if self._lock is not None:
            self._lock.release()
            self._lock = None

    def _listen(self) -> socket.socket:
        path = self.socket_path
        # The lock is ours, so any socket file left here is stale.
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)
        server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            server.bind(path)
            os.chmod(path, _SOCKET_MODES[self.scope])
            server.listen()
            server.settimeout(_ACCEPT_POLL)
        except OSError:
            server.close()
            raise
        return server

    def _notify_primary(self) -> None:
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(self._timeout)
                sock.connect(self.socket_path)
                _, pid, arguments = _read_message(sock)
                self.primary_pid = pid
                self.primary_arguments = arguments
                logger.info("process is started: pid=%s arguments=%s", pid, arguments)
                sock.sendall(_encode_message(self.pid, self.arguments))
        except (OSError, ValueError) as exc:
            logger.debug("could not reach the running instance: %s", exc)

    def _serve(self, server: socket.socket, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                conn, _ = server.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        with conn:
            conn.settimeout(self._timeout)
            try:
                conn.sendall(_encode_message(self.pid, self.arguments))
                _, pid, arguments = _read_message(conn)
            except (OSError, ValueError) as exc:
                logger.debug("instance exchange failed: %s", exc)
                return
        logger.info("new instance: pid=%s arguments=%s", pid, arguments)
        for callback in list(self._callbacks):
            callback(pid, arguments)