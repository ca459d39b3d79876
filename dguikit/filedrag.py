"""File drags whose receiver reports progress, state and target data back to the sender."""

from __future__ import annotations

import enum
import uuid as _uuid
from collections import defaultdict
from collections.abc import Callable

DND_MIME_SERVICE = "application/x-dguikit-dnd-service"
DND_MIME_PID = "application/x-dguikit-dnd-pid"
DND_MIME_UUID = "application/x-dguikit-dnd-uuid"
DND_TARGET_URL_KEY = "targetUrl"

_CLIENT_SIGNALS = frozenset({"progress_changed", "state_changed", "server_destroyed"})


class FileDragState(enum.IntEnum):
    FAILED = -1
    STALLED = 0
    PAUSED = 1
    RUNNING = 2
    FINISHED = 3
    CUSTOM_STATE = 0x100


def _to_state(value: int) -> FileDragState | int:
    try:
        return FileDragState(value)
    except ValueError:
        return value


class MimeData:
    """Drag payload: raw bytes stored under format names."""

    def __init__(self) -> None:
        self._formats: dict[str, bytes] = {}

    def set_data(self, fmt: str, value: bytes | str) -> None:
        self._formats[fmt] = value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def data(self, fmt: str) -> bytes:
        """The bytes stored under ``fmt``; empty when the format is absent."""
        return self._formats.get(fmt, b"")

    def has_format(self, fmt: str) -> bool:
        return fmt in self._formats

    @property
    def formats(self) -> list[str]:
        return list(self._formats)


class _SourceInterface:
    """The object one service exposes for all of its drag servers."""

    def __init__(self, bus: DragBus, service: str) -> None:
        self._bus = bus
        self.service = service
        self.servers: dict[str, FileDragServer] = {}
        self.states: dict[str, int] = {}
        self.progresses: dict[str, int] = {}

    def set_data(self, uuid: str, key: str, value: str) -> None:
        server = self.servers.get(uuid)
        if server is None:
            raise LookupError(f"no drag server with id {uuid}")
        server._store_target_data(key, value)

    def state(self, uuid: str) -> int:
        return self.states.get(uuid, FileDragState.STALLED)

    def progress(self, uuid: str) -> int:
        return self.progresses.get(uuid, 0)

    def emit(self, signal: str, uuid: str, *args: object) -> None:
        self._bus._publish(self.service, signal, uuid, *args)


class DragBus:
    """A message bus shared by the sending and receiving sides of drags."""

    def __init__(self) -> None:
        self._pids: dict[str, int] = {}
        self._interfaces: dict[str, _SourceInterface] = {}
        self._clients: dict[str, FileDragClient] = {}

    def register_service(self, name: str, pid: int) -> None:
        if not name:
            raise ValueError("service name must not be empty")
        if pid < 0:
            raise ValueError(f"pid must not be negative, got {pid}")
        if name in self._pids:
            raise ValueError(f"service already registered: {name!r}")
        self._pids[name] = int(pid)

    def service_pid(self, name: str) -> int:
        try:
            return self._pids[name]
        except KeyError:
            raise LookupError(f"no such service: {name!r}") from None

    def _acquire(self, service: str) -> _SourceInterface:
        iface = self._interfaces.get(service)
        if iface is None:
            iface = self._interfaces[service] = _SourceInterface(self, service)
        return iface

    def _release(self, service: str) -> None:
        iface = self._interfaces.get(service)
        if iface is not None and not iface.servers:
            del self._interfaces[service]

    def _interface(self, service: str) -> _SourceInterface | None:
        return self._interfaces.get(service)

    def _attach(self, client: FileDragClient) -> None:
        self._clients[client.uuid] = client

    def _detach(self, client: FileDragClient) -> None:
        if self._clients.get(client.uuid) is client:
            del self._clients[client.uuid]

    def _publish(self, service: str, signal: str, uuid: str, *args: object) -> None:
        client = self._clients.get(uuid)
        if client is not None and client.service == service:
            client._receive(signal, *args)


class FileDragServer:
    """The sending side of a drag: holds target data and publishes progress and state."""

    def __init__(self, bus: DragBus, service: str) -> None:
        bus.service_pid(service)
        self._bus = bus
        self.service = service
        self.uuid = "{" + str(_uuid.uuid4()) + "}"
        self._data: dict[str, str] = {}
        self._listeners: list[Callable[[str], object]] = []
        self._closed = False
        self._iface = bus._acquire(service)
        self._iface.servers[self.uuid] = self

    def __enter__(self) -> FileDragServer:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError("the drag server is closed")

    def _store_target_data(self, key: str, value: str) -> None:
        if key not in self._data or self._data[key] != value:
            self._data[key] = value
            for callback in list(self._listeners):
                callback(key)

    def target_data(self, key: str) -> str | None:
        """The value the receiver set for ``key``, or None."""
        return self._data.get(key)

    def set_progress(self, progress: int) -> None:
        self._require_open()
        if progress != self._iface.progress(self.uuid):
            self._iface.progresses[self.uuid] = progress
            self._iface.emit("progress_changed", self.uuid, progress)

    def set_state(self, state: FileDragState | int) -> None:
        self._require_open()
        state = int(state)
        if state != self._iface.state(self.uuid):
            self._iface.states[self.uuid] = state
            self._iface.emit("state_changed", self.uuid, state)

    def write_mime_data(self, dest: MimeData) -> None:
        """Store what a receiver needs to reach this server in ``dest``."""
        self._require_open()
        dest.set_data(DND_MIME_SERVICE, self.service)
        dest.set_data(DND_MIME_PID, str(self._bus.service_pid(self.service)))
        dest.set_data(DND_MIME_UUID, self.uuid)

    def connect(self, callback: Callable[[str], object]) -> None:
        """Call ``callback(key)`` whenever the receiver changes target data."""
        self._listeners.append(callback)

    def close(self) -> None:
        """Tell receivers the server is gone and release its bus resources."""
        if self._closed:
            return
        self._closed = True
        self._iface.servers.pop(self.uuid, None)
        self._iface.states.pop(self.uuid, None)
        self._iface.progresses.pop(self.uuid, None)
        self._iface.emit("server_destroyed", self.uuid)
        self._bus._release(self.service)


class FileDragClient:
    """The receiving side of a drag: follows the sender's progress and state."""

    def __init__(self, bus: DragBus, data: MimeData) -> None:
        if not self.check_mime_data(data):
            raise ValueError("mime data does not describe a file drag")
        self._bus = bus
        self.service = data.data(DND_MIME_SERVICE).decode("utf-8")
        self.uuid = data.data(DND_MIME_UUID).decode("utf-8")
        self._slots: dict[str, list[Callable[..., object]]] = defaultdict(list)
        self.closed = False
        bus._attach(self)

    def _receive(self, signal: str, *args: object) -> None:
        if signal == "state_changed":
            args = (_to_state(int(args[0])),)
        for callback in list(self._slots[signal]):
            callback(*args)
        if signal == "server_destroyed":
            self.closed = True
            self._bus._detach(self)

    def progress(self) -> int:
        iface = self._bus._interface(self.service)
        return iface.progress(self.uuid) if iface is not None else 0

    def state(self) -> FileDragState | int:
        iface = self._bus._interface(self.service)
        value = iface.state(self.uuid) if iface is not None else FileDragState.STALLED
        return _to_state(int(value))

    def connect(self, signal: str, callback: Callable[..., object]) -> None:
        if signal not in _CLIENT_SIGNALS:
            raise ValueError(f"unknown signal: {signal!r}")
        self._slots[signal].append(callback)

    @staticmethod
    def check_mime_data(data: MimeData) -> bool:
        return data.has_format(DND_MIME_SERVICE) and data.has_format(DND_MIME_PID)

    @staticmethod
    def set_target_data(bus: DragBus, data: MimeData, key: str, value: object) -> bool:
        """Send ``key``/``value`` to the drag's sender; False if it could not be reached."""
        if not FileDragClient.check_mime_data(data):
            raise ValueError("mime data does not describe a file drag")
        service = data.data(DND_MIME_SERVICE).decode("utf-8")
        uuid = data.data(DND_MIME_UUID).decode("utf-8")
        try:
            pid = bus.service_pid(service)
        except LookupError:
            return False
        if str(pid).encode("utf-8") != data.data(DND_MIME_PID):
            return False
        iface = bus._interface(service)
        if iface is None:
            return False
        iface.set_data(uuid, key, "" if value is None else str(value))
        return True

    @staticmethod
    def set_target_url(bus: DragBus, data: MimeData, url: str) -> bool:
        """Tell the sender where the files are being dropped."""
        return FileDragClient.set_target_data(bus, data, DND_TARGET_URL_KEY, url)


class FileDrag:
    """A drag started by a sender, reporting the target URL its receiver chooses."""

    def __init__(self, server: FileDragServer, source: object = None) -> None:
        self.server = server
        self.source = source
        self.mime_data: MimeData | None = None
        self._listeners: list[Callable[[str], object]] = []
        server.connect(self._on_target_data_changed)

    def _on_target_data_changed(self, key: str) -> None:
        if key == DND_TARGET_URL_KEY:
            url = self.target_url()
            for callback in list(self._listeners):
                callback(url)

    def target_url(self) -> str:
        value = self.server.target_data(DND_TARGET_URL_KEY)
        return value if value is not None else ""

    def set_mime_data(self, data: MimeData) -> None:
        self.server.write_mime_data(data)
        self.mime_data = data

    def connect(self, callback: Callable[[str], object]) -> None:
        """Call ``callback(url)`` whenever the target URL changes."""
        self._listeners.append(callback)