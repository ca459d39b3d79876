import pytest

from dguikit.filedrag import (
    DND_MIME_PID,
    DND_MIME_SERVICE,
    DND_MIME_UUID,
    DND_TARGET_URL_KEY,
    DragBus,
    FileDrag,
    FileDragClient,
    FileDragServer,
    FileDragState,
    MimeData,
)

SERVICE = "org.example.Source"
PID = 4242


@pytest.fixture
def bus():
    b = DragBus()
    b.register_service(SERVICE, PID)
    return b


@pytest.fixture
def server(bus):
    with FileDragServer(bus, SERVICE) as srv:
        yield srv


@pytest.fixture
def mime(server):
    data = MimeData()
    server.write_mime_data(data)
    return data


def test_state_values_fixed_by_source(bus, server, mime):
    client = FileDragClient(bus, mime)
    server.set_state(-1)
    assert client.state() is FileDragState.FAILED
    assert client.state() == -1
    server.set_state(0x100)
    assert client.state() is FileDragState.CUSTOM_STATE
    server.set_state(0)
    assert client.state() is FileDragState.STALLED


def test_mime_data_round_trip():
    data = MimeData()
    data.set_data("text/plain", "abc")
    assert data.data("text/plain") == b"abc"
    assert data.has_format("text/plain")
    assert data.data("missing") == b""
    assert not data.has_format("missing")


def test_write_mime_data(server, mime):
    assert mime.data(DND_MIME_SERVICE) == SERVICE.encode()
    assert mime.data(DND_MIME_PID) == str(PID).encode()
    assert mime.data(DND_MIME_UUID) == server.uuid.encode()
    assert FileDragClient.check_mime_data(mime)
    assert not FileDragClient.check_mime_data(MimeData())


def test_bus_errors(bus):
    with pytest.raises(ValueError):
        bus.register_service(SERVICE, 1)
    with pytest.raises(LookupError):
        bus.service_pid("org.example.Missing")
    with pytest.raises(LookupError):
        FileDragServer(bus, "org.example.Missing")
    assert bus.service_pid(SERVICE) == PID


def test_client_requires_drag_mime(bus):
    with pytest.raises(ValueError):
        FileDragClient(bus, MimeData())
    with pytest.raises(ValueError):
        FileDragClient.set_target_url(bus, MimeData(), "/tmp")


def test_target_url_reaches_drag(bus, server):
    drag = FileDrag(server)
    data = MimeData()
    drag.set_mime_data(data)
    seen = []
    drag.connect(seen.append)
    assert drag.target_url() == ""
    assert FileDragClient.set_target_url(bus, data, "/tmp")
    assert drag.target_url() == "/tmp"
    assert server.target_data(DND_TARGET_URL_KEY) == "/tmp"
    assert FileDragClient.set_target_url(bus, data, "/tmp")
    assert seen == ["/tmp"]
    assert drag.mime_data is data


def test_other_keys_do_not_change_url(bus, server, mime):
    drag = FileDrag(server)
    keys, urls = [], []
    server.connect(keys.append)
    drag.connect(urls.append)
    FileDragClient.set_target_data(bus, mime, "note", 7)
    assert server.target_data("note") == "7"
    assert keys == ["note"]
    assert urls == []


def test_pid_mismatch_is_ignored(bus, server, mime):
    mime.set_data(DND_MIME_PID, str(PID + 1))
    assert not FileDragClient.set_target_url(bus, mime, "/tmp")
    assert server.target_data(DND_TARGET_URL_KEY) is None


def test_progress_reaches_client(bus, server, mime):
    client = FileDragClient(bus, mime)
    seen = []
    client.connect("progress_changed", seen.append)
    assert client.progress() == 0
    server.set_progress(10)
    server.set_progress(10)
    server.set_progress(50)
    assert client.progress() == 50
    assert seen == [10, 50]


def test_state_reaches_client(bus, server, mime):
    client = FileDragClient(bus, mime)
    seen = []
    client.connect("state_changed", seen.append)
    assert client.state() is FileDragState.STALLED
    server.set_state(FileDragState.RUNNING)
    assert client.state() is FileDragState.RUNNING
    server.set_state(0x101)
    assert client.state() == 0x101
    assert seen == [FileDragState.RUNNING, 0x101]


def test_close_notifies_client(bus, mime, server):
    client = FileDragClient(bus, mime)
    destroyed = []
    client.connect("server_destroyed", lambda: destroyed.append(True))
    server.set_progress(30)
    server.close()
    assert destroyed == [True]
    assert client.closed
    assert client.progress() == 0
    assert not FileDragClient.set_target_url(bus, mime, "/tmp")
    with pytest.raises(RuntimeError):
        server.set_progress(40)


def test_servers_share_service(bus):
    first = FileDragServer(bus, SERVICE)
    second = FileDragServer(bus, SERVICE)
    data = MimeData()
    second.write_mime_data(data)
    client = FileDragClient(bus, data)
    first.close()
    second.set_progress(20)
    assert client.progress() == 20
    assert first.uuid != second.uuid
    second.close()


def test_newer_client_replaces_older(bus, server, mime):
    old = FileDragClient(bus, mime)
    new = FileDragClient(bus, mime)
    old_seen, new_seen = [], []
    old.connect("progress_changed", old_seen.append)
    new.connect("progress_changed", new_seen.append)
    server.set_progress(5)
    assert old_seen == []
    assert new_seen == [5]


def test_unknown_client_signal(bus, mime):
    client = FileDragClient(bus, mime)
    with pytest.raises(ValueError):
        client.connect("nothing", print)