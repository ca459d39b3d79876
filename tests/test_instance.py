import os
import shutil
import stat
import tempfile
import threading
import uuid

import pytest

from dguikit.instance import SingleInstance, SingleScope, socket_key


@pytest.fixture
def short_dir():
    path = tempfile.mkdtemp(prefix="si")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def key():
    return "k" + uuid.uuid4().hex[:8]


def test_socket_key_world_scope_has_no_id():
    assert socket_key("app", SingleScope.WORLD) == "_d_dtk_single_instance_app"


@pytest.mark.parametrize("scope", list(SingleScope))
def test_socket_key_shape(scope):
    name = socket_key("myapp", scope)
    assert name.startswith("_d_dtk_single_instance_")
    assert name.endswith("_myapp")


def test_paths_follow_socket_name(short_dir, key):
    inst = SingleInstance(key, SingleScope.WORLD, directory=short_dir)
    assert inst.socket_name == socket_key(key, SingleScope.WORLD)
    assert inst.socket_path == os.path.join(short_dir, inst.socket_name)
    assert inst.lock_path == inst.socket_path + ".lock"


def test_first_acquire_becomes_primary(short_dir, key):
    with SingleInstance(key, directory=short_dir, pid=11, arguments=["a"]) as inst:
        assert inst.acquire() is True
        assert inst.is_primary is True
        assert os.path.exists(inst.socket_path)


def test_second_instance_exchanges_details(short_dir, key):
    received = []
    done = threading.Event()

    def on_new(pid, arguments):
        received.append((pid, arguments))
        done.set()

    primary = SingleInstance(key, directory=short_dir, pid=101, arguments=["prog", "--x"])
    primary.connect(on_new)
    second = SingleInstance(key, directory=short_dir, pid=202, arguments=["prog", "файл", ""])
    try:
        assert primary.acquire() is True
        assert second.acquire() is False
        assert second.is_primary is False
        assert second.primary_pid == 101
        assert second.primary_arguments == ["prog", "--x"]
        assert done.wait(5)
        assert received == [(202, ["prog", "файл", ""])]
    finally:
        second.close()
        primary.close()


def test_close_lets_another_acquire(short_dir, key):
    first = SingleInstance(key, directory=short_dir)
    assert first.acquire() is True
    first.close()
    assert first.is_primary is False
    assert not os.path.exists(first.socket_path)
    with SingleInstance(key, directory=short_dir) as second:
        assert second.acquire() is True


def test_acquire_twice_on_same_instance(short_dir, key):
    with SingleInstance(key, directory=short_dir) as inst:
        assert inst.acquire() is True
        assert inst.acquire() is True
        assert inst.is_primary is True


def test_context_manager_releases(short_dir, key):
    with SingleInstance(key, directory=short_dir) as inst:
        assert inst.acquire() is True
    with SingleInstance(key, directory=short_dir) as other:
        assert other.acquire() is True


def test_different_keys_do_not_conflict(short_dir, key):
    with SingleInstance(key, directory=short_dir) as a, SingleInstance(
        key + "b", directory=short_dir
    ) as b:
        assert a.acquire() is True
        assert b.acquire() is True


@pytest.mark.parametrize(
    "scope, mode",
    [(SingleScope.USER, 0o700), (SingleScope.GROUP, 0o770), (SingleScope.WORLD, 0o777)],
)
def test_socket_mode_follows_scope(short_dir, key, scope, mode):
    with SingleInstance(key, scope, directory=short_dir) as inst:
        assert inst.acquire() is True
        assert stat.S_IMODE(os.stat(inst.socket_path).st_mode) == mode


def test_invalid_interval_rejected(short_dir, key):
    with pytest.raises(ValueError):
        SingleInstance(key, directory=short_dir, interval=-5)


def test_connect_requires_callable(short_dir, key):
    inst = SingleInstance(key, directory=short_dir)
    with pytest.raises(TypeError):
        inst.connect(42)


def test_primary_details_unset_when_primary(short_dir, key):
    with SingleInstance(key, directory=short_dir) as inst:
        assert inst.acquire() is True
        assert inst.primary_pid is None
        assert inst.primary_arguments == []