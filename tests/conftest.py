"""
Shared fakes for the user switcher test suite.

The D-Bus transports are replaced by in-memory fakes exposing the same
methods as AccountsServiceClient and Login1Manager; everything above them
runs unmodified.
"""

import asyncio
import itertools

import pytest
import structlog

from kiwimenu.core.context import ShellContext
from kiwimenu.core.errors import ServiceUnavailable, TransportError
from kiwimenu.services.accounts import AccountDirectory
from kiwimenu.services.sessions import SESSION_PATH_PREFIX, SessionRegistry

CURRENT_USER = "alice"


def user_record(username, uid=1000, real_name="", system=False, loaded=True):
    return {
        "uid": uid,
        "username": username,
        "real_name": real_name,
        "system_account": system,
        "is_loaded": loaded,
    }


def user_path(username):
    return f"/org/freedesktop/Accounts/User_{username}"


async def settle(turns=10):
    """Lets tasks spawned from signal callbacks run to completion."""
    for _ in range(turns):
        await asyncio.sleep(0)


class FakeAccountsClient:
    def __init__(self, records=None):
        self.records = dict(records or {})
        self.fail_list = False
        self.added_callbacks = []
        self.deleted_callbacks = []
        self.watches = {}
        self.disconnected = False

    async def list_user_paths(self):
        if self.fail_list:
            raise ServiceUnavailable("AccountsService not running")
        return list(self.records)

    async def get_user_record(self, object_path):
        if object_path not in self.records:
            raise TransportError(f"GetAll({object_path})")
        return dict(self.records[object_path])

    def on_user_added(self, callback):
        self.added_callbacks.append(callback)

    def on_user_deleted(self, callback):
        self.deleted_callbacks.append(callback)

    def watch_user(self, object_path, callback):
        self.watches[object_path] = callback

    def unwatch_user(self, object_path):
        self.watches.pop(object_path, None)

    def disconnect(self):
        self.disconnected = True

    def add_user(self, record):
        object_path = user_path(record["username"])
        self.records[object_path] = record
        for callback in self.added_callbacks:
            callback(object_path)

    def remove_user(self, username):
        object_path = user_path(username)
        self.records.pop(object_path, None)
        for callback in self.deleted_callbacks:
            callback(object_path)

    def change_user(self, username, **changes):
        object_path = user_path(username)
        self.records[object_path].update(changes)
        self.watches[object_path]()


class FakeLoginManager:
    def __init__(self):
        self.sessions = []
        self.properties = {}
        self.failing_paths = set()
        self.fail_list = False
        self.fail_activate = False
        self.activated = []
        self.list_calls = 0
        self.callbacks = []
        self.disconnected = False

    def add_session(
        self, session_id, username, session_class="user", active=False, seat="seat0"
    ):
        object_path = f"{SESSION_PATH_PREFIX}{session_id}"
        self.sessions.append((session_id, 1000, username, seat, object_path))
        self.properties[object_path] = {"Class": session_class, "Active": active}
        return object_path

    async def list_sessions(self):
        self.list_calls += 1
        if self.fail_list:
            raise TransportError("ListSessions")
        return list(self.sessions)

    async def get_session_properties(self, object_path):
        if object_path in self.failing_paths:
            raise TransportError(f"GetAll({object_path})")
        return dict(self.properties.get(object_path, {}))

    async def activate_session(self, session_id):
        if self.fail_activate:
            raise TransportError(f"ActivateSession({session_id})")
        self.activated.append(session_id)

    def on_sessions_changed(self, callback):
        self.callbacks.append(callback)

    def off_sessions_changed(self, callback):
        self.callbacks.remove(callback)

    def disconnect(self):
        self.disconnected = True

    def emit_session_new(self, session_id):
        for callback in list(self.callbacks):
            callback(session_id, f"{SESSION_PATH_PREFIX}{session_id}")


class FakeFrameClock:
    def __init__(self):
        self._ids = itertools.count(1)
        self.callbacks = {}
        self.removed = []

    def add_frame_callback(self, callback):
        callback_id = next(self._ids)
        self.callbacks[callback_id] = callback
        return callback_id

    def remove_frame_callback(self, callback_id):
        self.removed.append(callback_id)
        self.callbacks.pop(callback_id, None)

    def fire(self):
        callbacks, self.callbacks = self.callbacks, {}
        for callback in callbacks.values():
            callback()


class FakePanelHost:
    def __init__(self):
        self.mounted = []
        self.mount_calls = []
        self.unmount_calls = []

    def mount(self, element, position, alignment):
        self.mount_calls.append((element, position, alignment))
        self.mounted.append(element)

    def unmount(self, element):
        self.unmount_calls.append(element)
        self.mounted.remove(element)


class FakeGreeter:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = 0

    async def goto_login_session(self):
        self.calls += 1
        if self.fail:
            raise TransportError("CreateTransientDisplay")


class FakeLocker:
    def __init__(self, result=True):
        self.result = result
        self.calls = 0

    def lock(self):
        self.calls += 1
        return self.result


class FakeNotifier:
    def __init__(self):
        self.sent = []

    async def notify_send(self, title, message, icon=""):
        self.sent.append((title, message, icon))
        return True


class FakeElement:
    def __init__(self):
        self.widget = object()
        self.destroyed = False

    def destroy(self):
        self.destroyed = True


class FakeView:
    def __init__(self, menu):
        self.menu = menu
        self.widget = object()
        self.rendered = []
        self.placeholders = []
        self.actions = []
        self.closed = 0
        self.destroyed = False

    def render(self, entries):
        self.rendered.append(entries)

    def show_placeholder(self, message):
        self.placeholders.append(message)

    def set_actions(self, actions):
        self.actions = actions

    def close(self):
        self.closed += 1

    def destroy(self):
        self.destroyed = True


class FakeRunner:
    def __init__(self, result=True):
        self.result = result
        self.commands = []

    def run(self, cmd):
        self.commands.append(cmd)
        return self.result


@pytest.fixture
def logger():
    return structlog.get_logger("kiwimenu.tests")


@pytest.fixture
def panel_host():
    return FakePanelHost()


@pytest.fixture
def frame_clock():
    return FakeFrameClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def context(logger, panel_host, frame_clock, notifier):
    return ShellContext(
        panel_host=panel_host,
        frame_clock=frame_clock,
        logger=logger,
        current_user_provider=lambda: CURRENT_USER,
        notifier=notifier,
    )


@pytest.fixture
def accounts_client():
    return FakeAccountsClient(
        {
            user_path("alice"): user_record("alice", 1000, "Alice Liddell"),
            user_path("root"): user_record("root", 0, "root"),
            user_path("gdm"): user_record("gdm", 120, "Gnome Display Manager", True),
        }
    )


@pytest.fixture
def directory(logger, accounts_client):
    async def factory(_logger):
        return accounts_client

    directory = AccountDirectory(logger, factory)
    yield directory
    directory.destroy()


@pytest.fixture
def login_manager():
    return FakeLoginManager()


@pytest.fixture
def greeter():
    return FakeGreeter()


@pytest.fixture
def locker():
    return FakeLocker()


@pytest.fixture
def registry(context, login_manager, greeter, locker):
    async def factory(_logger):
        return login_manager

    registry = SessionRegistry(context, factory, greeter, locker)
    yield registry
    registry.destroy()
