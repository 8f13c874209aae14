from types import SimpleNamespace

import pytest
from dbus_fast import MessageType

from kiwimenu.core.errors import TransportError
from kiwimenu.services.greeter import (
    GDM_FACTORY_INTERFACE,
    CommandScreenLocker,
    DisplayManagerGreeter,
)
from conftest import FakeRunner


class FakeBus:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.messages = []
        self.disconnected = False

    async def call(self, message):
        self.messages.append(message)
        if self.error is not None:
            raise self.error
        return self.reply

    def disconnect(self):
        self.disconnected = True


def method_return():
    return SimpleNamespace(message_type=MessageType.METHOD_RETURN, body=[])


def error_reply():
    return SimpleNamespace(
        message_type=MessageType.ERROR,
        error_name="org.freedesktop.DBus.Error.ServiceUnknown",
        body=["The name org.gnome.DisplayManager was not provided"],
    )


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def greeter_with(logger, runner):
    def build(bus, fallback=None):
        async def bus_factory():
            return bus

        return DisplayManagerGreeter(logger, runner, fallback, bus_factory)

    return build


@pytest.mark.asyncio
async def test_gdm_transient_display(greeter_with, runner):
    bus = FakeBus(reply=method_return())

    await greeter_with(bus, "dm-tool switch-to-greeter").goto_login_session()

    [message] = bus.messages
    assert message.interface == GDM_FACTORY_INTERFACE
    assert message.member == "CreateTransientDisplay"
    assert bus.disconnected is True
    assert runner.commands == []


@pytest.mark.asyncio
async def test_error_reply_uses_fallback_command(greeter_with, runner):
    bus = FakeBus(reply=error_reply())

    await greeter_with(bus, "dm-tool switch-to-greeter").goto_login_session()

    assert runner.commands == ["dm-tool switch-to-greeter"]
    assert bus.disconnected is True


@pytest.mark.asyncio
async def test_no_fallback_raises(greeter_with):
    bus = FakeBus(error=ConnectionError("bus closed"))

    with pytest.raises(TransportError):
        await greeter_with(bus).goto_login_session()


@pytest.mark.asyncio
async def test_failed_fallback_raises(greeter_with, runner):
    runner.result = False
    bus = FakeBus(reply=error_reply())

    with pytest.raises(TransportError):
        await greeter_with(bus, "dm-tool switch-to-greeter").goto_login_session()


def test_screen_locker_runs_lock_command(runner):
    assert CommandScreenLocker("loginctl lock-session", runner).lock() is True
    assert runner.commands == ["loginctl lock-session"]
