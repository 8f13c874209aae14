from types import SimpleNamespace

import pytest
from dbus_fast import MessageType, Variant

from kiwimenu.shared.notify_send import Notifier


class RecordingBus:
    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []
        self.disconnected = False

    async def call(self, message):
        self.messages.append(message)
        if self.fail:
            raise ConnectionError("session bus went away")
        return SimpleNamespace(message_type=MessageType.METHOD_RETURN, body=[7])

    def disconnect(self):
        self.disconnected = True


def notifier_for(logger, *buses):
    pending = list(buses)

    async def bus_factory():
        return pending.pop(0)

    return Notifier(logger, bus_factory=bus_factory)


@pytest.mark.asyncio
async def test_notify_builds_notify_call(logger):
    bus = RecordingBus()
    notifier = notifier_for(logger, bus)

    sent = await notifier.notify_send(
        "User Switcher",
        "Could not switch to the login screen",
        "dialog-error-symbolic",
        hints={"urgency": 2, "transient": True, "skip": 1.5},
    )

    assert sent is True
    [message] = bus.messages
    assert message.member == "Notify"
    assert message.signature == "susssasa{sv}i"
    app_name, _, icon, title, body, actions, hints, _ = message.body
    assert (app_name, icon, title) == ("Kiwi Menu", "dialog-error-symbolic", "User Switcher")
    assert body == "Could not switch to the login screen"
    assert actions == []
    assert hints == {"urgency": Variant("i", 2), "transient": Variant("b", True)}


@pytest.mark.asyncio
async def test_failed_call_reconnects_next_time(logger):
    broken, healthy = RecordingBus(fail=True), RecordingBus()
    notifier = notifier_for(logger, broken, healthy)

    assert await notifier.notify_send("t", "m") is False
    assert broken.disconnected is True
    assert await notifier.notify_send("t", "m") is True
    assert len(healthy.messages) == 1
