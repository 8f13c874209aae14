from typing import Any, Callable, Dict, List, Tuple

from dbus_fast import BusType
from dbus_fast.aio import MessageBus

from kiwimenu.core.errors import ServiceUnavailable, TransportError
from kiwimenu.shared.dbus_helpers import (
    DbusHelpers,
    LOGIN1_MANAGER_XML,
    LOGIN1_SESSION_XML,
)

LOGIN1_SERVICE = "org.freedesktop.login1"
LOGIN1_PATH = "/org/freedesktop/login1"
MANAGER_INTERFACE = "org.freedesktop.login1.Manager"
SESSION_INTERFACE = "org.freedesktop.login1.Session"

# (session_id, uid, username, seat, object_path)
RawSession = Tuple[str, int, str, str, str]


class Login1Manager:
    """Thin asyncio client for org.freedesktop.login1 on the system bus."""

    def __init__(self, bus: Any, logger: Any):
        self.bus = bus
        self.logger = logger
        self.helpers = DbusHelpers(bus)
        self._manager = self.helpers.get_interface(
            LOGIN1_SERVICE, LOGIN1_PATH, MANAGER_INTERFACE, LOGIN1_MANAGER_XML
        )
        self._session_callbacks: List[Callable[..., None]] = []

    @classmethod
    async def connect(cls, logger: Any) -> "Login1Manager":
        try:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        except Exception as e:
            raise ServiceUnavailable(f"Failed to connect to System Bus: {e}") from e
        return cls(bus, logger)

    async def list_sessions(self) -> List[RawSession]:
        try:
            raw = await self._manager.call_list_sessions()
        except Exception as e:
            raise TransportError("ListSessions", e) from e
        sessions = []
        for entry in raw or []:
            session_id, uid, username, seat, path = entry
            sessions.append((session_id, uid, username, seat, path))
        return sessions

    async def get_session_properties(self, object_path: str) -> Dict[str, Any]:
        return await self.helpers.get_all_properties(
            LOGIN1_SERVICE, object_path, SESSION_INTERFACE, LOGIN1_SESSION_XML
        )

    async def activate_session(self, session_id: str) -> None:
        try:
            await self._manager.call_activate_session(session_id)
        except Exception as e:
            raise TransportError(f"ActivateSession({session_id})", e) from e

    def on_sessions_changed(self, callback: Callable[[str, str], None]) -> None:
        self._manager.on_session_new(callback)
        self._manager.on_session_removed(callback)
        self._session_callbacks.append(callback)

    def off_sessions_changed(self, callback: Callable[[str, str], None]) -> None:
        if callback not in self._session_callbacks:
            return
        self._session_callbacks.remove(callback)
        self._manager.off_session_new(callback)
        self._manager.off_session_removed(callback)

    def disconnect(self) -> None:
        for callback in list(self._session_callbacks):
            self.off_sessions_changed(callback)
        self.bus.disconnect()
