from typing import Any, Callable, Dict, List

from dbus_fast import BusType
from dbus_fast.aio import MessageBus

from kiwimenu.core.errors import ServiceUnavailable, TransportError
from kiwimenu.shared.dbus_helpers import ACCOUNTS_USER_XML, ACCOUNTS_XML, DbusHelpers

ACCOUNTS_SERVICE = "org.freedesktop.Accounts"
ACCOUNTS_PATH = "/org/freedesktop/Accounts"
ACCOUNTS_INTERFACE = "org.freedesktop.Accounts"
USER_INTERFACE = "org.freedesktop.Accounts.User"


def record_from_properties(props: Dict[str, Any]) -> Dict[str, Any]:
    """Maps AccountsService user properties onto a raw account record."""
    return {
        "uid": props.get("Uid"),
        "username": props.get("UserName"),
        "real_name": props.get("RealName"),
        "system_account": bool(props.get("SystemAccount", False)),
        "icon_file": props.get("IconFile") or None,
        "is_loaded": "UserName" in props and "Uid" in props,
    }


class AccountsServiceClient:
    """Asyncio client for org.freedesktop.Accounts on the system bus."""

    def __init__(self, bus: Any, logger: Any):
        self.bus = bus
        self.logger = logger
        self.helpers = DbusHelpers(bus)
        self._accounts = self.helpers.get_interface(
            ACCOUNTS_SERVICE, ACCOUNTS_PATH, ACCOUNTS_INTERFACE, ACCOUNTS_XML
        )
        self._user_watches: Dict[str, Callable[[], None]] = {}
        self._manager_callbacks: List[tuple] = []

    @classmethod
    async def connect(cls, logger: Any) -> "AccountsServiceClient":
        try:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        except Exception as e:
            raise ServiceUnavailable(f"Failed to connect to System Bus: {e}") from e
        return cls(bus, logger)

    async def list_user_paths(self) -> List[str]:
        try:
            return list(await self._accounts.call_list_cached_users())
        except Exception as e:
            raise TransportError("ListCachedUsers", e) from e

    async def get_user_record(self, object_path: str) -> Dict[str, Any]:
        props = await self.helpers.get_all_properties(
            ACCOUNTS_SERVICE, object_path, USER_INTERFACE, ACCOUNTS_USER_XML
        )
        return record_from_properties(props)

    def on_user_added(self, callback: Callable[[str], None]) -> None:
        self._accounts.on_user_added(callback)
        self._manager_callbacks.append(("user_added", callback))

    def on_user_deleted(self, callback: Callable[[str], None]) -> None:
        self._accounts.on_user_deleted(callback)
        self._manager_callbacks.append(("user_deleted", callback))

    def watch_user(self, object_path: str, callback: Callable[[], None]) -> None:
        self.unwatch_user(object_path)
        user = self.helpers.get_interface(
            ACCOUNTS_SERVICE, object_path, USER_INTERFACE, ACCOUNTS_USER_XML
        )
        user.on_changed(callback)
        self._user_watches[object_path] = callback

    def unwatch_user(self, object_path: str) -> None:
        callback = self._user_watches.pop(object_path, None)
        if callback is None:
            return
        user = self.helpers.get_interface(
            ACCOUNTS_SERVICE, object_path, USER_INTERFACE, ACCOUNTS_USER_XML
        )
        user.off_changed(callback)
        self.helpers.forget(object_path)

    def disconnect(self) -> None:
        for object_path in list(self._user_watches):
            self.unwatch_user(object_path)
        for signal_name, callback in self._manager_callbacks:
            getattr(self._accounts, f"off_{signal_name}")(callback)
        self._manager_callbacks.clear()
        self.bus.disconnect()
