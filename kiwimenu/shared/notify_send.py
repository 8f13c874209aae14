from typing import Any, Awaitable, Callable, Dict, List, Optional

from dbus_fast import Variant

from kiwimenu.core.errors import KiwiMenuError
from kiwimenu.shared.dbus_helpers import DbusHelpers


async def _session_bus_factory():
    from dbus_fast import BusType
    from dbus_fast.aio import MessageBus

    return await MessageBus(bus_type=BusType.SESSION).connect()


def _to_variant(value: Any) -> Optional[Variant]:
    if isinstance(value, Variant):
        return value
    if isinstance(value, bool):
        return Variant("b", value)
    if isinstance(value, int):
        return Variant("i", value)
    if isinstance(value, str):
        return Variant("s", value)
    return None


class Notifier:
    def __init__(
        self,
        logger: Any,
        app_name: str = "Kiwi Menu",
        bus_factory: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.logger = logger
        self.app_name = app_name
        self._bus_factory = bus_factory or _session_bus_factory
        self._bus: Any = None

    async def notify_send(
        self,
        title: str,
        message: str,
        icon: str = "",
        replaces_id: int = 0,
        expire_timeout: int = 5000,
        hints: Optional[Dict[str, Any]] = None,
        actions: Optional[List[str]] = None,
    ) -> bool:
        """
        Sends a desktop notification through org.freedesktop.Notifications.
        Args:
            title (str): The summary text.
            message (str): The body text.
            icon (str): Icon name (e.g., 'dialog-information').
            replaces_id (int): ID of the notification to replace (0 for new).
            expire_timeout (int): Timeout in milliseconds.
            hints (dict): str, int and bool values are wrapped in Variants.
            actions (list): Action keys and labels, alternating.
        Returns:
            False when the notification could not be delivered.
        """
        final_hints = {}
        for key, value in (hints or {}).items():
            variant = _to_variant(value)
            if variant is None:
                self.logger.warning(
                    f"Hint '{key}' has unsupported type {type(value)}. Skipping."
                )
                continue
            final_hints[key] = variant
        try:
            if self._bus is None:
                self._bus = await self._bus_factory()
            await DbusHelpers(self._bus).call_method(
                "org.freedesktop.Notifications",
                "/org/freedesktop/Notifications",
                "org.freedesktop.Notifications",
                "Notify",
                "susssasa{sv}i",
                [
                    self.app_name,
                    replaces_id,
                    icon,
                    title,
                    message,
                    actions or [],
                    final_hints,
                    expire_timeout,
                ],
            )
            return True
        except KiwiMenuError as e:
            self.logger.error(f"Error sending notification: {e}")
        except Exception as e:
            self.logger.error(f"Error preparing notification: {e}")
        self._drop_bus()
        return False

    def _drop_bus(self) -> None:
        bus, self._bus = self._bus, None
        if bus is None:
            return
        try:
            bus.disconnect()
        except Exception as e:
            self.logger.debug(f"Closing the session bus failed: {e}")
