from typing import Any, Awaitable, Callable, Optional

from kiwimenu.core.errors import KiwiMenuError, TransportError
from kiwimenu.shared.command_runner import CommandRunner

GDM_SERVICE = "org.gnome.DisplayManager"
GDM_FACTORY_PATH = "/org/gnome/DisplayManager/LocalDisplayFactory"
GDM_FACTORY_INTERFACE = "org.gnome.DisplayManager.LocalDisplayFactory"


async def _default_bus_factory():
    from dbus_fast import BusType
    from dbus_fast.aio import MessageBus

    return await MessageBus(bus_type=BusType.SYSTEM).connect()


class CommandScreenLocker:
    """Locks the current session by running the configured lock command."""

    def __init__(self, command: str, runner: CommandRunner):
        self.command = command
        self.runner = runner

    def lock(self) -> bool:
        return self.runner.run(self.command)


class DisplayManagerGreeter:
    """
    Switches to the login screen. Asks GDM for a transient greeter display
    and falls back to ``fallback_command`` (e.g. LightDM's dm-tool).
    """

    def __init__(
        self,
        logger: Any,
        runner: CommandRunner,
        fallback_command: Optional[str] = None,
        bus_factory: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.logger = logger
        self.runner = runner
        self.fallback_command = fallback_command
        self._bus_factory = bus_factory or _default_bus_factory

    async def goto_login_session(self) -> None:
        """Raises TransportError when neither GDM nor the fallback worked."""
        from kiwimenu.shared.dbus_helpers import DbusHelpers

        bus = None
        try:
            bus = await self._bus_factory()
            helpers = DbusHelpers(bus)
            await helpers.call_method(
                GDM_SERVICE,
                GDM_FACTORY_PATH,
                GDM_FACTORY_INTERFACE,
                "CreateTransientDisplay",
            )
            self.logger.info("Requested a transient greeter display from GDM.")
            return
        except KiwiMenuError as e:
            gdm_error: Exception = e
        except Exception as e:
            gdm_error = TransportError("CreateTransientDisplay", e)
        finally:
            if bus is not None:
                bus.disconnect()
        if self.fallback_command:
            self.logger.warning(
                f"GDM greeter request failed ({gdm_error}); trying '{self.fallback_command}'."
            )
            if self.runner.run(self.fallback_command):
                return
        raise TransportError("goto_login_session", gdm_error)
