from typing import Any, Awaitable, Callable, Optional

from kiwimenu.core.context import ShellContext
from kiwimenu.core.models import MINIMUM_VISIBLE_UID
from kiwimenu.core.user_switcher import UserSwitchCoordinator, use_environment_collation
from kiwimenu.core.visibility import VisibilityController
from kiwimenu.services.accounts import AccountDirectory
from kiwimenu.services.greeter import CommandScreenLocker, DisplayManagerGreeter
from kiwimenu.services.sessions import SessionRegistry
from kiwimenu.shared.command_runner import CommandRunner
from kiwimenu.shared.config_handler import ConfigHandler
from kiwimenu.shared.config_template import USER_SWITCHER_SECTION
from kiwimenu.ui.presentation import UserSwitcherMenu


class UserSwitcherExtension:
    """
    Lifecycle of the user switcher inside a host panel: ``enable`` builds the
    services and starts watching accounts, ``disable`` tears everything down.
    """

    def __init__(
        self,
        context: ShellContext,
        config: ConfigHandler,
        view_factory: Callable[[UserSwitcherMenu], Any],
        accounts_client_factory: Optional[Callable[[Any], Awaitable[Any]]] = None,
        manager_factory: Optional[Callable[[Any], Awaitable[Any]]] = None,
        greeter: Any = None,
        screen_locker: Any = None,
        runner: Optional[CommandRunner] = None,
    ):
        self.context = context
        self.logger = context.logger
        self.config = config
        self.view_factory = view_factory
        self._accounts_client_factory = accounts_client_factory
        self._manager_factory = manager_factory
        self._greeter = greeter
        self._screen_locker = screen_locker
        self.runner = runner or CommandRunner(self.logger)
        self.directory: Optional[AccountDirectory] = None
        self.registry: Optional[SessionRegistry] = None
        self.coordinator: Optional[UserSwitchCoordinator] = None
        self.visibility: Optional[VisibilityController] = None

    def get_setting(self, key: str, default_value: Any = None) -> Any:
        return self.config.get_root_setting([USER_SWITCHER_SECTION, key], default_value)

    @property
    def enabled(self) -> bool:
        return self.visibility is not None

    def enable(self) -> None:
        if self.enabled:
            return
        use_environment_collation(self.logger)
        minimum_uid = int(self.get_setting("minimum_uid", MINIMUM_VISIBLE_UID))
        greeter = self._greeter or DisplayManagerGreeter(
            self.logger, self.runner, self.get_setting("greeter_command") or None
        )
        screen_locker = self._screen_locker
        lock_command = self.get_setting("lock_command")
        if screen_locker is None and lock_command:
            screen_locker = CommandScreenLocker(lock_command, self.runner)
        self.directory = AccountDirectory(
            self.logger, self._accounts_client_factory, minimum_uid
        )
        self.registry = SessionRegistry(
            self.context, self._manager_factory, greeter, screen_locker
        )
        self.coordinator = UserSwitchCoordinator(
            self.directory,
            self.registry,
            self.context.current_user_provider,
            self.logger,
            minimum_uid,
        )
        self.visibility = VisibilityController(
            self.context,
            self.directory,
            self._create_menu,
            position=int(self.get_setting("panel_position", 1)),
            alignment=self.get_setting("panel_alignment", "right"),
        )
        self.visibility.start()
        self.logger.info("User switcher enabled.")

    def _create_menu(self) -> UserSwitcherMenu:
        return UserSwitcherMenu(
            self.context,
            self.coordinator,
            self.directory,
            self.registry,
            self.view_factory,
            self.runner,
            self.get_setting("settings_command", "gnome-control-center system users"),
        )

    def disable(self) -> None:
        if not self.enabled:
            return
        self.visibility.destroy()  # pyright: ignore
        self.registry.destroy()  # pyright: ignore
        self.directory.destroy()  # pyright: ignore
        self.visibility = None
        self.coordinator = None
        self.registry = None
        self.directory = None
        self.logger.info("User switcher disabled.")
