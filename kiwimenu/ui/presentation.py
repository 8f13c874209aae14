"""
Toolkit-independent side of the user switcher menu.

``UserSwitcherMenu`` owns the coordinator calls and the subscriptions; a view
(``GtkUserSwitcherView`` at runtime) only draws ``UserEntry`` rows and
forwards clicks and open/close notifications back here.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple, TypeVar

from kiwimenu.core.context import ShellContext
from kiwimenu.core.models import SwitchAction, SwitchableUser
from kiwimenu.core.signals import SubscriptionSet
from kiwimenu.shared.command_runner import CommandRunner
from kiwimenu.shared.concurrency_helper import ConcurrencyHelper

DEFAULT_BUTTON_ICON = "system-users-symbolic"
DEFAULT_GRID_COLUMNS = 3
EMPTY_MESSAGE = "No eligible user accounts found"
LOGIN_WINDOW_LABEL = "Login Window..."
USER_SETTINGS_LABEL = "Users & Groups Settings..."

T = TypeVar("T")


@dataclass(frozen=True)
class UserEntry:
    username: str
    display_name: str
    icon_file: Optional[str]
    style_classes: Tuple[str, ...]
    avatar_classes: Tuple[str, ...]
    badge_classes: Tuple[str, ...]

    @property
    def show_badge(self) -> bool:
        return bool(self.badge_classes)


@dataclass(frozen=True)
class MenuAction:
    label: str
    callback: Callable[[], None]


def entry_for(row: SwitchableUser) -> UserEntry:
    style_classes = ["kiwi-user-item"]
    avatar_classes = ["kiwi-user-card-avatar-frame"]
    badge_classes: Tuple[str, ...] = ()
    if row.is_current_user:
        style_classes.append("current-user")
        avatar_classes.append("current-user")
        badge_classes = ("kiwi-user-session-badge", "current-user")
    elif row.is_signed_in:
        avatar_classes.append("logged-in")
        badge_classes = ("kiwi-user-session-badge",)
    return UserEntry(
        username=row.username,
        display_name=row.display_name,
        icon_file=row.account.icon_file,
        style_classes=tuple(style_classes),
        avatar_classes=tuple(avatar_classes),
        badge_classes=badge_classes,
    )


def grid_rows(items: Sequence[T], columns: int = DEFAULT_GRID_COLUMNS) -> List[List[T]]:
    columns = max(1, int(columns))
    return [list(items[i : i + columns]) for i in range(0, len(items), columns)]


class PresentationAdapter(Protocol):
    widget: Any

    def render(self, entries: List[UserEntry]) -> None: ...

    def show_placeholder(self, message: str) -> None: ...

    def set_actions(self, actions: List[MenuAction]) -> None: ...

    def close(self) -> None: ...

    def destroy(self) -> None: ...


class UserSwitcherMenu:
    def __init__(
        self,
        context: ShellContext,
        coordinator: Any,
        directory: Any,
        registry: Any,
        view_factory: Callable[["UserSwitcherMenu"], PresentationAdapter],
        runner: CommandRunner,
        settings_command: str = "gnome-control-center system users",
    ):
        self.context = context
        self.logger = context.logger
        self.coordinator = coordinator
        self.directory = directory
        self.registry = registry
        self.runner = runner
        self.settings_command = settings_command
        self.is_open = False
        self._destroyed = False
        self._concurrency = ConcurrencyHelper(self.logger)
        self._subscriptions = SubscriptionSet()
        self._subscriptions.extend(
            directory.revoke, directory.subscribe_all(self._on_state_changed)
        )
        self._subscriptions.add(
            registry.revoke, registry.subscribe_login_state(self._on_state_changed)
        )
        self.view = view_factory(self)
        _ = context.translate
        self.view.set_actions(
            [
                MenuAction(_(LOGIN_WINDOW_LABEL), self.open_login_window),
                MenuAction(_(USER_SETTINGS_LABEL), self.open_user_settings),
            ]
        )

    @property
    def widget(self) -> Any:
        return self.view.widget

    def on_open_state_changed(self, is_open: bool) -> None:
        self.is_open = is_open
        if is_open:
            self.schedule_rebuild()

    def _on_state_changed(self, *_) -> None:
        if self.is_open:
            self.schedule_rebuild()

    def schedule_rebuild(self) -> None:
        if not self._destroyed:
            self._concurrency.run_in_async_task(self.rebuild())

    async def rebuild(self) -> List[SwitchableUser]:
        rows = await self.coordinator.build_view_model(self.context.current_username())
        if self._destroyed:
            return rows
        if not rows:
            self.view.show_placeholder(self.context.translate(EMPTY_MESSAGE))
        else:
            self.view.render([entry_for(row) for row in rows])
        return rows

    def on_user_clicked(self, username: str) -> None:
        self.view.close()
        self._concurrency.run_in_async_task(self.activate_user(username))

    async def activate_user(self, username: str) -> SwitchAction:
        action = await self.coordinator.select_user(username)
        self.logger.debug(f"Selection of {username} resolved to {action.value}")
        return action

    def open_login_window(self) -> None:
        self.view.close()
        self.registry.request_greeter_handoff()

    def open_user_settings(self) -> None:
        self.view.close()
        self.runner.run(self.settings_command)

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._subscriptions.revoke_all()
        self._concurrency.cleanup_tasks()
        self.view.destroy()
