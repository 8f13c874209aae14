import enum
from typing import Any, Callable, Optional

from kiwimenu.core.context import ShellContext
from kiwimenu.core.signals import SubscriptionSet


class VisibilityState(enum.Enum):
    HIDDEN = "hidden"
    SHOWN = "shown"


class VisibilityController:
    """
    Mounts the switcher element in the panel while more than one real user
    exists, and unmounts it otherwise.
    """

    def __init__(
        self,
        context: ShellContext,
        directory: Any,
        element_factory: Callable[[], Any],
        position: int = 1,
        alignment: str = "right",
    ):
        self.context = context
        self.logger = context.logger
        self.directory = directory
        self.element_factory = element_factory
        self.position = position
        self.alignment = alignment
        self.state = VisibilityState.HIDDEN
        self.element: Optional[Any] = None
        self._subscriptions = SubscriptionSet()
        self._destroyed = False

    def start(self) -> None:
        self._subscriptions.extend(
            self.directory.revoke, self.directory.subscribe_all(self._on_directory_changed)
        )
        if self.directory.is_loaded:
            self.update_visibility()
        else:
            self.directory.ensure_loaded()

    def _on_directory_changed(self, *_) -> None:
        self.update_visibility()

    def update_visibility(self) -> None:
        if self._destroyed:
            return
        should_show = self.directory.count_real_users() > 1
        if should_show and self.state is VisibilityState.HIDDEN:
            self._show()
        elif not should_show and self.state is VisibilityState.SHOWN:
            self._hide()

    def _show(self) -> None:
        self.element = self.element_factory()
        self.context.panel_host.mount(self.element, self.position, self.alignment)
        self.state = VisibilityState.SHOWN
        self.logger.info("User switcher mounted.")

    def _hide(self) -> None:
        element, self.element = self.element, None
        self.state = VisibilityState.HIDDEN
        if element is None:
            return
        self.context.panel_host.unmount(element)
        element.destroy()
        self.logger.info("User switcher unmounted.")

    def destroy(self) -> None:
        self._subscriptions.revoke_all()
        if self.state is VisibilityState.SHOWN:
            self._hide()
        self._destroyed = True
