import getpass
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from kiwimenu.core.scheduler import FrameClock


class PanelHost(Protocol):
    def mount(self, element: Any, position: int, alignment: str) -> None: ...

    def unmount(self, element: Any) -> None: ...


def default_current_user() -> str:
    return getpass.getuser()


def identity(text: str) -> str:
    return text


@dataclass
class ShellContext:
    """Everything the user switcher needs from its host, passed explicitly."""

    panel_host: PanelHost
    frame_clock: FrameClock
    logger: Any
    current_user_provider: Callable[[], str] = field(default=default_current_user)
    translate: Callable[[str], str] = field(default=identity)
    notifier: Optional[Any] = None

    def current_username(self) -> str:
        return self.current_user_provider()
