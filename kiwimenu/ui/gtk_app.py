import asyncio
import logging
import sys
from typing import Any, Optional

import gi

gi.require_version("Gtk", "4.0")
from gi.events import GLibEventLoopPolicy  # pyright: ignore  # noqa: E402
from gi.repository import Gtk  # pyright: ignore  # noqa: E402

from kiwimenu.core.context import ShellContext  # noqa: E402
from kiwimenu.core.log_setup import level_from_name, setup_logging  # noqa: E402
from kiwimenu.core.user_switcher import use_environment_collation  # noqa: E402
from kiwimenu.extension import UserSwitcherExtension  # noqa: E402
from kiwimenu.shared.config_handler import ConfigHandler  # noqa: E402
from kiwimenu.shared.config_template import USER_SWITCHER_SECTION  # noqa: E402
from kiwimenu.shared.i18n import get_translator  # noqa: E402
from kiwimenu.shared.notify_send import Notifier  # noqa: E402
from kiwimenu.shared.path_handler import PathHandler  # noqa: E402
from kiwimenu.ui.gtk_switcher import (  # noqa: E402
    GtkPanelHost,
    GtkUserSwitcherView,
    window_frame_clock,
)

APPLICATION_ID = "org.kiwimenu.Panel"


class KiwiPanelApplication(Gtk.Application):
    """A minimal top bar hosting the user switcher."""

    def __init__(self, logger: Any, config: ConfigHandler):
        super().__init__(application_id=APPLICATION_ID)
        self.logger = logger
        self.config = config
        self.extension: Optional[UserSwitcherExtension] = None
        self.window: Optional[Gtk.ApplicationWindow] = None
        self.connect("activate", self.on_activate)
        self.connect("shutdown", self.on_shutdown)

    def _setting(self, key: str, default_value: Any) -> Any:
        return self.config.get_root_setting([USER_SWITCHER_SECTION, key], default_value)

    def _build_panel(self) -> GtkPanelHost:
        window = Gtk.ApplicationWindow(application=self)
        window.set_title("Kiwi Menu")
        window.set_decorated(False)
        bar = Gtk.CenterBox()
        bar.add_css_class("kiwi-panel")
        boxes = {
            name: Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=4)
            for name in ("left", "center", "right")
        }
        bar.set_start_widget(boxes["left"])
        bar.set_center_widget(boxes["center"])
        bar.set_end_widget(boxes["right"])
        window.set_child(bar)
        window.present()
        self.window = window
        return GtkPanelHost(boxes, self.logger)

    def on_activate(self, *_):
        if self.extension is not None:
            return
        translate = get_translator(localedir=PathHandler().get_locale_dir())
        panel_host = self._build_panel()
        context = ShellContext(
            panel_host=panel_host,
            frame_clock=window_frame_clock(self.window),
            logger=self.logger,
            translate=translate,
            notifier=Notifier(self.logger),
        )

        def view_factory(menu):
            return GtkUserSwitcherView(
                menu,
                icon_name=self._setting("button_icon", "system-users-symbolic"),
                columns=int(self._setting("grid_columns", 3)),
                avatar_size=int(self._setting("avatar_size", 64)),
            )

        self.extension = UserSwitcherExtension(context, self.config, view_factory)
        self.extension.enable()

    def on_shutdown(self, *_):
        if self.extension is not None:
            self.extension.disable()
            self.extension = None


def run(argv=None) -> int:
    logger = setup_logging(level=logging.INFO)
    config = ConfigHandler(logger)
    level = level_from_name(config.get_root_setting(["logging", "level"], "INFO"))
    if level != logging.INFO:
        logger = setup_logging(level=level)
    use_environment_collation(logger)
    asyncio.set_event_loop_policy(GLibEventLoopPolicy())
    app = KiwiPanelApplication(logger, config)
    return app.run(sys.argv if argv is None else argv)
