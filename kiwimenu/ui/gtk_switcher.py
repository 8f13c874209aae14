import os
from typing import Any, Callable, Dict, List

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
gi.require_version("GLib", "2.0")
from gi.repository import Gdk, GLib, Gtk  # pyright: ignore  # noqa: E402

from kiwimenu.core.scheduler import AfterPaintFrameClock  # noqa: E402
from kiwimenu.ui.presentation import (  # noqa: E402
    DEFAULT_BUTTON_ICON,
    DEFAULT_GRID_COLUMNS,
    MenuAction,
    UserEntry,
    grid_rows,
)

AVATAR_ICON_SIZE = 64
BADGE_ICON_SIZE = 14
DEFAULT_AVATAR_ICON = "avatar-default-symbolic"


class GLibFrameClock:
    """Idle-source stand-in used before the panel window has a frame clock."""

    # below GDK's redraw priority, so a pending paint runs first
    PRIORITY = GLib.PRIORITY_HIGH_IDLE + 30

    def add_frame_callback(self, callback: Callable[[], None]) -> int:
        def run():
            callback()
            return GLib.SOURCE_REMOVE

        return GLib.idle_add(run, priority=self.PRIORITY)

    def remove_frame_callback(self, callback_id: int) -> None:
        GLib.source_remove(callback_id)


def window_frame_clock(widget: Gtk.Widget) -> AfterPaintFrameClock:
    """Frame-complete notifications from ``widget``'s ``Gdk.FrameClock``."""
    return AfterPaintFrameClock(
        widget.get_frame_clock, GLibFrameClock(), Gdk.FrameClockPhase.AFTER_PAINT
    )


class GtkPanelHost:
    """Mounts elements exposing ``widget`` into the panel's boxes."""

    def __init__(self, boxes: Dict[str, Gtk.Box], logger: Any):
        self.boxes = boxes
        self.logger = logger

    def mount(self, element: Any, position: int, alignment: str) -> None:
        box = self.boxes.get(alignment) or self.boxes["right"]
        widget = element.widget
        sibling = None
        child = box.get_first_child()
        for _ in range(max(0, position)):
            if child is None:
                break
            sibling, child = child, child.get_next_sibling()
        box.insert_child_after(widget, sibling)
        self.logger.debug(f"Mounted {type(element).__name__} at {alignment}:{position}")

    def unmount(self, element: Any) -> None:
        widget = element.widget
        parent = widget.get_parent()
        if parent is not None:
            parent.remove(widget)


def add_cursor_effect(widget: Gtk.Widget) -> None:
    widget.set_cursor_from_name("pointer")


def clear_box(box: Gtk.Box) -> None:
    while child := box.get_first_child():
        box.remove(child)


class GtkUserSwitcherView:
    """GTK4 menu button with a popover grid of users."""

    def __init__(
        self,
        menu: Any,
        icon_name: str = DEFAULT_BUTTON_ICON,
        columns: int = DEFAULT_GRID_COLUMNS,
        avatar_size: int = AVATAR_ICON_SIZE,
    ):
        self.menu = menu
        self.columns = columns
        self.avatar_size = avatar_size
        self.widget = Gtk.MenuButton()
        self.widget.set_icon_name(icon_name)
        self.widget.add_css_class("kiwi-user-switcher-button")
        add_cursor_effect(self.widget)
        self.popover = Gtk.Popover()
        self.popover.add_css_class("kiwi-user-switcher-menu")
        self.content = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        self.grid = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        self.grid.add_css_class("kiwi-user-grid")
        self.actions_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=0)
        self.content.append(self.grid)
        self.content.append(Gtk.Separator(orientation=Gtk.Orientation.HORIZONTAL))
        self.content.append(self.actions_box)
        self.popover.set_child(self.content)
        self.widget.set_popover(self.popover)
        self._signal_ids = [
            self.popover.connect("show", lambda *_: self.menu.on_open_state_changed(True)),
            self.popover.connect(
                "closed", lambda *_: self.menu.on_open_state_changed(False)
            ),
        ]

    def _create_avatar(self, entry: UserEntry) -> Gtk.Widget:
        if entry.icon_file and os.path.exists(entry.icon_file):
            image = Gtk.Image.new_from_file(entry.icon_file)
        else:
            image = Gtk.Image.new_from_icon_name(DEFAULT_AVATAR_ICON)
        image.set_pixel_size(self.avatar_size)
        image.add_css_class("kiwi-user-card-avatar")
        frame = Gtk.Box()
        frame.set_overflow(Gtk.Overflow.HIDDEN)
        for css_class in entry.avatar_classes:
            frame.add_css_class(css_class)
        frame.append(image)
        overlay = Gtk.Overlay()
        overlay.add_css_class("kiwi-user-avatar-container")
        overlay.set_child(frame)
        if entry.show_badge:
            badge = Gtk.Image.new_from_icon_name("object-select-symbolic")
            badge.set_pixel_size(BADGE_ICON_SIZE)
            badge.set_halign(Gtk.Align.END)
            badge.set_valign(Gtk.Align.END)
            for css_class in entry.badge_classes:
                badge.add_css_class(css_class)
            overlay.add_overlay(badge)
        return overlay

    def _create_user_widget(self, entry: UserEntry) -> Gtk.Widget:
        button = Gtk.Button()
        button.set_hexpand(True)
        for css_class in entry.style_classes:
            button.add_css_class(css_class)
        content = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=4)
        content.add_css_class("kiwi-user-item-content")
        content.set_halign(Gtk.Align.CENTER)
        content.append(self._create_avatar(entry))
        label = Gtk.Label(label=entry.display_name)
        label.add_css_class("kiwi-user-card-name")
        content.append(label)
        button.set_child(content)
        add_cursor_effect(button)
        button.connect("clicked", lambda *_: self.menu.on_user_clicked(entry.username))
        return button

    def render(self, entries: List[UserEntry]) -> None:
        clear_box(self.grid)
        for row_entries in grid_rows(entries, self.columns):
            row = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=6)
            row.set_hexpand(True)
            for entry in row_entries:
                row.append(self._create_user_widget(entry))
            self.grid.append(row)

    def show_placeholder(self, message: str) -> None:
        clear_box(self.grid)
        label = Gtk.Label(label=message)
        label.set_sensitive(False)
        label.add_css_class("kiwi-user-switcher-empty")
        self.grid.append(label)

    def set_actions(self, actions: List[MenuAction]) -> None:
        clear_box(self.actions_box)
        for action in actions:
            button = Gtk.Button(label=action.label)
            button.add_css_class("flat")
            button.connect("clicked", lambda *_, cb=action.callback: cb())
            self.actions_box.append(button)

    def close(self) -> None:
        self.popover.popdown()

    def destroy(self) -> None:
        for signal_id in self._signal_ids:
            self.popover.disconnect(signal_id)
        self._signal_ids = []
        self.widget.set_popover(None)
