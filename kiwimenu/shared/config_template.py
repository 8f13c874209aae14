USER_SWITCHER_SECTION = "org.kiwimenu.user_switcher"

default_config = {
    "_section_hint": (
        "General configuration settings for Kiwi Menu, a panel extension "
        "providing a launcher and a user switcher."
    ),
    "logging": {
        "_section_hint": "Diagnostics written to the console and the log file.",
        "level": "INFO",
        "level_hint": "One of DEBUG, INFO, WARNING, ERROR.",
    },
    USER_SWITCHER_SECTION: {
        "_section_hint": (
            "The user switcher button. It appears only when at least two "
            "real (non-system) accounts exist."
        ),
        "minimum_uid": 1000,
        "minimum_uid_hint": (
            "Accounts below this UID are treated as system accounts and are "
            "never listed, unless it is the current user."
        ),
        "panel_position": 1,
        "panel_position_hint": "Index of the button inside its panel box.",
        "panel_alignment": "right",
        "panel_alignment_hint": "Panel box to place the button in: left, center or right.",
        "button_icon": "system-users-symbolic",
        "button_icon_hint": "Icon name of the panel button.",
        "grid_columns": 3,
        "grid_columns_hint": "Number of user entries per row in the menu grid.",
        "avatar_size": 64,
        "avatar_size_hint": "Avatar size in pixels.",
        "settings_command": "gnome-control-center system users",
        "settings_command_hint": (
            "Command run by the 'Users & Groups Settings...' entry."
        ),
        "lock_command": "loginctl lock-session",
        "lock_command_hint": (
            "Command locking the current session before switching to the "
            "login screen. Leave empty to switch without locking."
        ),
        "greeter_command": "dm-tool switch-to-greeter",
        "greeter_command_hint": (
            "Fallback used when the GNOME display manager does not answer "
            "CreateTransientDisplay (e.g. LightDM). Leave empty to disable."
        ),
    },
}
