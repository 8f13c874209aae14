import os
from pathlib import Path
from typing import Dict, Tuple

# kind -> (environment variable, fallback relative to $HOME)
XDG_BASES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",)),
    "data": ("XDG_DATA_HOME", (".local", "share")),
    "state": ("XDG_STATE_HOME", (".local", "state")),
}


class PathHandler:
    """Per-application directories under the XDG base directories."""

    def __init__(self, app_name: str = "kiwimenu"):
        self.app_name = app_name
        self._home = Path.home()

    def app_dir(self, kind: str, create: bool = False) -> Path:
        env_var, fallback = XDG_BASES[kind]
        base = os.getenv(env_var)
        path = (Path(base) if base else self._home.joinpath(*fallback)) / self.app_name
        if create:
            path.mkdir(parents=True, exist_ok=True)
        return path

    def get_config_dir(self) -> Path:
        return self.app_dir("config", create=True)

    def get_locale_dir(self) -> Path:
        return self.app_dir("data") / "locale"

    def get_log_file(self) -> Path:
        return self.app_dir("state") / f"{self.app_name}.log"
