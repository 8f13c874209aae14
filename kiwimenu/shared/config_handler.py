import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import toml

from kiwimenu.shared import config_template
from kiwimenu.shared.path_handler import PathHandler

HINT_SUFFIX = "_hint"


def strip_hints(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``data`` without the ``*_hint`` documentation keys."""
    return {
        key: strip_hints(value) if isinstance(value, dict) else copy.deepcopy(value)
        for key, value in data.items()
        if not key.endswith(HINT_SUFFIX)
    }


def fill_missing(target: Dict[str, Any], defaults: Dict[str, Any]) -> bool:
    """Adds every key of ``defaults`` missing from ``target``. True if any was added."""
    changed = False
    for key, default_value in defaults.items():
        current = target.get(key)
        if key not in target:
            target[key] = copy.deepcopy(default_value)
            changed = True
        elif isinstance(default_value, dict) and isinstance(current, dict):
            changed = fill_missing(current, default_value) or changed
    return changed


class ConfigHandler:
    """
    config.toml of the panel, layered over ``config_template.default_config``.

    A file that fails to parse is never written back: the defaults are used
    for the session and every save is refused until the user fixes it.
    """

    def __init__(
        self,
        logger: Any,
        config_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            logger: Bound structlog logger.
            config_dir: Directory holding config.toml; defaults to
                $XDG_CONFIG_HOME/kiwimenu.
        """
        self.logger = logger
        self.default_config = config_template.default_config
        if config_dir is None:
            config_dir = PathHandler().get_config_dir()
        self.config_file = Path(config_dir) / "config.toml"
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self._writable = False
        self.config_data: Dict[str, Any] = {}
        self.config_data = self.load_config()

    def _read_file(self) -> Tuple[Dict[str, Any], bool]:
        try:
            with open(self.config_file, "r") as f:
                return toml.load(f), True
        except (OSError, toml.TomlDecodeError) as e:
            self.logger.error(
                f"Failed to load {self.config_file}: {e}. Using defaults; the file will not be overwritten."
            )
            return {}, False

    def load_config(self) -> Dict[str, Any]:
        """Reads config.toml merged with the defaults, creating the file if absent."""
        if not self.config_file.exists():
            self.logger.info(f"Creating {self.config_file} with default settings.")
            data = strip_hints(self.default_config)
            self._writable = True
            self._write(data)
            return data
        data, self._writable = self._read_file()
        fill_missing(data, strip_hints(self.default_config))
        return data

    def _write(self, data: Dict[str, Any]) -> bool:
        if not self._writable:
            self.logger.warning(
                f"Not saving {self.config_file}: it failed to load. Please fix it manually."
            )
            return False
        try:
            with open(self.config_file, "w") as f:
                toml.dump(data, f)
        except OSError as e:
            self.logger.error(f"Failed to save configuration: {e}")
            return False
        return True

    def save_config(self) -> bool:
        return self._write(self.config_data)

    def get_root_setting(self, key_path: List[str], default_value: Any = None) -> Any:
        """
        Value at ``key_path`` (e.g. ``["logging", "level"]``), or
        ``default_value`` when any key along the path is missing.
        """
        node: Any = self.config_data
        for key in key_path:
            if not isinstance(node, dict) or key not in node:
                self.logger.debug(
                    f"Setting {' -> '.join(key_path)} not found, using {default_value!r}"
                )
                return default_value
            node = node[key]
        return node

    def set_root_setting(self, key_path: List[str], new_value: Any) -> bool:
        """Stores ``new_value`` at ``key_path`` and writes the file."""
        if not key_path:
            raise ValueError("Configuration key path cannot be empty")
        if not self._writable:
            self.logger.warning(
                f"Update of {' -> '.join(key_path)} skipped: config.toml failed to load."
            )
            return False
        node = self.config_data
        for key in key_path[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[key_path[-1]] = new_value
        self.logger.info(f"Set {' -> '.join(key_path)} to {new_value!r}.")
        return self.save_config()

