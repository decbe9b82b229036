"""
User settings for the ZSPR sprite tools

Settings live in a single JSON file. Stored values are merged over
DEFAULT_SETTINGS key by key, so files written by older versions pick up
new defaults.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

from .constants import DEFAULT_AUTHOR_NAME, GLOVE_LEVEL_NAMES, MAIL_NAMES
from .logging_config import get_logger

logger = get_logger(__name__)

SETTINGS_FILE_NAME = "settings.json"
RECENT_FILE_TYPES = ("zspr", "png", "rom")

DEFAULT_SETTINGS: dict[str, Any] = {
    "author_name": DEFAULT_AUTHOR_NAME,
    "author_name_rom": "",
    "last_rom_file": "",
    "last_output_dir": "",
    "log_level": "INFO",
    "recent_files": {file_type: [] for file_type in RECENT_FILE_TYPES},
    "preferences": {
        "default_mail": 0,
        "default_glove_level": 0,
        "backup_rom": True,
        "max_recent_files": 10,
    },
}


def _merge(base: dict, overrides: dict) -> dict:
    """Recursively copy overrides onto base; nested dicts are merged."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def default_settings_dir(app_name: str = "zspr_tools") -> Path:
    if os.name == "nt":
        return Path(os.environ.get("APPDATA", Path.home())) / app_name
    return Path.home() / f".{app_name}"


class SettingsManager:
    """JSON backed settings with dotted-key access"""

    def __init__(self, app_name="zspr_tools",
                 settings_dir: Optional[Union[str, Path]] = None):
        directory = Path(settings_dir) if settings_dir is not None else default_settings_dir(app_name)
        self.settings_file = directory / SETTINGS_FILE_NAME
        self.settings = self._load_settings()

    def _load_settings(self) -> dict[str, Any]:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        if not self.settings_file.exists():
            return settings

        try:
            stored = json.loads(self.settings_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.settings_file}: {e}")
            return settings

        if not isinstance(stored, dict):
            logger.warning(f"Ignoring settings file {self.settings_file}: not a JSON object")
            return settings
        return _merge(settings, stored)

    def save_settings(self):
        """Write the settings file, creating its directory if needed."""
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            self.settings_file.write_text(
                json.dumps(self.settings, indent=2), encoding="utf-8"
            )
        except OSError as e:
            logger.warning(f"Could not save settings to {self.settings_file}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as 'preferences.backup_rom'."""
        node: Any = self.settings
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any):
        """Store a dotted key, creating intermediate sections, and save."""
        *sections, leaf = key.split(".")
        node = self.settings
        for part in sections:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value
        self.save_settings()

    # Sprite tool preferences

    @property
    def author_name(self) -> str:
        return self.get("author_name") or DEFAULT_AUTHOR_NAME

    @property
    def author_name_rom(self) -> str:
        return self.get("author_name_rom") or ""

    @property
    def backup_rom(self) -> bool:
        return bool(self.get("preferences.backup_rom", True))

    @property
    def default_mail(self) -> str:
        """Name of the preferred mail, falling back to green."""
        index = self.get("preferences.default_mail", 0)
        if isinstance(index, int) and 0 <= index < len(MAIL_NAMES):
            return MAIL_NAMES[index]
        return MAIL_NAMES[0]

    @property
    def default_glove_level(self) -> str:
        index = self.get("preferences.default_glove_level", 0)
        if isinstance(index, int) and 0 <= index < len(GLOVE_LEVEL_NAMES):
            return GLOVE_LEVEL_NAMES[index]
        return GLOVE_LEVEL_NAMES[0]

    @property
    def last_output_dir(self) -> Optional[Path]:
        """Directory of the last written file, if it still exists."""
        stored = self.get("last_output_dir")
        if stored and Path(stored).is_dir():
            return Path(stored)
        return None

    @property
    def last_rom_file(self) -> str:
        return self.get("last_rom_file") or ""

    def remember_output(self, file_type: str, output_path: Union[str, Path]):
        """Record a written file and the directory it went to."""
        self.settings["last_output_dir"] = str(Path(output_path).resolve().parent)
        self.add_recent_file(file_type, output_path)

    def add_recent_file(self, file_type: str, file_path: Union[str, Path]):
        """Move a path to the front of its recent list, trimmed to the limit."""
        if file_type not in RECENT_FILE_TYPES:
            raise ValueError(f"Unknown recent file type: {file_type}")

        path = str(file_path)
        recent = self.settings.setdefault("recent_files", {})
        entries = [path] + [p for p in recent.get(file_type, []) if p != path]
        recent[file_type] = entries[:self.get("preferences.max_recent_files", 10)]
        self.save_settings()

    def get_recent_files(self, file_type: str) -> list:
        return list(self.get(f"recent_files.{file_type}", []))

    def reset_settings(self):
        """Throw away stored values and save the defaults."""
        self.settings = copy.deepcopy(DEFAULT_SETTINGS)
        self.save_settings()


_settings_instance = None


def get_settings() -> SettingsManager:
    """Shared settings for the command line tool."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = SettingsManager()
    return _settings_instance
