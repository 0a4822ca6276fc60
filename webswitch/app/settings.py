# webswitch/app/settings.py
from __future__ import annotations
import json5, os
from pydantic import JsonValue
from pathlib import Path
from typing import Any, cast
from functools import lru_cache

from webswitch.core.dictpath import getByPath

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULT_PATH", "SETTINGS_ENV_VAR", "DEFAULT_SETTINGS",
    "userSettingsPath", "loadUserSettings", "loadSettings", "reloadSettings",
    "deepMerge", "settings", "settingsBool", "settingsList",
]


SETTINGS_DEFAULT_PATH = Path(__file__).resolve().parent.parent / "settings_default.json5"
SETTINGS_ENV_VAR = "WEBSWITCH_SETTINGS"

_FALLBACK_SETTINGS: dict[str, Any] = {
    "__source": "BUILTIN_DEFAULTS",
    "paths": {"dataRoot": None, "packagesDir": "Packages", "backupsDir": "Backups", "logsDir": "logs", "builtInArchivesDir": None},
    "packages": {"builtIn": []},
    "discovery": {
        "scanRoot": None,
        "namePattern": "PeekVri_UK_*",
        "excludeNames": ["Windows", "Program Files", "Program Files (x86)", "ProgramData", "Users",
                         "$Recycle.Bin", "System Volume Information"],
        "layouts": [["PTC-1", "webserver", "srm2", "EN"], ["webserver", "srm2", "EN"]],
    },
    "activation": {"markerFileName": "loadweb.zip", "backupTimestampFormat": "%Y%m%d_%H%M%S"},
    "http": {"host": "127.0.0.1", "port": 8765, "cors": {"allowOrigins": []}},
    "debug": {"devModeEnabled": False, "logToFile": True, "suppressRecurringMessages": {"enabled": False}},
}

DEFAULT_SETTINGS: JsonValue = (
    json5.loads(SETTINGS_DEFAULT_PATH.read_text(encoding="utf-8"))
    if SETTINGS_DEFAULT_PATH.exists()
    else _FALLBACK_SETTINGS
)



def userSettingsPath() -> Path:
    override = os.getenv(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path("~/.webswitch/webswitch.json5").expanduser()



def loadUserSettings() -> JsonValue:
    filePath = userSettingsPath()
    if filePath.exists():
        try:
            return json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
    return {}



@lru_cache(maxsize=1)
def loadSettings() -> JsonValue:
    return deepMerge(DEFAULT_SETTINGS, loadUserSettings())



def reloadSettings() -> JsonValue:
    """Drops the cached merge so the next read picks up edited files."""
    loadSettings.cache_clear()
    return loadSettings()



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types (lists, strings, numbers, booleans, null),
    the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = {key: cast(JsonValue, value) for key, value in first.items()}
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)
    
    return cast(JsonValue, second)

# ---------- Ergonomic accessors over merged settings ----------

def settings(path: str, default: Any = None) -> Any:
    """Returns value at `path` from merged settings, or `default` if missing."""
    val = getByPath(loadSettings(), path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    """Returns bool value at `path` or `default` if missing."""
    val = getByPath(loadSettings(), path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    return bool(val)



def settingsList(path: str) -> list[Any]:
    """Returns list value at `path`, or an empty list when missing or not a list."""
    val = getByPath(loadSettings(), path)
    return list(val) if isinstance(val, list) else []
