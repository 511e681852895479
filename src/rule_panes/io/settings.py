"""Settings file I/O for rule-panes.

Manages a general-purpose JSON settings file at
XDG_CONFIG_HOME/rule-panes/settings.json. Binary values (window placement)
are stored base64-encoded under their key.

Import as: import rule_panes.io.settings
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Return XDG_CONFIG_HOME (default ~/.config) / rule-panes."""
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "rule-panes"


def get_config_path() -> Path:
    """Return path to settings file."""
    return get_config_dir() / "settings.json"


def get_rules_path() -> Path:
    """Return default path to the rules file."""
    return get_config_dir() / "rules.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt read; empty dict is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        logger.warning("Settings file %s unreadable; using defaults", path)
        return {}
    return data if isinstance(data, dict) else {}


def write_json_atomic(path: Path, data) -> None:
    """Atomic write of JSON data: temp file in the same directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_settings(data: dict) -> None:
    write_json_atomic(get_config_path(), data)


def load_setting(key: str, default=None):
    """Load a single setting by key. Returns default if absent."""
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    """Save a single setting by key (merge into existing settings)."""
    data = load_settings()
    data[key] = value
    save_settings(data)


class SettingsStore:
    """Key → bytes view over the settings file.

    get_value() returns None for absent or undecodable values; callers treat
    both as "use the default".
    """

    def get_value(self, key: str) -> bytes | None:
        raw = load_setting(key)
        if raw is None:
            return None
        if not isinstance(raw, str):
            logger.warning("Setting %s is not a base64 string; ignoring", key)
            return None
        try:
            return base64.b64decode(raw.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError):
            logger.warning("Setting %s is not valid base64; ignoring", key)
            return None

    def set_value(self, key: str, value: bytes) -> None:
        save_setting(key, base64.b64encode(bytes(value)).decode("ascii"))

    def remove_value(self, key: str) -> None:
        data = load_settings()
        if data.pop(key, None) is not None:
            save_settings(data)
