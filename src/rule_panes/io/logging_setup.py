"""Logger wiring for the settings window.

// [LAW:single-enforcer] Handlers are attached to the rule_panes logger here and nowhere else.

The TUI owns the terminal, so records go to a rotating file by default;
stderr output is opt-in. Calling configure() again swaps the handlers
instead of stacking them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "rule_panes"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    level: int
    file_path: str


def resolve_level(raw: str | None) -> int:
    """Map a level name to its number; unknown names mean INFO."""
    level = logging.getLevelName(str(raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def resolve_log_path() -> Path:
    explicit = os.environ.get("RULE_PANES_LOG_FILE")
    if explicit:
        return Path(explicit)
    log_dir = Path(
        os.environ.get("RULE_PANES_LOG_DIR", os.path.expanduser("~/.local/share/rule-panes/logs"))
    )
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return log_dir / "settings-{}-{}.log".format(stamp, os.getpid())


def configure(level: str | None = None, *, stream: bool = False) -> LoggingRuntime:
    """Point the rule_panes logger at a rotating file (and stderr if asked)."""
    level_value = resolve_level(level or os.environ.get("RULE_PANES_LOG_LEVEL"))
    file_path = resolve_log_path()
    file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        file_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    handlers: list[logging.Handler] = [file_handler]
    if stream:
        stderr_handler = logging.StreamHandler()
        stderr_handler.setFormatter(logging.Formatter("[%(name)s] %(levelname)s %(message)s"))
        handlers.append(stderr_handler)

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setLevel(level_value)
        logger.addHandler(handler)
    logger.setLevel(level_value)
    logger.propagate = False

    return LoggingRuntime(logging.getLevelName(level_value), level_value, str(file_path))
