"""CLI entry point for rule-panes."""

import argparse
import logging
from pathlib import Path

import rule_panes.io.logging_setup
import rule_panes.io.settings
from rule_panes.app.dispatch import SerialDispatcher
from rule_panes.app.rule_registry import RuleRegistry
from rule_panes.app.rules import Capabilities
from rule_panes.app.settings_controller import SettingsController
from rule_panes.tui.app import SettingsApp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Edit per-window visual rules")
    parser.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Rules file (default: $XDG_CONFIG_HOME/rule-panes/rules.json)",
    )
    parser.add_argument(
        "--no-watch",
        action="store_true",
        help="Do not reload when the rules file changes on disk",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: $RULE_PANES_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--basic",
        action="store_true",
        help="Offer only Default values for backdrop, titlebar and corners",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    runtime = rule_panes.io.logging_setup.configure(args.log_level)
    logger.info("Logging to %s at %s", runtime.file_path, runtime.level_name)

    registry = RuleRegistry(args.rules)
    dispatcher = SerialDispatcher()
    controller = SettingsController(
        registry,
        rule_panes.io.settings.SettingsStore(),
        dispatcher,
        capabilities=Capabilities() if args.basic else Capabilities.all(),
    )
    app = SettingsApp(controller, registry, dispatcher, watch=not args.no_watch)
    try:
        app.run()
    finally:
        controller.close()
        dispatcher.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
