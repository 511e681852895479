"""Placement source for the settings TUI: the terminal stands in for the window.

A terminal app cannot move its own window, so placement is reported as the
terminal's current size and a restored placement is only recorded.
"""

from __future__ import annotations

import logging

from rule_panes.io.placement_codec import Placement, ShowState

logger = logging.getLogger(__name__)


class TerminalWindowHost:
    def __init__(self, app) -> None:
        self._app = app
        self.restored: Placement | None = None

    def get_placement(self) -> Placement | None:
        width, height = self._app.size
        if width <= 0 or height <= 0:
            return None
        return Placement(left=0, top=0, right=width, bottom=height, show_state=ShowState.NORMAL)

    def apply_placement(self, placement: Placement) -> None:
        self.restored = placement
        width, height = self._app.size
        if (placement.width, placement.height) != (width, height):
            logger.info(
                "Restored placement %dx%d differs from terminal %dx%d",
                placement.width,
                placement.height,
                width,
                height,
            )
