"""Tests for PendingSelectionTracker."""

from rule_panes.app.pending_selection import PendingSelectionTracker
from rule_panes.app.rules import class_identity, process_identity


def test_starts_empty():
    assert PendingSelectionTracker().pending is None


def test_consume_matching_clears():
    tracker = PendingSelectionTracker()
    tracker.set_pending(process_identity("notepad"))

    assert tracker.consume_if_matches(process_identity("notepad")) is True
    assert tracker.pending is None
    assert tracker.consume_if_matches(process_identity("notepad")) is False


def test_consume_mismatch_leaves_state():
    tracker = PendingSelectionTracker()
    tracker.set_pending(process_identity("notepad"))

    assert tracker.consume_if_matches(process_identity("explorer")) is False
    assert tracker.pending == process_identity("notepad")


def test_same_pattern_different_kind_does_not_match():
    tracker = PendingSelectionTracker()
    tracker.set_pending(process_identity("Notepad"))
    assert tracker.consume_if_matches(class_identity("Notepad")) is False


def test_set_pending_overwrites():
    tracker = PendingSelectionTracker()
    tracker.set_pending(process_identity("a"))
    tracker.set_pending(process_identity("b"))

    assert tracker.consume_if_matches(process_identity("a")) is False
    assert tracker.consume_if_matches(process_identity("b")) is True


def test_clear_cancels():
    tracker = PendingSelectionTracker()
    tracker.set_pending(process_identity("a"))
    tracker.clear()
    assert tracker.pending is None
    assert tracker.consume_if_matches(process_identity("a")) is False
