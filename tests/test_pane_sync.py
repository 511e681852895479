"""Tests for PaneSyncEngine — roster transitions and selection continuity."""

import logging

import pytest

from rule_panes.app.pane_sync import GENERAL, GENERAL_PANE, PaneItem, PaneSyncEngine
from rule_panes.app.pending_selection import PendingSelectionTracker
from rule_panes.app.rules import BackdropType, class_rule, global_rule, process_rule
from tests.harness import RecordingObserver


def _keys(engine):
    return [item.key for item in engine.roster]


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def engine(observer):
    return PaneSyncEngine(PendingSelectionTracker(), observer)


class TestInitialize:
    def test_general_first_then_snapshot_order(self, engine, rule_a, rule_b):
        roster = engine.initialize([rule_b, rule_a])
        assert roster[0] is GENERAL_PANE
        assert [item.rule for item in roster[1:]] == [rule_b, rule_a]

    def test_selects_general(self, engine, rule_a):
        engine.initialize([rule_a])
        assert engine.selected_identity is GENERAL
        assert engine.selected_item is GENERAL_PANE

    def test_empty_snapshot_is_general_only(self, engine):
        assert engine.initialize([]) == (GENERAL_PANE,)

    def test_duplicate_identity_in_snapshot_kept_once(self, engine, rule_a):
        changed = rule_a.with_settings(backdrop=BackdropType.MICA)
        engine.initialize([rule_a, changed])
        assert _keys(engine) == [GENERAL, rule_a.identity]
        assert engine.roster[1].rule == rule_a

    def test_notifies_reset_then_selection(self, engine, observer, rule_a):
        engine.initialize([rule_a])
        assert observer.names() == ["reset", "selection"]
        assert observer.calls[1][1] is GENERAL_PANE


class TestRuleAdded:
    def test_appends_at_end(self, engine, observer, rule_a, rule_b, rule_c):
        engine.initialize([rule_b, rule_a])
        observer.clear()

        engine.on_rule_added(rule_c)

        assert _keys(engine) == [GENERAL, rule_b.identity, rule_a.identity, rule_c.identity]
        assert observer.calls == [("inserted", 3, PaneItem(rule_c))]

    def test_selection_unchanged_without_pending(self, engine, rule_a, rule_b):
        engine.initialize([rule_a])
        engine.select(rule_a.identity)

        engine.on_rule_added(rule_b)

        assert engine.selected_identity == rule_a.identity

    def test_pending_match_selects_and_clears(self, engine, rule_a, rule_c):
        engine.initialize([rule_a])
        engine.pending.set_pending(rule_c.identity)

        engine.on_rule_added(rule_c)

        assert engine.selected_identity == rule_c.identity
        assert engine.selected_item.rule == rule_c
        assert engine.pending.pending is None

    def test_pending_mismatch_keeps_pending(self, engine, rule_a, rule_b, rule_c):
        engine.initialize([rule_a])
        engine.pending.set_pending(rule_c.identity)

        engine.on_rule_added(rule_b)

        assert engine.selected_identity is GENERAL
        assert engine.pending.pending == rule_c.identity

    def test_duplicate_add_updates_in_place(self, engine, rule_a, rule_b):
        engine.initialize([rule_a, rule_b])
        changed = rule_a.with_settings(backdrop=BackdropType.ACRYLIC)

        engine.on_rule_added(changed)

        assert _keys(engine) == [GENERAL, rule_a.identity, rule_b.identity]
        assert engine.roster[1].rule == changed


class TestRuleRemoved:
    def test_removes_and_keeps_order(self, engine, observer, rule_a, rule_b, rule_c):
        engine.initialize([rule_a, rule_b, rule_c])
        observer.clear()

        engine.on_rule_removed(rule_b)

        assert _keys(engine) == [GENERAL, rule_a.identity, rule_c.identity]
        assert observer.calls == [("removed", 2, PaneItem(rule_b))]

    def test_selected_falls_back_to_general(self, engine, observer, rule_a, rule_b):
        engine.initialize([rule_a, rule_b])
        engine.select(rule_b.identity)
        observer.clear()

        engine.on_rule_removed(rule_b)

        assert engine.selected_identity is GENERAL
        assert observer.calls[-1] == ("selection", GENERAL_PANE)

    def test_other_selection_survives(self, engine, rule_a, rule_b):
        engine.initialize([rule_a, rule_b])
        engine.select(rule_b.identity)

        engine.on_rule_removed(rule_a)

        assert engine.selected_identity == rule_b.identity
        assert engine.index_of(rule_b.identity) == 1

    def test_unknown_is_logged_noop(self, engine, observer, caplog, rule_a, rule_b):
        engine.initialize([rule_a])
        observer.clear()

        with caplog.at_level(logging.WARNING, logger="rule_panes.app.pane_sync"):
            engine.on_rule_removed(rule_b)

        assert _keys(engine) == [GENERAL, rule_a.identity]
        assert observer.calls == []
        assert "unknown rule process:beta" in caplog.text

    def test_removal_matches_by_identity_not_instance(self, engine, rule_a):
        engine.initialize([rule_a])
        engine.on_rule_removed(process_rule("alpha", backdrop=BackdropType.MICA))
        assert _keys(engine) == [GENERAL]

    def test_global_rule_pane_is_removable_by_event(self, engine, rule_a):
        glob = global_rule()
        engine.initialize([glob, rule_a])
        engine.on_rule_removed(glob)
        assert _keys(engine) == [GENERAL, rule_a.identity]


class TestRuleChanged:
    def test_replaces_at_same_index(self, engine, observer, rule_a, rule_b, rule_c):
        engine.initialize([rule_a, rule_b, rule_c])
        observer.clear()
        changed = rule_b.with_settings(backdrop=BackdropType.TABBED)

        engine.on_rule_changed(changed)

        assert len(engine.roster) == 4
        assert engine.index_of(rule_b.identity) == 2
        assert engine.roster[2].rule == changed
        assert observer.calls == [("replaced", 2, PaneItem(changed))]

    def test_selected_stays_selected_on_replacement(self, engine, observer, rule_a):
        engine.initialize([rule_a])
        engine.select(rule_a.identity)
        observer.clear()
        changed = rule_a.with_settings(enable_blur_behind=True)

        engine.on_rule_changed(changed)

        assert engine.selected_identity == rule_a.identity
        assert engine.selected_item.rule.enable_blur_behind is True
        assert observer.calls[-1] == ("selection", PaneItem(changed))

    def test_unknown_is_noop(self, engine, observer, rule_a, rule_b):
        engine.initialize([rule_a])
        observer.clear()

        engine.on_rule_changed(rule_b)

        assert _keys(engine) == [GENERAL, rule_a.identity]
        assert observer.calls == []


class TestConfigReloaded:
    def test_idempotent(self, engine, rule_a, rule_b):
        engine.initialize([rule_a, rule_b])
        engine.select(rule_b.identity)

        engine.on_config_reloaded([rule_a, rule_b])
        first = (engine.roster, engine.selected_identity)
        engine.on_config_reloaded([rule_a, rule_b])
        second = (engine.roster, engine.selected_identity)

        assert first == second
        assert second[1] == rule_b.identity

    def test_restores_selection_by_identity(self, engine, rule_a, rule_b):
        engine.initialize([rule_a, rule_b])
        engine.select(rule_a.identity)
        changed = rule_a.with_settings(backdrop=BackdropType.MICA)

        engine.on_config_reloaded([rule_b, changed])

        assert engine.selected_identity == rule_a.identity
        assert engine.selected_item.rule == changed

    def test_order_follows_new_snapshot(self, engine, rule_a, rule_b, rule_c):
        engine.initialize([rule_a, rule_b, rule_c])
        engine.on_config_reloaded([rule_c, rule_a])
        assert _keys(engine) == [GENERAL, rule_c.identity, rule_a.identity]

    def test_missing_selection_falls_back_to_general(self, engine, rule_a, rule_b):
        engine.initialize([rule_a, rule_b])
        engine.select(rule_a.identity)

        engine.on_config_reloaded([rule_b])

        assert engine.selected_identity is GENERAL

    def test_general_selection_stays_general(self, engine, rule_a):
        engine.initialize([rule_a])
        engine.on_config_reloaded([rule_a])
        assert engine.selected_identity is GENERAL


class TestSelect:
    def test_select_rule_and_back(self, engine, rule_a):
        engine.initialize([rule_a])
        assert engine.select(rule_a.identity) is True
        assert engine.selected_identity == rule_a.identity
        assert engine.select(GENERAL) is True
        assert engine.selected_identity is GENERAL

    def test_select_unknown_refused(self, engine, rule_a, rule_b):
        engine.initialize([rule_a])
        assert engine.select(rule_b.identity) is False
        assert engine.selected_identity is GENERAL

    def test_reselect_same_does_not_notify(self, engine, observer, rule_a):
        engine.initialize([rule_a])
        engine.select(rule_a.identity)
        observer.clear()
        engine.select(rule_a.identity)
        assert observer.calls == []


class TestDispose:
    def test_events_after_dispose_are_ignored(self, engine, observer, rule_a, rule_b):
        engine.initialize([rule_a])
        engine.dispose()
        observer.clear()

        engine.on_rule_added(rule_b)
        engine.on_rule_removed(rule_a)
        engine.on_config_reloaded([])

        assert _keys(engine) == [GENERAL, rule_a.identity]
        assert observer.calls == []
        assert engine.select(rule_a.identity) is False


class TestObserverFailure:
    def test_observer_exception_does_not_break_engine(self, rule_a, caplog):
        class Exploding:
            def on_inserted(self, index, item):
                raise RuntimeError("boom")

        engine = PaneSyncEngine(observer=Exploding())
        engine.initialize([])
        with caplog.at_level(logging.ERROR, logger="rule_panes.app.pane_sync"):
            engine.on_rule_added(rule_a)
        assert _keys(engine) == [GENERAL, rule_a.identity]
        assert "on_inserted failed" in caplog.text


def test_end_to_end_scenario():
    a, b, c = process_rule("A"), process_rule("B"), class_rule("C")
    engine = PaneSyncEngine()

    engine.initialize([a, b])
    assert _keys(engine) == [GENERAL, a.identity, b.identity]
    assert engine.selected_identity is GENERAL

    engine.on_rule_removed(a)
    assert _keys(engine) == [GENERAL, b.identity]
    assert engine.selected_identity is GENERAL

    engine.pending.set_pending(c.identity)
    engine.on_rule_added(c)
    assert _keys(engine) == [GENERAL, b.identity, c.identity]
    assert engine.selected_identity == c.identity

    engine.on_config_reloaded([b])
    assert _keys(engine) == [GENERAL, b.identity]
    assert engine.selected_identity is GENERAL
