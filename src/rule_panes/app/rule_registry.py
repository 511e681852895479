"""Rule registry — canonical, file-backed store of window rules.

// [LAW:one-source-of-truth] The rules file and this registry's list are the only rule store.
// [LAW:single-enforcer] Every mutation goes through add/remove/update/reload and emits exactly one event.

Mutations run on a worker thread (asyncio.to_thread) so listeners are called
from whatever thread did the work. Listeners must marshal onto their own
execution context before touching UI state.

Listener protocol (all optional, looked up by name):
    on_rule_added(rule)
    on_rule_removed(rule)
    on_rule_changed(rule)
    on_config_reloaded()

Rules file layout:
    {"global": {<settings>}, "rules": [{"kind": "process", "pattern": ..., <settings>}, ...]}
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections.abc import Callable
from pathlib import Path

import watchfiles

import rule_panes.io.settings
from rule_panes.app.rules import (
    GLOBAL_IDENTITY,
    USER_KINDS,
    Rule,
    RuleIdentity,
    RuleKind,
    global_rule,
    rule_from_dict,
    rule_to_dict,
)

logger = logging.getLogger(__name__)


class RuleRegistryError(Exception):
    """A create/update/delete request the registry refused or could not persist."""


class RulesFileError(RuleRegistryError):
    """The rules file exists but cannot be parsed."""


def _settings_only(rule: Rule) -> dict:
    payload = rule_to_dict(rule)
    payload.pop("kind")
    payload.pop("pattern")
    return payload


def parse_rules(data) -> list[Rule]:
    """Parse rules-file data into a snapshot: Global first, then file order.

    Malformed entries are skipped with a warning; duplicate identities keep
    the first occurrence.
    """
    if not isinstance(data, dict):
        raise RulesFileError("rules file root must be an object")

    raw_global = data.get("global", {})
    global_settings = dict(raw_global) if isinstance(raw_global, dict) else {}
    global_settings.update(kind=RuleKind.GLOBAL.value, pattern="")
    rules = [rule_from_dict(global_settings)]

    raw_rules = data.get("rules", [])
    if not isinstance(raw_rules, list):
        raise RulesFileError("'rules' must be a list")

    seen: set[RuleIdentity] = {GLOBAL_IDENTITY}
    for entry in raw_rules:
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object rule entry: %r", entry)
            continue
        try:
            rule = rule_from_dict(entry)
        except ValueError as e:
            logger.warning("Skipping invalid rule entry %r: %s", entry, e)
            continue
        if rule.kind not in USER_KINDS:
            logger.warning("Skipping %s rule in rules list", rule.kind.value)
            continue
        if rule.identity in seen:
            logger.warning("Skipping duplicate rule %s", rule.identity.key)
            continue
        seen.add(rule.identity)
        rules.append(rule)
    return rules


def serialize_rules(rules: list[Rule]) -> dict:
    global_settings: dict = {}
    entries = []
    for rule in rules:
        if rule.kind is RuleKind.GLOBAL:
            global_settings = _settings_only(rule)
        else:
            entries.append(rule_to_dict(rule))
    return {"global": global_settings, "rules": entries}


def load_rules_file(path: Path) -> list[Rule]:
    """Read and parse a rules file. Missing file → Global rule only."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return [global_rule()]
    except OSError as e:
        raise RulesFileError("cannot read {}: {}".format(path, e)) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RulesFileError("cannot parse {}: {}".format(path, e)) from e
    return parse_rules(data)


class RuleRegistry:
    """In-memory rule list mirrored to a JSON file, with change events."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else rule_panes.io.settings.get_rules_path()
        self._lock = threading.Lock()
        # Held from a mutation through its event so events leave in mutation order.
        self._order_lock = threading.RLock()
        self._listeners: list[object] = []
        try:
            self._rules: list[Rule] = load_rules_file(self._path)
        except RulesFileError:
            logger.exception("Rules file unusable; starting with Global rule only")
            self._rules = [global_rule()]

    @property
    def path(self) -> Path:
        return self._path

    @property
    def rules(self) -> tuple[Rule, ...]:
        with self._lock:
            return tuple(self._rules)

    def get(self, identity: RuleIdentity) -> Rule | None:
        with self._lock:
            return next((r for r in self._rules if r.identity == identity), None)

    # ─── Subscription ─────────────────────────────────────────────────

    def subscribe(self, listener) -> Callable[[], None]:
        """Register a listener. Returns a disposer that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def dispose() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return dispose

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _emit(self, method: str, *args) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            callback = getattr(listener, method, None)
            if callback is None:
                continue
            try:
                callback(*args)
            except Exception:
                logger.exception("Rule listener %s failed", method)

    # ─── Mutations ────────────────────────────────────────────────────

    async def add_rule(self, rule: Rule) -> Rule:
        return await asyncio.to_thread(self._in_order, self._add_rule_sync, rule)

    async def remove_rule(self, rule: Rule) -> Rule:
        return await asyncio.to_thread(self._in_order, self._remove_rule_sync, rule)

    async def update_rule(self, rule: Rule) -> Rule:
        return await asyncio.to_thread(self._in_order, self._update_rule_sync, rule)

    def _in_order(self, fn, *args):
        with self._order_lock:
            return fn(*args)

    def _add_rule_sync(self, rule: Rule) -> Rule:
        if rule.kind not in USER_KINDS:
            raise RuleRegistryError("cannot add a {} rule".format(rule.kind.value))
        if not rule.pattern:
            raise RuleRegistryError("rule pattern must not be empty")
        with self._lock:
            if any(r.identity == rule.identity for r in self._rules):
                raise RuleRegistryError("rule {} already exists".format(rule.identity.key))
            self._persist_locked(self._rules + [rule])
            self._rules.append(rule)
        logger.info("Added rule %s", rule.identity.key)
        self._emit("on_rule_added", rule)
        return rule

    def _remove_rule_sync(self, rule: Rule) -> Rule:
        if rule.kind not in USER_KINDS:
            raise RuleRegistryError("cannot remove the {} rule".format(rule.kind.value))
        with self._lock:
            existing = next((r for r in self._rules if r.identity == rule.identity), None)
            if existing is None:
                raise RuleRegistryError("rule {} does not exist".format(rule.identity.key))
            remaining = [r for r in self._rules if r.identity != rule.identity]
            self._persist_locked(remaining)
            self._rules = remaining
        logger.info("Removed rule %s", rule.identity.key)
        self._emit("on_rule_removed", existing)
        return existing

    def _update_rule_sync(self, rule: Rule) -> Rule:
        with self._lock:
            index = next(
                (i for i, r in enumerate(self._rules) if r.identity == rule.identity), None
            )
            if index is None:
                raise RuleRegistryError("rule {} does not exist".format(rule.identity.key))
            updated = list(self._rules)
            updated[index] = rule
            self._persist_locked(updated)
            self._rules = updated
        logger.info("Updated rule %s", rule.identity.key)
        self._emit("on_rule_changed", rule)
        return rule

    def _persist_locked(self, rules: list[Rule]) -> None:
        try:
            rule_panes.io.settings.write_json_atomic(self._path, serialize_rules(rules))
        except OSError as e:
            raise RuleRegistryError("cannot write {}: {}".format(self._path, e)) from e

    # ─── Reload ───────────────────────────────────────────────────────

    def reload(self, only_if_changed: bool = False) -> bool:
        """Re-read the rules file and emit ConfigReloaded.

        A corrupt file is logged and the current rules stay in place.
        Returns True when the event was emitted.
        """
        return self._in_order(self._reload_sync, only_if_changed)

    def _reload_sync(self, only_if_changed: bool) -> bool:
        try:
            rules = load_rules_file(self._path)
        except RulesFileError:
            logger.exception("Rules file reload failed; keeping current rules")
            return False
        with self._lock:
            if only_if_changed and rules == self._rules:
                return False
            self._rules = rules
        logger.info("Reloaded %d rule(s) from %s", len(rules), self._path)
        self._emit("on_config_reloaded")
        return True

    async def watch(self, stop_event: asyncio.Event | None = None) -> None:
        """Reload whenever the rules file changes on disk. Runs until stopped."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        target = self._path.resolve()
        async for changes in watchfiles.awatch(self._path.parent, stop_event=stop_event):
            if any(Path(p).resolve() == target for _, p in changes):
                # Our own writes land here too; only real edits produce an event.
                self.reload(only_if_changed=True)
