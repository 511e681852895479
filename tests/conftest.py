"""Pytest configuration and shared fixtures for rule-panes tests."""

import pytest

from rule_panes.app.rules import class_rule, process_rule


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch):
    """Point XDG_CONFIG_HOME and log output at a temp directory for every test."""
    home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    monkeypatch.setenv("RULE_PANES_LOG_DIR", str(tmp_path / "logs"))
    return home / "rule-panes"


@pytest.fixture
def rules_path(config_home):
    return config_home / "rules.json"


@pytest.fixture
def rule_a():
    return process_rule("alpha")


@pytest.fixture
def rule_b():
    return process_rule("beta")


@pytest.fixture
def rule_c():
    return class_rule("Gamma")
