"""Tests for the rule model: identity, serialization, option lists."""

import pytest

from rule_panes.app.rules import (
    BackdropType,
    Capabilities,
    CornerPreference,
    RuleIdentity,
    RuleKind,
    TitlebarColorMode,
    build_option_lists,
    class_rule,
    global_rule,
    process_rule,
    rule_from_dict,
    rule_to_dict,
)


class TestIdentity:
    def test_key_and_parse(self):
        identity = RuleIdentity(RuleKind.PROCESS, "explorer")
        assert identity.key == "process:explorer"
        assert RuleIdentity.parse("process:explorer") == identity

    def test_global_key_has_no_pattern(self):
        assert global_rule().identity.key == "global"
        assert RuleIdentity.parse("global") == global_rule().identity

    def test_pattern_may_contain_colon(self):
        identity = RuleIdentity.parse("class:Foo:Bar")
        assert identity.pattern == "Foo:Bar"

    def test_parse_unknown_kind(self):
        with pytest.raises(ValueError):
            RuleIdentity.parse("window:x")

    def test_identity_ignores_settings(self):
        assert process_rule("a").identity == process_rule("a", backdrop=BackdropType.MICA).identity
        assert process_rule("a") != process_rule("a", backdrop=BackdropType.MICA)

    def test_names_are_stripped(self):
        assert process_rule("  notepad ").pattern == "notepad"


class TestRule:
    def test_display_names(self):
        assert process_rule("notepad").display_name == "Process: notepad"
        assert class_rule("Shell_TrayWnd").display_name == "Class: Shell_TrayWnd"
        assert global_rule().display_name == "Global"

    def test_with_settings_keeps_identity(self):
        rule = process_rule("a")
        changed = rule.with_settings(identity=None, corner_preference=CornerPreference.SQUARE)
        assert changed.identity == rule.identity
        assert changed.corner_preference is CornerPreference.SQUARE


class TestSerialization:
    def test_round_trip(self):
        rule = class_rule(
            "X",
            backdrop=BackdropType.ACRYLIC,
            titlebar_color=TitlebarColorMode.DARK,
            corner_preference=CornerPreference.ROUNDED_SMALL,
            extend_frame_into_client_area=True,
        )
        assert rule_from_dict(rule_to_dict(rule)) == rule

    def test_unknown_setting_values_default(self):
        rule = rule_from_dict({"kind": "process", "pattern": "a", "backdrop": "glass"})
        assert rule.backdrop is BackdropType.DEFAULT

    def test_missing_pattern_rejected(self):
        with pytest.raises(ValueError):
            rule_from_dict({"kind": "class"})


class TestOptionLists:
    def test_no_capabilities(self):
        options = build_option_lists(Capabilities())
        assert options.backdrop_types == (BackdropType.DEFAULT,)
        assert options.titlebar_color_modes == (TitlebarColorMode.DEFAULT,)
        assert options.corner_preferences == (CornerPreference.DEFAULT,)

    def test_mica_only(self):
        options = build_option_lists(Capabilities(mica=True))
        assert options.backdrop_types == (BackdropType.DEFAULT, BackdropType.NONE, BackdropType.MICA)

    def test_everything(self):
        options = build_option_lists(Capabilities.all())
        assert options.backdrop_types == tuple(BackdropType)
        assert options.titlebar_color_modes == tuple(TitlebarColorMode)
        assert options.corner_preferences == tuple(CornerPreference)
