"""Identity, kinds and visual settings of a window rule.

// [LAW:one-source-of-truth] RuleIdentity is the only way rules are compared.
// [LAW:one-way-deps] No widget imports. No registry imports.

Rules are values: a "changed" rule is a new Rule with the same identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class RuleKind(Enum):
    """What a rule matches windows by."""

    PROCESS = "process"
    CLASS = "class"
    GENERAL = "general"
    GLOBAL = "global"


class BackdropType(Enum):
    DEFAULT = "default"
    NONE = "none"
    MICA = "mica"
    ACRYLIC = "acrylic"
    TABBED = "tabbed"


class TitlebarColorMode(Enum):
    DEFAULT = "default"
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"


class CornerPreference(Enum):
    DEFAULT = "default"
    SQUARE = "square"
    ROUNDED = "rounded"
    ROUNDED_SMALL = "rounded_small"


# Kinds the user can create and delete from the settings window.
USER_KINDS: frozenset[RuleKind] = frozenset({RuleKind.PROCESS, RuleKind.CLASS})


@dataclass(frozen=True)
class RuleIdentity:
    """Stable key of a rule: kind + match pattern."""

    kind: RuleKind
    pattern: str = ""

    @property
    def key(self) -> str:
        """Flat string form, e.g. ``process:explorer`` or ``global``."""
        if not self.pattern:
            return self.kind.value
        return "{}:{}".format(self.kind.value, self.pattern)

    @classmethod
    def parse(cls, key: str) -> RuleIdentity:
        kind_text, _, pattern = str(key or "").partition(":")
        return cls(RuleKind(kind_text), pattern)


GLOBAL_IDENTITY = RuleIdentity(RuleKind.GLOBAL)


def process_identity(process_name: str) -> RuleIdentity:
    return RuleIdentity(RuleKind.PROCESS, process_name.strip())


def class_identity(class_name: str) -> RuleIdentity:
    return RuleIdentity(RuleKind.CLASS, class_name.strip())


@dataclass(frozen=True)
class Rule:
    """A window rule as owned by the registry."""

    identity: RuleIdentity
    backdrop: BackdropType = BackdropType.DEFAULT
    titlebar_color: TitlebarColorMode = TitlebarColorMode.DEFAULT
    corner_preference: CornerPreference = CornerPreference.DEFAULT
    extend_frame_into_client_area: bool = False
    enable_blur_behind: bool = False

    @property
    def kind(self) -> RuleKind:
        return self.identity.kind

    @property
    def pattern(self) -> str:
        return self.identity.pattern

    @property
    def display_name(self) -> str:
        if self.kind is RuleKind.GLOBAL:
            return "Global"
        if self.kind is RuleKind.PROCESS:
            return "Process: {}".format(self.pattern)
        if self.kind is RuleKind.CLASS:
            return "Class: {}".format(self.pattern)
        return self.pattern or self.kind.value

    def with_settings(self, **changes) -> Rule:
        """Return a copy with changed settings and the same identity."""
        changes.pop("identity", None)
        return replace(self, **changes)


def process_rule(process_name: str, **settings) -> Rule:
    return Rule(process_identity(process_name), **settings)


def class_rule(class_name: str, **settings) -> Rule:
    return Rule(class_identity(class_name), **settings)


def global_rule(**settings) -> Rule:
    return Rule(GLOBAL_IDENTITY, **settings)


# ─── Serialization ────────────────────────────────────────────────────────────


def rule_to_dict(rule: Rule) -> dict:
    return {
        "kind": rule.kind.value,
        "pattern": rule.pattern,
        "backdrop": rule.backdrop.value,
        "titlebar_color": rule.titlebar_color.value,
        "corner_preference": rule.corner_preference.value,
        "extend_frame_into_client_area": rule.extend_frame_into_client_area,
        "enable_blur_behind": rule.enable_blur_behind,
    }


def _enum_value(enum_cls, raw: object, default):
    try:
        return enum_cls(raw)
    except ValueError:
        return default


def rule_from_dict(d: dict) -> Rule:
    """Build a Rule from persisted data.

    Raises ValueError for an unknown kind or a missing pattern on
    Process/Class rules. Unknown setting values fall back to defaults.
    """
    kind = RuleKind(d.get("kind", ""))
    pattern = str(d.get("pattern", "") or "").strip()
    if kind in USER_KINDS and not pattern:
        raise ValueError("{} rule without a pattern".format(kind.value))
    return Rule(
        identity=RuleIdentity(kind, pattern),
        backdrop=_enum_value(BackdropType, d.get("backdrop"), BackdropType.DEFAULT),
        titlebar_color=_enum_value(
            TitlebarColorMode, d.get("titlebar_color"), TitlebarColorMode.DEFAULT
        ),
        corner_preference=_enum_value(
            CornerPreference, d.get("corner_preference"), CornerPreference.DEFAULT
        ),
        extend_frame_into_client_area=bool(d.get("extend_frame_into_client_area", False)),
        enable_blur_behind=bool(d.get("enable_blur_behind", False)),
    )


# ─── Capabilities → option lists ──────────────────────────────────────────────


@dataclass(frozen=True)
class Capabilities:
    """Which visual features the host supports."""

    backdrop: bool = False
    mica: bool = False
    immersive_dark_mode: bool = False
    corner_preference: bool = False

    @classmethod
    def all(cls) -> Capabilities:
        return cls(True, True, True, True)


@dataclass(frozen=True)
class OptionLists:
    """Values offered by the rule editor; Default is always first."""

    backdrop_types: tuple[BackdropType, ...] = field(default=(BackdropType.DEFAULT,))
    titlebar_color_modes: tuple[TitlebarColorMode, ...] = field(
        default=(TitlebarColorMode.DEFAULT,)
    )
    corner_preferences: tuple[CornerPreference, ...] = field(
        default=(CornerPreference.DEFAULT,)
    )


def build_option_lists(caps: Capabilities) -> OptionLists:
    backdrops = [BackdropType.DEFAULT]
    if caps.mica:
        backdrops += [BackdropType.NONE, BackdropType.MICA]
    if caps.backdrop:
        backdrops += [BackdropType.ACRYLIC, BackdropType.TABBED]

    titlebars = [TitlebarColorMode.DEFAULT]
    if caps.immersive_dark_mode:
        titlebars += [TitlebarColorMode.SYSTEM, TitlebarColorMode.LIGHT, TitlebarColorMode.DARK]

    corners = [CornerPreference.DEFAULT]
    if caps.corner_preference:
        corners += [
            CornerPreference.SQUARE,
            CornerPreference.ROUNDED,
            CornerPreference.ROUNDED_SMALL,
        ]

    return OptionLists(tuple(backdrops), tuple(titlebars), tuple(corners))
