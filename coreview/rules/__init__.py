"""Rules package."""

from collections.abc import Callable
from dataclasses import dataclass

from coreview.config import RuleSettings
from coreview.rules.base import DEFAULT_EXTENSIONS, BlockRule, Finding, LineRule, Rule
from coreview.rules.block_rules import (
    BlankLineInMethodRule,
    EmptyMethodRule,
    EqualsAlignmentRule,
    MultilineWhitespaceRule,
    WeakSelfCaptureRule,
)
from coreview.rules.line_rules import (
    BoolGetterRule,
    CastToIdRule,
    CommentRule,
    ConstantFirstRule,
    CopyPropertyRule,
    DotNotationRule,
    ExtraSpaceRule,
    FirstObjectRule,
    InferredBlockReturnRule,
    LineLengthRule,
    ModuleImportRule,
    SpaceBeforeSemicolonRule,
    UIColorListRule,
    WeakSelfBlockRule,
)

__all__ = [
    "BlockRule",
    "Finding",
    "LineRule",
    "Rule",
    "RuleInfo",
    "build_rules",
    "default_rules",
    "list_rule_info",
]


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    name: str
    scope: str
    description: str
    extensions: tuple[str, ...]
    default_enabled: bool


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    rule_cls: type[Rule]
    factory: Callable[[RuleSettings], Rule]
    default_enabled: bool = True

    @property
    def rule_id(self) -> str:
        return self.rule_cls.rule_id


def default_rules() -> list[Rule]:
    """Return the default-enabled rules in registration order."""
    return build_rules()


def build_rules(
    *,
    enabled_rule_ids: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
    settings: RuleSettings | None = None,
) -> list[Rule]:
    """Build rule instances applying enable/disable filters.

    Without an explicit enable list the registration order of the
    default-enabled rules is kept; otherwise the enable list's order wins.
    """
    effective_settings = settings or RuleSettings()
    specs = _ordered_rule_specs()
    registry = {spec.rule_id: spec for spec in specs}
    disabled_set = set(disabled_rule_ids or [])
    requested_ids = set(enabled_rule_ids or []) | disabled_set

    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    if enabled_rule_ids is None:
        selected_ids = [
            spec.rule_id
            for spec in specs
            if spec.default_enabled and spec.rule_id not in disabled_set
        ]
    else:
        selected_ids = [
            rule_id for rule_id in _dedupe(enabled_rule_ids) if rule_id not in disabled_set
        ]

    return [_instantiate(registry[rule_id], effective_settings) for rule_id in selected_ids]


def list_rule_info(settings: RuleSettings | None = None) -> list[RuleInfo]:
    """Return metadata for all known rules as configured by ``settings``."""
    effective_settings = settings or RuleSettings()
    info: list[RuleInfo] = []
    for spec in _ordered_rule_specs():
        rule = _instantiate(spec, effective_settings)
        info.append(
            RuleInfo(
                rule_id=spec.rule_id,
                name=spec.rule_cls.__name__,
                scope=spec.rule_cls.scope,
                description=(spec.rule_cls.__doc__ or "").strip(),
                extensions=tuple(sorted(rule.extensions)),
                default_enabled=spec.default_enabled,
            )
        )
    return info


def _ordered_rule_specs() -> list[_RuleSpec]:
    return [
        _spec(BoolGetterRule),
        _spec(CommentRule),
        _spec(ConstantFirstRule),
        _spec(DotNotationRule),
        _spec(InferredBlockReturnRule),
        _RuleSpec(
            rule_cls=LineLengthRule,
            factory=lambda settings: LineLengthRule(max_length=settings.max_line_length),
        ),
        _spec(FirstObjectRule),
        _spec(WeakSelfBlockRule),
        _spec(MultilineWhitespaceRule),
        _spec(UIColorListRule),
        _spec(EmptyMethodRule),
        _spec(ModuleImportRule),
        _spec(ExtraSpaceRule),
        _spec(SpaceBeforeSemicolonRule),
        _spec(CopyPropertyRule),
        _spec(EqualsAlignmentRule),
        _spec(CastToIdRule, default_enabled=False),
        _spec(WeakSelfCaptureRule, default_enabled=False),
        _spec(BlankLineInMethodRule, default_enabled=False),
    ]


def _instantiate(spec: _RuleSpec, settings: RuleSettings) -> Rule:
    rule = spec.factory(settings)
    if rule.extensions == DEFAULT_EXTENSIONS:
        rule.extensions = frozenset(settings.extensions)
    return rule


def _spec(rule_cls: type[Rule], *, default_enabled: bool = True) -> _RuleSpec:
    return _RuleSpec(
        rule_cls=rule_cls,
        factory=lambda _settings: rule_cls(),
        default_enabled=default_enabled,
    )


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    output: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output
