"""Core domain: tag registry, rules, static checks, closure, and validation."""

from tagguard.core.checks import (
    check_groups,
    check_ruleset,
    find_contradictions,
    find_cycles,
)
from tagguard.core.closure import compute_closure, expand
from tagguard.core.engine import (
    RuleSetHolder,
    ValidatedRuleSet,
    build,
    check_changes,
    count_tag,
    derive,
    has_tag,
    validate,
)
from tagguard.core.errors import (
    ConfigError,
    ContradictoryRule,
    CyclicImplication,
    InvalidGroupBounds,
    MissingRole,
    TagGuardError,
    UnknownTag,
)
from tagguard.core.registry import TagRegistry
from tagguard.core.rules import (
    CompiledRule,
    Excludes,
    Group,
    Implies,
    Relationship,
    Requires,
    RuleSet,
)
from tagguard.core.violations import (
    ExcludesViolated,
    GroupCardinalityViolated,
    RequiresUnmet,
    ValidationResult,
    Violation,
)

__all__ = [
    "CompiledRule",
    "ConfigError",
    "ContradictoryRule",
    "CyclicImplication",
    "Excludes",
    "ExcludesViolated",
    "Group",
    "GroupCardinalityViolated",
    "Implies",
    "InvalidGroupBounds",
    "MissingRole",
    "Relationship",
    "Requires",
    "RequiresUnmet",
    "RuleSet",
    "RuleSetHolder",
    "TagGuardError",
    "TagRegistry",
    "UnknownTag",
    "ValidatedRuleSet",
    "ValidationResult",
    "Violation",
    "build",
    "check_changes",
    "check_groups",
    "check_ruleset",
    "compute_closure",
    "count_tag",
    "derive",
    "expand",
    "find_contradictions",
    "find_cycles",
    "has_tag",
    "validate",
]
