"""tagguard: consistency engine for tag relationships."""

from tagguard.core import (
    ConfigError,
    Excludes,
    Group,
    Implies,
    Requires,
    TagGuardError,
    UnknownTag,
    ValidatedRuleSet,
    ValidationResult,
    build,
    derive,
    validate,
)

__version__ = "0.3.0"

__all__ = [
    "ConfigError",
    "Excludes",
    "Group",
    "Implies",
    "Requires",
    "TagGuardError",
    "UnknownTag",
    "ValidatedRuleSet",
    "ValidationResult",
    "__version__",
    "build",
    "derive",
    "validate",
]
