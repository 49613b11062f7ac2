"""Exception taxonomy for configuration-time and input errors.

Validation findings are *not* exceptions; see :mod:`tagguard.core.violations`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tagguard.core.rules import Group, Relationship


class TagGuardError(Exception):
    """Base class for every error raised by tagguard."""


class UnknownTag(TagGuardError, LookupError):
    """One or more tag names (or ids) were never registered."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names: tuple[str, ...] = tuple(names)
        joined = ", ".join(repr(n) for n in self.names)
        super().__init__(f"Unknown tag: {joined}")


class CyclicImplication(TagGuardError):
    """The implies graph contains a cycle."""

    def __init__(self, cycle: Iterable[str]) -> None:
        self.cycle: tuple[str, ...] = tuple(cycle)
        display = " → ".join([*self.cycle, self.cycle[0]])
        super().__init__(f"Cyclic implication: {display}")


class ContradictoryRule(TagGuardError):
    """Two relationships can never both hold for a tag that is present."""

    def __init__(self, rule: Relationship, conflicting: Relationship) -> None:
        self.rule = rule
        self.conflicting = conflicting
        super().__init__(f"Contradictory rules: {rule} conflicts with {conflicting}")


class InvalidGroupBounds(TagGuardError):
    """A group rule is malformed (bounds, emptiness, or name clash)."""

    def __init__(self, group: Group, reason: str) -> None:
        self.group = group
        self.reason = reason
        super().__init__(f"Invalid group {group}: {reason}")


class MissingRole(TagGuardError):
    """A tag was changed without holding any of the roles it needs."""

    def __init__(self, tag: str, needed: Iterable[str]) -> None:
        self.tag = tag
        self.needed: tuple[str, ...] = tuple(needed)
        super().__init__(
            f"Changing tag '{tag}' requires one of the roles: {', '.join(self.needed)}"
        )


class ConfigError(TagGuardError):
    """Aggregate of every configuration-time error found while building a ruleset."""

    def __init__(self, errors: Iterable[TagGuardError]) -> None:
        self.errors: tuple[TagGuardError, ...] = tuple(errors)
        lines = [f"{len(self.errors)} configuration error(s):"]
        lines.extend(f"  - {err}" for err in self.errors)
        super().__init__("\n".join(lines))
