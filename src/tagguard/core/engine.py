"""Build and query immutable validated rulesets.

:func:`build` is the configuration-time entry point; :func:`validate` and
the other query functions are pure and may run concurrently against the
same :class:`ValidatedRuleSet`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tagguard.core.checks import check_ruleset
from tagguard.core.closure import Closure, compute_closure, expand
from tagguard.core.errors import ConfigError, MissingRole
from tagguard.core.registry import TagRegistry, iter_bits
from tagguard.core.rules import Excludes, Group, Requires, RuleSet
from tagguard.core.violations import (
    ExcludesViolated,
    GroupCardinalityViolated,
    RequiresUnmet,
    ValidationResult,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from tagguard.core.errors import TagGuardError
    from tagguard.core.rules import Relationship
    from tagguard.core.violations import Violation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedRuleSet:
    """An immutable snapshot: frozen registry, rules, and implication closure."""

    registry: TagRegistry
    rules: RuleSet
    closure: Closure

    def closure_of(self, name: str) -> tuple[str, ...]:
        """Return *name* and every tag it transitively implies."""
        return self.registry.names_in(self.closure[self.registry.id_of(name)])

    def effective_mask(self, names: Iterable[str]) -> int:
        return expand(self.closure, self.registry.mask_of(names))


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def build(
    tag_names: Iterable[str],
    relationships: Iterable[Relationship],
    *,
    tag_roles: Mapping[str, Iterable[str]] | None = None,
) -> ValidatedRuleSet:
    """Register tags, compile rules, run the static checks and derive the closure.

    Raises
    ------
    ConfigError
        Carrying every unknown-tag, cycle, contradiction, and group problem
        found.  No check stops early.
    """
    registry = TagRegistry(tag_names)
    registry.freeze()

    ruleset, errors = RuleSet.compile(registry, relationships, tag_roles)
    problems: list[TagGuardError] = [*errors, *check_ruleset(ruleset)]
    if problems:
        raise ConfigError(problems)

    closure = compute_closure(ruleset)
    logger.debug(
        "Built ruleset snapshot: %d tags, %d rules", len(registry), len(ruleset.rules)
    )
    return ValidatedRuleSet(registry=registry, rules=ruleset, closure=closure)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _evaluate(ruleset: ValidatedRuleSet, effective: int) -> tuple[Violation, ...]:
    names = ruleset.registry.name_of
    violations: list[Violation] = []

    for compiled in ruleset.rules.rules:
        rule = compiled.rule
        if isinstance(rule, Group):
            count = (effective & compiled.mask).bit_count()
            if not rule.minimum <= count <= rule.upper:
                violations.append(GroupCardinalityViolated(rule, count, compiled.index))
            continue

        a = compiled.tags[0]
        if not effective >> a & 1:
            continue
        if compiled.group is not None:
            # Any member satisfies a requirement; any member but the subject conflicts.
            if isinstance(rule, Requires) and not effective & compiled.mask:
                violations.append(RequiresUnmet(names(a), compiled.group, compiled.index))
            elif isinstance(rule, Excludes):
                present = effective & compiled.mask & ~(1 << a)
                if present:
                    other = names(next(iter_bits(present)))
                    violations.append(ExcludesViolated(names(a), other, compiled.index))
        elif isinstance(rule, Requires):
            b = compiled.tags[1]
            if not effective >> b & 1:
                violations.append(RequiresUnmet(names(a), names(b), compiled.index))
        elif isinstance(rule, Excludes):
            b = compiled.tags[1]
            if effective >> b & 1:
                violations.append(ExcludesViolated(names(a), names(b), compiled.index))

    return tuple(violations)


def validate(ruleset: ValidatedRuleSet, tag_names: Iterable[str]) -> ValidationResult:
    """Check one object's tags against *ruleset*.

    Unknown names raise :class:`UnknownTag` before anything is evaluated.
    """
    effective = ruleset.effective_mask(tag_names)
    return ValidationResult(
        violations=_evaluate(ruleset, effective),
        effective=ruleset.registry.names_in(effective),
    )


def derive(ruleset: ValidatedRuleSet, tag_names: Iterable[str]) -> tuple[str, ...]:
    """Return the closure-expanded tag set, in registration order."""
    return ruleset.registry.names_in(ruleset.effective_mask(tag_names))


def _member_mask(ruleset: ValidatedRuleSet, name: str) -> int:
    group = ruleset.rules.groups.get(name)
    if group is not None:
        return group.mask
    return 1 << ruleset.registry.id_of(name)


def count_tag(ruleset: ValidatedRuleSet, name: str, tag_names: Iterable[str]) -> int:
    """Count how many members of tag or named group *name* are effectively present."""
    mask = _member_mask(ruleset, name)
    return (ruleset.effective_mask(tag_names) & mask).bit_count()


def has_tag(ruleset: ValidatedRuleSet, name: str, tag_names: Iterable[str]) -> bool:
    """Return True if tag *name*, or any member of group *name*, is effectively present."""
    return count_tag(ruleset, name, tag_names) > 0


def check_changes(
    ruleset: ValidatedRuleSet,
    current: Iterable[str],
    added: Iterable[str] = (),
    removed: Iterable[str] = (),
    roles: Iterable[str] = (),
) -> ValidationResult:
    """Validate the tag set produced by applying *added* and *removed* to *current*.

    Every changed tag that is restricted to roles needs at least one of
    them among *roles*, otherwise :class:`MissingRole` is raised.
    """
    registry = ruleset.registry
    added_mask = registry.mask_of(added)
    removed_mask = registry.mask_of(removed)
    current_mask = registry.mask_of(current)

    both = added_mask & removed_mask
    if both:
        msg = f"Tags both added and removed: {', '.join(registry.names_in(both))}"
        raise ValueError(msg)

    held = set(roles)
    for tag_id in iter_bits(added_mask | removed_mask):
        needed = ruleset.rules.roles.get(tag_id)
        if needed and held.isdisjoint(needed):
            raise MissingRole(registry.name_of(tag_id), needed)

    effective = expand(ruleset.closure, (current_mask & ~removed_mask) | added_mask)
    return ValidationResult(
        violations=_evaluate(ruleset, effective),
        effective=registry.names_in(effective),
    )


# ---------------------------------------------------------------------------
# Snapshot holder
# ---------------------------------------------------------------------------


class RuleSetHolder:
    """Hold the active :class:`ValidatedRuleSet` and swap it atomically on reload.

    Readers take :attr:`current` without locking; a reload builds the whole
    new snapshot before replacing the reference.  A failed reload leaves
    the previous snapshot active.
    """

    def __init__(self, ruleset: ValidatedRuleSet) -> None:
        self._current = ruleset
        self._lock = threading.Lock()

    @property
    def current(self) -> ValidatedRuleSet:
        return self._current

    def reload(
        self,
        tag_names: Iterable[str],
        relationships: Iterable[Relationship],
        *,
        tag_roles: Mapping[str, Iterable[str]] | None = None,
    ) -> ValidatedRuleSet:
        with self._lock:
            try:
                fresh = build(tag_names, relationships, tag_roles=tag_roles)
            except ConfigError as exc:
                logger.warning("Rejected ruleset reload: %d error(s)", len(exc.errors))
                raise
            self._current = fresh
            return fresh

    def validate(self, tag_names: Iterable[str]) -> ValidationResult:
        return validate(self._current, tag_names)

