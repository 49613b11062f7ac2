"""Static checks run once over an assembled RuleSet.

Every check returns a list of errors instead of raising, so that
:func:`check_ruleset` can report the complete problem set in one pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagguard.core.errors import (
    ContradictoryRule,
    CyclicImplication,
    InvalidGroupBounds,
    TagGuardError,
)
from tagguard.core.rules import CompiledRule, Excludes, Group, Implies, Requires

if TYPE_CHECKING:
    from tagguard.core.rules import RuleSet

_WHITE, _GRAY, _BLACK = 0, 1, 2


# ---------------------------------------------------------------------------
# Implication cycles
# ---------------------------------------------------------------------------


def _normalize_cycle(path: list[int]) -> tuple[int, ...]:
    """Return the tag-id cycle *path* starting from its lowest id.

    The same loop of implications can be entered at any of its tags; this
    gives every entry point one canonical form.  *path* lists each tag once.
    """
    if not path:
        return ()
    min_idx = path.index(min(path))
    return tuple(path[min_idx:] + path[:min_idx])


def find_cycles(ruleset: RuleSet) -> list[CyclicImplication]:
    """Detect cycles in the implies graph with an iterative three-colour DFS.

    Each distinct cycle is reported once.  A tag implying itself is a cycle
    of length one.
    """
    adj = ruleset.implies
    registry = ruleset.registry
    color = [_WHITE] * len(registry)
    seen: set[tuple[int, ...]] = set()
    errors: list[CyclicImplication] = []

    for start in range(len(registry)):
        if color[start] != _WHITE or start not in adj:
            continue
        color[start] = _GRAY
        path = [start]
        stack = [iter(adj.get(start, ()))]

        while stack:
            neighbor = next(stack[-1], None)
            if neighbor is None:
                stack.pop()
                color[path.pop()] = _BLACK
                continue
            if color[neighbor] == _GRAY:
                normalized = _normalize_cycle(path[path.index(neighbor) :])
                if normalized not in seen:
                    seen.add(normalized)
                    errors.append(CyclicImplication(registry.name_of(i) for i in normalized))
            elif color[neighbor] == _WHITE:
                color[neighbor] = _GRAY
                path.append(neighbor)
                stack.append(iter(adj.get(neighbor, ())))

    return errors


# ---------------------------------------------------------------------------
# Direct contradictions
# ---------------------------------------------------------------------------


def find_contradictions(ruleset: RuleSet) -> list[ContradictoryRule]:
    """Find implies/requires rules that an excludes rule on the same tag defeats.

    A pair clashes when both rules name the same two tags, or the same tag
    and group.  A requires or implies rule also clashes with an excludes
    rule from the same tag whose group holds the target.  A tag excluding
    itself is rejected too, since it could never be used.
    """
    excludes: dict[frozenset[int], CompiledRule] = {}
    excludes_group: dict[tuple[int, str], CompiledRule] = {}
    errors: list[ContradictoryRule] = []

    for compiled in ruleset.of_type(Excludes):
        if compiled.group is not None:
            excludes_group.setdefault((compiled.tags[0], compiled.group), compiled)
            continue
        a, b = compiled.tags
        if a == b:
            errors.append(ContradictoryRule(compiled.rule, compiled.rule))
            continue
        excludes.setdefault(frozenset(compiled.tags), compiled)

    for compiled in ruleset.rules:
        if not isinstance(compiled.rule, (Implies, Requires)):
            continue
        subject = compiled.tags[0]
        clash: CompiledRule | None = None
        if compiled.group is not None:
            # A subject inside its own group satisfies the requirement by itself.
            if not compiled.mask >> subject & 1:
                clash = excludes_group.get((subject, compiled.group))
        else:
            target = compiled.tags[1]
            clash = excludes.get(frozenset(compiled.tags))
            if clash is None and target != subject:
                clash = next(
                    (
                        rule
                        for (tag_id, _), rule in excludes_group.items()
                        if tag_id == subject and rule.mask >> target & 1
                    ),
                    None,
                )
        if clash is not None:
            errors.append(ContradictoryRule(compiled.rule, clash.rule))

    return errors


# ---------------------------------------------------------------------------
# Group sanity
# ---------------------------------------------------------------------------


def check_groups(ruleset: RuleSet) -> list[InvalidGroupBounds]:
    """Validate group bounds and names."""
    errors: list[InvalidGroupBounds] = []
    names: set[str] = set()

    for compiled in ruleset.rules:
        group = compiled.rule
        if not isinstance(group, Group):
            continue
        size = len(compiled.tags)

        if size == 0:
            errors.append(InvalidGroupBounds(group, "group has no tags"))
        elif not 0 <= group.minimum <= group.upper <= size:
            errors.append(
                InvalidGroupBounds(
                    group,
                    f"bounds must satisfy 0 <= min <= max <= {size}, "
                    f"got min={group.minimum} max={group.upper}",
                )
            )

        if group.name is not None:
            if group.name in ruleset.registry:
                errors.append(
                    InvalidGroupBounds(group, f"name '{group.name}' is already a tag")
                )
            elif group.name in names:
                errors.append(
                    InvalidGroupBounds(group, f"duplicate group name '{group.name}'")
                )
            names.add(group.name)

    return errors


def check_ruleset(ruleset: RuleSet) -> list[TagGuardError]:
    """Run every static check and return all errors, in check order."""
    errors: list[TagGuardError] = []
    errors.extend(find_cycles(ruleset))
    errors.extend(find_contradictions(ruleset))
    errors.extend(check_groups(ruleset))
    return errors
