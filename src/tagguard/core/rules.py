"""Relationship variants and the tag-indexed RuleSet."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from tagguard.core.errors import UnknownTag

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from tagguard.core.errors import TagGuardError
    from tagguard.core.registry import TagRegistry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Requires:
    """If *tag* is present, *required* must be present too."""

    tag: str
    required: str

    def __str__(self) -> str:
        return f"{self.tag} requires {self.required}"


@dataclass(frozen=True)
class Excludes:
    """*tag* and *other* must never both be present (symmetric)."""

    tag: str
    other: str

    def __str__(self) -> str:
        return f"{self.tag} excludes {self.other}"


@dataclass(frozen=True)
class Implies:
    """If *tag* is present, *implied* is treated as present."""

    tag: str
    implied: str

    def __str__(self) -> str:
        return f"{self.tag} implies {self.implied}"


@dataclass(frozen=True)
class Group:
    """The number of present tags out of *tags* must lie in ``[minimum, maximum]``."""

    tags: tuple[str, ...]
    minimum: int = 0
    maximum: int | None = None  # None means len(tags)
    name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def upper(self) -> int:
        return len(set(self.tags)) if self.maximum is None else self.maximum

    def __str__(self) -> str:
        label = self.name or "{" + ", ".join(self.tags) + "}"
        return f"group {label} [{self.minimum}..{self.upper}]"


Relationship = Requires | Excludes | Implies | Group


# ---------------------------------------------------------------------------
# Compiled rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledRule:
    """A relationship resolved to registry ids.

    *tags* holds ``(a, b)`` for pairwise rules and the distinct member ids
    (in declaration order) for groups.  *mask* is the bitset of *tags*.

    A requires or excludes rule whose second name is a group has *group*
    set to that name.  Its *tags* are the subject followed by the group's
    member ids, and *mask* covers the members only.
    """

    index: int
    rule: Relationship
    tags: tuple[int, ...]
    mask: int
    group: str | None = None


def _rule_names(rule: Relationship) -> tuple[str, ...]:
    if isinstance(rule, Requires):
        return (rule.tag, rule.required)
    if isinstance(rule, Excludes):
        return (rule.tag, rule.other)
    if isinstance(rule, Implies):
        return (rule.tag, rule.implied)
    return rule.tags


def _dedupe_key(
    rule: Relationship, ids: tuple[int, ...], group: str | None
) -> tuple[object, ...]:
    if group is not None:
        return (type(rule).__name__, ids[0], "group", group)
    if isinstance(rule, Excludes):
        return ("excludes", frozenset(ids))
    if isinstance(rule, Group):
        return ("group", frozenset(ids), rule.minimum, rule.upper, rule.name)
    return (type(rule).__name__, ids)


def _bits(ids: Iterable[int]) -> int:
    mask = 0
    for tag_id in ids:
        mask |= 1 << tag_id
    return mask


def _build_indexes(
    rules: tuple[CompiledRule, ...],
) -> tuple[
    dict[int, tuple[CompiledRule, ...]],
    dict[int, tuple[int, ...]],
    dict[str, CompiledRule],
]:
    by_tag: dict[int, list[CompiledRule]] = {}
    implies: dict[int, list[int]] = {}
    groups: dict[str, CompiledRule] = {}
    for compiled in rules:
        for tag_id in dict.fromkeys(compiled.tags):
            by_tag.setdefault(tag_id, []).append(compiled)
        if isinstance(compiled.rule, Implies):
            implies.setdefault(compiled.tags[0], []).append(compiled.tags[1])
        elif isinstance(compiled.rule, Group) and compiled.rule.name is not None:
            groups.setdefault(compiled.rule.name, compiled)
    return (
        {k: tuple(v) for k, v in by_tag.items()},
        {k: tuple(v) for k, v in implies.items()},
        groups,
    )


@dataclass(frozen=True)
class RuleSet:
    """All relationships of one configuration, indexed by participating tag.

    Built by :meth:`compile`.  The index mappings are read-only views.
    """

    registry: TagRegistry
    rules: tuple[CompiledRule, ...] = ()
    roles: Mapping[int, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    by_tag: Mapping[int, tuple[CompiledRule, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    implies: Mapping[int, tuple[int, ...]] = field(default_factory=lambda: MappingProxyType({}))
    groups: Mapping[str, CompiledRule] = field(default_factory=lambda: MappingProxyType({}))

    def rules_for(self, tag_id: int) -> tuple[CompiledRule, ...]:
        """Return every rule that mentions *tag_id*, in registration order."""
        return self.by_tag.get(tag_id, ())

    def of_type(self, kind: type) -> list[CompiledRule]:
        return [r for r in self.rules if isinstance(r.rule, kind)]

    @classmethod
    def compile(
        cls,
        registry: TagRegistry,
        relationships: Iterable[Relationship],
        tag_roles: Mapping[str, Iterable[str]] | None = None,
    ) -> tuple[RuleSet, list[TagGuardError]]:
        """Resolve *relationships* against *registry*.

        Returns the RuleSet together with the unknown-tag errors found.
        Rules that reference an unknown tag are left out of the RuleSet so
        the remaining static checks can still run over the rest.

        The second name of a requires or excludes rule may be a named
        group, declared before or after the rule.  A tag of the same name
        takes precedence.  A rule aimed at a group with unknown members is
        dropped along with the group.
        """
        relationships = list(relationships)
        errors: list[TagGuardError] = []
        reported: set[str] = set()

        def _resolve(names: Iterable[str]) -> tuple[int, ...] | None:
            missing = [n for n in names if n not in registry]
            fresh = [n for n in dict.fromkeys(missing) if n not in reported]
            if fresh:
                reported.update(fresh)
                errors.append(UnknownTag(fresh))
            if missing:
                return None
            return tuple(registry.id_of(n) for n in names)

        # Named group -> member ids, or None when a member is unknown.
        group_members: dict[str, tuple[int, ...] | None] = {}
        for rule in relationships:
            if isinstance(rule, Group) and rule.name is not None:
                members = None
                if all(n in registry for n in rule.tags):
                    members = tuple(dict.fromkeys(registry.id_of(n) for n in rule.tags))
                group_members.setdefault(rule.name, members)

        compiled: list[CompiledRule] = []
        seen: set[tuple[object, ...]] = set()
        for rule in relationships:
            names = _rule_names(rule)
            group: str | None = None
            if (
                isinstance(rule, (Requires, Excludes))
                and names[1] not in registry
                and names[1] in group_members
            ):
                group = names[1]
                subject = _resolve(names[:1])
                members = group_members[group]
                if subject is None or members is None:
                    continue
                ids = tuple(dict.fromkeys(subject + members))
                mask = _bits(members)
            else:
                resolved = _resolve(names)
                if resolved is None:
                    continue
                ids = tuple(dict.fromkeys(resolved)) if isinstance(rule, Group) else resolved
                mask = _bits(ids)
            key = _dedupe_key(rule, ids, group)
            if key in seen:
                logger.debug("Dropping duplicate rule: %s", rule)
                continue
            seen.add(key)
            compiled.append(
                CompiledRule(index=len(compiled), rule=rule, tags=ids, mask=mask, group=group)
            )

        roles: dict[int, tuple[str, ...]] = {}
        for tag_name, role_names in (tag_roles or {}).items():
            resolved = _resolve((tag_name,))
            if resolved is not None:
                roles[resolved[0]] = tuple(dict.fromkeys(role_names))

        rules = tuple(compiled)
        by_tag, implies, groups = _build_indexes(rules)
        ruleset = cls(
            registry=registry,
            rules=rules,
            roles=MappingProxyType(roles),
            by_tag=MappingProxyType(by_tag),
            implies=MappingProxyType(implies),
            groups=MappingProxyType(groups),
        )
        return ruleset, errors
