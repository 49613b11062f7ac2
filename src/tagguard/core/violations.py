"""Validation findings: a closed set of violation kinds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tagguard.core.rules import Group


@dataclass(frozen=True)
class RequiresUnmet:
    """*tag* is present but the tag it requires is not."""

    kind: ClassVar[str] = "requires_unmet"

    tag: str
    required: str
    rule_index: int

    @property
    def tags(self) -> tuple[str, ...]:
        return (self.tag, self.required)

    @property
    def message(self) -> str:
        return f"'{self.tag}' requires '{self.required}', which is not present"


@dataclass(frozen=True)
class ExcludesViolated:
    """Two mutually exclusive tags are both present."""

    kind: ClassVar[str] = "excludes_violated"

    tag: str
    other: str
    rule_index: int

    @property
    def tags(self) -> tuple[str, ...]:
        return (self.tag, self.other)

    @property
    def message(self) -> str:
        return f"'{self.tag}' and '{self.other}' cannot both be present"


@dataclass(frozen=True)
class GroupCardinalityViolated:
    """The number of present group members is outside the group bounds."""

    kind: ClassVar[str] = "group_cardinality"

    group: Group
    count: int
    rule_index: int

    @property
    def tags(self) -> tuple[str, ...]:
        return self.group.tags

    @property
    def message(self) -> str:
        return (
            f"{self.group}: {self.count} present, "
            f"expected between {self.group.minimum} and {self.group.upper}"
        )


Violation = RequiresUnmet | ExcludesViolated | GroupCardinalityViolated


@dataclass(frozen=True)
class ValidationResult:
    """Violations found for one tag set, in rule registration order.

    *effective* is the closure-expanded tag set the rules were checked
    against, in registration order.  An empty *violations* tuple means the
    tag set is consistent.
    """

    violations: tuple[Violation, ...] = ()
    effective: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __len__(self) -> int:
        return len(self.violations)
