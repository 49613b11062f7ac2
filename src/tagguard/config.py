"""Load tag configurations from YAML and hand them to the core build step."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import yaml

from tagguard.core.engine import build
from tagguard.core.rules import Excludes, Group, Implies, Requires

if TYPE_CHECKING:
    from pathlib import Path

    from tagguard.core.engine import ValidatedRuleSet
    from tagguard.core.rules import Relationship

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})

# Per-tag relationship keys, in the order rules are registered.
_TAG_RULE_KEYS: tuple[tuple[str, type], ...] = (
    ("requires", Requires),
    ("excludes", Excludes),
    ("implies", Implies),
)


@dataclass
class TagConfig:
    """A parsed configuration: tag names, relationships, and role restrictions."""

    tag_names: list[str] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    tag_roles: dict[str, list[str]] = field(default_factory=dict)
    roles: list[str] = field(default_factory=list)

    def build(self) -> ValidatedRuleSet:
        return build(self.tag_names, self.relationships, tag_roles=self.tag_roles)


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _string_list(value: object, context: str) -> list[str]:
    """Accept a string or a list of strings, normalized to a list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        msg = f"{context} must be a string or a list of strings"
        raise ValueError(msg)
    return [str(item) for item in value]


def _parse_int(value: object, context: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{context} must be an integer"
        raise ValueError(msg)
    return value


def _parse_tag(
    data: dict[str, object], idx: int, declared_roles: set[str], config: TagConfig
) -> None:
    name = data.get("name")
    if name is None or not isinstance(name, str) or not name.strip():
        msg = f"config: tag at index {idx} missing required 'name' field"
        raise ValueError(msg)

    if name in config.tag_names:
        msg = f"config: Duplicate tag name '{name}'"
        raise ValueError(msg)
    config.tag_names.append(name)

    for key, rule_type in _TAG_RULE_KEYS:
        for other in _string_list(data.get(key), f"Tag '{name}': '{key}'"):
            config.relationships.append(rule_type(name, other))

    roles = _string_list(data.get("roles"), f"Tag '{name}': 'roles'")
    for role in roles:
        if role not in declared_roles:
            msg = (
                f"Tag '{name}': unknown role '{role}', "
                f"must be one of {sorted(declared_roles)}"
            )
            raise ValueError(msg)
    if roles:
        config.tag_roles[name] = roles


def _parse_group(data: dict[str, object], idx: int) -> Group:
    """Parse one entry of the top-level ``groups`` list.

    YAML example::

        - name: primary
          tags: [scp, tale, hub]
          min: 1
          max: 1
    """
    name_raw = data.get("name")
    name: str | None = str(name_raw) if name_raw is not None else None
    context = f"Group '{name}'" if name is not None else f"config: group at index {idx}"

    if "tags" not in data:
        msg = f"{context}: 'tags' is required"
        raise ValueError(msg)
    tags = _string_list(data.get("tags"), f"{context}: 'tags'")

    minimum = _parse_int(data.get("min", 0), f"{context}: 'min'")
    maximum_raw = data.get("max")
    maximum = _parse_int(maximum_raw, f"{context}: 'max'") if maximum_raw is not None else None

    return Group(tags=tuple(tags), minimum=minimum, maximum=maximum, name=name)


def parse_config(data: object) -> TagConfig:
    """Turn an already-decoded YAML document into a :class:`TagConfig`.

    Raises ``ValueError`` on schema errors.  References to undeclared tags
    are left for :func:`tagguard.core.engine.build` to report.
    """
    if not isinstance(data, dict):
        msg = "config must be a YAML mapping"
        raise ValueError(msg)

    version = data.get("version")
    if version is None:
        msg = "config: missing required 'version' field"
        raise ValueError(msg)
    if isinstance(version, bool) or not isinstance(version, int):
        version = repr(version)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"config: unsupported version {version}, expected one of {expected}"
        raise ValueError(msg)

    config = TagConfig(roles=_string_list(data.get("roles"), "config: 'roles'"))
    declared_roles = set(config.roles)

    tags_data = data.get("tags", [])
    if not isinstance(tags_data, list):
        msg = "config: 'tags' must be a list"
        raise ValueError(msg)

    for idx, tag_data in enumerate(tags_data):
        if isinstance(tag_data, str):
            tag_data = {"name": tag_data}
        if not isinstance(tag_data, dict):
            msg = f"config: tag at index {idx} must be a mapping or a name"
            raise ValueError(msg)
        _parse_tag(tag_data, idx, declared_roles, config)

    groups_data = data.get("groups", [])
    if not isinstance(groups_data, list):
        msg = "config: 'groups' must be a list"
        raise ValueError(msg)

    for idx, group_data in enumerate(groups_data):
        if not isinstance(group_data, dict):
            msg = f"config: group at index {idx} must be a mapping"
            raise ValueError(msg)
        config.relationships.append(_parse_group(group_data, idx))

    return config


def load_config(path: Path) -> TagConfig:
    """Read and parse a YAML tag configuration file."""
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"config: invalid YAML in {path}: {exc}"
            raise ValueError(msg) from exc
    return parse_config(data)
