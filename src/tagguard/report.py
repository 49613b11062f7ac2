"""Formatters for validation results and configuration errors."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from tagguard.core.violations import GroupCardinalityViolated

if TYPE_CHECKING:
    from tagguard.core.errors import ConfigError
    from tagguard.core.violations import ValidationResult, Violation


def _violation_dict(v: Violation) -> dict[str, object]:
    data: dict[str, object] = {
        "kind": v.kind,
        "rule_index": v.rule_index,
        "tags": list(v.tags),
        "message": v.message,
    }
    if isinstance(v, GroupCardinalityViolated):
        data["group"] = v.group.name
        data["count"] = v.count
        data["min"] = v.group.minimum
        data["max"] = v.group.upper
    return data


def format_rich(result: ValidationResult) -> str:
    """Format a ValidationResult as human-readable text.

    Example output with violations::

        Effective tags: scp, primary-content, tale

        ✗ excludes_violated (rule #3)
          'scp' and 'tale' cannot both be present

        1 violation found
    """
    lines: list[str] = [f"Effective tags: {', '.join(result.effective) or '(none)'}", ""]

    if result.ok:
        lines.append("✓ No violations found")
        return "\n".join(lines)

    for v in result.violations:
        lines.append(f"✗ {v.kind} (rule #{v.rule_index})")
        lines.append(f"  {v.message}")
        lines.append("")

    count = len(result.violations)
    lines.append(f"{count} violation{'s' if count != 1 else ''} found")
    return "\n".join(lines)


def format_json(result: ValidationResult) -> str:
    """Format a ValidationResult as structured JSON."""
    output: dict[str, object] = {
        "effective": list(result.effective),
        "violations": [_violation_dict(v) for v in result.violations],
        "summary": {
            "ok": result.ok,
            "violations_count": len(result.violations),
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: ValidationResult) -> str:
    """Format a ValidationResult as one ``kind:rule_index:tag,tag`` line per violation.

    Returns an empty string when there are no violations.
    """
    return "\n".join(f"{v.kind}:{v.rule_index}:{','.join(v.tags)}" for v in result.violations)


def format_config_error(error: ConfigError) -> str:
    """List every configuration problem, one per line."""
    lines = [f"{len(error.errors)} configuration error(s):"]
    for err in error.errors:
        lines.append(f"  ✗ {type(err).__name__}: {err}")
    return "\n".join(lines)


FORMATTERS = {
    "rich": format_rich,
    "json": format_json,
    "porcelain": format_porcelain,
}
