"""tagguard CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from tagguard import __version__
from tagguard.config import TagConfig, load_config
from tagguard.core.engine import ValidatedRuleSet, derive, validate
from tagguard.core.errors import ConfigError, UnknownTag
from tagguard.report import FORMATTERS, format_config_error

_CONFIG_ARG = click.argument(
    "config_path",
    metavar="CONFIG",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


@click.group()
@click.version_option(version=__version__, prog_name="tagguard")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """tagguard - validate tag sets against configured tag relationships."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    elif quiet:
        logging.basicConfig(level=logging.ERROR)


def _load(config_path: Path) -> tuple[TagConfig, ValidatedRuleSet]:
    """Load and build a configuration, exiting with code 2 on any error."""
    try:
        config = load_config(config_path)
    except ValueError as exc:
        click.echo(f"Error: Invalid configuration: {exc}", err=True)
        sys.exit(2)

    try:
        ruleset = config.build()
    except ConfigError as exc:
        click.echo(format_config_error(exc), err=True)
        sys.exit(2)

    return config, ruleset


@main.command("check-config")
@_CONFIG_ARG
@click.pass_context
def check_config(ctx: click.Context, *, config_path: Path) -> None:
    """Validate a configuration file without checking any tags.

    Exit codes: 0 = valid, 2 = configuration error.
    """
    config, ruleset = _load(config_path)
    if not ctx.obj.get("quiet"):
        click.echo(
            f"✓ {config_path.name}: {len(ruleset.registry)} tags, "
            f"{len(ruleset.rules.rules)} rules, {len(config.roles)} roles"
        )


@main.command()
@_CONFIG_ARG
@click.argument("tags", nargs=-1)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if violations found.",
)
def check(*, config_path: Path, tags: tuple[str, ...], fmt: str | None, strict: bool) -> None:
    """Check a set of TAGS against the rules in CONFIG.

    Exit codes: 0 = consistent or violations without --strict,
    1 = violations with --strict, 2 = configuration error or unknown tag.
    """
    _, ruleset = _load(config_path)

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = validate(ruleset, tags)
    except UnknownTag as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    output = FORMATTERS[fmt](result)
    if output:
        click.echo(output)

    if strict and not result.ok:
        sys.exit(1)


@main.command("derive")
@_CONFIG_ARG
@click.argument("tags", nargs=-1)
def derive_cmd(*, config_path: Path, tags: tuple[str, ...]) -> None:
    """Print TAGS together with every tag they imply."""
    _, ruleset = _load(config_path)
    try:
        effective = derive(ruleset, tags)
    except UnknownTag as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    for name in effective:
        click.echo(name)


@main.command()
@_CONFIG_ARG
def explain(*, config_path: Path) -> None:
    """Show every tag, what it implies, and the rules mentioning it."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    _, ruleset = _load(config_path)
    registry = ruleset.registry

    table = Table(title=f"Tags in {config_path.name}")
    table.add_column("tag", style="cyan")
    table.add_column("implies")
    table.add_column("rules")
    table.add_column("roles", style="magenta")

    for tag_id, name in enumerate(registry):
        implied = [n for n in ruleset.closure_of(name) if n != name]
        rules = [f"#{r.index} {r.rule}" for r in ruleset.rules.rules_for(tag_id)]
        roles = ruleset.rules.roles.get(tag_id, ())
        table.add_row(
            escape(name),
            escape(", ".join(implied)),
            escape("\n".join(rules)),
            escape(", ".join(roles)),
        )

    console = Console()
    console.print(table)
