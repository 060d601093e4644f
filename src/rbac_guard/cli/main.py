"""CLI entry point for rbac-guard.

Invoked as::

    rbac-guard [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m rbac_guard.cli.main

Commands
--------
- check     Decide whether a role may perform a verb on a resource
- policies  List a role's policies
- validate  Report malformed glob patterns in role files
- version   Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from rbac_guard.config import ConfigLoader, EvaluatorConfig
from rbac_guard.errors import RoleConfigError
from rbac_guard.evaluator.policy_evaluator import PolicyEvaluator
from rbac_guard.roles.loader import RoleCatalog, RoleLoader
from rbac_guard.roles.models import Role

console = Console()
err_console = Console(stderr=True)

_EXIT_DENIED = 1
_EXIT_BAD_INPUT = 2

_roles_option = click.option(
    "--roles",
    "-r",
    "roles_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Role YAML file. Defaults to the config's role_files.",
)
_role_name_option = click.option(
    "--role",
    "role_name",
    default=None,
    help="Role name or alias. Defaults to the config's default_role.",
)
_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Evaluator config YAML.",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config(config_path: str | None) -> EvaluatorConfig:
    loader = ConfigLoader()
    if config_path is None:
        return loader.defaults()
    try:
        return loader.load(Path(config_path))
    except ValueError as exc:
        err_console.print(f"[red]Invalid config:[/red] {escape(str(exc))}")
        sys.exit(_EXIT_BAD_INPUT)


def _load_catalog(roles_path: str | None, config: EvaluatorConfig) -> RoleCatalog:
    paths = [Path(roles_path)] if roles_path else list(config.role_files)
    if not paths:
        err_console.print("[red]No role file given:[/red] pass --roles or set role_files.")
        sys.exit(_EXIT_BAD_INPUT)

    loader = RoleLoader()
    catalog = RoleCatalog()
    for path in paths:
        try:
            catalog.update(loader.load(path))
        except (FileNotFoundError, RoleConfigError) as exc:
            err_console.print(f"[red]Cannot load roles:[/red] {escape(str(exc))}")
            sys.exit(_EXIT_BAD_INPUT)
    return catalog


def _select_role(catalog: RoleCatalog, role_name: str | None, config: EvaluatorConfig) -> Role:
    name = role_name or config.default_role
    if name:
        try:
            return catalog.get(name)
        except KeyError:
            err_console.print(f"[red]Unknown role:[/red] {escape(name)}")
            sys.exit(_EXIT_BAD_INPUT)
    if len(catalog) == 1:
        return next(iter(catalog))
    if not catalog:
        err_console.print("[red]No roles loaded:[/red] the role files define no roles.")
        sys.exit(_EXIT_BAD_INPUT)
    err_console.print(
        f"[red]Several roles loaded; choose one with --role:[/red] {escape(', '.join(catalog.names()))}"
    )
    sys.exit(_EXIT_BAD_INPUT)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="rbac-guard")
@click.option("--verbose", "-v", is_flag=True, help="Log every decision to stderr.")
def cli(verbose: bool) -> None:
    """rbac-guard CLI — evaluate and inspect role-based access policies."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from rbac_guard import __version__

    console.print(
        Panel(
            f"[bold]rbac-guard[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Role-based access-control policy evaluation.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("resource")
@click.argument("verb")
@click.argument("names", nargs=-1)
@_roles_option
@_role_name_option
@_config_option
@click.option("--explain", is_flag=True, help="Show which policy decided.")
def check_command(
    resource: str,
    verb: str,
    names: tuple[str, ...],
    roles_path: str | None,
    role_name: str | None,
    config_path: str | None,
    explain: bool,
) -> None:
    """Decide whether a role may perform VERB on RESOURCE [NAMES]..."""
    config = _load_config(config_path)
    role = _select_role(_load_catalog(roles_path, config), role_name, config)
    evaluator = PolicyEvaluator.from_config(config)

    allowed = evaluator.allowed(role, resource, verb, *names)
    status_str = "[green]ALLOWED[/green]" if allowed else "[red]DENIED[/red]"
    console.print(Panel(status_str, title="Access Check Result", border_style="blue"))

    if explain:
        decision = evaluator.explain(role, resource, verb, *names)
        console.print(f"  Role: [bold]{escape(role.name)}[/bold]")
        console.print(f"  Reason: {escape(decision.reason)}")
        if decision.matched_policy is not None:
            policy = role.policies[decision.matched_policy]
            console.print(
                f"  Matched policy: [cyan]{decision.matched_policy}[/cyan] "
                + escape(f"resources={list(policy.resources)} verbs={list(policy.verbs)}")
            )

    sys.exit(0 if allowed else _EXIT_DENIED)


# ---------------------------------------------------------------------------
# policies
# ---------------------------------------------------------------------------


@cli.command(name="policies")
@_roles_option
@_role_name_option
@_config_option
def policies_command(
    roles_path: str | None,
    role_name: str | None,
    config_path: str | None,
) -> None:
    """List the policies of a role."""
    config = _load_config(config_path)
    role = _select_role(_load_catalog(roles_path, config), role_name, config)

    if not role.policies:
        console.print(f"[yellow]Role '{escape(role.name)}' has no policies.[/yellow]")
        return

    table = Table(title=f"Policies: {escape(role.name)}", box=box.SIMPLE)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Resources", style="cyan")
    table.add_column("Resource Names", style="magenta")
    table.add_column("Verbs", style="green")
    for index, policy in enumerate(role.policies):
        table.add_row(
            str(index),
            escape(", ".join(policy.resources)),
            escape(", ".join(policy.raw_resource_names)),
            escape(", ".join(policy.verbs)),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@_roles_option
@_config_option
def validate_command(roles_path: str | None, config_path: str | None) -> None:
    """Report malformed glob patterns in role files."""
    config = _load_config(config_path)
    catalog = _load_catalog(roles_path, config)

    problems = [(role.name, pattern) for role in catalog for pattern in role.invalid_patterns()]
    if not problems:
        console.print(f"[green]VALID[/green]: {len(catalog)} role(s) checked.")
        return

    table = Table(title="Invalid Patterns", box=box.SIMPLE)
    table.add_column("Role", style="cyan")
    table.add_column("Pattern", style="red")
    for name, pattern in problems:
        table.add_row(escape(name), escape(pattern))
    console.print(table)
    console.print("[red]INVALID[/red]: malformed patterns match nothing.")
    sys.exit(_EXIT_DENIED)


if __name__ == "__main__":
    cli()
