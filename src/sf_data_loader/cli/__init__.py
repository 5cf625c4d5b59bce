"""CLI for loading fixture data into an org and deleting it again.

Usage:
    sf-data-loader load
    sf-data-loader --profile sandbox load --output ids.json
    sf-data-loader delete --yes
    sf-data-loader graph
    sf-data-loader validate fixtures/
    sf-data-loader profiles

Commands:
    load      - Create every fixture record, parents before children
    delete    - Delete the records a previous load created, children first
    graph     - Show the relation graph inferred from the fixtures
    validate  - Check fixture files for problems
    profiles  - List available profiles
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sf_data_loader.adapters.salesforce import SalesforceApiError, SalesforceLoginError
from sf_data_loader.config.loader import load_loader_config
from sf_data_loader.config.models import LoaderProfile
from sf_data_loader.errors import DataLoaderError
from sf_data_loader.factory import ProfileNotFoundError, get_active_profile, get_data_loader
from sf_data_loader.fixtures.files import write_json_file
from sf_data_loader.fixtures.store import RecordStore
from sf_data_loader.fixtures.validation import validate_fixtures
from sf_data_loader.seed.graph import build_relation_graph

console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Failures reported as a one-line error instead of a traceback
_EXPECTED_ERRORS = (
    DataLoaderError,
    ProfileNotFoundError,
    SalesforceApiError,
    SalesforceLoginError,
    FileNotFoundError,
)


# ============================================================================
# Helpers
# ============================================================================


def configure_logging(level: str) -> None:
    """Route library logging through rich at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _config_path(args: argparse.Namespace) -> Path | None:
    return Path(args.config) if getattr(args, "config", None) else None


def _resolve_profile(args: argparse.Namespace) -> tuple[str, LoaderProfile] | None:
    """Resolve the active profile, printing the problem when there is none."""
    try:
        return get_active_profile(
            getattr(args, "profile", None),
            config_path=_config_path(args),
            env_prefix=getattr(args, "env_prefix", ""),
        )
    except (FileNotFoundError, ProfileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return None


def _records_path(args: argparse.Namespace) -> Path | None:
    """Fixture directory from the command line, else from the active profile."""
    if getattr(args, "records_path", None):
        return Path(args.records_path)
    resolved = _resolve_profile(args)
    if resolved is None:
        return None
    return Path(resolved[1].records_path)


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_load(args: argparse.Namespace) -> int:
    """Async implementation for load command.

    Returns:
        0 on success, 1 on failure.
    """
    resolved = _resolve_profile(args)
    if resolved is None:
        return 1
    profile_name, profile = resolved

    console.print(f"Loading fixtures into profile: [bold cyan]{profile_name}[/bold cyan]")

    try:
        loader = await get_data_loader(profile, env_prefix=args.env_prefix)
    except _EXPECTED_ERRORS as e:
        console.print(f"\n[bold red]x[/bold red] {e}")
        return 1

    try:
        identity = await loader.load_data()
    except _EXPECTED_ERRORS as e:
        console.print(f"\n[bold red]x[/bold red] Load failed: {e}")
        console.print(
            "[dim]Records created before the failure are recorded; run[/dim] "
            "[cyan]sf-data-loader delete[/cyan] [dim]before loading again.[/dim]"
        )
        return 1
    finally:
        await loader.close()

    table = Table(title="Created Records", show_header=True, header_style="bold")
    table.add_column("Collection", style="cyan")
    table.add_column("Created", justify="right")
    for name in loader.store.names:
        table.add_row(name, str(len(loader.executor.created.get(name, []))))
    console.print()
    console.print(table)

    if args.output:
        write_json_file(args.output, identity.as_dict())
        console.print(f"  Id mapping written to [bold]{args.output}[/bold]")

    total = sum(len(ids) for ids in loader.executor.created.values())
    console.print(f"\n[bold green]v[/bold green] Loaded {total} record(s)")
    return 0


async def _async_delete(args: argparse.Namespace) -> int:
    """Async implementation for delete command.

    Returns:
        0 on success, 1 on failure.
    """
    resolved = _resolve_profile(args)
    if resolved is None:
        return 1
    profile_name, profile = resolved

    try:
        loader = await get_data_loader(profile, env_prefix=args.env_prefix)
    except _EXPECTED_ERRORS as e:
        console.print(f"\n[bold red]x[/bold red] {e}")
        return 1

    try:
        await loader.delete_loaded_data()
    except _EXPECTED_ERRORS as e:
        console.print(f"\n[bold red]x[/bold red] Delete failed: {e}")
        return 1
    finally:
        await loader.close()

    deleted = loader.executor.deleted
    if not deleted:
        console.print("[dim]Nothing to delete.[/dim]")
        return 0

    table = Table(title="Deleted Records", show_header=True, header_style="bold")
    table.add_column("Collection", style="cyan")
    table.add_column("Deleted", justify="right")
    for name, ids in deleted.items():
        table.add_row(name, str(len(ids)))
    console.print()
    console.print(table)
    console.print(
        f"\n[bold green]v[/bold green] Deleted loaded data from "
        f"[bold cyan]{profile_name}[/bold cyan]"
    )
    return 0


# ============================================================================
# Sync command implementations
# ============================================================================


def cmd_load(args: argparse.Namespace) -> int:
    """Load fixtures into the active profile's org.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_load(args))


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete previously loaded data.

    Asks for confirmation unless ``--yes``, then wraps the async
    implementation with ``asyncio.run()``.
    """
    if not args.yes:
        console.print("[yellow]This deletes every record the last load created.[/yellow]")
        response = input("Continue? [y/N] ")
        if response.lower() not in ["y", "yes"]:
            console.print("Cancelled.")
            return 0
    return asyncio.run(_async_delete(args))


def cmd_graph(args: argparse.Namespace) -> int:
    """Show the inferred relation graph and load order (local files only)."""
    records_path = _records_path(args)
    if records_path is None:
        return 1

    try:
        store = RecordStore.from_directory(records_path)
    except (DataLoaderError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    graph = build_relation_graph(store.as_mapping())

    table = Table(title="Inferred Relations", show_header=True, header_style="bold")
    table.add_column("Collection", style="cyan")
    table.add_column("Records", justify="right")
    table.add_column("Parents")
    table.add_column("Children")
    for name in store.names:
        table.add_row(
            name,
            str(len(store.as_mapping()[name])),
            ", ".join(sorted(graph.parents_of(name))) or "[dim]-[/dim]",
            ", ".join(sorted(graph.children_of(name))) or "[dim]-[/dim]",
        )
    console.print(table)

    cycle = graph.find_cycle()
    if cycle:
        console.print(
            f"\n[bold red]x[/bold red] Dependency cycle: {' -> '.join(cycle)}"
        )
        return 1

    console.print()
    console.print("[bold]Load order:[/bold] " + ", ".join(graph.creation_order(store.names)))
    console.print("[bold]Delete order:[/bold] " + ", ".join(graph.deletion_order(store.names)))
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate fixture files (local files only)."""
    records_path = _records_path(args)
    if records_path is None:
        return 1

    result = validate_fixtures(records_path)
    console.print(f"Validating: [bold]{records_path}[/bold]")

    if result["errors"]:
        console.print(f"\n[bold red]x[/bold red] Found {len(result['errors'])} error(s):")
        for error in result["errors"]:
            console.print(f"   - {error}")

    if result["warnings"]:
        console.print(f"\n[yellow]Found {len(result['warnings'])} warning(s):[/yellow]")
        for warning in result["warnings"]:
            console.print(f"   - {warning}")

    if result["valid"]:
        total = sum(result["collections"].values())
        console.print(
            f"\n[bold green]v[/bold green] {len(result['collections'])} collection(s), "
            f"{total} record(s) valid"
        )
        return 0

    console.print("\n[bold red]x[/bold red] Fixtures are invalid")
    return 1


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from the config file."""
    try:
        config = load_loader_config(_config_path(args))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    table = Table(title="Loader Profiles", show_header=True, header_style="bold")
    table.add_column("Profile", style="cyan")
    table.add_column("User")
    table.add_column("Login URL", style="dim")
    table.add_column("Fixtures")
    table.add_column("Description")
    for name, profile in config.profiles.items():
        table.add_row(
            name, profile.user, profile.login_url, profile.records_path, profile.description
        )
    console.print(table)
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="sf-data-loader",
        description="Load interrelated fixture records into an org and delete them again",
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to config file (default: ./sf-data-loader.toml)",
    )
    parser.add_argument(
        "--profile",
        "-p",
        help="Profile to use (default: SF_PROFILE env var, or the only profile)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix CI_ reads CI_SF_PROFILE and CI_SF_PASSWORD)"
        ),
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: LOG_LEVEL env var, then the config file, then INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_load = subparsers.add_parser("load", help="Create every fixture record")
    p_load.add_argument(
        "--output",
        "-o",
        help="Write the fixture id -> remote id mapping to this JSON file",
    )
    p_load.set_defaults(func=cmd_load)

    p_delete = subparsers.add_parser("delete", help="Delete previously loaded records")
    p_delete.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_delete.set_defaults(func=cmd_delete)

    p_graph = subparsers.add_parser("graph", help="Show the inferred relation graph")
    p_graph.add_argument(
        "records_path",
        nargs="?",
        help="Fixture directory (default: the profile's records_path)",
    )
    p_graph.set_defaults(func=cmd_graph)

    p_validate = subparsers.add_parser("validate", help="Validate fixture files")
    p_validate.add_argument(
        "records_path",
        nargs="?",
        help="Fixture directory (default: the profile's records_path)",
    )
    p_validate.set_defaults(func=cmd_validate)

    p_profiles = subparsers.add_parser("profiles", help="List available profiles")
    p_profiles.set_defaults(func=cmd_profiles)

    args = parser.parse_args(argv)

    log_level = args.log_level or os.environ.get("LOG_LEVEL")
    if log_level is None:
        try:
            log_level = load_loader_config(_config_path(args)).log_level
        except (FileNotFoundError, ValueError):
            log_level = "INFO"
    if log_level.upper() not in LOG_LEVELS:
        console.print(
            f"[red]Error: invalid log level '{log_level}' "
            f"(expected one of {', '.join(LOG_LEVELS)})[/red]"
        )
        return 1
    configure_logging(log_level)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
