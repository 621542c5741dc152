"""
Command-line entry point for the Ticket Tracker client.

Commands:
1. process      - extract a ticket from an email text file
2. list / show  - inspect tickets with their contributor display value
3. contributors - list the contributor directory
4. import-contributors - create directory entries from a CSV file
5. assign       - reconcile names and save them on a ticket
6. reconcile    - offline merge against a directory snapshot
7. consolidate  - per-project bug totals
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .api_client import ApiError, ContributorServiceClient, TicketServiceClient
from .config import AppConfig, get_config
from .directory import DirectoryCache
from .display import display_value
from .models import DEPARTMENT_OPTIONS
from .reconcile import merge
from .snapshot import SnapshotError, load_snapshot
from .table import (
    SORT_DIRECTIONS,
    TICKET_SORT_FIELDS,
    consolidate_totals,
    filter_contributors,
    filter_tickets,
    sort_contributors,
    sort_tickets,
)
from .validation import TicketValidationError


def setup_logging(level: str) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


class CliError(Exception):
    """Error reported to the user as a failed command."""
    pass


def validate_config(config: AppConfig) -> None:
    """
    Validate configuration before talking to the backend.

    Raises:
        CliError: If configuration is invalid.
    """
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        raise CliError(f"Configuration validation failed with {len(errors)} error(s)")


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _load_directory(config: AppConfig, snapshot: Optional[Path]) -> DirectoryCache:
    if snapshot is not None:
        return load_snapshot(snapshot)
    with ContributorServiceClient(config.api) as client:
        return client.load_directory()


def _run(ctx: click.Context, action) -> None:
    """Run a command body, mapping failures to exit codes."""
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    try:
        action()
    except TicketValidationError as e:
        for field_name, messages in e.errors.items():
            for message in messages:
                click.echo(f"{field_name}: {message}", err=True)
        click.echo(f"Command failed: {e}", err=True)
        sys.exit(1)
    except (CliError, ApiError, SnapshotError) as e:
        click.echo(f"Command failed: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        if debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """
    Ticket Tracker client.

    Works with tickets and the contributor directory of the ticket backend.
    """
    config = get_config()
    setup_logging("DEBUG" if debug else config.log_level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["debug"] = debug


@main.command()
@click.argument("email_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def process(ctx: click.Context, email_file: Path) -> None:
    """Extract a ticket from an email text file."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        text = email_file.read_text(encoding="utf-8")
        with TicketServiceClient(config.api) as client:
            ticket = client.process_email_text(text)
        _echo_json(ticket.to_wire())

    _run(ctx, action)


@main.command(name="list")
@click.option("--search", default="", help="Search text")
@click.option("--status", default=None, help="Keep only this status")
@click.option("--priority", default=None, help="Keep only this priority")
@click.option("--project", default=None, help="Keep only projects containing this text")
@click.option(
    "--sort",
    "sort_field",
    type=click.Choice(list(TICKET_SORT_FIELDS)),
    default="receivedDate",
    show_default=True,
    help="Sort field",
)
@click.option("--asc", is_flag=True, default=False, help="Sort ascending")
@click.pass_context
def list_tickets(
    ctx: click.Context,
    search: str,
    status: Optional[str],
    priority: Optional[str],
    project: Optional[str],
    sort_field: str,
    asc: bool,
) -> None:
    """List tickets, one per line."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        with TicketServiceClient(config.api) as client:
            tickets = client.get_all_tickets()

        tickets = filter_tickets(tickets, search, status, priority, project)
        tickets = sort_tickets(tickets, sort_field, SORT_DIRECTIONS[0] if asc else SORT_DIRECTIONS[1])

        for ticket in tickets:
            click.echo(
                f"#{ticket.id} [{ticket.status or '-'}] {ticket.received_date or '-'} "
                f"{ticket.project or '-'}: {ticket.ticket_summary or ''} "
                f"| contributors: {display_value(ticket) or '-'}"
            )
        click.echo(f"{len(tickets)} ticket(s)")

    _run(ctx, action)


@main.command()
@click.argument("ticket_id", type=int)
@click.pass_context
def show(ctx: click.Context, ticket_id: int) -> None:
    """Show one ticket."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        with TicketServiceClient(config.api) as client:
            ticket = client.get_ticket(ticket_id)
        data = ticket.to_wire()
        data["contributorDisplay"] = display_value(ticket)
        _echo_json(data)

    _run(ctx, action)


@main.command()
@click.option("--all", "show_all", is_flag=True, default=False, help="Include inactive contributors")
@click.option(
    "--department",
    type=click.Choice(DEPARTMENT_OPTIONS),
    default=None,
    help="Keep only this department",
)
@click.option("--search", default="", help="Search name, email, employee id or department")
@click.pass_context
def contributors(ctx: click.Context, show_all: bool, department: Optional[str], search: str) -> None:
    """List the contributor directory."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        with ContributorServiceClient(config.api) as client:
            entries = client.get_all() if show_all else client.get_active()

        entries = sort_contributors(filter_contributors(entries, search, department))

        for entry in entries:
            status = "" if entry.active else " (inactive)"
            email = f" <{entry.email}>" if entry.email else ""
            click.echo(f"{entry.id}: {entry.name}{email} - {entry.department or 'Unknown'}{status}")
        click.echo(f"{len(entries)} contributor(s)")

    _run(ctx, action)


@main.command(name="import-contributors")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_contributors(ctx: click.Context, csv_file: Path) -> None:
    """Create directory entries from a CSV export."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        content = csv_file.read_text(encoding="utf-8")
        with ContributorServiceClient(config.api) as client:
            created, errors = client.import_contributors(content)

        for error in errors:
            click.echo(error, err=True)
        click.echo(f"Imported {created} contributor(s), {len(errors)} failed")
        if errors:
            raise CliError(f"{len(errors)} row(s) could not be imported")

    _run(ctx, action)


@main.command()
@click.argument("ticket_id", type=int)
@click.argument("names", nargs=-1, required=True)
@click.option("--no-validate", is_flag=True, default=False, help="Skip ticket form validation")
@click.pass_context
def assign(ctx: click.Context, ticket_id: int, names: tuple, no_validate: bool) -> None:
    """Replace a ticket's contributors with NAMES."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        directory = _load_directory(config, None)
        with TicketServiceClient(config.api) as client:
            ticket = client.get_ticket(ticket_id)
            edited = ticket.model_copy(update={"contributors": list(names)})
            saved = client.update_ticket(
                ticket_id,
                edited,
                directory,
                limit=config.reconcile.contributor_limit,
                validate=not no_validate,
            )
        click.echo(f"Ticket {ticket_id} contributors: {display_value(saved) or '-'}")

    _run(ctx, action)


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--directory",
    "snapshot",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML or JSON directory snapshot (defaults to the live backend)",
)
@click.pass_context
def reconcile(ctx: click.Context, names: tuple, snapshot: Optional[Path]) -> None:
    """Merge NAMES against the contributor directory and print the result."""
    config: AppConfig = ctx.obj["config"]

    def action():
        if snapshot is None:
            validate_config(config)
        directory = _load_directory(config, snapshot)
        merged = merge(list(names), directory, limit=config.reconcile.contributor_limit)
        _echo_json({
            "objects": merged.to_wire(),
            "ids": merged.ids,
            "names": merged.names,
        })

    _run(ctx, action)


@main.command()
@click.pass_context
def consolidate(ctx: click.Context) -> None:
    """Print per-project bug totals."""
    config: AppConfig = ctx.obj["config"]

    def action():
        validate_config(config)
        with TicketServiceClient(config.api) as client:
            rows = client.get_consolidate_data()

        for row in rows:
            click.echo(
                f"{row.s_no}. {row.project}: {row.open_count} open, "
                f"{row.closed_count} closed, {row.total_bugs} total"
            )
        totals = consolidate_totals(rows)
        click.echo(
            f"{totals['total_projects']} project(s): {totals['total_open']} open, "
            f"{totals['total_closed']} closed, {totals['total_bugs']} total"
        )

    _run(ctx, action)


@main.command(name="validate-config")
@click.pass_context
def validate_config_command(ctx: click.Context) -> None:
    """Only validate configuration."""
    config: AppConfig = ctx.obj["config"]

    def action():
        logger.info("Validating configuration...")
        validate_config(config)
        click.echo("Configuration is valid!")

    _run(ctx, action)


if __name__ == "__main__":
    main()
