"""Command-line interface for SpendWatch."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

import click

from .config import BaseConfig
from .errors import EntryValidationError, InvalidRangeError
from .infra.database import bootstrap_database
from .infra.sql_source import SQLModelCollectionSource
from .logging_config import get_logger, setup_logging
from .models.record import DateRange, FilterState, Record
from .poller import SnapshotPoller
from .services.calendar_picker import WEEKDAY_HEADINGS, build_month_grid
from .services.entries import build_entry_fields
from .services.export_csv import export_records_csv
from .services.ledger_service import LedgerView, LedgerViewCache, build_ledger_view
from .sync.live import LiveCollectionSync
from .utils.dates import format_display_date, month_of, month_title, parse_date, parse_month
from .utils.money import format_amount

logger = get_logger("cli")


@dataclass
class CliContext:
    config: BaseConfig
    source: SQLModelCollectionSource


def _build_filter_state(search: str, start: Optional[str], end: Optional[str]) -> FilterState:
    start_date = parse_date(start)
    end_date = parse_date(end)
    for raw, parsed in ((start, start_date), (end, end_date)):
        if raw and parsed is None:
            logger.info("Ignoring malformed date bound", extra={"value": raw})
    try:
        date_range = DateRange(start=start_date, end=end_date)
    except InvalidRangeError as exc:
        raise click.BadParameter(str(exc), param_hint="--start/--end") from exc
    return FilterState(search_text=search, range=date_range)


def _render_record(index: int, record: Record, symbol: str) -> str:
    lines = [f"{index}. {record.item or '(no item)'}  {format_amount(record.amount, symbol)}"]
    if record.vendor:
        lines.append(f"   Vendor: {record.vendor}")
    if record.notes:
        lines.append(f"   Notes: {record.notes}")
    lines.append(f"   Date: {format_display_date(record.created_at)}  [{record.id}]")
    return "\n".join(lines)


def _render_view(view: LedgerView, symbol: str) -> str:
    if view.is_empty:
        body = "No expenditures found."
    else:
        body = "\n".join(
            _render_record(idx, record, symbol) for idx, record in enumerate(view.records, start=1)
        )
    return f"{body}\nTotal: {format_amount(view.total, symbol)} ({view.count} shown)"


filter_options = [
    click.option("--search", default="", help="Match item, vendor, or notes (case-insensitive)"),
    click.option("--start", default=None, help="First day to include (YYYY-MM-DD)"),
    click.option("--end", default=None, help="Last day to include (YYYY-MM-DD)"),
]


def with_filter_options(func):
    for option in reversed(filter_options):
        func = option(func)
    return func


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track expenditures with a live, filterable ledger."""

    if ctx.obj is None:
        config = BaseConfig()
        setup_logging(config)
        _, session_factory = bootstrap_database(config)
        ctx.obj = CliContext(
            config=config,
            source=SQLModelCollectionSource(session_factory, config.COLLECTION_NAME),
        )


@cli.command("add")
@click.argument("item")
@click.argument("amount")
@click.option("--vendor", default="", help="Who was paid")
@click.option("--notes", default="", help="Free-form notes")
@click.pass_obj
def add_command(obj: CliContext, item: str, amount: str, vendor: str, notes: str) -> None:
    """Record a new expenditure."""

    try:
        fields = build_entry_fields(item, amount, vendor, notes)
    except EntryValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    record_id = obj.source.create(obj.config.COLLECTION_NAME, fields)
    click.echo(f"Saved {record_id}")


@cli.command("delete")
@click.argument("record_id")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def delete_command(obj: CliContext, record_id: str, yes: bool) -> None:
    """Delete an expenditure by id."""

    if not yes:
        click.confirm(f"Delete {record_id}?", abort=True)
    if not obj.source.delete(obj.config.COLLECTION_NAME, record_id):
        raise click.ClickException(f"No expenditure with id {record_id}")
    click.echo(f"Deleted {record_id}")


@cli.command("list")
@with_filter_options
@click.option(
    "--export",
    "export_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the filtered rows to this CSV file",
)
@click.pass_obj
def list_command(
    obj: CliContext,
    search: str,
    start: Optional[str],
    end: Optional[str],
    export_path: Optional[Path],
) -> None:
    """Print the filtered ledger and its total."""

    state = _build_filter_state(search, start, end)
    sync = LiveCollectionSync(obj.source, obj.config.COLLECTION_NAME)
    handle = sync.start(obj.config.ORDER_FIELD, obj.config.ORDER_DIRECTION)
    sync.stop(handle)
    if sync.state.has_error:
        raise click.ClickException("Failed to load expenditures.")

    view = build_ledger_view(sync.records, state)
    click.echo(_render_view(view, obj.config.CURRENCY_SYMBOL))
    if export_path is not None:
        written = export_records_csv(records=view.records, output_path=export_path)
        click.echo(f"Exported {view.count} row(s) to {written}")


@cli.command("watch")
@with_filter_options
@click.pass_obj
def watch_command(obj: CliContext, search: str, start: Optional[str], end: Optional[str]) -> None:
    """Re-print the filtered ledger whenever the store changes (Ctrl+C to quit)."""

    state = _build_filter_state(search, start, end)
    symbol = obj.config.CURRENCY_SYMBOL
    cache = LedgerViewCache()
    stopped = threading.Event()

    def on_snapshot(records: tuple[Record, ...]) -> None:
        click.clear()
        click.echo(_render_view(cache.get(records, state), symbol))

    def on_error(exc: Exception) -> None:
        click.echo(f"Failed to load expenditures: {exc}", err=True)
        stopped.set()

    sync = LiveCollectionSync(obj.source, obj.config.COLLECTION_NAME)
    sync.register(on_snapshot, on_error)
    poller = SnapshotPoller(obj.source, interval_seconds=obj.config.POLL_INTERVAL_SECONDS)
    handle = sync.start(obj.config.ORDER_FIELD, obj.config.ORDER_DIRECTION)
    poller.start()
    try:
        while not stopped.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        sync.stop(handle)
        poller.stop()
    if sync.state.has_error:
        raise click.ClickException("Failed to load expenditures.")


@cli.command("calendar")
@click.option("--month", "month_value", default=None, help="Month to show (YYYY-MM)")
def calendar_command(month_value: Optional[str]) -> None:
    """Print a month grid (Sunday first)."""

    if month_value:
        month = parse_month(month_value)
        if month is None:
            raise click.BadParameter("Use YYYY-MM", param_hint="--month")
    else:
        month = month_of(date.today())

    click.echo(month_title(month).center(27))
    click.echo(" ".join(f"{heading:>3}" for heading in WEEKDAY_HEADINGS))
    for row in build_month_grid(*month):
        click.echo(" ".join(f"{cell.day:>3}" if cell else "   " for cell in row))


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
