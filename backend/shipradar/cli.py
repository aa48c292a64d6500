"""ShipRADAR CLI: tracked vessel grid and custom vessel fields.

Commands:
  init-db        create database tables
  vessels        fetch, sort and page through tracked vessels
  custom-field   add / list custom fields
  serve          run the REST API
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table


app = typer.Typer(
    name="shipradar",
    help="Tracked vessel grid and custom vessel fields.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
custom_field_app = typer.Typer(help="Manage custom vessel fields.", no_args_is_help=True)
app.add_typer(custom_field_app, name="custom-field")
console = Console()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("init-db")
def init_database():
    """Create database tables."""
    from shipradar.database import init_db

    with console.status("[bold]Creating database..."):
        init_db()
    console.print("[green]Database ready.[/green]")


@app.command("vessels")
def vessels(
    page: int = typer.Option(1, "--page", min=1, help="Page to show (1-based)"),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, help="Rows per page"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Tracking service base URL"),
    export: Optional[Path] = typer.Option(None, "--export", help="Write all rows to this CSV file"),
    select: Optional[int] = typer.Option(None, "--select", min=1, help="Row number to open with View Vessel Details"),
    vessels_file: Optional[Path] = typer.Option(
        None, "--vessels-file", help="JSON list of full vessel objects (needed with --select)"
    ),
):
    """Show tracked vessels, Berth first."""
    from shipradar.config import settings
    from shipradar.modules.tracked_vessels import TrackedVesselFeed, view_vessel_details
    from shipradar.modules.vessel_grid import EMPTY_STATE_MESSAGE, build_table, rows_to_csv

    page_size = page_size or settings.GRID_PAGE_SIZE
    with console.status("[bold]Fetching tracked vessels..."):
        rows = TrackedVesselFeed(base_url=base_url).load_rows()

    if not rows:
        console.print(f"[yellow]{EMPTY_STATE_MESSAGE}[/yellow]")
        return

    if export:
        export.write_text(rows_to_csv(rows), encoding="utf-8")
        console.print(f"Exported {len(rows)} rows to [cyan]{export}[/cyan]")

    console.print(build_table(rows, page=page, page_size=page_size))

    if select is None:
        return
    if select > len(rows):
        console.print(f"[red]No row {select}, only {len(rows)} vessels listed[/red]")
        raise typer.Exit(1)
    if vessels_file is None:
        console.print("[red]--select needs --vessels-file[/red]")
        raise typer.Exit(1)

    row = rows[select - 1]
    if not view_vessel_details(row, _load_vessels(vessels_file), lambda v: _print_vessel_details(v, row.imo)):
        console.print(f"[yellow]No vessel details for {row.ais_name}[/yellow]")


@custom_field_app.command("add")
def add_custom_field(
    header: str = typer.Argument(..., help="Column header"),
    headertype: str = typer.Argument(..., help="Value type tag, e.g. text or date"),
    entry: list[str] = typer.Option([], "--entry", "-e", help="IMO=VALUE, repeatable"),
):
    """Create a custom field with optional entries."""
    from shipradar.database import SessionLocal, init_db
    from shipradar.modules.custom_fields import CustomFieldValidationError, create_custom_field

    try:
        custom_data = [_parse_entry(e) for e in entry]
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    init_db()
    db = SessionLocal()
    try:
        field = create_custom_field(db, {
            "header": header,
            "headertype": headertype,
            "customData": custom_data,
        })
        console.print(
            f"[green]Created custom field {field.custom_field_id}[/green] "
            f"({field.header}, {len(field.entries)} entries)"
        )
    except CustomFieldValidationError as e:
        for v in e.violations:
            console.print(f"[red]{v.field}: {v.message}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()


@custom_field_app.command("list")
def list_custom_fields(
    limit: int = typer.Option(50, "--limit", min=1),
):
    """List custom fields."""
    from shipradar.database import SessionLocal, init_db
    from shipradar.modules.custom_fields import list_custom_fields as _list

    init_db()
    db = SessionLocal()
    try:
        fields, total = _list(db, limit=limit)
        if not fields:
            console.print("[yellow]No custom fields[/yellow]")
            return
        table = Table(title=f"Custom Fields ({total})")
        table.add_column("ID", justify="right")
        table.add_column("Header")
        table.add_column("Type")
        table.add_column("Entries", justify="right")
        table.add_column("Updated")
        for f in fields:
            table.add_row(
                str(f.custom_field_id), f.header, f.headertype,
                str(len(f.entries)), f.updated_at.isoformat(timespec="seconds"),
            )
        console.print(table)
    finally:
        db.close()


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the REST API."""
    import uvicorn

    console.print(f"API running at [cyan]http://{host}:{port}[/cyan], press Ctrl+C to stop")
    uvicorn.run("shipradar.main:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_entry(raw: str) -> dict[str, str]:
    """Parse ``IMO=VALUE`` into a customData entry."""
    imo, sep, value = raw.partition("=")
    if not sep:
        raise ValueError(f"Entry '{raw}' must look like IMO=VALUE")
    return {"imoNumber": imo.strip(), "data": value.strip()}


def _load_vessels(path: Path) -> list[Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read vessels file {path}: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, list):
        console.print(f"[red]{path} must contain a JSON list[/red]")
        raise typer.Exit(1)
    return data


def _custom_fields_for(imo: str) -> list[tuple[str, str]]:
    from shipradar.database import SessionLocal, init_db
    from shipradar.modules.custom_fields import list_fields_for_imo

    init_db()
    db = SessionLocal()
    try:
        return list_fields_for_imo(db, imo)
    finally:
        db.close()


def _print_vessel_details(vessel: Any, imo: str) -> None:
    from shipradar.modules.tracked_vessels import NOT_AVAILABLE, VIEW_VESSEL_DETAILS

    details = vessel if isinstance(vessel, dict) else vars(vessel)
    console.print(f"\n[bold]{VIEW_VESSEL_DETAILS}:[/bold] [bold cyan]{details.get('name', '').strip()}[/bold cyan]")
    for key, value in details.items():
        if key != "name":
            console.print(f"  {key}: {value}")
    if imo != NOT_AVAILABLE:
        for header, data in _custom_fields_for(imo):
            console.print(f"  [bold]{header}:[/bold] {data}")
