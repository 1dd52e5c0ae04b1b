"""rfqintel CLI - operator commands for items.

Commands:
- init: Initialize database schema
- create-item: Create an item for an owner
- update-item: Apply field=value updates to an item
- show: Show an item's current facts and timeline
- history: Show an item's edit trail
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from rfqintel.config import get_config
from rfqintel.core.logging import configure_logging
from rfqintel.db.connection import close_db, get_session, init_db
from rfqintel.db.repository import get_item_for_user, list_item_edits
from rfqintel.errors import ItemUpdateError
from rfqintel.items.service import ItemService
from rfqintel.models import Editor, EditorRole, Item, UpdateResult

app = typer.Typer(
    name="rfqintel",
    help="rfqintel - Item intelligence and revision tracking for RFQs",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    configure_logging(log_level)


def _fail(error: ItemUpdateError) -> None:
    console.print(f"[red]{error.kind}: {error.message}[/red]")
    if error.fields:
        console.print(f"[red]Fields: {', '.join(error.fields)}[/red]")
    raise typer.Exit(1)


def _parse_assignments(assignments: list[str]) -> dict[str, str]:
    payload: dict[str, str] = {}
    for assignment in assignments:
        if "=" not in assignment:
            console.print(f"[red]Error: expected field=value, got {assignment!r}[/red]")
            raise typer.Exit(1)
        name, value = assignment.split("=", 1)
        payload[name.strip()] = value
    return payload


def _fmt(value: object) -> str:
    if value is None:
        return "-"
    return str(getattr(value, "value", value))


def _print_item(item: Item) -> None:
    table = Table(title=f"Item #{item.id}: {item.display_title}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Owner", str(item.owner_user_id))
    table.add_row("Status", _fmt(item.status))
    table.add_row("Type", _fmt(item.item_type))
    table.add_row("Category", _fmt(item.product_category))
    table.add_row("Quantity", _fmt(item.quantity))
    table.add_row("Sourcing", _fmt(item.sourcing_type))
    for axis in ("width", "depth", "height"):
        original = getattr(item, f"dimension_{axis}_original")
        cm = getattr(item, f"dimension_{axis}_cm")
        table.add_row(
            axis.capitalize(),
            f"{_fmt(original)} {_fmt(item.dimension_units_original)} ({_fmt(cm)} cm)",
        )
    table.add_row("CBM", _fmt(item.cbm))
    table.add_row("Timeline", _fmt(item.timeline_type))
    table.add_row("RFQ revision", str(item.rfq_revision_current))
    table.add_row("Version", str(item.version))
    console.print(table)

    if item.timeline_structure and item.timeline_structure.steps:
        steps = Table(title=f"Timeline ({item.timeline_structure.total_estimated_days} days)")
        steps.add_column("#", justify="right")
        steps.add_column("Step", style="cyan")
        steps.add_column("Status")
        steps.add_column("Days", justify="right")
        steps.add_column("Locked")
        for step in item.timeline_structure.steps:
            steps.add_row(
                str(step.order),
                step.label,
                step.status.value,
                str(step.estimated_days),
                step.locked_reason or ("yes" if step.is_locked else ""),
            )
        console.print(steps)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        if drop:
            console.print("[yellow]Dropping existing tables...[/yellow]")
        await init_db(drop=drop)
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="create-item")
def create_item(
    owner: int = typer.Option(..., "--owner", help="Owner user ID"),
    title: str = typer.Option(..., "--title", help="Item title"),
    description: str = typer.Option("", "--description", help="Item description"),
    item_type: str = typer.Option("furniture", "--type", help="Item type"),
    status: str = typer.Option("active", "--status", help="Item status"),
    size: str = typer.Option("D", "--size", help="Default size (S, D, L, XL)"),
    category: str | None = typer.Option(None, "--category", help="Product category"),
):
    """Create an item."""
    service = ItemService.from_config(get_config())

    async def _create() -> Item:
        try:
            return await service.create_item(
                owner,
                title,
                description=description,
                item_type=item_type,
                status=status,
                size=size,
                product_category=category,
            )
        finally:
            await close_db()

    try:
        item = asyncio.run(_create())
    except ItemUpdateError as e:
        _fail(e)
    console.print(f"[bold green]✓[/bold green] Created item #{item.id}")
    _print_item(item)


@app.command(name="update-item")
def update_item(
    item_id: int = typer.Argument(..., help="Item ID"),
    editor_id: int = typer.Option(..., "--editor", help="Editor user ID"),
    admin: bool = typer.Option(False, "--admin", help="Edit with admin rights"),
    assignments: list[str] = typer.Option(
        [], "--set", help="field=value (empty value clears the field)"
    ),
):
    """Apply field updates to an item."""
    payload = _parse_assignments(assignments)
    editor = Editor(user_id=editor_id, role=EditorRole.ADMIN if admin else EditorRole.USER)
    service = ItemService.from_config(get_config())

    async def _update() -> UpdateResult:
        try:
            return await service.update_item(item_id, editor, payload)
        finally:
            await close_db()

    try:
        result = asyncio.run(_update())
    except ItemUpdateError as e:
        _fail(e)

    if result.no_changes:
        console.print(f"[yellow]{result.message}[/yellow]")
        return

    console.print(f"[bold green]✓[/bold green] {result.message}")
    console.print(f"Changed: {', '.join(result.changed_fields)}")
    console.print(f"Events: {', '.join(result.events)}")
    if result.revision.increment:
        console.print(
            f"[yellow]RFQ revision {result.revision.previous_revision} → "
            f"{result.revision.new_revision}; "
            f"{len(result.revision.stale_bid_ids)} bid(s) marked stale[/yellow]"
        )
    if result.notifications and result.notifications.failed:
        console.print(
            f"[red]Supplier notifications failed for: "
            f"{', '.join(str(s) for s in result.notifications.failed)}[/red]"
        )
    if result.delivery_cost_error:
        console.print(f"[red]Delivery cost recalculation failed: {result.delivery_cost_error}[/red]")
    _print_item(result.item)


@app.command()
def show(item_id: int = typer.Argument(..., help="Item ID")):
    """Show an item."""

    async def _show() -> Item:
        try:
            async with get_session() as session:
                row = await get_item_for_user(session, item_id, 0, is_admin=True)
                return Item.model_validate(row)
        finally:
            await close_db()

    try:
        item = asyncio.run(_show())
    except ItemUpdateError as e:
        _fail(e)
    _print_item(item)


@app.command()
def history(item_id: int = typer.Argument(..., help="Item ID")):
    """Show an item's edit trail."""

    async def _history():
        try:
            async with get_session() as session:
                await get_item_for_user(session, item_id, 0, is_admin=True)
                return await list_item_edits(session, item_id)
        finally:
            await close_db()

    try:
        edits = asyncio.run(_history())
    except ItemUpdateError as e:
        _fail(e)

    table = Table(title=f"Edit history for item #{item_id}")
    table.add_column("When", style="dim")
    table.add_column("Field", style="cyan")
    table.add_column("Old")
    table.add_column("New", style="green")
    table.add_column("Editor")
    for edit in edits:
        table.add_row(
            edit.created_at.isoformat(timespec="seconds") if edit.created_at else "-",
            edit.field_name,
            _fmt(edit.old_value),
            _fmt(edit.new_value),
            f"{edit.editor_user_id} ({edit.editor_role})",
        )
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
