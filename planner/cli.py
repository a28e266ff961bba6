"""
Command-line interface for the build planner.

Usage:
    grid-planner catalog --category weapon --tag melee
    grid-planner validate <share-code>
    grid-planner encode build.json
    grid-planner decode <share-code>
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from planner.config import PlannerConfig, load_config
from planner.models import ITEM_CATEGORIES, BuildState
from planner.tools.catalog import Catalog, filter_items, load_catalog
from planner.tools.grid import board_rows
from planner.tools.polyomino import bounding_box, item_cells
from planner.tools.share_codec import BUILD_PARAM, canonicalize, decode_build, encode_build
from planner.tools.validator import BuildValidator


# Load environment variables from .env file (for PLANNER_* overrides).
load_dotenv()


console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_catalog(config: PlannerConfig) -> Catalog:
    return load_catalog(config.items_path, config.trinkets_path)


@click.group()
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug logging."
)
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """Plan item builds on the inventory grid."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config()
    except Exception as e:
        console.print(f"[red bold]Error:[/red bold] {e}")
        raise click.Abort()


@main.command()
@click.option(
    "--category", "-c",
    type=click.Choice(["all", *ITEM_CATEGORIES]),
    default="all",
    help="Only show items of this category."
)
@click.option(
    "--tag", "-t",
    "tags",
    multiple=True,
    help="Only show items carrying this tag (repeatable, all must match)."
)
@click.option(
    "--search", "-s",
    default="",
    help="Case-insensitive substring of the item name."
)
@click.pass_context
def catalog(ctx: click.Context, category: str, tags: tuple[str, ...], search: str):
    """List catalog items and trinkets."""
    try:
        cat = _load_catalog(ctx.obj["config"])
        items = filter_items(cat.items + cat.trinkets, search=search, category=category, tags=tags)
    except Exception as e:
        console.print(f"[red bold]Error:[/red bold] {e}")
        raise click.Abort()

    table = Table(title=f"Catalog ({len(items)} items)")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Size")
    table.add_column("Tags")
    table.add_column("Flags")

    for item in items:
        box = bounding_box(item.shape.cells)
        flags = []
        if item.isUnique:
            flags.append("unique")
        if item.isHalfTrinket:
            flags.append("half")
        if item.modifiers is not None and item.modifiers.weaponCapBonus:
            flags.append(f"weapon cap +{item.modifiers.weaponCapBonus}")
        table.add_row(
            item.id,
            item.name,
            item.category,
            f"{box.w}x{box.h}",
            ", ".join(item.tags),
            ", ".join(flags),
        )

    console.print(table)


@main.command()
@click.argument("code")
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the validation result as JSON."
)
@click.pass_context
def validate(ctx: click.Context, code: str, as_json: bool):
    """
    Validate a shared build.

    CODE: share code (the value of the build query parameter). Exits with
    status 1 if the build is illegal.
    """
    state = decode_build(code)
    if state is None:
        console.print("[red bold]Error:[/red bold] invalid share link")
        raise click.Abort()

    config = ctx.obj["config"]
    try:
        cat = _load_catalog(config)
        validator = BuildValidator(cat, config.grid_width, config.grid_height)
        result = validator.evaluate(state)
    except Exception as e:
        console.print(f"[red bold]Error:[/red bold] {e}")
        raise click.Abort()

    if as_json:
        click.echo(json.dumps(asdict(result), indent=2))
    else:
        status = "[bold red]Invalid[/bold red]" if result.illegal else "[bold green]Valid[/bold green]"
        console.print(Panel(
            f"{status}\n\n"
            f"Weapons: {result.weapon_count} / {result.weapon_cap}\n"
            f"Placed: {len(state.placed)}",
            title="Build Summary"
        ))

        occupied = []
        for tile in state.placed:
            item = cat.get(tile.itemId)
            if item is not None:
                occupied.extend(item_cells(item, tile.x, tile.y, tile.rot))
        rows = board_rows(state.unlocked, occupied, config)
        console.print(Panel("\n".join(rows), title="Board", expand=False))

        if result.issues:
            table = Table(title="Issues")
            table.add_column("Level")
            table.add_column("Id")
            table.add_column("Message")
            for issue in result.errors + result.warnings:
                color = "red" if issue.level == "error" else "yellow"
                table.add_row(f"[{color}]{issue.level}[/{color}]", issue.id, issue.message)
            console.print(table)
        else:
            console.print("[green]✓[/green] No issues")

    if result.illegal:
        ctx.exit(1)


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--query", "-q",
    is_flag=True,
    help="Print as a query string fragment."
)
def encode(path: Path, query: bool):
    """Encode a build state JSON file into a share code."""
    try:
        state = BuildState.model_validate_json(path.read_text(encoding="utf-8"))
        code = encode_build(state)
    except Exception as e:
        console.print(f"[red bold]Error:[/red bold] {e}")
        raise click.Abort()

    click.echo(f"?{BUILD_PARAM}={code}" if query else code)


@main.command()
@click.argument("code")
def decode(code: str):
    """Decode a share code into canonical build state JSON."""
    state = decode_build(code)
    if state is None:
        console.print("[red bold]Error:[/red bold] invalid share link")
        raise click.Abort()

    payload = canonicalize(state).model_dump(by_alias=True, exclude_none=True)
    click.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
