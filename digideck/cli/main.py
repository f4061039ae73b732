"""
CLI entry point for digideck.
"""

# Standard library imports
import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

# Third-party imports
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

# Local application imports
from digideck.banlist import get_card_restriction, get_max_copies
from digideck.card_sync import sync_cards
from digideck.config import settings
from digideck.constants import KEYWORD_DESCRIPTIONS
from digideck.db.database import DigideckDatabase
from digideck.deck_builder import DeckBuilder, export_for_play
from digideck.decklist import DecklistProcessingError, import_decklist, write_decklist
from digideck.exceptions import DatabaseError, DeckNotFoundError
from digideck.models import CardQuery, CardType, UserDeck
from digideck.profile import (
    ActivityKind,
    ProfileManager,
    partner_stage,
    progress_to_next_stage,
)
from digideck.scraper import MetaScraper, sync_meta
from digideck.sets import get_sets
from digideck.cli._deck_logic import (
    add_copies,
    find_entry,
    remove_copies,
    render_deck,
    render_deck_list,
)
from digideck.cli._export_logic import export_to_markdown
from digideck.cli._meta_logic import (
    render_archetypes,
    render_card_usage,
    render_decks,
    render_regions,
)


console = Console()

app = typer.Typer(
    name="digideck",
    help="Digideck: Digimon Card Game deck builder and meta tracker.",
    add_completion=False,
    rich_markup_mode="markdown",
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve db path from the --db flag, DIGIDECK_DB, then the configured default."""
    if db is not None:
        return db
    env_val = os.environ.get("DIGIDECK_DB")
    if env_val:
        return Path(env_val)
    return settings.db_path


_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. Falls back to DIGIDECK_DB env var.",
    envvar="DIGIDECK_DB",
)


@contextmanager
def _open_database(db: Optional[Path]) -> Iterator[DigideckDatabase]:
    """Open the database for one command; database errors end the command with exit code 1."""
    db_path = _resolve_db_path(db)
    try:
        with DigideckDatabase(db_path=db_path) as db_inst:
            yield db_inst
    except DeckNotFoundError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold red]A database error occurred: {e}[/bold red]")
        raise typer.Exit(code=1) from e


def _record_activity(
    db_inst: DigideckDatabase, kind: ActivityKind, amount: int = 1
) -> None:
    unlocked = ProfileManager(db_inst, settings.user_id).increment_activity(kind, amount)
    for achievement in unlocked:
        console.print(
            f"[bold green]Achievement unlocked: {achievement.name}[/bold green] "
            f"- {achievement.description}"
        )


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs."),
):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ---------------------------------------------------------------------------
# Database commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    db: Optional[Path] = _db_option,
    force: bool = typer.Option(
        False, "--force", help="Drop and recreate all tables. Refused if decks or a profile exist."
    ),
):
    """Create the database schema."""
    with _open_database(db) as db_inst:
        try:
            db_inst.initialize_schema(force_recreate_tables=force)
        except ValueError as e:
            console.print(f"[bold red]{e}[/bold red]")
            raise typer.Exit(code=1) from e
        console.print(
            f"[bold green]Database ready at {db_inst.db_path_resolved}[/bold green]"
        )


@app.command()
def stats(db: Optional[Path] = _db_option):
    """Display row counts for the local database."""
    with _open_database(db) as db_inst:
        stats_data = db_inst.get_database_stats()

    table = Table(title="Database Statistics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Cards", str(stats_data["total_cards"]))
    table.add_row("My Decks", str(stats_data["total_user_decks"]))
    table.add_row("Tournament Decks", str(stats_data["total_tournament_decks"]))
    table.add_row("Meta Sets", str(stats_data["total_meta_sets"]))
    table.add_row("Archetypes", str(stats_data["archetypes"]))
    console.print(table)

    if not stats_data["total_cards"]:
        console.print("[yellow]No cards yet. Run `digideck sync cards`.[/yellow]")


@app.command()
def keywords():
    """List the card keywords and what they do."""
    table = Table(title="Keywords")
    table.add_column("Keyword", style="cyan")
    table.add_column("Effect")
    for keyword, description in KEYWORD_DESCRIPTIONS.items():
        table.add_row(keyword, description)
    console.print(table)


# ---------------------------------------------------------------------------
# Sync commands
# ---------------------------------------------------------------------------

sync_app = typer.Typer(name="sync", help="Refresh cards and meta data from the web.")
app.add_typer(sync_app)


@sync_app.command("cards")
def sync_cards_cmd(
    db: Optional[Path] = _db_option,
    url: Optional[str] = typer.Option(None, "--url", help="Card API endpoint."),
):
    """Import the card catalogue from the public card API."""
    with _open_database(db) as db_inst:
        report = sync_cards(db_inst, url=url)
    if report.used_fallback:
        console.print(
            "[yellow]Card API unavailable; stored "
            f"{report.imported} sample cards instead.[/yellow]"
        )
        return
    console.print(
        f"[bold green]Imported {report.imported} cards[/bold green] "
        f"({report.skipped} skipped of {report.fetched})."
    )


@sync_app.command("meta")
def sync_meta_cmd(
    db: Optional[Path] = _db_option,
    url: Optional[str] = typer.Option(None, "--url", help="First deck-list page to scrape."),
    max_pages: Optional[int] = typer.Option(
        None, "--max-pages", min=1, help="Stop after this many pages."
    ),
):
    """Scrape tournament decks for the current set."""
    scraper = MetaScraper(base_url=url, max_pages=max_pages)
    with _open_database(db) as db_inst:
        report = sync_meta(db_inst, scraper)
    if report.used_fallback:
        console.print("[yellow]Scrape returned no decks; stored sample decks.[/yellow]")
    console.print(
        f"[bold green]Stored {report.decks_stored} decks[/bold green] for "
        f"[cyan]{report.set_name}[/cyan] ({report.pages} pages)."
    )


# ---------------------------------------------------------------------------
# Card commands
# ---------------------------------------------------------------------------

cards_app = typer.Typer(name="cards", help="Browse the card database.")
app.add_typer(cards_app)


@cards_app.command("search")
def cards_search(
    db: Optional[Path] = _db_option,
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Part of the card name."),
    card_type: Optional[CardType] = typer.Option(None, "--type", help="Card type."),
    color: Optional[str] = typer.Option(None, "--color"),
    set_name: Optional[str] = typer.Option(None, "--set", help="Full set name."),
    rarity: Optional[str] = typer.Option(None, "--rarity"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1),
    show_all: bool = typer.Option(False, "--all", help="Show every match on one page."),
):
    """Search cards by name and filters, one page at a time."""
    query = CardQuery(
        type=card_type,
        color=color,
        set_name=set_name,
        rarity=rarity,
        search_term=search,
        fetch_all=show_all,
    )
    with _open_database(db) as db_inst:
        result = db_inst.search_cards(query, limit=page_size)
        current = 1
        while current < page and result.has_more:
            result = db_inst.search_cards(query, cursor=result.next_cursor, limit=page_size)
            current += 1
        if current < page:
            console.print(f"[yellow]Only {current} page(s) of results.[/yellow]")
            raise typer.Exit(code=1)
        _record_activity(db_inst, ActivityKind.cards_viewed, len(result.cards))

    if not result.cards:
        console.print("[yellow]No cards match.[/yellow]")
        return

    table = Table(title=f"Cards (page {current})")
    table.add_column("Number", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Colors")
    table.add_column("Lv", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("DP", justify="right")
    table.add_column("Rarity", style="dim")
    for card in result.cards:
        table.add_row(
            card.card_number,
            card.name,
            card.type.value,
            "/".join(card.colors),
            "" if card.level is None else str(card.level),
            "" if card.play_cost is None else str(card.play_cost),
            "" if card.dp is None else str(card.dp),
            card.rarity,
        )
    console.print(table)
    if result.has_more:
        console.print(f"[dim]More results: --page {current + 1}[/dim]")


@cards_app.command("show")
def cards_show(
    card_id: str = typer.Argument(..., help="Card id or card number."),
    db: Optional[Path] = _db_option,
):
    """Show one card in full."""
    with _open_database(db) as db_inst:
        card = db_inst.get_card_by_id(card_id)
        if card is None:
            console.print(f"[bold red]Card '{card_id}' not found.[/bold red]")
            raise typer.Exit(code=1)
        _record_activity(db_inst, ActivityKind.cards_viewed)

    console.print(f"[bold cyan]{card.name}[/bold cyan] [dim]{card.card_number}[/dim]")
    console.print(f"{card.type.value} | {'/'.join(card.colors) or 'Colorless'} | {card.rarity}")
    details = [
        ("Level", card.level),
        ("Play cost", card.play_cost),
        ("Digivolve cost", card.evolution_cost),
        ("DP", card.dp),
        ("Form", card.form),
        ("Attribute", card.attribute),
    ]
    for label, value in details:
        if value is not None:
            console.print(f"{label}: {value}")
    if card.traits:
        console.print(f"Traits: {', '.join(card.traits)}")
    if card.set_names:
        console.print(f"Sets: {', '.join(card.set_names)}")
    if card.effects:
        console.print(card.effects)
    for keyword in card.keywords:
        console.print(f"[magenta]{keyword}[/magenta]: {KEYWORD_DESCRIPTIONS.get(keyword, '')}")
    restriction = get_card_restriction(card.card_number)
    console.print(
        f"Ban list: {restriction.value} (max {get_max_copies(card.card_number)} per deck)"
    )


@cards_app.command("sets")
def cards_sets(db: Optional[Path] = _db_option):
    """List card sets."""
    with _open_database(db) as db_inst:
        sets = get_sets(db_inst)
    table = Table(title="Sets")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="dim")
    for digimon_set in sets:
        table.add_row(digimon_set.code, digimon_set.name, digimon_set.category.value)
    console.print(table)


# ---------------------------------------------------------------------------
# Deck commands
# ---------------------------------------------------------------------------

deck_app = typer.Typer(name="deck", help="Build and manage your decks.")
app.add_typer(deck_app)

_deck_argument = typer.Argument(..., help="Deck id (or id prefix) or deck name.")


@deck_app.command("new")
def deck_new(
    name: str = typer.Argument(..., help="Deck name."),
    db: Optional[Path] = _db_option,
    description: str = typer.Option("", "--description", "-d"),
    deck_format: str = typer.Option("standard", "--format"),
):
    """Create an empty deck."""
    deck = UserDeck(
        user_id=settings.user_id, name=name, description=description, format=deck_format
    )
    with _open_database(db) as db_inst:
        db_inst.create_user_deck(deck)
    console.print(f"[bold green]Created deck '{deck.name}'[/bold green] ({deck.deck_id})")


@deck_app.command("list")
def deck_list(db: Optional[Path] = _db_option):
    """List your decks."""
    with _open_database(db) as db_inst:
        decks = db_inst.get_user_decks(settings.user_id)
    render_deck_list(console, decks)


@deck_app.command("show")
def deck_show(deck_key: str = _deck_argument, db: Optional[Path] = _db_option):
    """Show a deck with its counts and any rule problems."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
        _record_activity(db_inst, ActivityKind.pages_visited)
    render_deck(console, deck)


@deck_app.command("add")
def deck_add(
    deck_key: str = _deck_argument,
    card_id: str = typer.Argument(..., help="Card id or card number."),
    count: int = typer.Option(1, "--count", "-n", min=1),
    db: Optional[Path] = _db_option,
):
    """Add copies of a card; stops at the first copy the deck rules refuse."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
        card = db_inst.get_card_by_id(card_id)
        if card is None:
            console.print(f"[bold red]Card '{card_id}' not found.[/bold red]")
            raise typer.Exit(code=1)
        builder = DeckBuilder(deck)
        added, rejection = add_copies(builder, card, count)
        if added:
            db_inst.update_user_deck(deck)
            console.print(
                f"[green]Added {added}x {card.name}[/green] "
                f"(main {builder.main_deck_count}, egg {builder.egg_deck_count})"
            )
    if rejection is not None:
        console.print(f"[bold red]{rejection}[/bold red]")
        if not added:
            raise typer.Exit(code=1)


@deck_app.command("remove")
def deck_remove(
    deck_key: str = _deck_argument,
    card_id: str = typer.Argument(..., help="Card id or card number."),
    count: int = typer.Option(1, "--count", "-n", min=1),
    db: Optional[Path] = _db_option,
):
    """Remove copies of a card from a deck."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
        entry = find_entry(deck, card_id)
        if entry is None:
            console.print(f"[bold red]'{card_id}' is not in {deck.name}.[/bold red]")
            raise typer.Exit(code=1)
        name = entry.name
        removed = remove_copies(DeckBuilder(deck), entry.card_id, count)
        db_inst.update_user_deck(deck)
    console.print(f"[green]Removed {removed}x {name}[/green]")


@deck_app.command("rename")
def deck_rename(
    deck_key: str = _deck_argument,
    new_name: str = typer.Argument(...),
    db: Optional[Path] = _db_option,
):
    """Rename a deck."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
        DeckBuilder(deck).rename(new_name)
        db_inst.update_user_deck(deck)
    console.print(f"[green]Renamed to '{deck.name}'[/green]")


@deck_app.command("delete")
def deck_delete(
    deck_key: str = _deck_argument,
    db: Optional[Path] = _db_option,
    yes: bool = typer.Option(False, "--yes", "-y", help="Bypass confirmation prompt."),
):
    """Delete a deck."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
        if not yes and not typer.confirm(f"Delete deck '{deck.name}'?"):
            console.print("Delete operation cancelled.")
            raise typer.Exit()
        db_inst.delete_user_deck(deck.deck_id)
    console.print(f"[green]Deleted '{deck.name}'[/green]")


@deck_app.command("export-play")
def deck_export_play(
    deck_key: str = _deck_argument,
    db: Optional[Path] = _db_option,
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write to a file instead of stdout."),
):
    """Export a deck as the JSON list simulators import."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
    text = json.dumps(export_for_play(deck.cards))
    if out is None:
        typer.echo(text)
        return
    out.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]Wrote {out}[/green]")


@deck_app.command("import")
def deck_import(
    file_path: Path = typer.Argument(..., help="YAML deck file."),
    db: Optional[Path] = _db_option,
):
    """Create a deck from a YAML deck file."""
    with _open_database(db) as db_inst:
        try:
            deck, errors = import_decklist(db_inst, file_path, settings.user_id)
        except DecklistProcessingError as e:
            console.print(f"[bold red]{e}[/bold red]")
            raise typer.Exit(code=1) from e
        db_inst.create_user_deck(deck)
    builder = DeckBuilder(deck)
    console.print(
        f"[bold green]Imported '{deck.name}'[/bold green] "
        f"(main {builder.main_deck_count}, egg {builder.egg_deck_count})"
    )
    for error in errors:
        console.print(f"[yellow]{error}[/yellow]")


@deck_app.command("export")
def deck_export(
    deck_key: str = _deck_argument,
    file_path: Path = typer.Argument(..., help="Destination YAML file."),
    db: Optional[Path] = _db_option,
):
    """Write a deck to a YAML deck file."""
    with _open_database(db) as db_inst:
        deck = db_inst.find_user_deck(settings.user_id, deck_key)
    try:
        write_decklist(deck, file_path)
    except OSError as e:
        console.print(f"[bold red]Could not write {file_path}: {e}[/bold red]")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Wrote {file_path}[/green]")


@deck_app.command("markdown")
def deck_markdown(
    deck_key: Optional[str] = typer.Argument(None, help="Deck to export; all decks if omitted."),
    db: Optional[Path] = _db_option,
    output_dir: Path = typer.Option(  # noqa: B008
        ...,
        "--output-dir",
        help="Directory to save exported Markdown files.",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
):
    """Export decks as Markdown, one file per deck."""
    with _open_database(db) as db_inst:
        if deck_key is None:
            decks = db_inst.get_user_decks(settings.user_id)
        else:
            decks = [db_inst.find_user_deck(settings.user_id, deck_key)]
    console.print(f"Exporting decks to [cyan]{output_dir}[/cyan]...")
    try:
        written = export_to_markdown(decks, output_dir)
    except IOError as e:
        console.print(f"[bold]An error occurred during export: {e}[/bold]")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Exported {len(written)} deck(s).[/green]")


# ---------------------------------------------------------------------------
# Meta commands
# ---------------------------------------------------------------------------

meta_app = typer.Typer(name="meta", help="Tournament meta analytics.")
app.add_typer(meta_app)

_set_option = typer.Option(None, "--set", help="Meta set id; all sets if omitted.")


def _load_meta(db: Optional[Path], set_id: Optional[str], **filters):
    with _open_database(db) as db_inst:
        decks = db_inst.get_tournament_decks(set_id=set_id, **filters)
        if decks:
            _record_activity(db_inst, ActivityKind.decks_analyzed, len(decks))
    if not decks:
        console.print("[yellow]No tournament decks. Run `digideck sync meta`.[/yellow]")
    return decks


@meta_app.command("decks")
def meta_decks(
    db: Optional[Path] = _db_option,
    archetype: Optional[str] = typer.Option(None, "--archetype", "-a"),
    region: Optional[str] = typer.Option(None, "--region", "-r"),
    set_id: Optional[str] = _set_option,
    limit: int = typer.Option(20, "--limit", "-n", min=1),
):
    """List recent tournament decks."""
    decks = _load_meta(db, set_id, archetype=archetype, region=region, limit=limit)
    if decks:
        render_decks(console, decks)


@meta_app.command("archetypes")
def meta_archetypes(db: Optional[Path] = _db_option, set_id: Optional[str] = _set_option):
    """Archetype share and performance."""
    decks = _load_meta(db, set_id, limit=None)
    if decks:
        render_archetypes(console, decks)


@meta_app.command("regions")
def meta_regions(db: Optional[Path] = _db_option, set_id: Optional[str] = _set_option):
    """Compare regions and archetype popularity against performance."""
    decks = _load_meta(db, set_id, limit=None)
    if decks:
        render_regions(console, decks)


@meta_app.command("cards")
def meta_cards(
    db: Optional[Path] = _db_option,
    set_id: Optional[str] = _set_option,
    limit: int = typer.Option(20, "--limit", "-n", min=1),
):
    """Most played cards across tournament decks."""
    decks = _load_meta(db, set_id, limit=None)
    if decks:
        render_card_usage(console, decks, limit)


@meta_app.command("sets")
def meta_sets(db: Optional[Path] = _db_option):
    """List scraped meta sets."""
    with _open_database(db) as db_inst:
        sets = db_inst.get_meta_sets()
    if not sets:
        console.print("[yellow]No meta sets yet.[/yellow]")
        return
    table = Table(title="Meta Sets")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Decks", justify="right")
    table.add_column("Updated", style="dim")
    for meta_set in sets:
        table.add_row(
            meta_set.set_id,
            meta_set.name,
            str(meta_set.total_decks),
            meta_set.updated_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Profile commands
# ---------------------------------------------------------------------------

profile_app = typer.Typer(name="profile", help="Your tamer profile.")
app.add_typer(profile_app)


@profile_app.command("show")
def profile_show(db: Optional[Path] = _db_option):
    """Show activity, partner stage and achievements."""
    with _open_database(db) as db_inst:
        _record_activity(db_inst, ActivityKind.pages_visited)
        profile = ProfileManager(db_inst, settings.user_id).load()

    stage = partner_stage(profile.total_activity)
    console.print(f"[bold cyan]{profile.nickname or 'Unnamed Tamer'}[/bold cyan]")
    console.print(f"Joined: {profile.join_date.strftime('%Y-%m-%d')}")
    console.print(
        f"Cards viewed: {profile.stats.cards_viewed}  "
        f"Decks analyzed: {profile.stats.decks_analyzed}  "
        f"Pages visited: {profile.stats.pages_visited}"
    )
    if stage.next_name is None:
        console.print(f"Partner: [bold]{stage.name}[/bold] (final form)")
    else:
        console.print(
            f"Partner: [bold]{stage.name}[/bold] "
            f"({progress_to_next_stage(profile.total_activity):.0f}% to {stage.next_name})"
        )

    table = Table(title=f"Achievements ({profile.unlocked_count}/{len(profile.achievements)})")
    table.add_column("", width=2)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for achievement in profile.achievements:
        table.add_row(
            "✓" if achievement.unlocked else "",
            achievement.name,
            achievement.description,
        )
    console.print(table)


@profile_app.command("nickname")
def profile_nickname(name: str = typer.Argument(...), db: Optional[Path] = _db_option):
    """Set your tamer nickname."""
    with _open_database(db) as db_inst:
        unlocked = ProfileManager(db_inst, settings.user_id).set_nickname(name)
    console.print(f"[green]Nickname set to '{name.strip()}'[/green]")
    for achievement in unlocked:
        console.print(f"[bold green]Achievement unlocked: {achievement.name}[/bold green]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the CLI; unexpected errors print in red and exit with status 1."""
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
