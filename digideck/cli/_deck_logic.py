"""
Deck editing and rendering used by the `deck` commands.
"""

import logging
from typing import Optional, Tuple

from rich.console import Console
from rich.table import Table

from digideck.deck_builder import DeckBuilder
from digideck.exceptions import DeckLegalityError
from digideck.legality import is_tournament_ready, validate_deck
from digideck.models import Card, DeckCard, UserDeck

logger = logging.getLogger(__name__)


def add_copies(
    builder: DeckBuilder, card: Card, count: int
) -> Tuple[int, Optional[DeckLegalityError]]:
    """
    Add up to `count` copies, stopping at the first rejected one.

    Returns:
        The number of copies added and the rejection, if any.
    """
    for added in range(count):
        try:
            builder.add_card(card)
        except DeckLegalityError as e:
            return added, e
    return count, None


def find_entry(deck: UserDeck, key: str) -> Optional[DeckCard]:
    """The deck entry whose card id or card number matches `key`."""
    key = key.strip().upper()
    for entry in deck.cards:
        if entry.card_id.upper() == key or entry.number.upper() == key:
            return entry
    return None


def remove_copies(builder: DeckBuilder, card_id: str, count: int) -> int:
    """Remove up to `count` copies; returns how many were removed."""
    removed = 0
    while removed < count and builder.quantity_of(card_id) > 0:
        builder.remove_card(card_id)
        removed += 1
    return removed


def _cards_table(title: str, cards) -> Table:
    table = Table(title=title)
    table.add_column("Qty", style="magenta", justify="right")
    table.add_column("Number", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="dim")
    for entry in sorted(cards, key=lambda c: c.number):
        table.add_row(str(entry.quantity), entry.number, entry.name, entry.type or "")
    return table


def render_deck(console: Console, deck: UserDeck) -> None:
    builder = DeckBuilder(deck)
    console.print(f"[bold cyan]{deck.name}[/bold cyan] [dim]({deck.deck_id})[/dim]")
    if deck.description:
        console.print(deck.description)
    console.print(
        f"Main deck: [magenta]{builder.main_deck_count}[/magenta]/50  "
        f"Digi-Egg deck: [magenta]{builder.egg_deck_count}[/magenta]/5"
    )
    console.print(_cards_table("Main Deck", [c for c in deck.cards if not c.is_digitama]))
    console.print(_cards_table("Digi-Egg Deck", [c for c in deck.cards if c.is_digitama]))

    for warning in builder.warnings():
        console.print(f"[yellow]{warning}[/yellow]")
    for problem in validate_deck(deck.cards):
        console.print(f"[red]{problem}[/red]")
    if is_tournament_ready(deck.cards):
        console.print("[bold green]Tournament ready.[/bold green]")


def render_deck_list(console: Console, decks) -> None:
    if not decks:
        console.print("[yellow]No decks yet. Create one with `deck new`.[/yellow]")
        return
    table = Table(title="My Decks")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Main", justify="right")
    table.add_column("Egg", justify="right")
    table.add_column("Updated", style="dim")
    for deck in decks:
        builder = DeckBuilder(deck)
        table.add_row(
            str(deck.deck_id)[:8],
            deck.name,
            str(builder.main_deck_count),
            str(builder.egg_deck_count),
            deck.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)
