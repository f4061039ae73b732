"""
Rich tables for the `meta` commands.
"""

from typing import Sequence

from rich.console import Console
from rich.table import Table

from digideck import analytics
from digideck.models import TournamentDeck


def render_decks(console: Console, decks: Sequence[TournamentDeck]) -> None:
    table = Table(title="Tournament Decks")
    table.add_column("#", style="magenta", justify="right")
    table.add_column("Deck", style="cyan")
    table.add_column("Player")
    table.add_column("Region")
    table.add_column("Tournament", style="dim")
    table.add_column("Date", style="dim")
    for deck in decks:
        table.add_row(
            str(deck.placement),
            deck.name,
            deck.player,
            analytics.region_name(deck.region),
            deck.tournament,
            deck.event_date.isoformat(),
        )
    console.print(table)


def render_archetypes(console: Console, decks: Sequence[TournamentDeck]) -> None:
    console.print(
        f"Decks: [magenta]{len(decks)}[/magenta]  "
        f"Archetypes: [magenta]{len(analytics.unique_archetypes(decks))}[/magenta]  "
        f"Most popular: [cyan]{analytics.most_popular_archetype(decks)}[/cyan]  "
        f"Average win rate: [green]{analytics.average_win_rate(decks):.0%}[/green]"
    )

    distribution = Table(title="Archetype Distribution")
    distribution.add_column("Archetype", style="cyan")
    distribution.add_column("Decks", justify="right")
    distribution.add_column("Share", justify="right")
    distribution.add_column("Win rate", justify="right", style="green")
    for row in analytics.archetype_distribution(decks):
        distribution.add_row(
            row["name"],
            str(row["count"]),
            f"{row['percentage']:.1f}%",
            f"{round(row['win_rate'] * 100)}%",
        )
    console.print(distribution)

    performance = Table(title="Top Performers")
    performance.add_column("Archetype", style="cyan")
    performance.add_column("Win rate", justify="right", style="green")
    performance.add_column("Decks", justify="right")
    for row in analytics.archetype_performance(decks):
        performance.add_row(row["name"], f"{row['win_rate']}%", str(row["count"]))
    console.print(performance)

    tournaments = analytics.recent_tournaments(decks)
    if tournaments:
        console.print("[bold]Recent tournaments:[/bold]")
        for name in tournaments:
            console.print(f"- {name}")


def render_regions(console: Console, decks: Sequence[TournamentDeck]) -> None:
    table = Table(title="Regional Comparison")
    table.add_column("Region", style="cyan")
    table.add_column("Decks", justify="right")
    table.add_column("Avg win rate", justify="right", style="green")
    for row in analytics.regional_comparison(decks):
        table.add_row(row["region"], str(row["deck_count"]), f"{row['avg_win_rate']}%")
    console.print(table)

    radar = Table(title="Popularity vs Performance")
    radar.add_column("Archetype", style="cyan")
    radar.add_column("Popularity", justify="right")
    radar.add_column("Win rate", justify="right", style="green")
    for row in analytics.radar_data(decks):
        radar.add_row(row["archetype"], f"{row['popularity']}%", f"{row['win_rate']}%")
    console.print(radar)


def render_card_usage(console: Console, decks: Sequence[TournamentDeck], limit: int) -> None:
    table = Table(title="Most Played Cards")
    table.add_column("Number", style="cyan")
    table.add_column("Name")
    table.add_column("Decks", justify="right", style="magenta")
    table.add_column("Copies", justify="right")
    for row in analytics.card_usage(decks)[:limit]:
        table.add_row(row["card_number"], row["name"], str(row["decks"]), str(row["copies"]))
    console.print(table)
