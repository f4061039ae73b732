"""
Meta analytics over tournament decks.

Placement stands in for performance: an archetype's "win rate" is
``1 - average_placement / 10``. Winners average close to 0.9, and an
archetype whose decks place below 10th goes negative.

All functions take decks in the order they were fetched; ties keep that
order.
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .constants import PLACEMENT_SCALE, REGION_NAMES
from .models import TournamentDeck


@dataclass
class ArchetypeStats:
    name: str
    count: int = 0
    total_placement: int = 0

    @property
    def average_placement(self) -> float:
        return self.total_placement / self.count if self.count else 0.0

    @property
    def win_rate(self) -> float:
        return win_rate_from_placement(self.average_placement)


def win_rate_from_placement(average_placement: float) -> float:
    return 1 - average_placement / PLACEMENT_SCALE


def _percent(fraction: float) -> int:
    # Halves round up, so 12.5% shows as 13%.
    return math.floor(fraction * 100 + 0.5)


def _truncate(name: str, width: int) -> str:
    return name[:width] + "..." if len(name) > width else name


def _group_stats(decks: Iterable[TournamentDeck], key: str) -> Dict[str, ArchetypeStats]:
    stats: Dict[str, ArchetypeStats] = {}
    for deck in decks:
        name = getattr(deck, key)
        entry = stats.setdefault(name, ArchetypeStats(name=name))
        entry.count += 1
        entry.total_placement += deck.placement
    return stats


def archetype_stats(decks: Iterable[TournamentDeck]) -> Dict[str, ArchetypeStats]:
    """Deck count and summed placement per archetype, in first-seen order."""
    return _group_stats(decks, "archetype")


def top_archetypes(decks: Iterable[TournamentDeck]) -> List[ArchetypeStats]:
    """Archetypes by number of decks, most played first."""
    return sorted(archetype_stats(decks).values(), key=lambda s: s.count, reverse=True)


def archetype_distribution(decks: Sequence[TournamentDeck]) -> List[dict]:
    """
    Share of the field per archetype.

    Returns:
        list[dict]: `name`, `count`, `percentage` (0-100) and `win_rate`
        (0-1) per archetype, most played first.
    """
    total = len(decks)
    return [
        {
            "name": s.name,
            "count": s.count,
            "percentage": s.count / total * 100,
            "win_rate": s.win_rate,
        }
        for s in top_archetypes(decks)
    ]


def archetype_performance(
    decks: Sequence[TournamentDeck], limit: int = 8, name_width: int = 12
) -> List[dict]:
    """Best performing archetypes; `win_rate` is a rounded percentage."""
    rows = [
        {
            "name": _truncate(s.name, name_width),
            "win_rate": _percent(s.win_rate),
            "count": s.count,
        }
        for s in archetype_stats(decks).values()
    ]
    rows.sort(key=lambda r: r["win_rate"], reverse=True)
    return rows[:limit]


def radar_data(
    decks: Sequence[TournamentDeck], limit: int = 8, name_width: int = 10
) -> List[dict]:
    """Popularity and win rate (both rounded percentages) of the most played archetypes."""
    total = len(decks)
    rows = [
        {
            "archetype": _truncate(s.name, name_width),
            "win_rate": _percent(s.win_rate),
            "popularity": _percent(s.count / total),
        }
        for s in archetype_stats(decks).values()
    ]
    rows.sort(key=lambda r: r["popularity"], reverse=True)
    return rows[:limit]


def region_name(region: str) -> str:
    return REGION_NAMES.get(region, region)


def regional_comparison(decks: Sequence[TournamentDeck]) -> List[dict]:
    """Deck count and rounded average win rate per region, by display name."""
    return [
        {
            "region": region_name(s.name),
            "deck_count": s.count,
            "avg_win_rate": _percent(s.win_rate),
        }
        for s in _group_stats(decks, "region").values()
    ]


def regional_breakdown(decks: Iterable[TournamentDeck]) -> Dict[str, int]:
    return dict(Counter(deck.region for deck in decks))


def recent_tournaments(decks: Iterable[TournamentDeck], limit: int = 5) -> List[str]:
    """Distinct tournament names in deck order."""
    return list(dict.fromkeys(deck.tournament for deck in decks))[:limit]


def average_win_rate(decks: Sequence[TournamentDeck]) -> float:
    """Field-wide win rate, floored at 0; 0 for no decks."""
    if not decks:
        return 0.0
    average = sum(deck.placement for deck in decks) / len(decks)
    return max(0.0, win_rate_from_placement(average))


def most_popular_archetype(decks: Iterable[TournamentDeck]) -> str:
    """First word of the most played archetype, or "N/A"."""
    ranked = top_archetypes(decks)
    if not ranked:
        return "N/A"
    return ranked[0].name.split(" ")[0]


def unique_archetypes(decks: Iterable[TournamentDeck]) -> List[str]:
    return list(dict.fromkeys(deck.archetype for deck in decks))


def card_usage(decks: Iterable[TournamentDeck]) -> List[dict]:
    """
    How often each card number is played across decks.

    Returns:
        list[dict]: `card_number`, `name`, `copies` (total across decks) and
        `decks` (number of decks running it), most widely played first.
    """
    copies: Counter = Counter()
    deck_counts: Counter = Counter()
    names: Dict[str, str] = {}
    for deck in decks:
        seen = set()
        for entry in deck.cards:
            number = entry.number
            copies[number] += entry.quantity
            names.setdefault(number, entry.name)
            if number not in seen:
                deck_counts[number] += 1
                seen.add(number)
    rows = [
        {
            "card_number": number,
            "name": names[number],
            "copies": copies[number],
            "decks": deck_counts[number],
        }
        for number in copies
    ]
    rows.sort(key=lambda r: (r["decks"], r["copies"]), reverse=True)
    return rows
