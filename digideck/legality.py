"""
Deck legality rules.

Pure functions over a deck list and the static ban list. Nothing here
mutates a deck; `DeckBuilder` applies the verdicts.
"""

from collections import Counter
from enum import Enum
from typing import Dict, Iterable, List, Union

from .banlist import get_card_restriction, get_max_copies
from .constants import EGG_DECK_LIMIT, MAIN_DECK_LIMIT
from .models import Card, DeckCard, Restriction


class LegalityVerdict(str, Enum):
    OK = "ok"
    BANNED = "banned"
    COPY_LIMIT = "copy_limit"
    MAIN_DECK_FULL = "main_deck_full"
    EGG_DECK_FULL = "egg_deck_full"


VERDICT_MESSAGES: Dict[LegalityVerdict, str] = {
    LegalityVerdict.OK: "Card can be added.",
    LegalityVerdict.BANNED: "{number} is banned and cannot be added.",
    LegalityVerdict.COPY_LIMIT: "{number} is limited to {limit} cop{plural} per deck.",
    LegalityVerdict.MAIN_DECK_FULL: f"Main deck cannot exceed {MAIN_DECK_LIMIT} cards.",
    LegalityVerdict.EGG_DECK_FULL: f"Digitama deck cannot exceed {EGG_DECK_LIMIT} cards.",
}


def describe_verdict(verdict: LegalityVerdict, card_number: str) -> str:
    """Render a human-readable explanation for a verdict."""
    limit = get_max_copies(card_number)
    return VERDICT_MESSAGES[verdict].format(
        number=card_number, limit=limit, plural="y" if limit == 1 else "ies"
    )


def main_deck_count(cards: Iterable[DeckCard]) -> int:
    """Total copies of non-Digitama cards."""
    return sum(c.quantity for c in cards if not c.is_digitama)


def egg_deck_count(cards: Iterable[DeckCard]) -> int:
    """Total copies of Digitama (In-Training / level 2) cards."""
    return sum(c.quantity for c in cards if c.is_digitama)


def copies_by_number(cards: Iterable[DeckCard]) -> Counter:
    counts: Counter = Counter()
    for c in cards:
        counts[c.number.upper()] += c.quantity
    return counts


def check_add(
    cards: List[DeckCard], card: Union[Card, DeckCard]
) -> LegalityVerdict:
    """
    Decide whether one more copy of `card` may be added to `cards`.

    Checks run in a fixed order: ban list, egg deck cap, main deck cap,
    then the per-card copy limit.

    Parameters:
        cards (List[DeckCard]): The current deck list.
        card (Card | DeckCard): The card a copy of which would be added.

    Returns:
        LegalityVerdict: `OK` when the add is allowed, otherwise the first
        rule it breaks.
    """
    number = card.card_number if isinstance(card, Card) else card.number

    if get_card_restriction(number) == Restriction.banned:
        return LegalityVerdict.BANNED

    if card.is_digitama:
        if egg_deck_count(cards) >= EGG_DECK_LIMIT:
            return LegalityVerdict.EGG_DECK_FULL
    elif main_deck_count(cards) >= MAIN_DECK_LIMIT:
        return LegalityVerdict.MAIN_DECK_FULL

    if copies_by_number(cards)[number.upper()] >= get_max_copies(number):
        return LegalityVerdict.COPY_LIMIT

    return LegalityVerdict.OK


def is_valid_deck(cards: List[DeckCard]) -> bool:
    """A deck may be saved while it stays within both size caps."""
    return (
        main_deck_count(cards) <= MAIN_DECK_LIMIT
        and egg_deck_count(cards) <= EGG_DECK_LIMIT
    )


def validate_deck(cards: List[DeckCard]) -> List[str]:
    """
    List every rule a whole deck list breaks.

    Used for deck lists that did not come through `check_add`, such as
    scraped tournament decks or hand-edited files.
    """
    problems: List[str] = []
    main = main_deck_count(cards)
    eggs = egg_deck_count(cards)
    if main > MAIN_DECK_LIMIT:
        problems.append(
            f"Main deck has {main} cards (maximum {MAIN_DECK_LIMIT})."
        )
    if eggs > EGG_DECK_LIMIT:
        problems.append(
            f"Digitama deck has {eggs} cards (maximum {EGG_DECK_LIMIT})."
        )
    for number, count in sorted(copies_by_number(cards).items()):
        allowed = get_max_copies(number)
        if allowed == 0:
            problems.append(f"{number} is banned.")
        elif count > allowed:
            problems.append(
                f"{number} has {count} copies (maximum {allowed})."
            )
    return problems


def is_tournament_ready(cards: List[DeckCard]) -> bool:
    """Exactly 50 main deck cards and no other rule broken."""
    return main_deck_count(cards) == MAIN_DECK_LIMIT and not validate_deck(cards)
