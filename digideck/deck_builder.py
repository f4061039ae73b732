"""
Interactive deck editing on top of the legality rules.
"""

import logging
from datetime import datetime, timezone
from typing import List

from .constants import EGG_DECK_LIMIT, MAIN_DECK_LIMIT, PLAY_EXPORT_HEADER
from .exceptions import DeckLegalityError
from .legality import (
    LegalityVerdict,
    check_add,
    describe_verdict,
    egg_deck_count,
    is_valid_deck,
    main_deck_count,
)
from .models import Card, DeckCard, UserDeck

logger = logging.getLogger(__name__)


class DeckBuilder:
    """
    Applies add/remove edits to a `UserDeck`, rejecting any add the deck
    rules forbid.

    The wrapped deck is modified in place; persist it with
    `DigideckDatabase.update_user_deck` once editing is done.
    """

    def __init__(self, deck: UserDeck):
        self.deck = deck

    @property
    def cards(self) -> List[DeckCard]:
        return self.deck.cards

    @property
    def main_deck_count(self) -> int:
        return main_deck_count(self.deck.cards)

    @property
    def egg_deck_count(self) -> int:
        return egg_deck_count(self.deck.cards)

    @property
    def is_valid(self) -> bool:
        return is_valid_deck(self.deck.cards)

    def quantity_of(self, card_id: str) -> int:
        for entry in self.deck.cards:
            if entry.card_id == card_id:
                return entry.quantity
        return 0

    def can_add(self, card: Card) -> LegalityVerdict:
        return check_add(self.deck.cards, card)

    def add_card(self, card: Card) -> DeckCard:
        """
        Add one copy of `card` to the deck.

        Returns:
            DeckCard: The deck-list entry holding the card after the add.

        Raises:
            DeckLegalityError: If the ban list, a deck cap or the copy limit
                forbids another copy.
        """
        verdict = check_add(self.deck.cards, card)
        if verdict != LegalityVerdict.OK:
            message = describe_verdict(verdict, card.card_number)
            logger.info(f"Rejected add of {card.card_number}: {verdict.value}")
            raise DeckLegalityError(verdict, card.card_number, message)

        for entry in self.deck.cards:
            if entry.card_id == card.id:
                entry.quantity += 1
                self._touch()
                return entry

        entry = card.to_deck_card(quantity=1)
        # Reassign so validate_assignment re-validates the list.
        self.deck.cards = [*self.deck.cards, entry]
        self._touch()
        return entry

    def remove_card(self, card_id: str) -> int:
        """
        Remove one copy of a card; the entry disappears at zero.

        Returns:
            int: Copies left after the removal (0 if the card was absent).
        """
        remaining: List[DeckCard] = []
        left = 0
        for entry in self.deck.cards:
            if entry.card_id == card_id:
                left = entry.quantity - 1
                if left > 0:
                    entry.quantity = left
                    remaining.append(entry)
                self._touch()
            else:
                remaining.append(entry)
        self.deck.cards = remaining
        return left

    def rename(self, name: str) -> None:
        self.deck.name = name
        self._touch()

    def warnings(self) -> List[str]:
        """Messages shown next to the deck while it is being edited."""
        messages = []
        main = self.main_deck_count
        if main > MAIN_DECK_LIMIT:
            messages.append(f"Main deck cannot exceed {MAIN_DECK_LIMIT} cards")
        if self.egg_deck_count > EGG_DECK_LIMIT:
            messages.append(
                f"Digitama deck cannot exceed {EGG_DECK_LIMIT} cards"
            )
        if 0 < main < MAIN_DECK_LIMIT:
            messages.append(
                f"Tournament decks require exactly {MAIN_DECK_LIMIT} main deck cards"
            )
        return messages

    def _touch(self) -> None:
        self.deck.updated_at = datetime.now(timezone.utc)


def export_for_play(cards: List[DeckCard]) -> List[str]:
    """
    Expand a deck list into the simulator import list: the header
    followed by one card number per copy, `UNKNOWN` where a copy has none.
    """
    lines = [PLAY_EXPORT_HEADER]
    for entry in cards:
        lines.extend([entry.card_number or "UNKNOWN"] * entry.quantity)
    return lines
