"""
Pydantic models for cards, decks, tournament meta and tamer profiles.
"""

from __future__ import annotations

import uuid
from enum import Enum
from uuid import UUID
from datetime import datetime, date, timezone
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DIGITAMA_FORM, DIGITAMA_LEVEL


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CardType(str, Enum):
    """The printed card type."""

    Digimon = "Digimon"
    Tamer = "Tamer"
    Option = "Option"
    DigiEgg = "Digi-Egg"


class Restriction(str, Enum):
    """Ban-list status of a card number."""

    banned = "banned"
    limited = "limited"
    unrestricted = "unrestricted"


class SetCategory(str, Enum):
    booster = "booster"
    starter = "starter"
    special = "special"
    promo = "promo"


def is_digitama(form: Optional[str], level: Optional[int]) -> bool:
    """Whether a card with this form/level belongs to the Digi-Egg deck."""
    return form == DIGITAMA_FORM or level == DIGITAMA_LEVEL


class Card(BaseModel):
    """
    A card in the local card database.

    `id` is the store key and is normally the printed card number
    (e.g. ``BT1-001``).
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Store key for the card.")
    name: str = Field(..., min_length=1, description="Printed card name.")
    image: str = Field(default="", description="Card image URL.")
    type: CardType = Field(default=CardType.Digimon)
    colors: List[str] = Field(default_factory=list)
    level: Optional[int] = Field(default=None, ge=0)
    play_cost: Optional[int] = Field(default=None, ge=0)
    evolution_cost: Optional[int] = Field(default=None, ge=0)
    dp: Optional[int] = Field(default=None, ge=0)
    rarity: str = Field(default="Common")
    set_names: List[str] = Field(default_factory=list)
    card_number: str = Field(..., min_length=1)
    effects: str = Field(default="")
    keywords: List[str] = Field(default_factory=list)
    traits: List[str] = Field(default_factory=list)
    attribute: Optional[str] = Field(default=None)
    form: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        """Accept case variations such as 'digimon' or 'DIGI-EGG'."""
        if isinstance(v, str):
            for member in CardType:
                if member.value.lower() == v.strip().lower():
                    return member
        return v

    @property
    def is_digitama(self) -> bool:
        return is_digitama(self.form, self.level)

    def to_deck_card(self, quantity: int = 1) -> "DeckCard":
        """Build the deck-list entry referencing this card."""
        return DeckCard(
            card_id=self.id,
            name=self.name,
            quantity=quantity,
            card_number=self.card_number,
            type=self.type.value,
            form=self.form,
            level=self.level,
            image=self.image or None,
        )


class DeckCard(BaseModel):
    """One (card reference, quantity) entry of a deck list."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    card_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    card_number: Optional[str] = None
    type: Optional[str] = None
    form: Optional[str] = None
    level: Optional[int] = None
    image: Optional[str] = None

    @property
    def number(self) -> str:
        """Card number used for ban-list lookups, falling back to the id."""
        return self.card_number or self.card_id

    @property
    def is_digitama(self) -> bool:
        return is_digitama(self.form, self.level)


class UserDeck(BaseModel):
    """A deck authored by the local user."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    deck_id: UUID = Field(default_factory=uuid.uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(default="Untitled Deck")
    description: str = Field(default="")
    format: str = Field(default="standard")
    cards: List[DeckCard] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("name")
    @classmethod
    def default_blank_name(cls, v: str) -> str:
        return v.strip() or "Untitled Deck"


class TournamentDeck(BaseModel):
    """A placed deck scraped from a tournament results page."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    deck_id: UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(default="Unknown Deck")
    archetype: str = Field(default="Unknown")
    player: str = Field(default="Unknown Player")
    placement: int = Field(default=1, ge=1)
    region: str = Field(default="Unknown")
    tournament: str = Field(default="Unknown Tournament")
    format: str = Field(default="standard")
    colors: List[str] = Field(default_factory=list)
    event_date: date = Field(default_factory=date.today)
    cards: List[DeckCard] = Field(default_factory=list)
    total_cards: int = Field(default=0, ge=0)
    set_name: Optional[str] = None
    set_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def main_deck(self) -> List[DeckCard]:
        return [c for c in self.cards if not c.is_digitama]

    @property
    def egg_deck(self) -> List[DeckCard]:
        return [c for c in self.cards if c.is_digitama]


class MetaSet(BaseModel):
    """Summary of one scraped meta period (a set release window)."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    set_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    total_decks: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Achievement(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str
    name: str
    description: str
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class ProfileStats(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    cards_viewed: int = Field(default=0, ge=0)
    decks_analyzed: int = Field(default=0, ge=0)
    pages_visited: int = Field(default=0, ge=0)


class UserProfile(BaseModel):
    """
    Local tamer profile: nickname, usage counters and the achievement
    checklist.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    user_id: str = Field(..., min_length=1)
    nickname: str = Field(default="")
    join_date: datetime = Field(default_factory=_utcnow)
    total_activity: int = Field(default=0, ge=0)
    stats: ProfileStats = Field(default_factory=ProfileStats)
    achievements: List[Achievement] = Field(default_factory=list)

    @property
    def unlocked_count(self) -> int:
        return sum(1 for a in self.achievements if a.unlocked)


class DigimonSet(BaseModel):
    """A card set (booster, starter deck, theme booster or promo)."""

    code: str
    name: str
    category: SetCategory


class CardQuery(BaseModel):
    """Filters accepted by the card browser."""

    model_config = ConfigDict(extra="forbid")

    type: Optional[CardType] = None
    color: Optional[str] = None
    set_name: Optional[str] = None
    rarity: Optional[str] = None
    search_term: Optional[str] = None
    fetch_all: bool = False


class CardPage(BaseModel):
    """One page of card search results plus the keyset cursor to continue."""

    cards: List[Card] = Field(default_factory=list)
    next_cursor: Optional[Tuple[str, str]] = None
    has_more: bool = False
