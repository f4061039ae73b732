"""Digideck - Digimon Card Game card database, deck builder and meta tracker."""

from .models import Card, CardType, DeckCard, UserDeck, TournamentDeck, UserProfile
from .constants import MAIN_DECK_LIMIT, EGG_DECK_LIMIT
from .db import DigideckDatabase
from .deck_builder import DeckBuilder

__version__ = "0.3.0"

__all__ = [
    "Card",
    "CardType",
    "DeckCard",
    "UserDeck",
    "TournamentDeck",
    "UserProfile",
    "MAIN_DECK_LIMIT",
    "EGG_DECK_LIMIT",
    "DigideckDatabase",
    "DeckBuilder",
]
