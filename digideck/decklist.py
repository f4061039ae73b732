"""
YAML deck files.

A deck file looks like::

    deck: Red Hybrid
    description: Tamer-heavy build
    format: standard
    cards:
      - id: BT1-001
        qty: 4
      - id: ST1-02
        qty: 2
        name: Agumon

Cards are resolved against the local card table and added through
`DeckBuilder`, so an imported file obeys the same rules as a hand-built
deck. Problems with individual entries are collected rather than
aborting the import.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .deck_builder import DeckBuilder
from .exceptions import DeckLegalityError
from .models import UserDeck

logger = logging.getLogger(__name__)


class _RawDecklistEntry(BaseModel):
    id: str = Field(..., min_length=1)
    qty: int = Field(default=1, ge=1)
    name: Optional[str] = Field(default=None)

    model_config = ConfigDict(extra="forbid")


class _RawDecklistFile(BaseModel):
    deck: str = Field(..., min_length=1)
    description: str = Field(default="")
    format: str = Field(default="standard")
    cards: List[_RawDecklistEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


@dataclass
class DecklistProcessingError(Exception):
    file_path: Path
    message: str
    card_index: Optional[int] = None
    card_id: Optional[str] = None

    def __str__(self) -> str:
        context_parts = [f"File: {self.file_path.name}"]
        if self.card_index is not None:
            context_parts.append(f"Card Index: {self.card_index}")
        if self.card_id:
            context_parts.append(f"Card: '{self.card_id}'")
        return f"{' | '.join(context_parts)} | Error: {self.message}"


def load_decklist(file_path: Path) -> _RawDecklistFile:
    """
    Read and validate a deck file.

    Raises:
        DecklistProcessingError: If the file is missing or unreadable, is not
            valid YAML, or does not match the deck file shape.
    """
    try:
        raw = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise DecklistProcessingError(file_path, "File not found.") from None
    except OSError as e:
        raise DecklistProcessingError(file_path, f"Could not read file: {e}") from e
    except yaml.YAMLError as e:
        raise DecklistProcessingError(file_path, f"Invalid YAML syntax: {e}") from e

    if not isinstance(raw, dict):
        raise DecklistProcessingError(
            file_path, "Top level of YAML must be a dictionary (deck object)."
        )

    try:
        return _RawDecklistFile.model_validate(raw)
    except ValidationError as e:
        error_details = e.errors()[0]
        field = ".".join(map(str, error_details["loc"]))
        raise DecklistProcessingError(
            file_path, f"Validation error in field '{field}': {error_details['msg']}"
        ) from e


def import_decklist(
    db, file_path: Path, user_id: str
) -> Tuple[UserDeck, List[DecklistProcessingError]]:
    """
    Build a deck from a deck file. The deck is not saved.

    Returns:
        The deck holding every copy that could be added, and one error per
        entry that was unknown or (partly) rejected by the deck rules.

    Raises:
        DecklistProcessingError: If the file itself cannot be loaded.
    """
    raw = load_decklist(file_path)
    deck = UserDeck(
        user_id=user_id, name=raw.deck, description=raw.description, format=raw.format
    )
    builder = DeckBuilder(deck)
    errors: List[DecklistProcessingError] = []

    for idx, entry in enumerate(raw.cards):
        card = db.get_card_by_id(entry.id)
        if card is None:
            errors.append(
                DecklistProcessingError(file_path, "Unknown card.", idx, entry.id)
            )
            continue
        for added in range(entry.qty):
            try:
                builder.add_card(card)
            except DeckLegalityError as e:
                errors.append(
                    DecklistProcessingError(
                        file_path,
                        f"{e} ({added} of {entry.qty} copies added)",
                        idx,
                        entry.id,
                    )
                )
                break

    logger.info(
        f"Imported '{deck.name}' from {file_path.name}: "
        f"{builder.main_deck_count} main, {builder.egg_deck_count} egg, {len(errors)} problem(s)"
    )
    return deck, errors


def dump_decklist(deck: UserDeck) -> str:
    """Serialize a deck to the deck file format."""
    data = {
        "deck": deck.name,
        "description": deck.description,
        "format": deck.format,
        "cards": [
            {"id": c.card_id, "qty": c.quantity, "name": c.name} for c in deck.cards
        ],
    }
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def write_decklist(deck: UserDeck, file_path: Path) -> Path:
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(dump_decklist(deck), encoding="utf-8")
    logger.info(f"Wrote deck '{deck.name}' to {file_path}")
    return file_path
