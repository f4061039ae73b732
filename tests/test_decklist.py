"""
Tests for YAML deck files.
"""

from pathlib import Path

import pytest
import yaml

from digideck.decklist import (
    DecklistProcessingError,
    dump_decklist,
    import_decklist,
    load_decklist,
    write_decklist,
)
from digideck.models import UserDeck


@pytest.fixture
def catalogue_db(initialized_db_manager, sample_cards):
    initialized_db_manager.upsert_cards_batch(sample_cards)
    return initialized_db_manager


def _write(tmp_path: Path, content: str, name: str = "deck.yaml") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestLoad:
    def test_valid_file(self, tmp_path):
        path = _write(
            tmp_path,
            "deck: Red Hybrid\ncards:\n  - id: BT1-010\n    qty: 4\n  - id: ST1-12\n",
        )
        raw = load_decklist(path)
        assert raw.deck == "Red Hybrid"
        assert raw.format == "standard"
        assert [(c.id, c.qty) for c in raw.cards] == [("BT1-010", 4), ("ST1-12", 1)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(DecklistProcessingError, match="File not found"):
            load_decklist(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "deck: [unclosed\n")
        with pytest.raises(DecklistProcessingError, match="Invalid YAML syntax"):
            load_decklist(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write(tmp_path, "- just\n- a list\n")
        with pytest.raises(DecklistProcessingError, match="must be a dictionary"):
            load_decklist(path)

    def test_unknown_field(self, tmp_path):
        path = _write(tmp_path, "deck: X\nsleeves: red\n")
        with pytest.raises(DecklistProcessingError, match="Validation error in field 'sleeves'"):
            load_decklist(path)

    def test_zero_quantity(self, tmp_path):
        path = _write(tmp_path, "deck: X\ncards:\n  - id: BT1-010\n    qty: 0\n")
        with pytest.raises(DecklistProcessingError, match="cards.0.qty"):
            load_decklist(path)


def test_error_string_includes_context(tmp_path):
    error = DecklistProcessingError(tmp_path / "deck.yaml", "Unknown card.", 2, "ZZ-1")
    assert str(error) == "File: deck.yaml | Card Index: 2 | Card: 'ZZ-1' | Error: Unknown card."


class TestImport:
    def test_import_resolves_cards(self, catalogue_db, tmp_path):
        path = _write(
            tmp_path,
            "deck: Red Hybrid\ndescription: test\ncards:\n"
            "  - id: bt1-010\n    qty: 4\n  - id: BT1-001\n    qty: 2\n",
        )
        deck, errors = import_decklist(catalogue_db, path, "tamer-1")
        assert errors == []
        assert deck.user_id == "tamer-1"
        assert deck.description == "test"
        assert {c.card_id: c.quantity for c in deck.cards} == {"BT1-010": 4, "BT1-001": 2}
        assert catalogue_db.get_user_decks("tamer-1") == []

    def test_unknown_and_illegal_entries_are_reported(self, catalogue_db, tmp_path):
        path = _write(
            tmp_path,
            "deck: Rules\ncards:\n"
            "  - id: ZZ-404\n"
            "  - id: BT2-047\n    qty: 3\n"
            "  - id: BT5-109\n"
            "  - id: BT1-010\n    qty: 6\n",
        )
        deck, errors = import_decklist(catalogue_db, path, "tamer-1")
        assert {c.card_id: c.quantity for c in deck.cards} == {"BT2-047": 1, "BT1-010": 4}
        assert [(e.card_index, e.card_id) for e in errors] == [
            (0, "ZZ-404"),
            (1, "BT2-047"),
            (2, "BT5-109"),
            (3, "BT1-010"),
        ]
        assert errors[0].message == "Unknown card."
        assert errors[1].message.endswith("(1 of 3 copies added)")
        assert "banned" in errors[2].message
        assert errors[3].message.endswith("(4 of 6 copies added)")


def test_dump_and_write(tmp_path, agumon, koromon):
    deck = UserDeck(user_id="u", name="Round", cards=[agumon.to_deck_card(4), koromon.to_deck_card(1)])
    data = yaml.safe_load(dump_decklist(deck))
    assert data["deck"] == "Round"
    assert data["cards"][0] == {"id": "BT1-010", "qty": 4, "name": "Agumon"}

    path = write_decklist(deck, tmp_path / "out" / "round.yaml")
    raw = load_decklist(path)
    assert [(c.id, c.qty) for c in raw.cards] == [("BT1-010", 4), ("BT1-001", 1)]
