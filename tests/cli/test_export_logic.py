"""
Tests for the Markdown deck export logic.
"""

import logging
from unittest.mock import patch

import pytest

from digideck.cli._export_logic import deck_to_markdown_file, export_to_markdown
from digideck.models import DeckCard, UserDeck


@pytest.fixture
def sample_decks(agumon, koromon, tai):
    return [
        UserDeck(
            user_id="u",
            name="Red Hybrid",
            description="Tamer-heavy build",
            cards=[agumon.to_deck_card(4), koromon.to_deck_card(2), tai.to_deck_card(1)],
        ),
        UserDeck(user_id="u", name="Blue/Flare?", cards=[]),
    ]


def test_export_to_markdown_success(sample_decks, tmp_path):
    output_dir = tmp_path / "export"

    written = export_to_markdown(sample_decks, output_dir)

    red_file = output_dir / "Red Hybrid.md"
    blue_file = output_dir / "BlueFlare.md"
    assert written == [red_file, blue_file]

    content = red_file.read_text(encoding="utf-8")
    assert "# Deck: Red Hybrid" in content
    assert "Tamer-heavy build" in content
    assert "**Format:** standard" in content
    assert "## Main Deck (5)" in content
    assert "- 4x Agumon (`BT1-010`)" in content
    assert "- 1x Tai Kamiya (`ST1-12`)" in content
    assert "## Digi-Egg Deck (2)" in content
    assert "- 2x Koromon (`BT1-001`)" in content
    assert "## Problems" not in content

    main_section = content.split("## Digi-Egg Deck")[0]
    assert "Koromon" not in main_section

    empty = blue_file.read_text(encoding="utf-8")
    assert empty.count("_empty_") == 2


def test_export_lists_problems(tmp_path):
    deck = UserDeck(
        user_id="u",
        name="Illegal",
        cards=[DeckCard(card_id="BT5-109", name="Mega Digimon Fusion!", quantity=1)],
    )
    path = deck_to_markdown_file(deck, tmp_path)
    content = path.read_text(encoding="utf-8")
    assert "## Problems" in content
    assert "- BT5-109 is banned." in content


def test_export_to_markdown_no_decks(tmp_path, caplog):
    output_dir = tmp_path / "export"
    with caplog.at_level(logging.WARNING):
        assert export_to_markdown([], output_dir) == []
    assert output_dir.exists()
    assert "No decks to export." in caplog.text


def test_unnamed_deck_file_stem(tmp_path):
    deck = UserDeck(user_id="u", name="???")
    assert deck_to_markdown_file(deck, tmp_path).name == "unnamed_deck.md"


def test_export_to_markdown_mkdir_fails(sample_decks, tmp_path):
    output_dir = tmp_path / "export"
    with patch("pathlib.Path.mkdir", side_effect=OSError("Permission denied")):
        with pytest.raises(IOError, match="Failed to create output directory"):
            export_to_markdown(sample_decks, output_dir)


def test_export_skips_deck_that_cannot_be_written(sample_decks, tmp_path, caplog):
    real_open = open

    def flaky_open(path, *args, **kwargs):
        if str(path).endswith("Red Hybrid.md"):
            raise OSError("disk full")
        return real_open(path, *args, **kwargs)

    with patch("builtins.open", side_effect=flaky_open):
        written = export_to_markdown(sample_decks, tmp_path)

    assert [p.name for p in written] == ["BlueFlare.md"]
    assert "Could not write deck 'Red Hybrid'" in caplog.text


def test_same_named_decks_get_separate_files(tmp_path):
    first = UserDeck(user_id="u", name="Untitled Deck", description="first")
    second = UserDeck(user_id="u", name="untitled deck", description="second")

    written = export_to_markdown([first, second], tmp_path)

    assert len(written) == 2
    assert len(set(written)) == 2
    assert written[0].name == "Untitled Deck.md"
    assert written[1].name == f"untitled deck_{str(second.deck_id)[:8]}.md"
    assert sorted(p.name for p in tmp_path.glob("*.md")) == sorted(p.name for p in written)
    assert "second" in written[1].read_text(encoding="utf-8")
