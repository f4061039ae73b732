"""
Tests for the deck legality rules.
"""

import pytest

from digideck.legality import (
    LegalityVerdict,
    check_add,
    copies_by_number,
    describe_verdict,
    egg_deck_count,
    is_tournament_ready,
    is_valid_deck,
    main_deck_count,
    validate_deck,
)
from digideck.models import Card, DeckCard


def _egg_entries(count):
    return [
        DeckCard(card_id=f"BT1-00{i}", name=f"Egg {i}", quantity=1, card_number=f"BT1-00{i}", level=2)
        for i in range(1, count + 1)
    ]


class TestCounts:
    def test_main_and_egg_counts(self, agumon, koromon):
        cards = [agumon.to_deck_card(3), koromon.to_deck_card(2)]
        assert main_deck_count(cards) == 3
        assert egg_deck_count(cards) == 2

    def test_copies_grouped_by_card_number(self):
        cards = [
            DeckCard(card_id="BT1-010", name="Agumon", quantity=2, card_number="BT1-010"),
            DeckCard(card_id="BT1-010_P1", name="Agumon", quantity=1, card_number="bt1-010"),
        ]
        assert copies_by_number(cards)["BT1-010"] == 3


class TestCheckAdd:
    def test_first_copy_allowed(self, agumon):
        assert check_add([], agumon) == LegalityVerdict.OK

    def test_fifth_unrestricted_copy_rejected(self, agumon):
        assert check_add([agumon.to_deck_card(3)], agumon) == LegalityVerdict.OK
        assert check_add([agumon.to_deck_card(4)], agumon) == LegalityVerdict.COPY_LIMIT

    def test_second_limited_copy_rejected(self, argomon):
        assert check_add([], argomon) == LegalityVerdict.OK
        assert check_add([argomon.to_deck_card(1)], argomon) == LegalityVerdict.COPY_LIMIT

    def test_banned_card_always_rejected(self, fusion_option):
        assert check_add([], fusion_option) == LegalityVerdict.BANNED

    def test_ban_checked_before_caps(self, fusion_option, main_cards_factory):
        assert check_add(main_cards_factory(50), fusion_option) == LegalityVerdict.BANNED

    def test_alternate_art_shares_copy_limit(self, agumon):
        alt = agumon.model_copy(update={"id": "BT1-010_P1"})
        assert check_add([agumon.to_deck_card(4)], alt) == LegalityVerdict.COPY_LIMIT

    def test_main_deck_fills_to_fifty(self, agumon, tai, main_cards_factory):
        cards = main_cards_factory(49)
        assert main_deck_count(cards) == 49
        assert check_add(cards, agumon) == LegalityVerdict.OK

        cards.append(agumon.to_deck_card(1))
        assert main_deck_count(cards) == 50
        assert check_add(cards, agumon) == LegalityVerdict.MAIN_DECK_FULL
        assert check_add(cards, tai) == LegalityVerdict.MAIN_DECK_FULL

    def test_full_main_deck_still_accepts_eggs(self, koromon, main_cards_factory):
        assert check_add(main_cards_factory(50), koromon) == LegalityVerdict.OK

    def test_egg_deck_capped_at_five(self, koromon):
        assert check_add(_egg_entries(4), koromon) == LegalityVerdict.OK
        assert check_add(_egg_entries(5), koromon) == LegalityVerdict.EGG_DECK_FULL

    def test_full_egg_deck_still_accepts_main_cards(self, agumon):
        assert check_add(_egg_entries(5), agumon) == LegalityVerdict.OK

    def test_accepts_deck_card(self):
        entry = DeckCard(card_id="BT2-047", name="Argomon", quantity=1)
        assert check_add([entry], entry) == LegalityVerdict.COPY_LIMIT

    @pytest.mark.parametrize("number", ["BT1-010", "BT2-047", "BT5-109"])
    def test_never_exceeds_allowed_copies(self, number):
        """Adding until rejected never leaves more copies than allowed."""
        card = Card(id=number, name="Card", card_number=number, level=4)
        cards = []
        while check_add(cards, card) == LegalityVerdict.OK:
            if cards:
                cards[0].quantity += 1
            else:
                cards.append(card.to_deck_card(1))
        assert not validate_deck(cards)


class TestDescribeVerdict:
    def test_copy_limit_messages(self):
        assert describe_verdict(LegalityVerdict.COPY_LIMIT, "BT2-047") == (
            "BT2-047 is limited to 1 copy per deck."
        )
        assert describe_verdict(LegalityVerdict.COPY_LIMIT, "BT1-010") == (
            "BT1-010 is limited to 4 copies per deck."
        )

    def test_banned_message(self):
        assert "banned" in describe_verdict(LegalityVerdict.BANNED, "BT5-109")


class TestValidateDeck:
    def test_clean_deck(self, main_cards_factory):
        assert validate_deck(main_cards_factory(50)) == []

    def test_reports_every_problem(self, main_cards_factory):
        cards = main_cards_factory(48) + _egg_entries(6)
        cards.append(DeckCard(card_id="BT2-047", name="Argomon", quantity=2))
        cards.append(DeckCard(card_id="BT5-109", name="Fusion", quantity=1))
        problems = validate_deck(cards)
        assert "Main deck has 51 cards (maximum 50)." in problems
        assert "Digitama deck has 6 cards (maximum 5)." in problems
        assert "BT2-047 has 2 copies (maximum 1)." in problems
        assert "BT5-109 is banned." in problems

    def test_is_valid_only_checks_caps(self, main_cards_factory):
        assert is_valid_deck(main_cards_factory(50) + _egg_entries(5))
        assert not is_valid_deck(main_cards_factory(51))
        assert not is_valid_deck(_egg_entries(6))

    def test_tournament_ready(self, main_cards_factory):
        assert is_tournament_ready(main_cards_factory(50))
        assert not is_tournament_ready(main_cards_factory(49))
        banned = main_cards_factory(49) + [
            DeckCard(card_id="BT5-109", name="Fusion", quantity=1)
        ]
        assert not is_tournament_ready(banned)
