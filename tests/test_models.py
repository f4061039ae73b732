import uuid
from datetime import date

import pytest
from pydantic import ValidationError

from digideck.models import (
    Card,
    CardQuery,
    CardType,
    DeckCard,
    TournamentDeck,
    UserDeck,
    UserProfile,
    is_digitama,
)


class TestCard:
    def test_minimal_card_defaults(self):
        card = Card(id="BT1-010", name="Agumon", card_number="BT1-010")
        assert card.type == CardType.Digimon
        assert card.colors == []
        assert card.rarity == "Common"
        assert card.level is None
        assert card.created_at.tzinfo is not None

    @pytest.mark.parametrize("raw", ["digimon", "DIGIMON", " Digimon "])
    def test_type_is_case_insensitive(self, raw):
        card = Card(id="X-1", name="X", card_number="X-1", type=raw)
        assert card.type == CardType.Digimon

    def test_digi_egg_type(self):
        card = Card(id="X-1", name="X", card_number="X-1", type="digi-egg")
        assert card.type == CardType.DigiEgg

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Card(id="X-1", name="X", card_number="X-1", type="Spell")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            Card(id="X-1", name="X", card_number="X-1", power=9000)

    def test_negative_cost_rejected(self):
        with pytest.raises(ValidationError):
            Card(id="X-1", name="X", card_number="X-1", play_cost=-1)

    def test_assignment_is_validated(self, agumon):
        with pytest.raises(ValidationError):
            agumon.dp = -5

    def test_to_deck_card(self, koromon):
        entry = koromon.to_deck_card(2)
        assert entry.card_id == "BT1-001"
        assert entry.quantity == 2
        assert entry.type == "Digi-Egg"
        assert entry.is_digitama


@pytest.mark.parametrize(
    "form,level,expected",
    [
        ("In-Training", None, True),
        (None, 2, True),
        ("In-Training", 2, True),
        ("Rookie", 3, False),
        (None, None, False),
        ("in-training", 3, False),
    ],
)
def test_is_digitama_rule(form, level, expected):
    assert is_digitama(form, level) is expected


class TestDeckCard:
    def test_number_falls_back_to_card_id(self):
        entry = DeckCard(card_id="BT1-010", name="Agumon", quantity=1)
        assert entry.number == "BT1-010"

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            DeckCard(card_id="BT1-010", name="Agumon", quantity=0)


class TestUserDeck:
    def test_blank_name_becomes_untitled(self):
        deck = UserDeck(user_id="u", name="   ")
        assert deck.name == "Untitled Deck"

    def test_default_id_is_uuid(self):
        deck = UserDeck(user_id="u")
        assert isinstance(deck.deck_id, uuid.UUID)
        assert deck.format == "standard"

    def test_user_id_required(self):
        with pytest.raises(ValidationError):
            UserDeck(user_id="")


class TestTournamentDeck:
    def test_defaults(self):
        deck = TournamentDeck()
        assert deck.placement == 1
        assert deck.event_date == date.today()
        assert deck.player == "Unknown Player"

    def test_placement_must_be_positive(self):
        with pytest.raises(ValidationError):
            TournamentDeck(placement=0)

    def test_main_and_egg_split(self, agumon, koromon):
        deck = TournamentDeck(cards=[agumon.to_deck_card(4), koromon.to_deck_card(4)])
        assert [c.card_id for c in deck.main_deck] == ["BT1-010"]
        assert [c.card_id for c in deck.egg_deck] == ["BT1-001"]


def test_profile_unlocked_count():
    profile = UserProfile(user_id="u")
    assert profile.unlocked_count == 0
    assert profile.stats.cards_viewed == 0


def test_card_query_rejects_unknown_filter():
    with pytest.raises(ValidationError):
        CardQuery(colour="Red")
