"""
Tests for the card API import.
"""

from unittest.mock import MagicMock

import pytest
import requests

from digideck.card_sync import (
    FALLBACK_CARDS,
    extract_keywords,
    fetch_api_cards,
    map_api_card,
    sync_cards,
)
from digideck.db.database import DigideckDatabase
from digideck.exceptions import ScrapeError
from digideck.models import CardType


API_URL = "https://api.example.test/cards"


def _session_returning(payload=None, status_code=200, exc=None):
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.get.side_effect = exc
        return session
    response = MagicMock()
    response.status_code = status_code
    response.content = b"..."
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    session.get.return_value = response
    return session


@pytest.fixture
def raw_greymon():
    return {
        "id": "BT1-025",
        "name": "Greymon",
        "type": "Digimon",
        "color": "Red",
        "level": "4",
        "play_cost": 5,
        "evolution_cost": "2",
        "dp": 4000,
        "rarity": "Uncommon",
        "set_name": "BT01 - Release Special Booster",
        "main_effect": "<Blocker> [When Digivolving] Delete 1 of your opponent's Digimon.",
        "attribute": "Vaccine",
        "form": "Champion",
    }


class TestMapApiCard:
    def test_full_record(self, raw_greymon):
        card = map_api_card(raw_greymon, image_url="https://img.test/{card_id}.png")
        assert card.id == "BT1-025"
        assert card.card_number == "BT1-025"
        assert card.colors == ["Red"]
        assert card.level == 4
        assert card.evolution_cost == 2
        assert card.set_names == ["BT01 - Release Special Booster"]
        assert card.image == "https://img.test/BT1-025.png"
        assert card.traits == ["Vaccine"]
        assert "Blocker" in card.keywords
        assert "Delete" in card.keywords

    def test_optional_numbers_absent_or_unparseable(self):
        card = map_api_card({"id": "ST1-16", "name": "Gaia Force", "type": "Option", "level": "-", "dp": ""})
        assert card.type == CardType.Option
        assert card.level is None
        assert card.dp is None
        assert card.set_names == []

    def test_zero_play_cost_kept(self):
        card = map_api_card({"id": "P-001", "name": "Promo", "play_cost": 0})
        assert card.play_cost == 0

    def test_color_list(self):
        card = map_api_card({"id": "EX1-001", "name": "Dual", "color": ["Red", "Blue", None]})
        assert card.colors == ["Red", "Blue"]

    def test_missing_id_skipped(self, caplog):
        assert map_api_card({"name": "Ghost"}) is None
        assert "Skipping card without id" in caplog.text

    def test_invalid_record_skipped(self, caplog):
        assert map_api_card({"id": "X-1", "name": "Bad", "type": "Spell"}) is None
        assert "Skipping card X-1" in caplog.text


def test_extract_keywords_is_case_insensitive():
    assert extract_keywords("gains <RUSH> and <piercing>") == ["Rush", "Piercing"]
    assert extract_keywords("") == []


class TestFetch:
    def test_fetch_api_cards(self, raw_greymon):
        session = _session_returning([raw_greymon])
        assert fetch_api_cards(session, API_URL) == [raw_greymon]
        session.get.assert_called_once()
        assert session.get.call_args.args[0] == API_URL

    def test_non_list_payload(self):
        session = _session_returning({"error": "rate limited"})
        with pytest.raises(ScrapeError, match="expected a list"):
            fetch_api_cards(session, API_URL)

    def test_invalid_json(self):
        session = _session_returning()
        session.get.return_value.json.side_effect = ValueError("Expecting value")
        with pytest.raises(ScrapeError, match="invalid JSON"):
            fetch_api_cards(session, API_URL)

    def test_transport_error(self):
        session = _session_returning(exc=requests.ConnectionError("offline"))
        with pytest.raises(ScrapeError, match="request failed"):
            fetch_api_cards(session, API_URL)

    def test_http_error(self):
        session = _session_returning(status_code=500)
        with pytest.raises(ScrapeError, match="HTTP 500"):
            fetch_api_cards(session, API_URL)


class TestSyncCards:
    def test_imports_mapped_cards(self, initialized_db_manager, raw_greymon):
        session = _session_returning([raw_greymon, {"name": "no id"}, "junk"])
        report = sync_cards(initialized_db_manager, session=session, url=API_URL)
        assert report.fetched == 3
        assert report.imported == 1
        assert report.skipped == 2
        assert report.used_fallback is False
        assert initialized_db_manager.get_card_by_id("BT1-025").name == "Greymon"

    def test_seeds_fallback_cards_when_api_fails(self, initialized_db_manager):
        session = _session_returning(exc=requests.Timeout("slow"))
        report = sync_cards(initialized_db_manager, session=session, url=API_URL)
        assert report.used_fallback is True
        assert report.imported == len(FALLBACK_CARDS)
        names = {c.name for c in initialized_db_manager.search_cards().cards}
        assert names == {"Koromon", "Greymon"}

    def test_seeds_fallback_cards_when_api_returns_nothing(self, initialized_db_manager, caplog):
        report = sync_cards(initialized_db_manager, session=_session_returning([]), url=API_URL)
        assert report.used_fallback is True
        assert report.fetched == 0
        assert report.imported == len(FALLBACK_CARDS)
        assert initialized_db_manager.count_cards() == len(FALLBACK_CARDS)
        assert "No cards fetched" in caplog.text

    def test_uses_database_batch_upsert(self, raw_greymon):
        db = MagicMock(spec=DigideckDatabase)
        db.upsert_cards_batch.return_value = 1
        report = sync_cards(db, session=_session_returning([raw_greymon]), url=API_URL)
        (cards,), _ = db.upsert_cards_batch.call_args
        assert [c.id for c in cards] == ["BT1-025"]
        assert report.imported == 1
