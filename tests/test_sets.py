from unittest.mock import MagicMock

import pytest

from digideck.db.database import DigideckDatabase
from digideck.exceptions import CardOperationError
from digideck.models import SetCategory
from digideck.sets import KNOWN_SET_NAMES, category_from_code, get_sets, sets_from_names


@pytest.mark.parametrize(
    "code,category",
    [
        ("BT15", SetCategory.booster),
        ("ST01", SetCategory.starter),
        ("EX05", SetCategory.special),
        ("P", SetCategory.promo),
        ("LM", SetCategory.promo),
    ],
)
def test_category_from_code(code, category):
    assert category_from_code(code) == category


def test_sets_from_names_dedupes_and_sorts_by_code():
    sets = sets_from_names(
        ["ST01 - Gaia Red", "BT12 - Across Time", "ST01 - Gaia Red", "", "  ", "EX02 - Digital Hazard"]
    )
    assert [s.code for s in sets] == ["BT12", "EX02", "ST01"]
    assert sets[0].name == "BT12 - Across Time"
    assert sets[2].category == SetCategory.starter


def test_get_sets_reads_card_table():
    db = MagicMock(spec=DigideckDatabase)
    db.get_set_names.return_value = ["ST01 - Gaia Red"]
    sets = get_sets(db)
    assert [s.code for s in sets] == ["ST01"]


def test_get_sets_falls_back_on_database_error(caplog):
    db = MagicMock(spec=DigideckDatabase)
    db.get_set_names.side_effect = CardOperationError("Could not fetch set names.")
    sets = get_sets(db)
    assert len(sets) == len(set(KNOWN_SET_NAMES))
    assert "Falling back to the built-in set list" in caplog.text


def test_get_sets_from_real_database(initialized_db_manager, sample_cards):
    initialized_db_manager.upsert_cards_batch(sample_cards)
    assert [s.code for s in get_sets(initialized_db_manager)] == ["BT01", "BT02", "BT05", "ST01"]
