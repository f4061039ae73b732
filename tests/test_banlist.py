import pytest

from digideck.banlist import BANLIST, get_card_restriction, get_max_copies
from digideck.models import Restriction


@pytest.mark.parametrize(
    "number,restriction,copies",
    [
        ("BT5-109", Restriction.banned, 0),
        ("BT2-090", Restriction.banned, 0),
        ("BT2-047", Restriction.limited, 1),
        ("ST9-09", Restriction.limited, 1),
        ("BT1-010", Restriction.unrestricted, 4),
    ],
)
def test_restrictions(number, restriction, copies):
    assert get_card_restriction(number) == restriction
    assert get_max_copies(number) == copies


def test_lookup_ignores_case_and_whitespace():
    assert get_card_restriction(" bt5-109 ") == Restriction.banned


def test_every_entry_is_restricted():
    assert all(e.restriction != Restriction.unrestricted for e in BANLIST)


def test_numbers_are_unique():
    numbers = [e.card_number for e in BANLIST]
    assert len(numbers) == len(set(numbers))
