"""
Digimon TCG ban/restricted list.

Entries are keyed by printed card number. Update the table when a new
official restriction announcement is published.
"""
from dataclasses import dataclass
from typing import Dict, Tuple

from .constants import (
    MAX_COPIES_BANNED,
    MAX_COPIES_LIMITED,
    MAX_COPIES_UNRESTRICTED,
)
from .models import Restriction


@dataclass(frozen=True)
class BanlistEntry:
    card_number: str
    name: str
    restriction: Restriction


BANLIST: Tuple[BanlistEntry, ...] = (
    # Banned (0 copies)
    BanlistEntry("BT5-109", "Mega Digimon Fusion!", Restriction.banned),
    BanlistEntry("BT2-090", "Matt Ishida", Restriction.banned),
    # Limited (1 copy)
    BanlistEntry("BT3-103", "Hidden Potential Discovered!", Restriction.limited),
    BanlistEntry("BT2-047", "Argomon", Restriction.limited),
    BanlistEntry("EX1-068", "Ice Wall!", Restriction.limited),
    BanlistEntry("BT6-100", "Reinforcing Memory Boost!", Restriction.limited),
    BanlistEntry("BT7-038", "JetSilphymon", Restriction.limited),
    BanlistEntry("BT7-072", "Eyesmon", Restriction.limited),
    BanlistEntry("BT10-009", "Shoutmon X4", Restriction.limited),
    BanlistEntry("BT7-064", "DoruGreymon", Restriction.limited),
    BanlistEntry("BT9-099", "Sunrise Blaster", Restriction.limited),
    BanlistEntry("BT7-107", "Calling from Darkness", Restriction.limited),
    BanlistEntry("BT11-064", "Greymon (X Antibody)", Restriction.limited),
    BanlistEntry("P-025", "GranKuwagamon", Restriction.limited),
    BanlistEntry("P-008", "WereGarurumon", Restriction.limited),
    BanlistEntry("EX2-039", "Impmon", Restriction.limited),
    BanlistEntry("BT3-054", "Blossomon", Restriction.limited),
    BanlistEntry("BT7-069", "Eyesmon: Scatter Mode", Restriction.limited),
    BanlistEntry("EX4-019", "MachGaogamon", Restriction.limited),
    BanlistEntry("BT13-012", "GeoGreymon", Restriction.limited),
    BanlistEntry("BT2-069", "Gabumon", Restriction.limited),
    BanlistEntry("EX5-015", "Gabumon (X Antibody)", Restriction.limited),
    BanlistEntry("EX5-018", "Garurumon (X Antibody)", Restriction.limited),
    BanlistEntry("EX5-062", "Anubismon", Restriction.limited),
    BanlistEntry("BT15-102", "Apocalymon", Restriction.limited),
    BanlistEntry("BT14-002", "Bukamon", Restriction.limited),
    BanlistEntry("P-123", "Ukkomon", Restriction.limited),
    BanlistEntry("P-130", "Lui Ohwada", Restriction.limited),
    BanlistEntry("ST2-13", "Hammer Spark", Restriction.limited),
    BanlistEntry("BT9-098", "Awakening of the Golden Knight", Restriction.limited),
    BanlistEntry("BT15-057", "Numemon (X Antibody)", Restriction.limited),
    BanlistEntry("BT14-084", "T.K. Takaishi", Restriction.limited),
    BanlistEntry("BT4-111", "Jack Raid", Restriction.limited),
    BanlistEntry("BT17-069", "Fenriloogamon", Restriction.limited),
    BanlistEntry("BT4-104", "Blinding Ray", Restriction.limited),
    BanlistEntry("EX4-030", "Kuzuhamon", Restriction.limited),
    BanlistEntry("P-029", "Agunimon", Restriction.limited),
    BanlistEntry("P-030", "Lobomon", Restriction.limited),
    BanlistEntry("BT11-033", "MirageGaogamon", Restriction.limited),
    BanlistEntry("ST9-09", "Stingmon", Restriction.limited),
)


def _build_index(entries: Tuple[BanlistEntry, ...]) -> Dict[str, BanlistEntry]:
    # First entry wins when a number is listed twice.
    index: Dict[str, BanlistEntry] = {}
    for entry in entries:
        index.setdefault(entry.card_number, entry)
    return index


_BANLIST_INDEX = _build_index(BANLIST)

_MAX_COPIES = {
    Restriction.banned: MAX_COPIES_BANNED,
    Restriction.limited: MAX_COPIES_LIMITED,
    Restriction.unrestricted: MAX_COPIES_UNRESTRICTED,
}


def get_card_restriction(card_number: str) -> Restriction:
    """Return the restriction for a card number; unlisted cards are unrestricted."""
    entry = _BANLIST_INDEX.get(card_number.strip().upper())
    return entry.restriction if entry else Restriction.unrestricted


def get_max_copies(card_number: str) -> int:
    """Return how many copies of a card number a deck may hold (0, 1 or 4)."""
    return _MAX_COPIES[get_card_restriction(card_number)]
