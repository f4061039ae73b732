"""
Card set catalogue derived from the set names stored on cards.
"""

import logging
from typing import Iterable, List

from .exceptions import DatabaseError
from .models import DigimonSet, SetCategory

logger = logging.getLogger(__name__)

# Used when the card table cannot be read.
KNOWN_SET_NAMES = (
    "BT1.0 - Special Booster",
    "BT1.5 - Special Booster",
    "BT04 - Great Legend",
    "BT05 - Battle of Omni",
    "BT06 - Double Diamond",
    "BT07 - Next Adventure",
    "BT08 - New Awakening",
    "BT09 - X Record",
    "BT10 - Xros Encounter",
    "BT11 - Dimensional Phase",
    "BT12 - Across Time",
    "BT13 - Versus Royal Knights",
    "BT14 - Blast Ace",
    "BT15 - Exceed Apocalypse",
    "BT16 - Beginning Observer",
    "BT17 - Secret Crisis",
    "BT2.0 - Special Booster",
    "BT2.5 - Special Booster",
    "BT21 - World Convergence",
    "EX01 - Classic Collection",
    "EX02 - Digital Hazard",
    "EX03 - Draconic Roar",
    "EX04 - Alternative Being",
    "EX05 - Animal Colosseum",
    "EX06 - Infernal Ascension",
    "EX07 - Digimon Liberator",
    "EX08 - Chain of Liberation",
    "EX09 - Versus Monsters",
    "ST01 - Gaia Red",
    "ST02 - Cocytus Blue",
    "ST03 - Heaven's Yellow",
    "ST04 - Giga Green",
    "ST05 - Machine Black",
    "ST06 - Venomous Violet",
    "ST07 - Gallantmon",
    "ST08 - UlforceVeedramon",
    "ST09 - Ultimate Ancient",
    "ST10 - Parallel World Tactician",
    "ST12 - Jesmon",
    "ST13 - RagnaLoardmon",
    "ST14 - Beelzemon",
    "ST15 - Dragon of Courage",
    "ST16 - Wolf of Friendship",
    "ST17 - Double Typhoon",
    "ST18 - Guardian Vortex",
    "P - Promotional",
)


def category_from_code(code: str) -> SetCategory:
    if code.startswith("BT"):
        return SetCategory.booster
    if code.startswith("ST"):
        return SetCategory.starter
    if code.startswith("EX"):
        return SetCategory.special
    return SetCategory.promo


def sets_from_names(names: Iterable[str]) -> List[DigimonSet]:
    """Build the set list from raw set names: unique, coded by the first word, sorted by code."""
    sets = []
    for name in sorted({n.strip() for n in names if n and n.strip()}):
        code = name.split()[0]
        sets.append(DigimonSet(code=code, name=name, category=category_from_code(code)))
    return sorted(sets, key=lambda s: s.code)


def get_sets(db) -> List[DigimonSet]:
    """Sets present in the card table, or the built-in catalogue if it cannot be read."""
    try:
        names = db.get_set_names()
    except DatabaseError as e:
        logger.warning(f"Falling back to the built-in set list: {e}")
        return sets_from_names(KNOWN_SET_NAMES)
    return sets_from_names(names)
