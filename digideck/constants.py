"""
Digimon Card Game constants.

Static deck-construction limits, keyword tables and display names.
No runtime configuration or path defaults - pure constants only.
"""
from typing import Dict, Tuple

# Deck construction limits.
MAIN_DECK_LIMIT: int = 50
EGG_DECK_LIMIT: int = 5

# Copies allowed per card number, keyed by restriction.
MAX_COPIES_UNRESTRICTED: int = 4
MAX_COPIES_LIMITED: int = 1
MAX_COPIES_BANNED: int = 0

# A card belongs to the Digi-Egg deck when it has this form or level.
DIGITAMA_FORM: str = "In-Training"
DIGITAMA_LEVEL: int = 2

# Keywords detected in effect text when cards are imported.
KEYWORDS: Tuple[str, ...] = (
    "Blocker",
    "Rush",
    "Piercing",
    "Reboot",
    "Security Attack",
    "Jamming",
    "De-Digivolve",
    "Draw",
    "Recovery",
    "Suspend",
    "Unsuspend",
    "Delete",
    "Return",
    "Trash",
    "Hand",
    "Deck",
)

KEYWORD_DESCRIPTIONS: Dict[str, str] = {
    "Blocker": "Can redirect attacks to itself",
    "Rush": "Can attack the turn it's played",
    "Piercing": "Excess damage carries over to security",
    "Reboot": "Unsuspends during opponent's unsuspend step",
    "Security Attack": "Checks additional security cards",
    "Jamming": "Cannot be blocked",
    "De-Digivolve": "Returns Digimon to previous evolution",
    "Draw": "Draw cards from deck",
    "Recovery": "Add cards to security stack",
    "Suspend": "Turn card sideways",
    "Unsuspend": "Return card to upright position",
    "Delete": "Send Digimon to trash",
    "Return": "Return card to hand or deck",
    "Trash": "Send card to trash pile",
    "Hand": "Cards in your hand",
    "Deck": "Your deck of cards",
}

REGION_NAMES: Dict[str, str] = {
    "NA": "North America",
    "EU": "Europe",
    "JP": "Japan",
    "APAC": "Asia Pacific",
}

# Placement is mapped onto a 0..1 "win rate" as 1 - placement / 10.
PLACEMENT_SCALE: float = 10.0

# Meta scraping.
MIN_DECKS_PER_FULL_PAGE: int = 10
MAX_SCRAPED_DECK_CARDS: int = 50
MAX_CLEAN_STRING_LENGTH: int = 500
MAX_CLEAN_URL_LENGTH: int = 2000

PLAY_EXPORT_HEADER: str = "Exported from digideck-portal"

# Partner evolution line: (stage name, total activity needed).
PARTNER_STAGES: Tuple[Tuple[str, int], ...] = (
    ("Koromon", 0),
    ("Agumon", 50),
    ("Greymon", 150),
    ("MetalGreymon", 300),
    ("WarGreymon", 500),
)

# Achievement checklist: (id, name, description).
DEFAULT_ACHIEVEMENTS: Tuple[Tuple[str, str, str], ...] = (
    ("first_visit", "Digital Explorer", "First visit to the Digital World"),
    ("card_viewer", "Card Collector", "Viewed 25+ cards"),
    ("meta_analyst", "Meta Analyst", "Analyzed tournament data"),
    ("profile_creator", "Identity Established", "Created your tamer profile"),
    ("evolution_master", "Evolution Master", "Partner reached Greymon stage"),
)
