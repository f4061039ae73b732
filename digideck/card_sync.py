"""
Import the card catalogue from the public Digimon card API.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from .config import settings
from .constants import KEYWORDS
from .exceptions import ScrapeError
from .http import build_session, fetch_json
from .models import Card, CardType

logger = logging.getLogger(__name__)

FALLBACK_CARDS = (
    Card(
        id="BT01-001",
        name="Koromon",
        type=CardType.Digimon,
        colors=["Red"],
        level=2,
        rarity="Common",
        set_names=["BT01"],
        card_number="BT01-001",
        effects="[Your Turn] When this Digimon digivolves, gain +1 memory.",
    ),
    Card(
        id="BT01-019",
        name="Greymon",
        type=CardType.Digimon,
        colors=["Red"],
        level=4,
        rarity="Common",
        set_names=["BT01"],
        card_number="BT01-019",
        effects="[When Digivolving] Delete 1 of your opponent's Digimon with 3000 DP or less.",
    ),
)


@dataclass
class SyncReport:
    fetched: int = 0
    imported: int = 0
    skipped: int = 0
    used_fallback: bool = False


def extract_keywords(effects: str) -> List[str]:
    """Keywords whose name appears anywhere in the effect text, ignoring case."""
    if not effects:
        return []
    lowered = effects.lower()
    return [keyword for keyword in KEYWORDS if keyword.lower() in lowered]


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def map_api_card(raw: Dict[str, Any], image_url: Optional[str] = None) -> Optional[Card]:
    """
    Map one record of the card API to a `Card`.

    Optional numeric fields are only set when present and parseable.
    Returns None, after logging a warning, for records that cannot be
    mapped.
    """
    card_id = str(raw.get("id") or "").strip()
    if not card_id:
        logger.warning(f"Skipping card without id: {raw.get('name')!r}")
        return None

    color = raw.get("color")
    if isinstance(color, list):
        colors = [str(c) for c in color if c]
    else:
        colors = [str(color)] if color else []

    effects = raw.get("main_effect") or ""
    attribute = raw.get("attribute") or None
    template = image_url or settings.card_image_url

    try:
        return Card(
            id=card_id,
            name=raw.get("name") or "Unknown Card",
            image=template.format(card_id=card_id),
            type=raw.get("type") or CardType.Digimon,
            colors=colors,
            level=_parse_int(raw.get("level")),
            play_cost=_parse_int(raw.get("play_cost")),
            evolution_cost=_parse_int(raw.get("evolution_cost")),
            dp=_parse_int(raw.get("dp")),
            rarity=raw.get("rarity") or "Common",
            set_names=[raw["set_name"]] if raw.get("set_name") else [],
            card_number=card_id,
            effects=effects,
            keywords=extract_keywords(effects),
            traits=[attribute] if attribute else [],
            attribute=attribute,
            form=raw.get("form") or None,
        )
    except ValidationError as e:
        logger.warning(f"Skipping card {card_id}: {e.error_count()} validation error(s)")
        return None


def fetch_api_cards(session: requests.Session, url: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Raises:
        ScrapeError: If the API cannot be reached or does not return a list.
    """
    url = url or settings.card_api_url
    payload = fetch_json(session, url)
    if not isinstance(payload, list):
        raise ScrapeError(url, f"expected a list of cards, got {type(payload).__name__}")
    return payload


def sync_cards(db, session: Optional[requests.Session] = None, url: Optional[str] = None) -> SyncReport:
    """
    Fetch the catalogue, map it and upsert it into `db`.

    When the API cannot be fetched or decoded, or returns an empty list,
    the two fallback cards are stored instead.
    """
    session = session or build_session()
    report = SyncReport()
    try:
        raw_cards = fetch_api_cards(session, url)
    except ScrapeError as e:
        logger.error(f"Card API unavailable, seeding fallback cards: {e}")
        raw_cards = []

    if not raw_cards:
        logger.warning("No cards fetched, storing fallback cards")
        report.imported = db.upsert_cards_batch(FALLBACK_CARDS)
        report.used_fallback = True
        return report

    report.fetched = len(raw_cards)
    cards = []
    for raw in raw_cards:
        card = map_api_card(raw) if isinstance(raw, dict) else None
        if card is None:
            report.skipped += 1
            continue
        cards.append(card)

    report.imported = db.upsert_cards_batch(cards)
    logger.info(
        f"Card sync finished: {report.imported} imported, {report.skipped} skipped of {report.fetched}."
    )
    return report
