"""
Tournament meta scraper for digimonmeta.com deck-list pages.

A deck-list page holds a results table (one placed deck per row) whose
rows link to a per-deck page of card images with `x4` style quantity
captions. Pages are walked one at a time by following the pagination
links; any page that fails ends the walk, and a run that yields nothing
falls back to a small sample of decks.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from .config import settings
from .constants import (
    MAX_CLEAN_STRING_LENGTH,
    MAX_CLEAN_URL_LENGTH,
    MAX_SCRAPED_DECK_CARDS,
    MIN_DECKS_PER_FULL_PAGE,
)
from .exceptions import PageNotFoundError, ScrapeError
from .http import build_session, fetch_text
from .models import Card, DeckCard, MetaSet, TournamentDeck

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_BOM_CHARS = re.compile("[\ufeff\ufffe\uffff]")
_NEXT_PAGE = re.compile(
    r'href="[^"]*page/(\d+)/"[^>]*>Next|href="[^"]*page/(\d+)/"[^>]*>\d+'
)
_CARD_NUMBER = re.compile(r"([A-Z0-9-]+)(?:\.(jpg|png|jpeg))?$", re.IGNORECASE)
_SKIPPED_IMAGE_MARKERS = ("LOGO", "webp", "wp-content/uploads/20")
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)

FALLBACK_SET_NAME = "EX9 (Versus Monsters) + BT22 (Cyber Eden)"
FALLBACK_TOURNAMENT = "EX9 Versus Monsters & BT22 Cyber Eden"


# --- String helpers ---

def clean_string(value: Optional[str]) -> str:
    """Drop control and byte-order characters, trim, cap at 500 chars."""
    if not value:
        return ""
    value = _BOM_CHARS.sub("", _CONTROL_CHARS.sub("", value))
    return value.strip()[:MAX_CLEAN_STRING_LENGTH]


def clean_url(url: Optional[str]) -> str:
    """Keep only absolute digimonmeta.com URLs, capped at 2000 chars."""
    if not url:
        return ""
    if url.startswith("http") and "digimonmeta.com" in url:
        return url[:MAX_CLEAN_URL_LENGTH]
    return ""


def parse_date(value: Optional[str]) -> date:
    """Parse a results-table date; unparseable dates become today."""
    text = clean_string(value)
    if text:
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        logger.debug(f"Unparseable date {text!r}, using today")
    return date.today()


def clean_set_name(value: Optional[str]) -> str:
    if not value:
        return ""
    letters = re.sub(r"[^a-zA-Z0-9\s]", "", value)
    return re.sub(r"\s+", " ", letters).strip()


def make_set_id(set_name: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", clean_set_name(set_name).lower())


# --- Page parsing ---

@dataclass
class ResultRow:
    """One row of a results table, as raw cell text."""

    archetype: str
    player: str
    color: str = ""
    event_date: str = ""
    country: str = ""
    placement: str = ""
    tournament: str = ""
    host: str = ""
    details_url: Optional[str] = None


def extract_set_name(html: str) -> str:
    """
    The set part of the page heading, e.g.
    "JP + CN + EN Decks: EX9 (Versus Monsters) + BT22 (Cyber Eden)" gives
    "EX9 Versus Monsters BT22 Cyber Eden".
    """
    soup = BeautifulSoup(html, "html.parser")
    heading = soup.find("h2", class_="elementor-heading-title")
    if heading is None:
        return "Unknown Set"
    title = heading.get_text().strip()
    _, colon, rest = title.partition(":")
    return clean_set_name(rest if colon else title) or "Unknown Set"


def _cell_text(cell) -> str:
    return cell.get_text().strip()


def parse_results_table(html: str, deck_list_root: Optional[str] = None) -> List[ResultRow]:
    """
    Rows of the first table on the page, header row skipped.

    Rows with fewer than 11 cells, or without a deck profile or author,
    are ignored. Relative detail links are rooted at `deck_list_root`.
    """
    root = deck_list_root or settings.meta_deck_list_root
    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table")
    if table is None:
        logger.warning("No results table found on page")
        return []

    results: List[ResultRow] = []
    for tr in table.find_all("tr")[1:]:
        cells = tr.find_all("td")
        if len(cells) < 11:
            continue

        details_url = None
        for cell in cells:
            if "column-2" in (cell.get("class") or []):
                link = cell.find("a", href=True)
                if link is not None:
                    details_url = link["href"]
                    if not details_url.startswith("http"):
                        details_url = f"{root}{details_url}"
                break

        row = ResultRow(
            archetype=_cell_text(cells[3]),
            player=_cell_text(cells[7]),
            color=_cell_text(cells[2]),
            event_date=_cell_text(cells[5]),
            country=_cell_text(cells[6]),
            placement=_cell_text(cells[8]),
            tournament=_cell_text(cells[9]),
            host=_cell_text(cells[10]),
            details_url=details_url,
        )
        if not row.archetype or not row.player:
            continue
        results.append(row)
    return results


def _parse_quantity(caption: str) -> int:
    text = re.sub(r"^x\s*", "", caption.strip(), flags=re.IGNORECASE)
    match = re.match(r"\d+", text)
    quantity = int(match.group()) if match else 1
    return max(1, min(4, quantity or 1))


def parse_deck_cards(html: str) -> List[DeckCard]:
    """
    Card entries of a deck page: every `div.column` with a digimonmeta.com
    card image and a quantity caption. Logos, webp images and dated
    uploads are not cards.
    """
    soup = BeautifulSoup(html, "html.parser")
    cards: List[DeckCard] = []
    for column in soup.find_all("div", class_="column"):
        img = column.find("img", src=re.compile(r"digimonmeta\.com", re.IGNORECASE))
        if img is None:
            continue
        image_url = img["src"]
        if any(marker in image_url for marker in _SKIPPED_IMAGE_MARKERS):
            continue

        caption = column.find("figcaption")
        if caption is None or not caption.get_text().strip():
            continue

        match = _CARD_NUMBER.search(image_url)
        number = clean_string(match.group(1) if match else f"card-{len(cards)}")
        image = clean_url(image_url)
        if not number or not image:
            continue

        cards.append(
            DeckCard(
                card_id=number,
                name=number,
                quantity=_parse_quantity(caption.get_text()),
                card_number=number,
                image=image,
            )
        )
    return cards


def has_next_page(html: str) -> bool:
    """Whether the page links to a "Next" or numbered `page/N/` page."""
    return _NEXT_PAGE.search(html) is not None


def build_tournament_deck(row: ResultRow, cards: List[DeckCard]) -> TournamentDeck:
    """Turn a results row and its card list into a deck, filling defaults."""
    digits = re.sub(r"[^0-9]", "", row.placement or "1")
    placement = max(1, int(digits) if digits else 1)
    archetype = clean_string(row.archetype)
    total = sum(c.quantity for c in cards)
    return TournamentDeck(
        name=archetype or "Unknown Deck",
        archetype=archetype or "Unknown",
        player=clean_string(row.player) or "Unknown Player",
        placement=placement,
        region=clean_string(row.country) or "Unknown",
        tournament=clean_string(f"{row.tournament} {row.host}") or "Unknown Tournament",
        format="standard",
        colors=[clean_string(row.color) or "Yellow"],
        event_date=parse_date(row.event_date),
        cards=cards[:MAX_SCRAPED_DECK_CARDS],
        total_cards=min(MAX_SCRAPED_DECK_CARDS, total) or MAX_SCRAPED_DECK_CARDS,
    )


# --- Scraping ---

@dataclass
class MetaScrapeResult:
    set_name: str
    decks: List[TournamentDeck] = field(default_factory=list)
    pages: int = 0


class MetaScraper:
    """
    Walks the paginated deck list, one request at a time.

    Page 1 is `base_url`; page N is `{base_url}page/N/`.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        deck_list_root: Optional[str] = None,
        delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_pages: Optional[int] = None,
    ):
        self.session = session or build_session()
        self.base_url = base_url or settings.meta_base_url
        self.deck_list_root = deck_list_root or settings.meta_deck_list_root
        self.delay = settings.page_delay_seconds if delay is None else delay
        self._sleep = sleep
        self.max_pages = max_pages

    def page_url(self, page: int) -> str:
        return self.base_url if page == 1 else f"{self.base_url}page/{page}/"

    def fetch_deck_cards(self, url: str) -> List[DeckCard]:
        """Cards of one deck page; a failing page yields no cards."""
        try:
            return parse_deck_cards(fetch_text(self.session, url))
        except ScrapeError as e:
            logger.error(f"Error parsing deck cards from {e}")
            return []

    def scrape_page(self, html: str) -> List[TournamentDeck]:
        decks = []
        for row in parse_results_table(html, self.deck_list_root):
            cards = self.fetch_deck_cards(row.details_url) if row.details_url else []
            logger.info(f"{row.archetype} by {row.player}: {len(cards)} cards")
            decks.append(build_tournament_deck(row, cards))
        return decks

    def scrape(self) -> MetaScrapeResult:
        """
        Stops on HTTP 404, a page without decks, a missing next link, a
        short page (fewer than 10 decks) or the first failing page.
        """
        result = MetaScrapeResult(set_name="Unknown Set")
        page = 1
        while True:
            url = self.page_url(page)
            logger.info(f"Fetching page {page}: {url}")
            try:
                html = fetch_text(self.session, url)
            except PageNotFoundError:
                logger.info(f"Page {page} not found, stopping pagination")
                break
            except ScrapeError as e:
                logger.error(f"Error fetching page {page}: {e}")
                break

            if page == 1:
                result.set_name = extract_set_name(html)
                logger.info(f"Set name: {result.set_name}")

            decks = self.scrape_page(html)
            if not decks:
                logger.info(f"No decks found on page {page}, stopping pagination")
                break
            result.decks.extend(decks)
            result.pages += 1
            logger.info(f"Page {page}: found {len(decks)} decks")

            if not has_next_page(html) or len(decks) < MIN_DECKS_PER_FULL_PAGE:
                break
            if self.max_pages is not None and page >= self.max_pages:
                break
            page += 1
            self._sleep(self.delay)

        logger.info(f"Scraped {len(result.decks)} decks from {result.pages} pages")
        return result


def fallback_decks() -> List[TournamentDeck]:
    return [
        TournamentDeck(
            name="Imperialdramon Control",
            archetype="Imperialdramon",
            player="Sample Player 1",
            placement=1,
            region="Japan",
            tournament=FALLBACK_TOURNAMENT,
            colors=["Blue"],
            total_cards=50,
        ),
        TournamentDeck(
            name="Jesmon Aggro",
            archetype="Jesmon",
            player="Sample Player 2",
            placement=2,
            region="USA",
            tournament=FALLBACK_TOURNAMENT,
            colors=["Red"],
            total_cards=50,
        ),
    ]


def enrich_deck_cards(cards: List[DeckCard], catalogue: Dict[str, Card]) -> List[DeckCard]:
    """
    Fill name, type, form and level of scraped entries from the local card
    table so egg cards are recognised. Unknown numbers are kept as scraped.
    """
    enriched = []
    for entry in cards:
        card = catalogue.get(entry.number)
        if card is None:
            enriched.append(entry)
            continue
        deck_card = card.to_deck_card(quantity=entry.quantity)
        if entry.image:
            deck_card.image = entry.image
        enriched.append(deck_card)
    return enriched


@dataclass
class MetaSyncReport:
    set_name: str
    set_id: str
    decks_stored: int
    pages: int = 0
    used_fallback: bool = False


def sync_meta(db, scraper: Optional[MetaScraper] = None) -> MetaSyncReport:
    """
    Scrape the current meta and store it under its set id, replacing any
    decks stored for that set before. Falls back to the sample decks when
    the scrape fails or finds nothing.
    """
    scraper = scraper or MetaScraper()
    try:
        result = scraper.scrape()
    except ScrapeError as e:
        logger.error(f"Error scraping meta: {e}")
        result = MetaScrapeResult(set_name="Unknown Set")

    used_fallback = not result.decks
    if used_fallback:
        logger.warning("No decks scraped, storing fallback meta data")
        result = MetaScrapeResult(set_name=FALLBACK_SET_NAME, decks=fallback_decks())

    set_name = clean_set_name(result.set_name) or "Unknown Set"
    set_id = make_set_id(set_name)

    numbers = {c.number for deck in result.decks for c in deck.cards}
    catalogue = db.get_cards_by_ids(sorted(numbers))
    decks = [
        deck.model_copy(
            update={
                "set_name": set_name,
                "set_id": set_id,
                "cards": enrich_deck_cards(deck.cards, catalogue),
            }
        )
        for deck in result.decks
    ]

    stored = db.insert_tournament_decks(decks, replace_set_id=set_id)
    db.upsert_meta_set(MetaSet(set_id=set_id, name=set_name, total_decks=len(decks)))
    logger.info(f"Stored {stored} decks for set '{set_name}' ({set_id})")
    return MetaSyncReport(
        set_name=set_name,
        set_id=set_id,
        decks_stored=stored,
        pages=result.pages,
        used_fallback=used_fallback,
    )
