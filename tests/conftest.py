import sys
import pytest
from pathlib import Path
from typing import Generator, List
from datetime import date, datetime, timezone

from digideck.models import Card, CardType, DeckCard, TournamentDeck, UserDeck
from digideck.db import DigideckDatabase


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_digideck.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[DigideckDatabase, None, None]:
    """
    A DigideckDatabase, in-memory or file-backed depending on the param.
    The connection is closed and the file removed on teardown.
    """
    if request.param == "memory":
        db_man = DigideckDatabase(db_path_memory)
    else:
        db_man = DigideckDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()
        if request.param == "file" and db_path_file.exists():
            try:
                db_path_file.unlink()
            except OSError as e:
                import logging

                logging.warning(
                    f"Error removing temporary DB file in test fixture teardown: {e}"
                )


@pytest.fixture
def initialized_db_manager(db_manager: DigideckDatabase) -> DigideckDatabase:
    db_manager.initialize_schema()
    return db_manager


# --- Card Fixtures ---
@pytest.fixture
def agumon() -> Card:
    return Card(
        id="BT1-010",
        name="Agumon",
        type=CardType.Digimon,
        colors=["Red"],
        level=3,
        play_cost=3,
        evolution_cost=0,
        dp=2000,
        rarity="Common",
        set_names=["BT01 - Release Special Booster"],
        card_number="BT1-010",
        effects="[On Play] Reveal the top 5 cards of your deck.",
        keywords=["Deck"],
        created_at=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def koromon() -> Card:
    """An egg card: level 2, In-Training."""
    return Card(
        id="BT1-001",
        name="Koromon",
        type=CardType.DigiEgg,
        colors=["Red"],
        level=2,
        rarity="Uncommon",
        set_names=["BT01 - Release Special Booster"],
        card_number="BT1-001",
        form="In-Training",
    )


@pytest.fixture
def argomon() -> Card:
    """Limited to one copy."""
    return Card(
        id="BT2-047",
        name="Argomon",
        colors=["Green"],
        level=3,
        play_cost=4,
        rarity="Rare",
        set_names=["BT02 - Ultimate Power"],
        card_number="BT2-047",
    )


@pytest.fixture
def fusion_option() -> Card:
    """Banned."""
    return Card(
        id="BT5-109",
        name="Mega Digimon Fusion!",
        type=CardType.Option,
        colors=["White"],
        play_cost=1,
        rarity="Rare",
        set_names=["BT05 - Battle of Omni"],
        card_number="BT5-109",
    )


@pytest.fixture
def tai() -> Card:
    return Card(
        id="ST1-12",
        name="Tai Kamiya",
        type=CardType.Tamer,
        colors=["Red"],
        play_cost=2,
        rarity="Rare",
        set_names=["ST01 - Gaia Red"],
        card_number="ST1-12",
    )


@pytest.fixture
def sample_cards(agumon, koromon, argomon, fusion_option, tai) -> List[Card]:
    return [agumon, koromon, argomon, fusion_option, tai]


@pytest.fixture
def empty_deck() -> UserDeck:
    return UserDeck(user_id="test-user", name="Test Deck")


def make_main_cards(count: int, prefix: str = "EX1") -> List[DeckCard]:
    """Unrestricted main-deck entries, four copies each, totalling `count`."""
    cards = []
    index = 1
    while count > 0:
        quantity = min(4, count)
        number = f"{prefix}-{index:03d}"
        cards.append(
            DeckCard(card_id=number, name=f"Filler {index}", quantity=quantity, card_number=number, level=4)
        )
        count -= quantity
        index += 1
    return cards


def make_tournament_deck(
    archetype: str,
    placement: int,
    region: str = "NA",
    tournament: str = "Regional Cup",
    event_date: date = date(2024, 5, 1),
    cards: List[DeckCard] = None,
    set_id: str = "ex9",
) -> TournamentDeck:
    return TournamentDeck(
        name=f"{archetype} Deck",
        archetype=archetype,
        player=f"Player {placement}",
        placement=placement,
        region=region,
        tournament=tournament,
        event_date=event_date,
        cards=cards or [],
        total_cards=sum(c.quantity for c in cards or []),
        set_name="EX9",
        set_id=set_id,
    )


@pytest.fixture
def main_cards_factory():
    return make_main_cards


@pytest.fixture
def tournament_deck_factory():
    return make_tournament_deck
