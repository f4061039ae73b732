"""
Marshalling between the pydantic models and DuckDB rows.

Keeps the conversion details (JSON-encoded deck lists, list columns,
None-for-empty) out of the query code in `database.py`.
"""

from typing import Any, Dict, List, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from ..exceptions import MarshallingError
from ..models import (
    Achievement,
    Card,
    DeckCard,
    MetaSet,
    ProfileStats,
    TournamentDeck,
    UserDeck,
    UserProfile,
)

_DECK_CARDS = TypeAdapter(List[DeckCard])
_ACHIEVEMENTS = TypeAdapter(List[Achievement])


def deck_cards_to_json(cards: Sequence[DeckCard]) -> str:
    return _DECK_CARDS.dump_json(list(cards), exclude_none=True).decode("utf-8")


def deck_cards_from_json(raw: str) -> List[DeckCard]:
    """
    Raises:
        MarshallingError: If the stored text is not a valid deck list.
    """
    try:
        return _DECK_CARDS.validate_json(raw or "[]")
    except ValidationError as e:
        raise MarshallingError(
            f"Stored deck list is invalid: {e}", original_exception=e
        ) from e


def card_to_db_params_list(cards: Sequence[Card]) -> List[Tuple]:
    """
    Convert cards into parameter tuples in `cards` column order:
    (id, name, image, type, colors, level, play_cost, evolution_cost, dp,
    rarity, set_names, card_number, effects, keywords, traits, attribute,
    form, created_at, updated_at).
    """
    return [
        (
            card.id,
            card.name,
            card.image,
            card.type.value,
            list(card.colors) or None,
            card.level,
            card.play_cost,
            card.evolution_cost,
            card.dp,
            card.rarity,
            list(card.set_names) or None,
            card.card_number,
            card.effects,
            list(card.keywords) or None,
            list(card.traits) or None,
            card.attribute,
            card.form,
            card.created_at,
            card.updated_at,
        )
        for card in cards
    ]


def db_row_to_card(row_dict: Dict[str, Any]) -> Card:
    """
    Build a Card from a `cards` row; NULL list columns become empty lists.

    Raises:
        MarshallingError: If the row does not validate as a Card.
    """
    data = row_dict.copy()
    for key in ("colors", "set_names", "keywords", "traits"):
        data[key] = data.get(key) or []
    for key in ("image", "effects"):
        data[key] = data.get(key) or ""
    data["rarity"] = data.get("rarity") or "Common"
    try:
        return Card(**data)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse card from DB row: {row_dict.get('id')}. Error: {e}",
            original_exception=e,
        ) from e


def user_deck_to_db_params(deck: UserDeck) -> Tuple:
    return (
        deck.deck_id,
        deck.user_id,
        deck.name,
        deck.description,
        deck.format,
        deck_cards_to_json(deck.cards),
        deck.created_at,
        deck.updated_at,
    )


def db_row_to_user_deck(row_dict: Dict[str, Any]) -> UserDeck:
    data = row_dict.copy()
    data["cards"] = deck_cards_from_json(data.get("cards"))
    data["description"] = data.get("description") or ""
    try:
        return UserDeck(**data)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse user deck {row_dict.get('deck_id')}: {e}",
            original_exception=e,
        ) from e


def tournament_deck_to_db_params(deck: TournamentDeck) -> Tuple:
    return (
        deck.deck_id,
        deck.name,
        deck.archetype,
        deck.player,
        deck.placement,
        deck.region,
        deck.tournament,
        deck.format,
        list(deck.colors) or None,
        deck.event_date,
        deck_cards_to_json(deck.cards),
        deck.total_cards,
        deck.set_name,
        deck.set_id,
        deck.created_at,
    )


def db_row_to_tournament_deck(row_dict: Dict[str, Any]) -> TournamentDeck:
    data = row_dict.copy()
    data["cards"] = deck_cards_from_json(data.get("cards"))
    data["colors"] = data.get("colors") or []
    try:
        return TournamentDeck(**data)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse tournament deck {row_dict.get('deck_id')}: {e}",
            original_exception=e,
        ) from e


def db_row_to_meta_set(row_dict: Dict[str, Any]) -> MetaSet:
    try:
        return MetaSet(**row_dict)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse meta set {row_dict.get('set_id')}: {e}",
            original_exception=e,
        ) from e


def profile_to_db_params(profile: UserProfile) -> Tuple:
    return (
        profile.user_id,
        profile.nickname,
        profile.join_date,
        profile.total_activity,
        profile.stats.model_dump_json(),
        _ACHIEVEMENTS.dump_json(profile.achievements).decode("utf-8"),
    )


def db_row_to_profile(row_dict: Dict[str, Any]) -> UserProfile:
    """
    Raises:
        MarshallingError: If the stored stats or achievements are invalid.
    """
    data = row_dict.copy()
    data["nickname"] = data.get("nickname") or ""
    try:
        data["stats"] = ProfileStats.model_validate_json(data.get("stats") or "{}")
        data["achievements"] = _ACHIEVEMENTS.validate_json(
            data.get("achievements") or "[]"
        )
        return UserProfile(**data)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse profile {row_dict.get('user_id')}: {e}",
            original_exception=e,
        ) from e
