"""
DuckDB storage for digideck.

`DigideckDatabase` is the single entry point for cards, user decks,
tournament decks, meta sets and profiles.
"""

import duckdb
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union, cast
from ..exceptions import (
    CardOperationError,
    DatabaseError,
    DeckNotFoundError,
    DeckOperationError,
    MarshallingError,
    MetaOperationError,
    ProfileOperationError,
)

from datetime import datetime, timezone
import logging
from . import db_utils

from ..config import settings
from ..models import (
    Card,
    CardPage,
    CardQuery,
    MetaSet,
    TournamentDeck,
    UserDeck,
    UserProfile,
)
from .connection import ConnectionHandler
from .schema_manager import SchemaManager

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Dict[str, Any]]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


def _rollback(conn: duckdb.DuckDBPyConnection, operation: str) -> None:
    try:
        conn.rollback()
        logger.info(f"Transaction rolled back due to error in {operation}.")
    except duckdb.Error as rb_err:
        # No transaction was open, or the connection is gone; the caller
        # still raises the original error.
        logger.error(f"Failed to rollback transaction during {operation}: {rb_err}")


class DigideckDatabase:
    """
    Facade over the database subsystem: coordinates the ConnectionHandler,
    SchemaManager and the marshalling helpers. Intended for use as a
    context manager.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Args:
            db_path (str | Path): Database file, or ':memory:'.
            read_only (bool): Open the database read-only.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)
        logger.info(f"DigideckDatabase initialized for DB at: {self._handler.db_path_resolved}")

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    @property
    def read_only(self) -> bool:
        return self._handler.read_only

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self._handler.get_connection()

    def close_connection(self) -> None:
        self._handler.close_connection()

    def __enter__(self) -> "DigideckDatabase":
        """Open the connection, creating the schema for a new writable database."""
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    # --- Card Operations ---
    _UPSERT_CARDS_SQL = """
        INSERT INTO cards (id, name, image, type, colors, level, play_cost,
                           evolution_cost, dp, rarity, set_names, card_number,
                           effects, keywords, traits, attribute, form,
                           created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (id) DO UPDATE SET
            name = EXCLUDED.name,
            image = EXCLUDED.image,
            type = EXCLUDED.type,
            colors = EXCLUDED.colors,
            level = EXCLUDED.level,
            play_cost = EXCLUDED.play_cost,
            evolution_cost = EXCLUDED.evolution_cost,
            dp = EXCLUDED.dp,
            rarity = EXCLUDED.rarity,
            set_names = EXCLUDED.set_names,
            card_number = EXCLUDED.card_number,
            effects = EXCLUDED.effects,
            keywords = EXCLUDED.keywords,
            traits = EXCLUDED.traits,
            attribute = EXCLUDED.attribute,
            form = EXCLUDED.form,
            -- created_at is kept from the first import
            updated_at = EXCLUDED.updated_at;
        """

    def upsert_cards_batch(self, cards: Sequence[Card]) -> int:
        """
        Insert or update cards in a single transaction.

        Returns:
            int: Number of cards processed; 0 for an empty sequence.

        Raises:
            CardOperationError: If the batch fails; nothing is written.
        """
        if not cards:
            return 0

        params = db_utils.card_to_db_params_list(cards)
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                cursor.executemany(self._UPSERT_CARDS_SQL, params)
                cursor.commit()
        except duckdb.Error as e:
            logger.error(f"Error during batch card upsert: {e}")
            _rollback(conn, "batch card upsert")
            raise CardOperationError(
                f"Batch card upsert failed: {e}", original_exception=e
            ) from e
        logger.info(f"Successfully upserted {len(params)} cards.")
        return len(params)

    def _fetch_cards(self, sql: str, params: Sequence[Any], context: str) -> List[Card]:
        conn = self.get_connection()
        try:
            rows = _rows_to_dicts(conn.execute(sql, list(params)))
        except duckdb.Error as e:
            logger.error(f"Error fetching cards ({context}): {e}")
            raise CardOperationError(
                f"Failed to fetch cards ({context}): {e}", original_exception=e
            ) from e
        try:
            return [db_utils.db_row_to_card(cast(Dict[str, Any], row)) for row in rows]
        except MarshallingError as e:
            raise CardOperationError(
                f"Failed to parse cards ({context}) from database.",
                original_exception=e,
            ) from e

    def get_card_by_id(self, card_id: str) -> Optional[Card]:
        """
        Fetch a card by its id, falling back to a printed card number match
        so that `BT1-001` and `bt1-001` both resolve.
        """
        cards = self._fetch_cards(
            "SELECT * FROM cards WHERE id = ? OR upper(card_number) = upper(?) "
            "ORDER BY (id = ?) DESC, id LIMIT 1;",
            (card_id, card_id, card_id),
            f"id {card_id}",
        )
        return cards[0] if cards else None

    def get_cards_by_ids(self, card_ids: Sequence[str]) -> Dict[str, Card]:
        """Return the cards found for `card_ids`, keyed by id."""
        if not card_ids:
            return {}
        cards = self._fetch_cards(
            "SELECT * FROM cards WHERE list_contains(?, id);",
            (list(card_ids),),
            f"{len(card_ids)} ids",
        )
        return {card.id: card for card in cards}

    def search_cards(
        self,
        query: Optional[CardQuery] = None,
        cursor: Optional[Tuple[str, str]] = None,
        limit: Optional[int] = None,
    ) -> CardPage:
        """
        One page of cards matching `query`, ordered by name then id.

        Parameters:
            query (CardQuery | None): Filters; all of them must match.
            cursor (tuple[str, str] | None): `(name, id)` of the last card of
                the previous page, as returned in `CardPage.next_cursor`.
            limit (int | None): Page size; defaults to the configured
                `cards_per_page`. Ignored when `query.fetch_all` is set.

        Returns:
            CardPage: The cards, plus a cursor and `has_more` flag for the
            next page.

        Raises:
            ValueError: If the page size is below 1 and `fetch_all` is not set.
        """
        query = query or CardQuery()
        page_size = settings.cards_per_page if limit is None else limit
        if page_size < 1 and not query.fetch_all:
            raise ValueError(f"Page size must be at least 1, got {page_size}.")

        conditions: List[str] = []
        params: List[Any] = []
        if query.type is not None:
            conditions.append("type = ?")
            params.append(query.type.value)
        if query.color:
            conditions.append("list_contains(colors, ?)")
            params.append(query.color)
        if query.set_name:
            conditions.append("list_contains(set_names, ?)")
            params.append(query.set_name)
        if query.rarity:
            conditions.append("rarity = ?")
            params.append(query.rarity)
        if query.search_term and query.search_term.strip():
            conditions.append("contains(lower(name), lower(?))")
            params.append(query.search_term.strip())
        if cursor is not None:
            conditions.append("(name > ? OR (name = ? AND id > ?))")
            params.extend([cursor[0], cursor[0], cursor[1]])

        sql = "SELECT * FROM cards"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY name, id"
        if not query.fetch_all:
            # One extra row tells us whether another page exists.
            sql += " LIMIT ?"
            params.append(page_size + 1)

        cards = self._fetch_cards(sql, params, "search")
        has_more = not query.fetch_all and len(cards) > page_size
        if has_more:
            cards = cards[:page_size]
        next_cursor = (cards[-1].name, cards[-1].id) if has_more else None
        return CardPage(cards=cards, next_cursor=next_cursor, has_more=has_more)

    def get_set_names(self) -> List[str]:
        """Distinct set names across all cards, sorted."""
        conn = self.get_connection()
        sql = (
            "SELECT DISTINCT unnest(set_names) AS set_name FROM cards "
            "ORDER BY set_name;"
        )
        try:
            rows = conn.execute(sql).fetchall()
        except duckdb.Error as e:
            logger.error(f"Could not fetch set names due to a database error: {e}")
            raise CardOperationError(
                "Could not fetch set names.", original_exception=e
            ) from e
        return [row[0] for row in rows if row[0]]

    def count_cards(self) -> int:
        conn = self.get_connection()
        try:
            result = conn.execute("SELECT COUNT(*) FROM cards;").fetchone()
        except duckdb.Error as e:
            raise CardOperationError(
                f"Failed to count cards: {e}", original_exception=e
            ) from e
        return result[0] if result else 0

    # --- User Deck Operations ---
    _INSERT_USER_DECK_SQL = """
        INSERT INTO user_decks (deck_id, user_id, name, description, format,
                                cards, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?);
        """

    def create_user_deck(self, deck: UserDeck) -> UserDeck:
        """
        Raises:
            DeckOperationError: If the deck cannot be stored (e.g. the id
                already exists).
        """
        conn = self.get_connection()
        try:
            conn.execute(self._INSERT_USER_DECK_SQL, db_utils.user_deck_to_db_params(deck))
        except duckdb.Error as e:
            logger.error(f"Error creating deck '{deck.name}': {e}")
            raise DeckOperationError(
                f"Failed to create deck: {e}", original_exception=e
            ) from e
        logger.info(f"Created deck '{deck.name}' ({deck.deck_id}).")
        return deck

    def update_user_deck(self, deck: UserDeck) -> UserDeck:
        """
        Persist name, description, format and cards of an existing deck.

        Raises:
            DeckNotFoundError: If no deck with this id exists.
            DeckOperationError: On a database failure.
        """
        deck.updated_at = datetime.now(timezone.utc)
        conn = self.get_connection()
        sql = """
            UPDATE user_decks
            SET name = ?, description = ?, format = ?, cards = ?, updated_at = ?
            WHERE deck_id = ?
            RETURNING deck_id;
        """
        try:
            row = conn.execute(
                sql,
                (
                    deck.name,
                    deck.description,
                    deck.format,
                    db_utils.deck_cards_to_json(deck.cards),
                    deck.updated_at,
                    deck.deck_id,
                ),
            ).fetchone()
        except duckdb.Error as e:
            logger.error(f"Error updating deck {deck.deck_id}: {e}")
            raise DeckOperationError(
                f"Failed to update deck: {e}", original_exception=e
            ) from e
        if row is None:
            raise DeckNotFoundError(f"Deck {deck.deck_id} not found.")
        return deck

    def delete_user_deck(self, deck_id: uuid.UUID) -> bool:
        """Returns True if a deck was deleted."""
        conn = self.get_connection()
        try:
            row = conn.execute(
                "DELETE FROM user_decks WHERE deck_id = ? RETURNING deck_id;",
                (deck_id,),
            ).fetchone()
        except duckdb.Error as e:
            logger.error(f"Error deleting deck {deck_id}: {e}")
            raise DeckOperationError(
                f"Failed to delete deck: {e}", original_exception=e
            ) from e
        return row is not None

    def _fetch_user_decks(self, sql: str, params: Sequence[Any]) -> List[UserDeck]:
        conn = self.get_connection()
        try:
            rows = _rows_to_dicts(conn.execute(sql, list(params)))
        except duckdb.Error as e:
            logger.error(f"Error fetching user decks: {e}")
            raise DeckOperationError(
                f"Failed to fetch decks: {e}", original_exception=e
            ) from e
        try:
            return [db_utils.db_row_to_user_deck(row) for row in rows]
        except MarshallingError as e:
            raise DeckOperationError(
                "Failed to parse decks from database.", original_exception=e
            ) from e

    def get_user_deck(self, deck_id: uuid.UUID) -> Optional[UserDeck]:
        decks = self._fetch_user_decks(
            "SELECT * FROM user_decks WHERE deck_id = ?;", (deck_id,)
        )
        return decks[0] if decks else None

    def find_user_deck(self, user_id: str, key: str) -> UserDeck:
        """
        Resolve a deck by full id, id prefix, or case-insensitive name.

        Raises:
            DeckNotFoundError: If the key is blank or does not match exactly one deck.
        """
        key = key.strip()
        if not key:
            raise DeckNotFoundError("Deck name or id cannot be blank.")
        matches = [
            deck
            for deck in self.get_user_decks(user_id)
            if str(deck.deck_id).startswith(key.lower())
            or deck.name.lower() == key.lower()
        ]
        if len(matches) != 1:
            reason = "not found" if not matches else "is ambiguous"
            raise DeckNotFoundError(f"Deck '{key}' {reason}.")
        return matches[0]

    def get_user_decks(self, user_id: str) -> List[UserDeck]:
        """All decks of a user, most recently updated first."""
        return self._fetch_user_decks(
            "SELECT * FROM user_decks WHERE user_id = ? ORDER BY updated_at DESC;",
            (user_id,),
        )

    # --- Tournament Deck Operations ---
    _INSERT_TOURNAMENT_DECK_SQL = """
        INSERT INTO tournament_decks (deck_id, name, archetype, player,
                                      placement, region, tournament, format,
                                      colors, event_date, cards, total_cards,
                                      set_name, set_id, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """

    def insert_tournament_decks(
        self, decks: Sequence[TournamentDeck], replace_set_id: Optional[str] = None
    ) -> int:
        """
        Store scraped decks in one transaction.

        Parameters:
            decks: Decks to insert.
            replace_set_id: When given, decks already stored for this set
                are deleted first so a re-scrape does not duplicate them.

        Raises:
            MetaOperationError: If the batch fails; nothing is written.
        """
        if not decks and replace_set_id is None:
            return 0
        params = [db_utils.tournament_deck_to_db_params(d) for d in decks]
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                if replace_set_id is not None:
                    cursor.execute(
                        "DELETE FROM tournament_decks WHERE set_id = ?;",
                        (replace_set_id,),
                    )
                if params:
                    cursor.executemany(self._INSERT_TOURNAMENT_DECK_SQL, params)
                cursor.commit()
        except duckdb.Error as e:
            logger.error(f"Error inserting tournament decks: {e}")
            _rollback(conn, "tournament deck insert")
            raise MetaOperationError(
                f"Failed to store tournament decks: {e}", original_exception=e
            ) from e
        logger.info(f"Stored {len(params)} tournament decks.")
        return len(params)

    def get_tournament_decks(
        self,
        archetype: Optional[str] = None,
        region: Optional[str] = None,
        set_id: Optional[str] = None,
        limit: Optional[int] = 20,
    ) -> List[TournamentDeck]:
        """
        Tournament decks, newest event first. `limit=None` returns all of
        them; `archetype` matches case-insensitively.
        """
        conditions: List[str] = []
        params: List[Any] = []
        if archetype:
            conditions.append("lower(archetype) = lower(?)")
            params.append(archetype)
        if region:
            conditions.append("region = ?")
            params.append(region)
        if set_id:
            conditions.append("set_id = ?")
            params.append(set_id)

        sql = "SELECT * FROM tournament_decks"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY event_date DESC, created_at DESC, placement ASC"
        if limit is not None:
            if limit <= 0:
                return []
            sql += " LIMIT ?"
            params.append(limit)

        conn = self.get_connection()
        try:
            rows = _rows_to_dicts(conn.execute(sql, params))
        except duckdb.Error as e:
            logger.error(f"Error fetching tournament decks: {e}")
            raise MetaOperationError(
                f"Failed to fetch tournament decks: {e}", original_exception=e
            ) from e
        try:
            return [db_utils.db_row_to_tournament_deck(row) for row in rows]
        except MarshallingError as e:
            raise MetaOperationError(
                "Failed to parse tournament decks from database.",
                original_exception=e,
            ) from e

    def get_tournament_deck(self, deck_id: uuid.UUID) -> Optional[TournamentDeck]:
        conn = self.get_connection()
        try:
            rows = _rows_to_dicts(
                conn.execute("SELECT * FROM tournament_decks WHERE deck_id = ?;", (deck_id,))
            )
        except duckdb.Error as e:
            raise MetaOperationError(
                f"Failed to fetch tournament deck: {e}", original_exception=e
            ) from e
        if not rows:
            return None
        try:
            return db_utils.db_row_to_tournament_deck(rows[0])
        except MarshallingError as e:
            raise MetaOperationError(
                f"Failed to parse tournament deck {deck_id}.", original_exception=e
            ) from e

    # --- Meta Set Operations ---
    def upsert_meta_set(self, meta_set: MetaSet) -> MetaSet:
        conn = self.get_connection()
        sql = """
            INSERT INTO meta_sets (set_id, name, total_decks, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (set_id) DO UPDATE SET
                name = EXCLUDED.name,
                total_decks = EXCLUDED.total_decks,
                updated_at = EXCLUDED.updated_at;
        """
        try:
            conn.execute(
                sql,
                (
                    meta_set.set_id,
                    meta_set.name,
                    meta_set.total_decks,
                    meta_set.created_at,
                    meta_set.updated_at,
                ),
            )
        except duckdb.Error as e:
            logger.error(f"Error saving meta set {meta_set.set_id}: {e}")
            raise MetaOperationError(
                f"Failed to save meta set: {e}", original_exception=e
            ) from e
        return meta_set

    def get_meta_sets(self) -> List[MetaSet]:
        """Meta sets, most recently updated first."""
        conn = self.get_connection()
        try:
            rows = _rows_to_dicts(
                conn.execute("SELECT * FROM meta_sets ORDER BY updated_at DESC;")
            )
        except duckdb.Error as e:
            raise MetaOperationError(
                f"Failed to fetch meta sets: {e}", original_exception=e
            ) from e
        try:
            return [db_utils.db_row_to_meta_set(row) for row in rows]
        except MarshallingError as e:
            raise MetaOperationError(
                "Failed to parse meta sets from database.", original_exception=e
            ) from e

    # --- Profile Operations ---
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        conn = self.get_connection()
        try:
            rows = _rows_to_dicts(
                conn.execute("SELECT * FROM profiles WHERE user_id = ?;", (user_id,))
            )
        except duckdb.Error as e:
            logger.error(f"Error loading profile {user_id}: {e}")
            raise ProfileOperationError(
                f"Failed to load profile: {e}", original_exception=e
            ) from e
        if not rows:
            return None
        try:
            return db_utils.db_row_to_profile(rows[0])
        except MarshallingError as e:
            raise ProfileOperationError(
                f"Failed to parse profile {user_id}.", original_exception=e
            ) from e

    def save_profile(self, profile: UserProfile) -> UserProfile:
        conn = self.get_connection()
        sql = """
            INSERT INTO profiles (user_id, nickname, join_date, total_activity,
                                  stats, achievements)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id) DO UPDATE SET
                nickname = EXCLUDED.nickname,
                total_activity = EXCLUDED.total_activity,
                stats = EXCLUDED.stats,
                achievements = EXCLUDED.achievements;
        """
        try:
            conn.execute(sql, db_utils.profile_to_db_params(profile))
        except duckdb.Error as e:
            logger.error(f"Error saving profile {profile.user_id}: {e}")
            raise ProfileOperationError(
                f"Failed to save profile: {e}", original_exception=e
            ) from e
        return profile

    # --- Statistics ---
    def get_database_stats(self) -> Dict[str, Any]:
        """
        Row counts for every table plus the number of distinct archetypes.

        Returns:
            dict: Keys `total_cards`, `total_user_decks`,
            `total_tournament_decks`, `total_meta_sets`, `archetypes`.
        """
        conn = self.get_connection()
        sql = """
            SELECT
                (SELECT COUNT(*) FROM cards) AS total_cards,
                (SELECT COUNT(*) FROM user_decks) AS total_user_decks,
                (SELECT COUNT(*) FROM tournament_decks) AS total_tournament_decks,
                (SELECT COUNT(*) FROM meta_sets) AS total_meta_sets,
                (SELECT COUNT(DISTINCT archetype) FROM tournament_decks) AS archetypes;
        """
        try:
            rows = _rows_to_dicts(conn.execute(sql))
        except duckdb.Error as e:
            logger.error(f"Error fetching database stats: {e}")
            raise DatabaseError(
                f"Failed to fetch database stats: {e}", original_exception=e
            ) from e
        return rows[0]
