import duckdb
import logging

from .connection import ConnectionHandler
from . import schema
from ..exceptions import DatabaseConnectionError, SchemaInitializationError
from .. import config as digideck_config

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates, and on request recreates, the digideck tables."""

    def __init__(self, handler: ConnectionHandler):
        self._handler = handler

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Create all tables inside one transaction. Skipped for read-only file
        databases. `force_recreate_tables` drops every table first and
        deletes all existing data.

        Raises:
            SchemaInitializationError: If any DDL statement fails.
        """
        if self._handle_read_only_initialization(force_recreate_tables):
            return

        conn = self._handler.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                if force_recreate_tables:
                    self._recreate_tables(cursor)
                cursor.execute(schema.DB_SCHEMA_SQL)
                cursor.commit()
            logger.info(f"Database schema at {self._handler.db_path_resolved} initialized successfully (or already exists).")
        except duckdb.Error as e:
            logger.error(f"Error initializing database schema at {self._handler.db_path_resolved}: {e}")
            raise SchemaInitializationError(f"Failed to initialize schema: {e}", original_exception=e) from e

    def _handle_read_only_initialization(self, force_recreate_tables: bool) -> bool:
        """Returns True if initialization should be skipped."""
        if self._handler.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError("Cannot force_recreate_tables in read-only mode.")
            if not self._handler.is_memory:
                logger.warning("Attempting to initialize schema in read-only mode. Skipping.")
                return True
        return False

    def _perform_safety_check(self, cursor: duckdb.DuckDBPyConnection) -> None:
        """Refuse to drop tables that hold user-authored data."""
        if self._handler.is_memory or digideck_config.settings.testing_mode:
            return

        counts = {}
        for table in ("user_decks", "profiles"):
            try:
                row = cursor.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            except duckdb.CatalogException:
                # Table not created yet; nothing to lose.
                continue
            counts[table] = row[0] if row else 0

        if any(counts.values()):
            error_msg = (
                f"CRITICAL: Attempted to drop tables with existing data! {counts}. "
                "This would cause permanent data loss. Export your decks first."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

    def _recreate_tables(self, cursor: duckdb.DuckDBPyConnection) -> None:
        self._perform_safety_check(cursor)
        logger.warning(f"Forcing table recreation for {self._handler.db_path_resolved}. ALL EXISTING DATA WILL BE LOST.")
        for table in schema.TABLE_NAMES:
            cursor.execute(f"DROP TABLE IF EXISTS {table} CASCADE;")
