import duckdb
import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def _resolve(db_path: Union[str, Path]) -> Path:
    if isinstance(db_path, str) and db_path.lower() == MEMORY_DB:
        return Path(MEMORY_DB)
    return Path(db_path).expanduser().resolve()


class ConnectionHandler:
    """
    Lazily opens the deck store's DuckDB connection.

    `is_new_db` is set when the connection opens, so the facade can create
    the schema for a database file that did not exist yet.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        self.db_path_resolved: Path = _resolve(db_path)
        self.read_only: bool = read_only
        self.is_new_db: bool = False
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        logger.info(f"Deck store location: {self.db_path_resolved}")

    @property
    def is_memory(self) -> bool:
        return str(self.db_path_resolved) == MEMORY_DB

    def _connect(self) -> duckdb.DuckDBPyConnection:
        if self.is_memory:
            self.is_new_db = True
        else:
            self.is_new_db = not self.db_path_resolved.exists()
            self.db_path_resolved.parent.mkdir(parents=True, exist_ok=True)
        try:
            connection = duckdb.connect(
                database=str(self.db_path_resolved), read_only=self.read_only
            )
        except duckdb.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to database: {e}", original_exception=e
            ) from e
        mode = "read-only" if self.read_only else "read-write"
        logger.info(f"Opened {mode} deck store ({'new' if self.is_new_db else 'existing'}).")
        return connection

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Raises:
            DatabaseConnectionError: If DuckDB cannot open the file.
        """
        if self._connection is None:
            self._connection = self._connect()
        return self._connection

    def close_connection(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            connection.close()
            logger.info(f"Closed deck store {self.db_path_resolved}.")
        except duckdb.Error as e:
            logger.error(f"Error closing the deck store: {e}")

    def __enter__(self) -> duckdb.DuckDBPyConnection:
        return self.get_connection()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()
