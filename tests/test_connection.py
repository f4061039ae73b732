from unittest.mock import MagicMock, patch

import duckdb

from digideck.db.connection import ConnectionHandler


def test_memory_path_any_case():
    handler = ConnectionHandler(":MEMORY:")
    assert handler.is_memory
    handler.get_connection()
    assert handler.is_new_db
    handler.close_connection()


def test_file_database_is_new_only_once(tmp_path):
    db_file = tmp_path / "nested" / "store.db"
    with ConnectionHandler(db_file) as conn:
        conn.execute("CREATE TABLE t (x INTEGER);")
    handler = ConnectionHandler(db_file)
    handler.get_connection()
    assert handler.is_new_db is False
    handler.close_connection()


def test_close_then_reconnect(tmp_path):
    handler = ConnectionHandler(tmp_path / "store.db")
    first = handler.get_connection()
    assert handler.get_connection() is first
    handler.close_connection()
    handler.close_connection()
    assert handler.get_connection() is not first
    handler.close_connection()


@patch("digideck.db.connection.duckdb.connect")
def test_close_error_is_logged(mock_connect, caplog):
    connection = MagicMock()
    connection.close.side_effect = duckdb.Error("locked")
    mock_connect.return_value = connection
    handler = ConnectionHandler(":memory:")
    handler.get_connection()

    handler.close_connection()

    assert "Error closing the deck store: locked" in caplog.text
    handler.get_connection()
    assert mock_connect.call_count == 2
