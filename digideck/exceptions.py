from typing import Optional


class DatabaseError(Exception):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class CardOperationError(DatabaseError):
    """Raised for errors during card operations (CRUD)."""

    pass


class DeckOperationError(DatabaseError):
    """Indicates an error during a user-deck database operation."""

    pass


class MetaOperationError(DatabaseError):
    """Indicates an error while storing or reading tournament meta data."""

    pass


class ProfileOperationError(DatabaseError):
    """Indicates an error while loading or saving a tamer profile."""

    pass


class MarshallingError(DatabaseError):
    """Indicates an error during data conversion between application models
    and DB format."""

    pass


class DeckNotFoundError(DatabaseError):
    """Raised when a specified deck is not found."""

    pass


class ScrapeError(Exception):
    """Raised when a remote page or API cannot be fetched or decoded."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class DeckLegalityError(ValueError):
    """Raised when a card cannot be added to a deck under the deck rules."""

    def __init__(self, verdict, card_number: str, message: str):
        super().__init__(message)
        self.verdict = verdict
        self.card_number = card_number


class PageNotFoundError(ScrapeError):
    """Raised when a remote page answers 404; ends pagination."""

    pass
