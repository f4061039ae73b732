"""
Centralized configuration management for the digideck application.
"""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Path Configuration ---

def get_default_db_path() -> Path:
    """Returns the default path for the database file, ensuring the directory exists."""
    default_dir = Path.home() / ".digideck"
    default_dir.mkdir(parents=True, exist_ok=True)
    return default_dir / "digideck.db"


class Settings(BaseSettings):
    """
    Application settings, loaded from DIGIDECK_* environment variables or a
    .env file.
    """
    model_config = SettingsConfigDict(
        env_prefix="DIGIDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Core Paths ---
    db_path: Path = get_default_db_path()

    # --- User Configuration ---
    # Owner of locally authored decks and of the tamer profile.
    user_id: str = "local-tamer"

    # --- Card catalogue ---
    card_api_url: str = "https://www.digimoncard.io/api-public/search.php?sort=name"
    card_image_url: str = "https://images.digimoncard.io/images/cards/{card_id}.jpg"
    cards_per_page: int = Field(default=20, ge=1)

    # --- Meta scraping ---
    meta_base_url: str = (
        "https://digimonmeta.com/deck-list/"
        "decklist-jp-cn-en-ex9-versus-monsters-bt22-cyber-eden/"
    )
    meta_deck_list_root: str = "https://digimonmeta.com/deck-list/"
    request_timeout: float = 30.0
    page_delay_seconds: float = 1.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )

    # --- Testing Configuration ---
    # When True, disables the safety check that refuses to recreate a
    # populated database. Never enable outside tests.
    testing_mode: bool = False


# Create a singleton instance of the settings
settings = Settings()
