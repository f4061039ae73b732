"""
Database schema for the digideck store, kept apart from the connection and
query code.

Deck lists, profile stats and achievements are stored as JSON text
produced by pydantic; everything queried or filtered on gets a column.
"""

DB_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS cards (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        image VARCHAR,
        type VARCHAR NOT NULL,
        colors VARCHAR[],
        level INTEGER,
        play_cost INTEGER,
        evolution_cost INTEGER,
        dp INTEGER,
        rarity VARCHAR,
        set_names VARCHAR[],
        card_number VARCHAR NOT NULL,
        effects VARCHAR,
        keywords VARCHAR[],
        traits VARCHAR[],
        attribute VARCHAR,
        form VARCHAR,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL,
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL
    );

    CREATE TABLE IF NOT EXISTS user_decks (
        deck_id UUID PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        description VARCHAR,
        format VARCHAR NOT NULL,
        cards VARCHAR NOT NULL,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL,
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL
    );

    CREATE TABLE IF NOT EXISTS tournament_decks (
        deck_id UUID PRIMARY KEY,
        name VARCHAR NOT NULL,
        archetype VARCHAR NOT NULL,
        player VARCHAR NOT NULL,
        placement INTEGER NOT NULL CHECK (placement >= 1),
        region VARCHAR NOT NULL,
        tournament VARCHAR NOT NULL,
        format VARCHAR NOT NULL,
        colors VARCHAR[],
        event_date DATE NOT NULL,
        cards VARCHAR NOT NULL,
        total_cards INTEGER NOT NULL,
        set_name VARCHAR,
        set_id VARCHAR,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL
    );

    CREATE TABLE IF NOT EXISTS meta_sets (
        set_id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        total_decks INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP WITH TIME ZONE NOT NULL,
        updated_at TIMESTAMP WITH TIME ZONE NOT NULL
    );

    CREATE TABLE IF NOT EXISTS profiles (
        user_id VARCHAR PRIMARY KEY,
        nickname VARCHAR,
        join_date TIMESTAMP WITH TIME ZONE NOT NULL,
        total_activity INTEGER NOT NULL DEFAULT 0,
        stats VARCHAR NOT NULL,
        achievements VARCHAR NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_user_decks_user_id ON user_decks (user_id);
    CREATE INDEX IF NOT EXISTS idx_tournament_decks_set_id ON tournament_decks (set_id);
    CREATE INDEX IF NOT EXISTS idx_tournament_decks_archetype ON tournament_decks (archetype);
"""

TABLE_NAMES = ("cards", "user_decks", "tournament_decks", "meta_sets", "profiles")
