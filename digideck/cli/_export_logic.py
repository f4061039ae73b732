"""
Writes decks as Markdown listings. Called by the `deck markdown` command.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Set

from digideck.legality import egg_deck_count, main_deck_count, validate_deck
from digideck.models import DeckCard, UserDeck

logger = logging.getLogger(__name__)


def _safe_file_stem(name: str) -> str:
    stem = "".join(c for c in name if c.isalnum() or c in (" ", "_", "-")).strip()
    return stem or "unnamed_deck"


def _write_section(f, title: str, count: int, cards: List[DeckCard]) -> None:
    f.write(f"## {title} ({count})\n\n")
    if not cards:
        f.write("_empty_\n\n")
        return
    for entry in sorted(cards, key=lambda c: (c.number, c.name)):
        f.write(f"- {entry.quantity}x {entry.name} (`{entry.number}`)\n")
    f.write("\n")


def deck_to_markdown_file(
    deck: UserDeck, output_dir: Path, file_stem: Optional[str] = None
) -> Path:
    """Write one deck to `<output_dir>/<file_stem or deck name>.md` and return the path."""
    file_path = output_dir / f"{file_stem or _safe_file_stem(deck.name)}.md"
    main = [c for c in deck.cards if not c.is_digitama]
    eggs = [c for c in deck.cards if c.is_digitama]
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(f"# Deck: {deck.name}\n\n")
        if deck.description:
            f.write(f"{deck.description}\n\n")
        f.write(f"**Format:** {deck.format}\n\n")
        _write_section(f, "Main Deck", main_deck_count(deck.cards), main)
        _write_section(f, "Digi-Egg Deck", egg_deck_count(deck.cards), eggs)
        problems = validate_deck(deck.cards)
        if problems:
            f.write("## Problems\n\n")
            for problem in problems:
                f.write(f"- {problem}\n")
            f.write("\n")
    return file_path


def export_to_markdown(decks: Sequence[UserDeck], output_dir: Path) -> List[Path]:
    """
    Export decks into Markdown files, one file per deck.

    A deck that cannot be written is logged and skipped. Decks sharing a
    name get the first 8 characters of their id appended to the file name.

    Raises:
        IOError: If the output directory cannot be created.
    """
    logger.info(f"Starting Markdown export to directory: {output_dir}")
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Could not create output directory {output_dir}: {e}")
        raise IOError(f"Failed to create output directory: {e}") from e

    if not decks:
        logger.warning("No decks to export.")
        return []

    written = []
    used_stems: Set[str] = set()
    for deck in decks:
        stem = _safe_file_stem(deck.name)
        if stem.lower() in used_stems:
            stem = f"{stem}_{str(deck.deck_id)[:8]}"
        used_stems.add(stem.lower())
        try:
            written.append(deck_to_markdown_file(deck, output_dir, stem))
        except OSError as e:
            logger.error(f"Could not write deck '{deck.name}': {e}")
    logger.info(f"Markdown export complete. Exported {len(written)} of {len(decks)} deck(s).")
    return written
