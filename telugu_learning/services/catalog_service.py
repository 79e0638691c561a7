"""
Letter catalog and level configuration for the reading track

The catalog is static reference data: it is loaded once from the bundled
JSON file and never mutated afterwards. Core game functions receive the
catalog (or a pool taken from it) as an argument.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from telugu_learning.schemas.letters import LetterEntry, LevelConfig

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).resolve().parent.parent / "content"
READING_LEVEL1_PATH = CONTENT_DIR / "reading_level1.json"


class LetterCatalog:
    """Immutable collection of learnable letters"""

    def __init__(
        self,
        letters: Iterable[LetterEntry],
        similar_glyphs: Optional[Mapping[str, Sequence[str]]] = None
    ):
        entries = tuple(letters)
        by_id: Dict[str, LetterEntry] = {}
        for entry in entries:
            if entry.id in by_id:
                raise ValueError(f"Duplicate letter id: {entry.id}")
            by_id[entry.id] = entry

        self._letters = entries
        self._by_id = by_id
        self._similar = {
            glyph: tuple(others) for glyph, others in (similar_glyphs or {}).items()
        }

    def __len__(self) -> int:
        return len(self._letters)

    def __iter__(self):
        return iter(self._letters)

    def all(self) -> Tuple[LetterEntry, ...]:
        return self._letters

    def get(self, letter_id: str) -> Optional[LetterEntry]:
        return self._by_id.get(letter_id)

    def get_by_difficulty(self, tier: int) -> Tuple[LetterEntry, ...]:
        """Letters of one difficulty tier, in catalog order (empty for unknown tiers)"""
        return tuple(entry for entry in self._letters if entry.difficulty_tier == tier)

    def by_category(self, category: str) -> Tuple[LetterEntry, ...]:
        return tuple(entry for entry in self._letters if entry.category == category)

    def similar_glyphs(self, glyph: str) -> Tuple[str, ...]:
        """
        Glyphs that look like the given one

        Reference data for callers that want to show look-alike letters
        side by side; distractors are chosen by difficulty tier instead.
        """
        return self._similar.get(glyph, ())


def _read_content(path: Path) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_catalog(path: Optional[Path] = None) -> LetterCatalog:
    """Build a catalog from a content file (the bundled level 1 letters by default)"""
    data = _read_content(path or READING_LEVEL1_PATH)
    letters = [LetterEntry.model_validate(item) for item in data.get("letters", [])]
    catalog = LetterCatalog(letters, data.get("similar_glyphs"))
    logger.debug("Loaded %d letters from %s", len(catalog), path or READING_LEVEL1_PATH)
    return catalog


def load_level_config(path: Optional[Path] = None) -> LevelConfig:
    data = _read_content(path or READING_LEVEL1_PATH)
    return LevelConfig.model_validate(data["level"])


@lru_cache()
def get_catalog() -> LetterCatalog:
    return load_catalog()


@lru_cache()
def get_level_configs() -> Dict[int, LevelConfig]:
    config = load_level_config()
    return {config.level: config}


def get_level_config(level: int) -> Optional[LevelConfig]:
    return get_level_configs().get(level)
