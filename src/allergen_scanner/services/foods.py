"""Static food reference store."""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from allergen_scanner.domain.foods import FoodRecord

DEFAULT_FOOD_DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "foods.json"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoodReferenceStore:
    """Read-only lookup of food records by name."""

    _records: dict[str, FoodRecord] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[FoodRecord]) -> "FoodReferenceStore":
        """Index records by their case-folded name."""
        return cls({_key(record.name): record for record in records})

    def lookup(self, name: str) -> FoodRecord | None:
        """Return the record whose name matches case-insensitively."""
        return self._records.get(_key(name))

    def names(self) -> list[str]:
        """Return the names of all known foods."""
        return sorted(record.name for record in self._records.values())


def load_food_records(path: Path | str | None = None) -> list[FoodRecord]:
    """Load food records from a JSON file."""
    resolved = Path(path) if path else DEFAULT_FOOD_DATA_PATH
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    records = [
        FoodRecord(
            name=str(entry["name"]),
            ingredients=tuple(str(item) for item in entry.get("ingredients", [])),
            nutritional_summary=entry.get("nutritional_summary", ""),
            region=entry.get("region", ""),
            history_note=entry.get("history_note", ""),
            image_hint=entry.get("image_hint", ""),
        )
        for entry in payload
    ]
    _logger.info("Loaded %s food records from %s", len(records), resolved)
    return records


def _key(name: str) -> str:
    return name.strip().casefold()
