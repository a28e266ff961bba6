"""
Item catalog loading and lookup.

The catalog is two read-only collections (general items and trinkets) loaded
once from JSON. Catalog is the single id -> Item resolution interface the rest
of the planner depends on; the library helpers below back item pickers.
"""

import json
import logging
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

from planner.models import Item, TrinketEquip


logger = logging.getLogger(__name__)


DATA_DIR = Path(__file__).parent.parent / "data"
ITEMS_PATH = DATA_DIR / "items.json"
TRINKETS_PATH = DATA_DIR / "trinkets.json"


class Catalog:
    """Merged lookup over items and trinkets, indexed by id."""

    def __init__(self, items: Iterable[Item], trinkets: Iterable[Item] = ()):
        self._items = list(items)
        self._trinkets = list(trinkets)
        self._by_id: dict[str, Item] = {}
        for item in self._items + self._trinkets:
            self._by_id[item.id] = item

    @property
    def items(self) -> list[Item]:
        return list(self._items)

    @property
    def trinkets(self) -> list[Item]:
        return list(self._trinkets)

    def get(self, item_id: str) -> Item | None:
        return self._by_id.get(item_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def by_category(self, category: str) -> list[Item]:
        return [item for item in self._items + self._trinkets if item.category == category]


# ============================================================================
# Data Loading
# ============================================================================

def _read_items(path: Path) -> list[Item]:
    """Read a JSON list of item records. Raises on unreadable or invalid data."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return [Item.model_validate(entry) for entry in raw]


@lru_cache(maxsize=1)
def _default_catalog() -> Catalog:
    """Bundled catalog. Cached so we only read once."""
    return load_catalog(ITEMS_PATH, TRINKETS_PATH)


def load_catalog(items_path: Path | None = None, trinkets_path: Path | None = None) -> Catalog:
    """
    Load a catalog from JSON files.

    With no paths, returns the cached bundled catalog. A single path override
    falls back to the bundled file for the other collection.
    """
    if items_path is None and trinkets_path is None:
        return _default_catalog()

    items = _read_items(Path(items_path or ITEMS_PATH))
    trinkets = _read_items(Path(trinkets_path or TRINKETS_PATH))
    logger.info("Loaded catalog: %d items, %d trinkets", len(items), len(trinkets))
    return Catalog(items, trinkets)


# ============================================================================
# Library Helpers
# ============================================================================

def all_tags(items: Iterable[Item]) -> list[str]:
    """Every tag used by the given items, sorted."""
    tags: set[str] = set()
    for item in items:
        tags.update(item.tags)
    return sorted(tags)


def filter_items(
    items: Iterable[Item],
    search: str = "",
    category: str = "all",
    tags: Iterable[str] = (),
) -> list[Item]:
    """
    Filter items for the library view.

    search is a case-insensitive substring of the name, category "all" keeps
    every category, and an item must carry every requested tag.
    """
    needle = search.strip().lower()
    wanted = set(tags)

    results = []
    for item in items:
        if needle and needle not in item.name.lower():
            continue
        if category != "all" and item.category != category:
            continue
        if not wanted.issubset(item.tags):
            continue
        results.append(item)
    return results


def trinket_options(
    trinkets: Iterable[Item],
    equips: Iterable[TrinketEquip],
    slot: int,
    half: int,
) -> list[Item]:
    """
    Trinkets that may be added to an empty half of a slot.

    Once the other half is occupied only half trinkets fit, and the same half
    trinket already sitting in the other half is not offered again.
    """
    trinkets = list(trinkets)
    lookup = {t.id: t for t in trinkets}
    other = next(
        (e for e in equips if e.slot == slot and e.half == 1 - half),
        None,
    )

    if other is None:
        return trinkets

    other_item = lookup.get(other.itemId)
    options = []
    for candidate in trinkets:
        if not candidate.isHalfTrinket:
            continue
        if other_item is not None and other_item.isHalfTrinket and candidate.id == other.itemId:
            continue
        options.append(candidate)
    return options
