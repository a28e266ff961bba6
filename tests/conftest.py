import pytest

from planner.config import PlannerConfig
from planner.models import Item, ItemModifiers, ItemShape
from planner.tools.build_store import BuildStore
from planner.tools.catalog import Catalog


def _item(item_id: str, category: str, cells, pivot=(0, 0), **extra) -> Item:
    return Item(
        id=item_id,
        name=item_id.replace("-", " ").title(),
        category=category,
        shape=ItemShape(cells=cells, pivot=pivot),
        **extra,
    )


@pytest.fixture
def catalog() -> Catalog:
    items = [
        _item("dagger", "weapon", [(0, 0)], tags=["melee"]),
        _item("bow", "weapon", [(0, 0), (0, 1)], tags=["ranged"]),
        _item("excalibur", "weapon", [(0, 0), (0, 1), (0, 2)], pivot=(0, 1), isUnique=True),
        _item("plank", "armor", [(0, 0), (1, 0)], tags=["light"]),
        _item("l-plate", "armor", [(0, 0), (1, 0), (2, 0), (2, 1)], pivot=(1, 0)),
        _item("coin", "accessory", [(0, 0)]),
        Item(
            id="anvil",
            name="Anvil",
            category="armor",
            shape=ItemShape(cells=[(0, 0), (1, 0)], rotatable=False),
        ),
    ]
    trinkets = [
        _item("shield-ring", "trinket", [(0, 0)]),
        _item("war-banner", "trinket", [(0, 0)], modifiers=ItemModifiers(weaponCapBonus=1)),
        _item("heart-locket", "trinket", [(0, 0)], isUnique=True),
        _item("ember-charm", "trinket", [(0, 0)], isHalfTrinket=True),
        _item("frost-charm", "trinket", [(0, 0)], isHalfTrinket=True),
        _item(
            "banner-shard",
            "trinket",
            [(0, 0)],
            isHalfTrinket=True,
            modifiers=ItemModifiers(weaponCapBonus=1),
        ),
        _item("sun-sigil", "trinket", [(0, 0)], isHalfTrinket=True, isUnique=True),
    ]
    return Catalog(items, trinkets)


@pytest.fixture
def config() -> PlannerConfig:
    return PlannerConfig()


@pytest.fixture
def store(config: PlannerConfig) -> BuildStore:
    return BuildStore(config)
