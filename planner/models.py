"""
Pydantic models for planner catalog and build data.

Catalog models (Item, ItemShape) describe the read-only item database. Build
models (PlacedTile, TrinketEquip, BuildState) are the unit of undo history and
share-code serialization, so they are frozen and their scalar fields validate
strictly: a share payload with a string where an int belongs is rejected, not
coerced.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictInt, StrictStr


ItemCategory = Literal["hero", "weapon", "armor", "accessory", "consumable", "trinket"]

ITEM_CATEGORIES: list[str] = [
    "hero",
    "weapon",
    "armor",
    "accessory",
    "consumable",
    "trinket",
]

Rotation = Literal[0, 90, 180, 270]
Level = Literal[1, 2, 3]
SlotIndex = Literal[0, 1, 2]
HalfIndex = Literal[0, 1]

# Only share payloads tagged with this version are accepted.
BUILD_VERSION = 1


def _require_int(value):
    """Reject bools, floats and strings before Literal matching can coerce them."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("must be an integer")
    return value


WireRotation = Annotated[Rotation, BeforeValidator(_require_int)]
WireLevel = Annotated[Level, BeforeValidator(_require_int)]
WireSlot = Annotated[SlotIndex, BeforeValidator(_require_int)]
WireHalf = Annotated[HalfIndex, BeforeValidator(_require_int)]
WireVersion = Annotated[Literal[1], BeforeValidator(_require_int)]


class ItemShape(BaseModel):
    """
    Polyomino footprint of an item.

    cells are (dx, dy) offsets relative to the item's anchor. Rotation is
    performed about pivot, which need not be one of the cells.
    """
    cells: list[tuple[int, int]]
    pivot: tuple[int, int] = (0, 0)
    rotatable: bool = True


class ItemModifiers(BaseModel):
    """Numeric rule modifiers granted by an item."""
    weaponCapBonus: int | None = None


class Item(BaseModel):
    """
    A catalog entry: a placeable item or a trinket.

    Loaded once from the catalog JSON and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: ItemCategory
    tags: list[str] = Field(default_factory=list)
    shape: ItemShape = Field(default_factory=lambda: ItemShape(cells=[(0, 0)]))
    rulesText: str = ""
    icon: str = ""
    isUnique: bool = False
    isHalfTrinket: bool = False
    modifiers: ItemModifiers | None = None


class PlacedTile(BaseModel):
    """
    An item instance placed on the grid.

    (x, y) is the anchor cell; rot is the clockwise rotation in degrees.
    """
    model_config = ConfigDict(frozen=True)

    instanceId: StrictStr
    itemId: StrictStr
    x: StrictInt
    y: StrictInt
    rot: WireRotation = 0
    level: WireLevel | None = None


class TrinketEquip(BaseModel):
    """
    One half of a trinket slot.

    A full trinket is stored as two entries (half 0 and half 1) with the same
    itemId; half trinkets occupy a single entry.
    """
    model_config = ConfigDict(frozen=True)

    slot: WireSlot
    half: WireHalf
    itemId: StrictStr


class BuildState(BaseModel):
    """
    The versioned, shareable build: unlocked cells, placed tiles and trinkets.

    Serialized with the short key "v" for the version tag.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: WireVersion = Field(default=BUILD_VERSION, alias="v")
    heroId: StrictStr | None = None
    unlocked: list[StrictInt] = Field(default_factory=list)
    placed: list[PlacedTile] = Field(default_factory=list)
    trinkets: list[TrinketEquip] = Field(default_factory=list)
