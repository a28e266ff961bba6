# Inventory build planner: placement geometry, build validation, undo history
# and share codes.
from planner.config import PlannerConfig, load_config
from planner.models import BuildState, Item, PlacedTile, TrinketEquip
from planner.session import PlacementPreview, PlannerSession

__all__ = [
    "PlannerConfig",
    "load_config",
    "BuildState",
    "Item",
    "PlacedTile",
    "TrinketEquip",
    "PlannerSession",
    "PlacementPreview",
]
