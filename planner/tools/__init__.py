# Deterministic planner components: geometry, catalog, validation, store,
# drag session and share codec.

from planner.tools.polyomino import (
    ROTATIONS,
    Cell,
    BoundingBox,
    rotate_offset,
    occupied_cells,
    item_cells,
    normalize_cells,
    bounding_box,
    next_rotation,
)

from planner.tools.catalog import (
    Catalog,
    load_catalog,
    filter_items,
    all_tags,
    trinket_options,
)

from planner.tools.validator import (
    Issue,
    ValidationResult,
    BuildValidator,
    validate_build,
    new_error_ids,
    format_validation_report,
)

from planner.tools.build_store import BuildStore, Snapshot

from planner.tools.drag_session import (
    DragSession,
    DragState,
    DropResult,
    PointerEvent,
)

from planner.tools.share_codec import (
    BUILD_PARAM,
    encode_build,
    decode_build,
    canonicalize,
)

__all__ = [
    # Geometry
    "ROTATIONS",
    "Cell",
    "BoundingBox",
    "rotate_offset",
    "occupied_cells",
    "item_cells",
    "normalize_cells",
    "bounding_box",
    "next_rotation",
    # Catalog
    "Catalog",
    "load_catalog",
    "filter_items",
    "all_tags",
    "trinket_options",
    # Validation
    "Issue",
    "ValidationResult",
    "BuildValidator",
    "validate_build",
    "new_error_ids",
    "format_validation_report",
    # Build store
    "BuildStore",
    "Snapshot",
    # Drag session
    "DragSession",
    "DragState",
    "DropResult",
    "PointerEvent",
    # Share codec
    "BUILD_PARAM",
    "encode_build",
    "decode_build",
    "canonicalize",
]
