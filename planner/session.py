"""
Planner session: wires the build store, validator and drag session together.

Responsibilities:
- Turn pointer events into drag state (pointer -> grid cell via the board rect)
- Compute live placement previews by validating a speculative build
- Apply finished drags to the store
- Load and produce share codes
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from planner.config import PlannerConfig
from planner.models import BuildState, PlacedTile
from planner.tools.build_store import BuildStore
from planner.tools.catalog import Catalog, load_catalog
from planner.tools.drag_session import (
    DragSession,
    DragState,
    DropResult,
    PointerCaptureTarget,
    PointerEvent,
    ReleaseOutcome,
)
from planner.tools.grid import BoardRect, pointer_to_cell
from planner.tools.polyomino import Cell, RotateDirection, item_cells
from planner.tools.share_codec import decode_build, encode_build
from planner.tools.validator import BuildValidator, Issue, ValidationResult, new_error_ids


logger = logging.getLogger(__name__)


# Stand-in instance id for a library item that has not been placed yet.
PREVIEW_INSTANCE_ID = "__preview__"


@dataclass
class PlacementPreview:
    """
    Live legality of the tile being dragged.

    new_errors holds only the errors the drop would introduce; errors the
    committed build already has do not block it.
    """
    instance_id: str | None = None
    cells: list[Cell] = field(default_factory=list)
    new_errors: list[Issue] = field(default_factory=list)
    legal: bool = False


class PlannerSession:
    """
    One planner editing session over a catalog.

    The catalog defaults to the one named in the config (or the bundled one).
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        config: PlannerConfig | None = None,
        on_change: Callable[[BuildStore], None] | None = None,
    ):
        self.config = config or PlannerConfig()
        self.catalog = catalog or load_catalog(self.config.items_path, self.config.trinkets_path)
        self.store = BuildStore(self.config, on_change=on_change)
        self.validator = BuildValidator(
            self.catalog,
            self.config.grid_width,
            self.config.grid_height,
        )
        self.drag = DragSession(
            on_drop=self._apply_drop,
            on_select=self.store.select,
            threshold=self.config.drag_threshold,
        )

    # ========================================================================
    # Validation
    # ========================================================================

    def validate(self) -> ValidationResult:
        """Validate the committed build."""
        return self.validator.evaluate(self.store.get_build_state())

    def _speculative_state(self, state: DragState) -> tuple[BuildState, str] | None:
        """The build as it would be if the drag were dropped now."""
        if state.anchor is None:
            return None

        current = self.store.get_build_state()
        x, y = state.anchor

        if state.kind == "library" and state.item_id is not None:
            tile = PlacedTile(
                instanceId=PREVIEW_INSTANCE_ID,
                itemId=state.item_id,
                x=x,
                y=y,
                rot=state.rotation,
            )
            placed = [*current.placed, tile]
            return current.model_copy(update={"placed": placed}), PREVIEW_INSTANCE_ID

        if state.kind == "reposition" and state.instance_id is not None:
            if self.store.get_placed(state.instance_id) is None:
                return None
            placed = [
                p.model_copy(update={"x": x, "y": y, "rot": state.rotation})
                if p.instanceId == state.instance_id else p
                for p in current.placed
            ]
            return current.model_copy(update={"placed": placed}), state.instance_id

        return None

    def _drag_item_id(self, state: DragState) -> str | None:
        if state.kind == "reposition" and state.instance_id is not None:
            tile = self.store.get_placed(state.instance_id)
            return tile.itemId if tile else None
        return state.item_id

    def preview(self) -> PlacementPreview:
        """
        Legality of dropping the current drag at its anchor.

        Runs the validator against the committed build and against the
        speculative build, and keeps only error ids the drop would add.
        """
        state = self.drag.state
        speculative = self._speculative_state(state) if state.is_dragging else None
        if speculative is None:
            return PlacementPreview(instance_id=state.instance_id)

        next_state, instance_id = speculative
        item = self.catalog.get(self._drag_item_id(state) or "")
        cells = []
        if item is not None:
            cells = item_cells(item, state.anchor.x, state.anchor.y, state.rotation)

        baseline = self.validate()
        result = self.validator.evaluate(next_state)
        added = set(new_error_ids(baseline, result))

        return PlacementPreview(
            instance_id=instance_id,
            cells=cells,
            new_errors=[i for i in result.errors if i.id in added],
            legal=not added,
        )

    # ========================================================================
    # Drag Gestures
    # ========================================================================

    def start_library_drag(
        self,
        item_id: str,
        event: PointerEvent,
        capture: PointerCaptureTarget | None = None,
    ) -> bool:
        return self.drag.begin_library_drag(item_id, event, capture)

    def press_tile(
        self,
        instance_id: str,
        event: PointerEvent,
        capture: PointerCaptureTarget | None = None,
    ) -> bool:
        tile = self.store.get_placed(instance_id)
        if tile is None:
            return False
        return self.drag.press_tile(
            instance_id,
            tile.x,
            tile.y,
            tile.rot,
            event,
            item_id=tile.itemId,
            capture=capture,
        )

    def update_pointer(self, event: PointerEvent, rect: BoardRect) -> None:
        """
        Feed a pointer move and resolve the anchor cell under it.

        Moves from any pointer but the one driving the drag are ignored.
        """
        if self.drag.move(event) and self.drag.is_dragging:
            anchor = pointer_to_cell(
                event.x,
                event.y,
                rect,
                self.config.grid_width,
                self.config.grid_height,
            )
            self.drag.set_anchor(anchor, event)

    def rotate_drag(self, direction: RotateDirection = "cw") -> None:
        """Rotate the dragged item, unless its shape is fixed."""
        item = self.catalog.get(self._drag_item_id(self.drag.state) or "")
        if item is not None and not item.shape.rotatable:
            return
        self.drag.rotate(direction)

    def release(self, event: PointerEvent) -> ReleaseOutcome:
        """Finish the gesture; the drop is applied only if the preview is legal."""
        valid = self.preview().legal if self.drag.is_dragging else True
        return self.drag.release(event, valid=valid)

    def cancel(self, event: PointerEvent | None = None) -> bool:
        return self.drag.cancel(event)

    def _apply_drop(self, result: DropResult) -> None:
        if result.kind == "library" and result.item_id is not None:
            self.store.add_placed(result.item_id, result.anchor.x, result.anchor.y, result.rotation)
        elif result.kind == "reposition" and result.instance_id is not None:
            self.store.move_placed(result.instance_id, result.anchor.x, result.anchor.y, result.rotation)
            self.store.select(result.instance_id)

    # ========================================================================
    # Share Codes
    # ========================================================================

    def share_code(self) -> str:
        return encode_build(self.store.get_build_state())

    def load_share_code(self, code: str) -> bool:
        """Replace the build from a share code. Returns False if the code is invalid."""
        state = decode_build(code)
        if state is None:
            return False
        self.store.load_build_state(state)
        logger.info("Loaded shared build with %d tiles", len(state.placed))
        return True
