"""
Pointer-driven drag session for placing and repositioning tiles.

A DragSession is a small state machine fed with pointer events by the caller:

    idle --(library press)-----------------------> dragging
    idle --(tile press)--> pressed --(move past threshold)--> dragging
    pressed/dragging --(release | cancel)--> idle

The session never touches the build store. On a release with a usable anchor
it hands a DropResult to on_drop, and the owner decides which store edits to
make. A press on a tile that is released before moving past the threshold is
reported to on_select instead.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Literal, Protocol

from planner.tools.polyomino import Cell, RotateDirection, next_rotation


logger = logging.getLogger(__name__)


DEFAULT_DRAG_THRESHOLD = 6.0

PRIMARY_BUTTON = 0

DragKind = Literal["none", "library", "reposition"]
ReleaseOutcome = Literal["drop", "rejected", "select", "ignored"]


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event in screen space."""
    pointer_id: int
    x: float
    y: float
    button: int = PRIMARY_BUTTON


class PointerCaptureTarget(Protocol):
    """Element that can route a pointer's events to itself until released."""

    def set_pointer_capture(self, pointer_id: int) -> None: ...

    def release_pointer_capture(self, pointer_id: int) -> None: ...


@dataclass(frozen=True)
class TileOrigin:
    """Where a repositioned tile sat before the drag."""
    x: int
    y: int
    rotation: int


@dataclass(frozen=True)
class DragState:
    """Snapshot of the gesture in progress."""
    kind: DragKind = "none"
    item_id: str | None = None
    instance_id: str | None = None
    origin: TileOrigin | None = None
    pointer: tuple[float, float] = (0.0, 0.0)
    rotation: int = 0
    anchor: Cell | None = None

    @property
    def is_dragging(self) -> bool:
        return self.kind != "none"


@dataclass(frozen=True)
class DropResult:
    """Final gesture handed to the owner on a successful release."""
    kind: DragKind
    item_id: str | None
    instance_id: str | None
    anchor: Cell
    rotation: int


IDLE = DragState()


@dataclass
class _PendingPress:
    """A tile press waiting to cross the movement threshold."""
    instance_id: str
    item_id: str | None
    origin: TileOrigin
    start: tuple[float, float]


class DragSession:
    """
    Tracks one drag gesture at a time.

    Only events from the pointer that started the gesture are accepted while
    it is active. Every public method is safe to call in any state; calls that
    make no sense for the current state do nothing.
    """

    def __init__(
        self,
        on_drop: Callable[[DropResult], None] | None = None,
        on_select: Callable[[str], None] | None = None,
        threshold: float = DEFAULT_DRAG_THRESHOLD,
    ):
        self.on_drop = on_drop
        self.on_select = on_select
        self.threshold = threshold

        self._state = IDLE
        self._pending: _PendingPress | None = None
        self._pointer_id: int | None = None
        self._capture: PointerCaptureTarget | None = None
        self._suppress_click = False

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state.is_dragging

    @property
    def is_pressed(self) -> bool:
        """A tile press is waiting on the movement threshold."""
        return self._pending is not None

    @property
    def is_active(self) -> bool:
        return self.is_dragging or self.is_pressed

    # ========================================================================
    # Pointer Capture
    # ========================================================================

    # Pointer capture is best effort; failures are logged, never raised.

    def _acquire(self, event: PointerEvent, capture: PointerCaptureTarget | None) -> None:
        self._pointer_id = event.pointer_id
        self._capture = capture
        if capture is None:
            return
        try:
            capture.set_pointer_capture(event.pointer_id)
        except Exception as e:
            logger.warning("Could not capture pointer %d: %s", event.pointer_id, e)

    def _release_capture(self) -> None:
        capture, pointer_id = self._capture, self._pointer_id
        self._capture = None
        self._pointer_id = None
        if capture is None or pointer_id is None:
            return
        try:
            capture.release_pointer_capture(pointer_id)
        except Exception as e:
            logger.warning("Could not release pointer %d: %s", pointer_id, e)

    def _accepts(self, event: PointerEvent) -> bool:
        return self._pointer_id is None or event.pointer_id == self._pointer_id

    def _end(self) -> None:
        self._pending = None
        self._state = IDLE
        self._release_capture()

    # ========================================================================
    # Starting
    # ========================================================================

    def begin_library_drag(
        self,
        item_id: str,
        event: PointerEvent,
        capture: PointerCaptureTarget | None = None,
    ) -> bool:
        """Start dragging a new item from the library. Primary button only."""
        if event.button != PRIMARY_BUTTON or self.is_active:
            return False

        self._acquire(event, capture)
        self._suppress_click = False
        self._state = DragState(
            kind="library",
            item_id=item_id,
            pointer=(event.x, event.y),
            rotation=0,
        )
        logger.debug("Library drag started: %s", item_id)
        return True

    def press_tile(
        self,
        instance_id: str,
        x: int,
        y: int,
        rotation: int,
        event: PointerEvent,
        item_id: str | None = None,
        capture: PointerCaptureTarget | None = None,
    ) -> bool:
        """
        Press an already placed tile.

        No drag starts until the pointer moves past the threshold, so a plain
        click still selects.
        """
        if event.button != PRIMARY_BUTTON or self.is_active:
            return False

        self._acquire(event, capture)
        self._suppress_click = False
        self._pending = _PendingPress(
            instance_id=instance_id,
            item_id=item_id,
            origin=TileOrigin(x, y, rotation),
            start=(event.x, event.y),
        )
        return True

    # ========================================================================
    # While Active
    # ========================================================================

    def move(self, event: PointerEvent) -> bool:
        """Track the pointer. Returns True if the drag state changed."""
        if not self.is_active or not self._accepts(event):
            return False

        if self._pending is not None:
            sx, sy = self._pending.start
            if math.hypot(event.x - sx, event.y - sy) <= self.threshold:
                return False

            pending = self._pending
            self._pending = None
            self._state = DragState(
                kind="reposition",
                item_id=pending.item_id,
                instance_id=pending.instance_id,
                origin=pending.origin,
                pointer=(event.x, event.y),
                rotation=pending.origin.rotation,
            )
            logger.debug("Reposition drag started: %s", pending.instance_id)
            return True

        self._state = replace(self._state, pointer=(event.x, event.y))
        return True

    def set_anchor(self, anchor: Cell | None, event: PointerEvent | None = None) -> None:
        """
        Set the cell under the pointer, or None when off the board.

        When the event the anchor was resolved from is passed, anchors from
        any pointer other than the captured one are ignored.
        """
        if not self.is_dragging:
            return
        if event is not None and not self._accepts(event):
            return
        self._state = replace(self._state, anchor=anchor)

    def rotate(self, direction: RotateDirection = "cw") -> None:
        if self.is_dragging:
            self._state = replace(self._state, rotation=next_rotation(self._state.rotation, direction))

    # ========================================================================
    # Ending
    # ========================================================================

    def release(self, event: PointerEvent, valid: bool = True) -> ReleaseOutcome:
        """
        Finish the gesture.

        "drop": on_drop was called with the final placement.
        "rejected": the anchor was off the board or the caller marked it
            invalid; nothing should change.
        "select": a tile press ended below the threshold; on_select was called.
        "ignored": no gesture, or a different pointer.

        After "drop" and "select" the click the browser synthesizes from this
        press is suppressed (see consume_click).
        """
        if not self.is_active or not self._accepts(event):
            return "ignored"

        if self._pending is not None:
            instance_id = self._pending.instance_id
            self._end()
            self._suppress_click = True
            if self.on_select is not None:
                self.on_select(instance_id)
            return "select"

        state = replace(self._state, pointer=(event.x, event.y))
        self._end()

        if state.anchor is None or not valid:
            logger.debug("Drag released without a valid anchor")
            return "rejected"

        self._suppress_click = True
        result = DropResult(
            kind=state.kind,
            item_id=state.item_id,
            instance_id=state.instance_id,
            anchor=state.anchor,
            rotation=state.rotation,
        )
        if self.on_drop is not None:
            self.on_drop(result)
        return "drop"

    def cancel(self, event: PointerEvent | None = None) -> bool:
        """Abort the gesture with no result."""
        if not self.is_active:
            return False
        if event is not None and not self._accepts(event):
            return False
        self._end()
        logger.debug("Drag cancelled")
        return True

    def consume_click(self) -> bool:
        """True, once, if the click following the last release should be ignored."""
        suppressed = self._suppress_click
        self._suppress_click = False
        return suppressed
