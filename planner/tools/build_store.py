"""
Build store with snapshot-based undo/redo.

BuildStore owns the mutable build (unlocked cells, placed tiles, trinket
equips), the current selection and the editing mode. Every edit computes the
prospective next (unlocked, placed, trinkets), normalizes it into a Snapshot
and commits only if it differs from the current one: the old snapshot goes on
the undo stack and the redo stack is cleared. Edits that change nothing leave
history untouched.

Selection and mode are not undoable.
"""

import itertools
import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Literal

from planner.config import PlannerConfig
from planner.models import BuildState, PlacedTile, TrinketEquip
from planner.tools.grid import start_unlocked_indices
from planner.tools.polyomino import ROTATIONS, RotateDirection, next_rotation


logger = logging.getLogger(__name__)


BuildMode = Literal["build", "unlock"]

SLOTS = (0, 1, 2)
HALVES = (0, 1)

# Marks "leave the selection as it is" in _commit.
_KEEP = object()


@dataclass(frozen=True)
class Snapshot:
    """
    Canonical copy of the undoable state.

    Unlocked indices are sorted and de-duplicated, tiles sorted by instanceId,
    trinkets by slot then half, so equal builds compare equal regardless of
    insertion order.
    """
    unlocked: tuple[int, ...]
    placed: tuple[PlacedTile, ...]
    trinkets: tuple[TrinketEquip, ...]

    @classmethod
    def of(
        cls,
        unlocked: Iterable[int],
        placed: Iterable[PlacedTile],
        trinkets: Iterable[TrinketEquip],
    ) -> "Snapshot":
        return cls(
            unlocked=tuple(sorted(set(unlocked))),
            placed=tuple(sorted(placed, key=lambda p: p.instanceId)),
            trinkets=tuple(sorted(trinkets, key=lambda t: (t.slot, t.half, t.itemId))),
        )


def normalize_rotation(rotation: int) -> int:
    """Snap an arbitrary angle to the nearest quarter turn in ROTATIONS."""
    if rotation in ROTATIONS:
        return rotation
    return int(round(rotation / 90) * 90) % 360


class BuildStore:
    """
    Holds the canonical build and mediates every edit through history.

    on_change, if given, is called with the store after any visible change
    (state, selection or mode).
    """

    def __init__(
        self,
        config: PlannerConfig | None = None,
        on_change: Callable[["BuildStore"], None] | None = None,
    ):
        self.config = config or PlannerConfig()
        self.on_change = on_change

        self._start_unlocked = start_unlocked_indices(self.config)
        self._current = Snapshot.of(self._start_unlocked, (), ())
        self._undo: deque[Snapshot] = deque(maxlen=self.config.history_limit)
        self._redo: deque[Snapshot] = deque(maxlen=self.config.history_limit)
        self._selected: str | None = None
        self._mode: BuildMode = "build"
        self._hero_id: str | None = None
        self._ids = itertools.count(1)

    # ========================================================================
    # Accessors
    # ========================================================================

    @property
    def snapshot(self) -> Snapshot:
        return self._current

    @property
    def unlocked(self) -> list[int]:
        return list(self._current.unlocked)

    @property
    def placed(self) -> list[PlacedTile]:
        return list(self._current.placed)

    @property
    def trinkets(self) -> list[TrinketEquip]:
        return list(self._current.trinkets)

    @property
    def selected_id(self) -> str | None:
        return self._selected

    @property
    def mode(self) -> BuildMode:
        return self._mode

    @property
    def can_undo(self) -> bool:
        return len(self._undo) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def get_placed(self, instance_id: str) -> PlacedTile | None:
        for tile in self._current.placed:
            if tile.instanceId == instance_id:
                return tile
        return None

    def get_build_state(self) -> BuildState:
        """Export the build in canonical order for serialization."""
        return BuildState(
            heroId=self._hero_id,
            unlocked=list(self._current.unlocked),
            placed=list(self._current.placed),
            trinkets=list(self._current.trinkets),
        )

    # ========================================================================
    # Commit
    # ========================================================================

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _commit(
        self,
        unlocked: Iterable[int] | None = None,
        placed: Iterable[PlacedTile] | None = None,
        trinkets: Iterable[TrinketEquip] | None = None,
        selected: object = _KEEP,
    ) -> bool:
        """
        Apply a prospective state if it differs from the current one.

        Omitted parts are carried over unchanged. Returns True if history was
        written.
        """
        current = self._current
        next_snapshot = Snapshot.of(
            current.unlocked if unlocked is None else unlocked,
            current.placed if placed is None else placed,
            current.trinkets if trinkets is None else trinkets,
        )

        changed = next_snapshot != current
        if changed:
            self._undo.append(current)
            self._redo.clear()
            self._current = next_snapshot
            logger.debug("Committed edit (undo depth %d)", len(self._undo))

        selection_changed = selected is not _KEEP and selected != self._selected
        if selection_changed:
            self._selected = selected

        if changed or selection_changed:
            self._notify()
        return changed

    def _replace_tile(self, instance_id: str, **update) -> bool:
        tile = self.get_placed(instance_id)
        if tile is None:
            return False
        placed = [
            p.model_copy(update=update) if p.instanceId == instance_id else p
            for p in self._current.placed
        ]
        return self._commit(placed=placed)

    # ========================================================================
    # Mode and Selection
    # ========================================================================

    def set_mode(self, mode: BuildMode) -> None:
        if mode not in ("build", "unlock") or mode == self._mode:
            return
        self._mode = mode
        self._notify()

    def select(self, instance_id: str | None) -> None:
        """Change the selection without touching history. Unknown ids are ignored."""
        if instance_id is not None and self.get_placed(instance_id) is None:
            return
        if instance_id == self._selected:
            return
        self._selected = instance_id
        self._notify()

    # ========================================================================
    # Unlocked Cells
    # ========================================================================

    def toggle_unlocked(self, index: int) -> bool:
        """Flip one cell's lock state. Only effective in unlock mode."""
        if self._mode != "unlock":
            return False
        if not 0 <= index < self.config.grid_width * self.config.grid_height:
            return False

        unlocked = set(self._current.unlocked)
        unlocked ^= {index}
        return self._commit(unlocked=unlocked)

    def reset_unlocked_to_start(self) -> bool:
        return self._commit(unlocked=self._start_unlocked)

    # ========================================================================
    # Placed Tiles
    # ========================================================================

    def _new_instance_id(self, item_id: str) -> str:
        existing = {p.instanceId for p in self._current.placed}
        while True:
            candidate = f"{item_id}-{next(self._ids)}"
            if candidate not in existing:
                return candidate

    def add_placed(self, item_id: str, x: int, y: int, rotation: int = 0) -> str:
        """Place a new tile, select it and return its instance id."""
        instance_id = self._new_instance_id(item_id)
        tile = PlacedTile(
            instanceId=instance_id,
            itemId=item_id,
            x=x,
            y=y,
            rot=normalize_rotation(rotation),
        )
        self._commit(placed=[*self._current.placed, tile], selected=instance_id)
        return instance_id

    def remove_placed(self, instance_id: str) -> bool:
        if self.get_placed(instance_id) is None:
            return False
        placed = [p for p in self._current.placed if p.instanceId != instance_id]
        selected = None if self._selected == instance_id else _KEEP
        return self._commit(placed=placed, selected=selected)

    def rotate_selected(self, direction: RotateDirection = "cw") -> bool:
        """Turn the selected tile a quarter turn. No-op without a selection."""
        if self._selected is None:
            return False
        tile = self.get_placed(self._selected)
        if tile is None:
            return False
        return self._replace_tile(tile.instanceId, rot=next_rotation(tile.rot, direction))

    def set_placed_position(self, instance_id: str, x: int, y: int) -> bool:
        return self._replace_tile(instance_id, x=x, y=y)

    def set_placed_rotation(self, instance_id: str, rotation: int) -> bool:
        return self._replace_tile(instance_id, rot=normalize_rotation(rotation))

    def move_placed(self, instance_id: str, x: int, y: int, rotation: int) -> bool:
        """Position and rotation in a single undo step, for finishing a drag."""
        return self._replace_tile(instance_id, x=x, y=y, rot=normalize_rotation(rotation))

    def set_placed_level(self, instance_id: str, level: int | None) -> bool:
        if level is not None and level not in (1, 2, 3):
            return False
        return self._replace_tile(instance_id, level=level)

    # ========================================================================
    # Trinkets
    # ========================================================================

    def _without(self, slot: int, half: int | None = None) -> list[TrinketEquip]:
        """Current equips minus one half, or the whole slot when half is None."""
        return [
            t for t in self._current.trinkets
            if not (t.slot == slot and (half is None or t.half == half))
        ]

    def set_trinket(self, slot: int, half: int, item_id: str) -> bool:
        """Equip item_id in one half, replacing whatever was there."""
        if slot not in SLOTS or half not in HALVES:
            return False
        trinkets = self._without(slot, half)
        trinkets.append(TrinketEquip(slot=slot, half=half, itemId=item_id))
        return self._commit(trinkets=trinkets)

    def set_full_trinket(self, slot: int, item_id: str) -> bool:
        """Clear the slot and equip item_id in both halves."""
        if slot not in SLOTS:
            return False
        trinkets = self._without(slot)
        trinkets.extend(TrinketEquip(slot=slot, half=h, itemId=item_id) for h in HALVES)
        return self._commit(trinkets=trinkets)

    def remove_trinket(self, slot: int, half: int) -> bool:
        """
        Remove one half of a slot.

        If the other half holds the same item id, the pair was a full trinket
        and the whole slot is cleared.
        """
        if slot not in SLOTS or half not in HALVES:
            return False

        removed = [t for t in self._current.trinkets if t.slot == slot and t.half == half]
        if not removed:
            return False

        removed_ids = {t.itemId for t in removed}
        other = [t for t in self._current.trinkets if t.slot == slot and t.half != half]
        if any(t.itemId in removed_ids for t in other):
            return self._commit(trinkets=self._without(slot))
        return self._commit(trinkets=self._without(slot, half))

    def clear_trinket_slot(self, slot: int) -> bool:
        if slot not in SLOTS:
            return False
        return self._commit(trinkets=self._without(slot))

    # ========================================================================
    # History
    # ========================================================================

    def _restore(self, snapshot: Snapshot) -> None:
        self._current = snapshot
        if self._selected is not None and self.get_placed(self._selected) is None:
            self._selected = None
        self._notify()

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self._current)
        self._restore(self._undo.pop())
        logger.debug("Undo (undo depth %d, redo depth %d)", len(self._undo), len(self._redo))
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self._current)
        self._restore(self._redo.pop())
        logger.debug("Redo (undo depth %d, redo depth %d)", len(self._undo), len(self._redo))
        return True

    def load_build_state(self, state: BuildState) -> None:
        """Replace the whole build, e.g. from a share code. Clears history and selection."""
        self._current = Snapshot.of(state.unlocked, state.placed, state.trinkets)
        self._hero_id = state.heroId
        self._undo.clear()
        self._redo.clear()
        self._selected = None
        logger.debug(
            "Loaded build: %d tiles, %d trinket entries",
            len(self._current.placed),
            len(self._current.trinkets),
        )
        self._notify()
