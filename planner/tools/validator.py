"""
Build validation engine.

Checks a full build state against the catalog and the grid and reports every
violated rule as an Issue. Validation is a pure function of its inputs, so it
is also run speculatively against uncommitted states to preview a drag.

Issue ids are built from the rule name plus instance/item/slot identifiers, so
the same problem gets the same id across runs. Diffing the error ids of two
runs (see new_error_ids) isolates the errors a pending change introduces.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Literal

from planner.models import BuildState, Item, TrinketEquip
from planner.tools.catalog import Catalog
from planner.tools.grid import GRID_H, GRID_W, in_bounds, to_index
from planner.tools.polyomino import Cell, item_cells


BASE_WEAPON_CAP = 3

# Trinket bonuses never lift the cap past this, however many stack.
MAX_WEAPON_CAP = 4

IssueLevel = Literal["error", "warning"]

ItemLookup = Catalog | Mapping[str, Item]


@dataclass
class Issue:
    """A single rule finding. Errors make the build illegal; warnings don't."""
    id: str
    level: IssueLevel
    message: str
    instance_id: str | None = None
    cells: list[Cell] | None = None


@dataclass
class ValidationResult:
    """All findings for one build plus the weapon counters."""
    issues: list[Issue] = field(default_factory=list)
    illegal: bool = False
    weapon_cap: int = BASE_WEAPON_CAP
    weapon_count: int = 0

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.level == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.level == "warning"]

    @property
    def error_ids(self) -> list[str]:
        return [i.id for i in self.errors]

    def for_instance(self, instance_id: str) -> list[Issue]:
        return [i for i in self.issues if i.instance_id == instance_id]


# ============================================================================
# Trinket Helpers
# ============================================================================

def _slot_entries(
    trinkets: Iterable[TrinketEquip],
) -> dict[int, tuple[TrinketEquip | None, TrinketEquip | None]]:
    """Group equips by slot into (left, right). The first entry per half wins."""
    slots: dict[int, list[TrinketEquip | None]] = {}
    for entry in trinkets:
        halves = slots.setdefault(entry.slot, [None, None])
        if halves[entry.half] is None:
            halves[entry.half] = entry
    return {slot: (halves[0], halves[1]) for slot, halves in slots.items()}


def counted_trinkets(trinkets: Iterable[TrinketEquip], catalog: ItemLookup) -> list[str]:
    """
    Item ids of equipped trinkets, in slot order.

    A full trinket filling both halves of its slot counts once. Half trinkets
    count once per half, even when the same one fills both halves.
    """
    counted = []
    for slot, (left, right) in sorted(_slot_entries(trinkets).items()):
        entries = [e for e in (left, right) if e is not None]
        if len(entries) == 2 and entries[0].itemId == entries[1].itemId:
            item = catalog.get(entries[0].itemId)
            if item is None or not item.isHalfTrinket:
                entries = entries[:1]
        counted.extend(e.itemId for e in entries)
    return counted


def _check_trinket_slot(
    slot: int,
    left: Item | None,
    right: Item | None,
) -> list[Issue]:
    """Half/full consistency for one slot. Missing items are passed as None."""
    issues = []
    left_full = left is not None and not left.isHalfTrinket
    right_full = right is not None and not right.isHalfTrinket
    different = left is not None and right is not None and left.id != right.id

    if different and left_full and right_full:
        issues.append(Issue(
            id=f"trinket-invalid-double-full-{slot}",
            level="error",
            message=f"Slot {slot + 1} holds two different full trinkets.",
        ))
    elif different and (left_full or right_full):
        issues.append(Issue(
            id=f"trinket-invalid-mixed-full-{slot}",
            level="error",
            message=f"Slot {slot + 1} mixes a full trinket with a different trinket.",
        ))

    if left_full and (right is None or right.id != left.id):
        issues.append(Issue(
            id=f"trinket-invalid-left-full-{slot}",
            level="error",
            message=f'Full trinket "{left.name}" in slot {slot + 1} is missing its right half.',
        ))

    if right_full and (left is None or left.id != right.id):
        issues.append(Issue(
            id=f"trinket-invalid-right-full-{slot}",
            level="error",
            message=f'Full trinket "{right.name}" in slot {slot + 1} is missing its left half.',
        ))

    return issues


# ============================================================================
# Validation
# ============================================================================

def validate_build(
    state: BuildState,
    catalog: ItemLookup,
    grid_w: int = GRID_W,
    grid_h: int = GRID_H,
) -> ValidationResult:
    """
    Evaluate every build rule and collect all issues.

    Rules, all evaluated independently:
    1. Weapon cap: 3 plus counted trinket bonuses, at most 4
    2. Placed tiles whose item is missing from the catalog (warning, tile skipped)
    3. Tiles with any cell outside the grid (one error per tile)
    4. Tiles on locked cells (one warning per cell)
    5. Overlapping tiles (one error per contributing tile)
    6. Trinket half/full consistency per slot
    7. Unique items placed, or unique trinkets equipped, more than once
    """
    issues: list[Issue] = []
    unlocked = set(state.unlocked)

    # Trinkets whose item is unknown are reported and otherwise ignored.
    trinket_issues: list[Issue] = []
    known_trinkets = []
    for entry in state.trinkets:
        if catalog.get(entry.itemId) is None:
            trinket_issues.append(Issue(
                id=f"missing-trinket-{entry.slot}-{entry.half}",
                level="warning",
                message=f'Equipped trinket "{entry.itemId}" not found in catalog.',
            ))
            continue
        known_trinkets.append(entry)

    counted = counted_trinkets(known_trinkets, catalog)

    # Rule 1: weapon cap.
    bonus = 0
    for item_id in counted:
        item = catalog.get(item_id)
        if item.modifiers is not None and item.modifiers.weaponCapBonus is not None:
            bonus += item.modifiers.weaponCapBonus
    weapon_cap = min(BASE_WEAPON_CAP + bonus, MAX_WEAPON_CAP)

    weapon_count = 0
    for tile in state.placed:
        item = catalog.get(tile.itemId)
        if item is not None and item.category == "weapon":
            weapon_count += 1

    if weapon_count > weapon_cap:
        issues.append(Issue(
            id="weapon-cap",
            level="error",
            message=f"Weapon cap exceeded: {weapon_count} weapons, cap is {weapon_cap}.",
        ))

    # Rules 2-4, collecting cell ownership for the overlap pass.
    tile_cells: dict[str, list[Cell]] = {}
    cell_owners: dict[Cell, list[str]] = {}

    for tile in state.placed:
        item = catalog.get(tile.itemId)
        if item is None:
            issues.append(Issue(
                id=f"missing-item-{tile.instanceId}",
                level="warning",
                message=f'Placed item "{tile.itemId}" not found in catalog.',
                instance_id=tile.instanceId,
            ))
            continue

        cells = item_cells(item, tile.x, tile.y, tile.rot)
        inside = [c for c in cells if in_bounds(c.x, c.y, grid_w, grid_h)]
        tile_cells[tile.instanceId] = inside

        if len(inside) < len(cells):
            issues.append(Issue(
                id=f"out-of-bounds-{tile.instanceId}",
                level="error",
                message=f'"{item.name}" extends out of bounds.',
                instance_id=tile.instanceId,
                cells=inside or None,
            ))

        for cell in dict.fromkeys(inside):
            index = to_index(cell.x, cell.y, grid_w)
            if index not in unlocked:
                issues.append(Issue(
                    id=f"locked-cell-{tile.instanceId}-{index}",
                    level="warning",
                    message=f'"{item.name}" uses locked cell ({cell.x}, {cell.y}).',
                    instance_id=tile.instanceId,
                    cells=[cell],
                ))
            cell_owners.setdefault(cell, []).append(tile.instanceId)

    # Rule 5: overlap.
    overlapping: dict[str, set[str]] = {}
    for owners in cell_owners.values():
        if len(owners) > 1:
            for owner in owners:
                overlapping.setdefault(owner, set()).update(o for o in owners if o != owner)

    for tile in state.placed:
        others = overlapping.get(tile.instanceId)
        if others is None:
            continue
        issues.append(Issue(
            id=f"overlap-{tile.instanceId}",
            level="error",
            message=f"Tile overlaps {', '.join(sorted(others))}.",
            instance_id=tile.instanceId,
            cells=tile_cells.get(tile.instanceId) or None,
        ))

    # Rule 6: trinket slot consistency.
    issues.extend(trinket_issues)
    for slot, (left, right) in sorted(_slot_entries(known_trinkets).items()):
        issues.extend(_check_trinket_slot(
            slot,
            catalog.get(left.itemId) if left else None,
            catalog.get(right.itemId) if right else None,
        ))

    # Rule 7: uniqueness, placed items then counted trinkets.
    placed_counts: dict[str, int] = {}
    for tile in state.placed:
        item = catalog.get(tile.itemId)
        if item is not None and item.isUnique:
            placed_counts[tile.itemId] = placed_counts.get(tile.itemId, 0) + 1

    for item_id, count in placed_counts.items():
        if count > 1:
            issues.append(Issue(
                id=f"unique-duplicate-{item_id}",
                level="error",
                message=f'Unique item "{catalog.get(item_id).name}" is placed {count} times.',
            ))

    trinket_counts: dict[str, int] = {}
    for item_id in counted:
        if catalog.get(item_id).isUnique:
            trinket_counts[item_id] = trinket_counts.get(item_id, 0) + 1

    for item_id, count in trinket_counts.items():
        if count > 1:
            issues.append(Issue(
                id=f"unique-trinket-duplicate-{item_id}",
                level="error",
                message=f'Unique trinket "{catalog.get(item_id).name}" is equipped {count} times.',
            ))

    return ValidationResult(
        issues=issues,
        illegal=any(i.level == "error" for i in issues),
        weapon_cap=weapon_cap,
        weapon_count=weapon_count,
    )


class BuildValidator:
    """
    Validation bound to one catalog and grid size.

    Holds no per-call state, so evaluate() is safe to call for committed and
    speculative states alike.
    """

    def __init__(self, catalog: ItemLookup, grid_w: int = GRID_W, grid_h: int = GRID_H):
        self.catalog = catalog
        self.grid_w = grid_w
        self.grid_h = grid_h

    def evaluate(self, state: BuildState) -> ValidationResult:
        return validate_build(state, self.catalog, self.grid_w, self.grid_h)


def new_error_ids(baseline: ValidationResult, speculative: ValidationResult) -> list[str]:
    """Error ids present in speculative but not in baseline, in speculative order."""
    existing = set(baseline.error_ids)
    return [issue_id for issue_id in speculative.error_ids if issue_id not in existing]


def format_validation_report(result: ValidationResult) -> str:
    """Generate a human-readable report of a validation run."""
    lines = ["# Build Validation Report\n"]

    lines.append(f"Status: {'ILLEGAL' if result.illegal else 'LEGAL'}")
    lines.append(f"Weapons: {result.weapon_count} / {result.weapon_cap}")
    lines.append(f"Errors: {len(result.errors)}")
    lines.append(f"Warnings: {len(result.warnings)}\n")

    for issue in result.errors + result.warnings:
        lines.append(f"[{issue.level}] {issue.id}: {issue.message}")
        if issue.cells:
            cells = ", ".join(f"({c.x}, {c.y})" for c in issue.cells)
            lines.append(f"  Cells: {cells}")

    return "\n".join(lines)
