from planner.config import PlannerConfig
from planner.models import BuildState, PlacedTile, TrinketEquip
from planner.tools.build_store import BuildStore, Snapshot, normalize_rotation
from planner.tools.grid import start_unlocked_indices


def test_fresh_store_has_start_mask_and_no_history(store: BuildStore) -> None:
    assert store.unlocked == start_unlocked_indices()
    assert store.placed == []
    assert store.trinkets == []
    assert store.mode == "build"
    assert not store.can_undo
    assert not store.can_redo


def test_add_placed_selects_new_tile(store: BuildStore) -> None:
    instance_id = store.add_placed("dagger", 3, 3)

    assert store.selected_id == instance_id
    tile = store.get_placed(instance_id)
    assert tile == PlacedTile(instanceId=instance_id, itemId="dagger", x=3, y=3, rot=0)
    assert store.undo_depth == 1


def test_instance_ids_are_unique(store: BuildStore) -> None:
    ids = {store.add_placed("dagger", 1, 2) for _ in range(5)}
    assert len(ids) == 5


def test_add_placed_snaps_rotation(store: BuildStore) -> None:
    instance_id = store.add_placed("bow", 1, 2, rotation=-90)
    assert store.get_placed(instance_id).rot == 270


def test_normalize_rotation() -> None:
    assert normalize_rotation(90) == 90
    assert normalize_rotation(360) == 0
    assert normalize_rotation(95) == 90
    assert normalize_rotation(-180) == 180


def test_remove_placed_clears_selection(store: BuildStore) -> None:
    first = store.add_placed("dagger", 1, 2)
    second = store.add_placed("dagger", 2, 2)

    store.remove_placed(first)
    assert store.selected_id == second

    store.remove_placed(second)
    assert store.selected_id is None
    assert store.placed == []


def test_remove_unknown_tile_is_noop(store: BuildStore) -> None:
    store.add_placed("dagger", 1, 2)
    depth = store.undo_depth
    assert not store.remove_placed("nope")
    assert store.undo_depth == depth


def test_rotate_selected_cycles(store: BuildStore) -> None:
    instance_id = store.add_placed("bow", 1, 2)

    store.rotate_selected("cw")
    assert store.get_placed(instance_id).rot == 90
    store.rotate_selected("ccw")
    store.rotate_selected("ccw")
    assert store.get_placed(instance_id).rot == 270


def test_rotate_without_selection_is_noop(store: BuildStore) -> None:
    store.add_placed("bow", 1, 2)
    store.select(None)
    depth = store.undo_depth

    assert not store.rotate_selected("cw")
    assert store.undo_depth == depth


def test_set_position_and_rotation(store: BuildStore) -> None:
    instance_id = store.add_placed("bow", 1, 2)

    store.set_placed_position(instance_id, 4, 3)
    store.set_placed_rotation(instance_id, 180)
    tile = store.get_placed(instance_id)
    assert (tile.x, tile.y, tile.rot) == (4, 3, 180)
    assert store.undo_depth == 3


def test_move_placed_is_one_undo_step(store: BuildStore) -> None:
    instance_id = store.add_placed("bow", 1, 2)
    store.move_placed(instance_id, 5, 4, 90)
    assert store.undo_depth == 2

    store.undo()
    tile = store.get_placed(instance_id)
    assert (tile.x, tile.y, tile.rot) == (1, 2, 0)


def test_unchanged_edit_writes_no_history(store: BuildStore) -> None:
    instance_id = store.add_placed("bow", 1, 2)
    store.undo()
    store.redo()
    assert store.can_redo is False

    assert not store.set_placed_position(instance_id, 1, 2)
    assert not store.set_placed_rotation(instance_id, 0)
    assert not store.reset_unlocked_to_start()
    assert store.undo_depth == 1


def test_set_placed_level(store: BuildStore) -> None:
    instance_id = store.add_placed("bow", 1, 2)
    assert store.set_placed_level(instance_id, 2)
    assert store.get_placed(instance_id).level == 2
    assert not store.set_placed_level(instance_id, 7)


def test_toggle_unlocked_only_in_unlock_mode(store: BuildStore) -> None:
    assert not store.toggle_unlocked(0)
    assert 0 not in store.unlocked

    store.set_mode("unlock")
    assert store.toggle_unlocked(0)
    assert 0 in store.unlocked
    assert store.toggle_unlocked(0)
    assert 0 not in store.unlocked
    assert not store.toggle_unlocked(49)


def test_reset_unlocked_to_start(store: BuildStore) -> None:
    store.set_mode("unlock")
    store.toggle_unlocked(0)
    store.toggle_unlocked(8)

    assert store.reset_unlocked_to_start()
    assert store.unlocked == start_unlocked_indices()
    assert store.mode == "unlock"


def test_select_bypasses_history(store: BuildStore) -> None:
    instance_id = store.add_placed("dagger", 1, 2)
    store.select(None)
    store.select(instance_id)
    assert store.undo_depth == 1

    store.select("missing")
    assert store.selected_id == instance_id


def test_set_trinket_replaces_half(store: BuildStore) -> None:
    store.set_trinket(0, 0, "ember-charm")
    store.set_trinket(0, 0, "frost-charm")
    assert store.trinkets == [TrinketEquip(slot=0, half=0, itemId="frost-charm")]


def test_set_full_trinket_fills_both_halves(store: BuildStore) -> None:
    store.set_trinket(1, 1, "ember-charm")
    store.set_full_trinket(1, "shield-ring")
    assert store.trinkets == [
        TrinketEquip(slot=1, half=0, itemId="shield-ring"),
        TrinketEquip(slot=1, half=1, itemId="shield-ring"),
    ]


def test_removing_either_half_of_full_trinket_clears_slot(store: BuildStore) -> None:
    store.set_full_trinket(2, "shield-ring")
    store.remove_trinket(2, 1)
    assert store.trinkets == []

    store.set_full_trinket(2, "shield-ring")
    store.remove_trinket(2, 0)
    assert store.trinkets == []


def test_removing_half_trinket_keeps_other_half(store: BuildStore) -> None:
    store.set_trinket(0, 0, "ember-charm")
    store.set_trinket(0, 1, "frost-charm")

    store.remove_trinket(0, 0)
    assert store.trinkets == [TrinketEquip(slot=0, half=1, itemId="frost-charm")]


def test_remove_empty_half_is_noop(store: BuildStore) -> None:
    assert not store.remove_trinket(0, 1)
    assert not store.can_undo


def test_clear_trinket_slot(store: BuildStore) -> None:
    store.set_trinket(0, 0, "ember-charm")
    store.set_trinket(0, 1, "frost-charm")
    store.set_trinket(1, 0, "ember-charm")

    store.clear_trinket_slot(0)
    assert store.trinkets == [TrinketEquip(slot=1, half=0, itemId="ember-charm")]


def test_out_of_range_trinket_slot_is_noop(store: BuildStore) -> None:
    assert not store.set_trinket(3, 0, "ember-charm")
    assert not store.set_trinket(0, 2, "ember-charm")
    assert not store.set_full_trinket(-1, "shield-ring")
    assert store.trinkets == []


def test_undo_redo_inverse(store: BuildStore) -> None:
    store.add_placed("dagger", 1, 2)
    store.set_full_trinket(0, "shield-ring")
    before = store.snapshot

    assert store.undo()
    assert store.trinkets == []
    assert store.redo()
    assert store.snapshot == before


def test_undo_on_empty_history_is_noop(store: BuildStore) -> None:
    before = store.snapshot
    assert not store.undo()
    assert not store.redo()
    assert store.snapshot == before


def test_new_edit_clears_redo(store: BuildStore) -> None:
    store.add_placed("dagger", 1, 2)
    store.undo()
    assert store.can_redo

    store.add_placed("dagger", 2, 2)
    assert not store.can_redo


def test_undo_drops_selection_of_vanished_tile(store: BuildStore) -> None:
    instance_id = store.add_placed("dagger", 1, 2)
    assert store.selected_id == instance_id

    store.undo()
    assert store.selected_id is None


def test_history_is_bounded_oldest_first() -> None:
    store = BuildStore(PlannerConfig(history_limit=3))
    for n in range(5):
        store.add_placed("dagger", n, 2)

    assert store.undo_depth == 3
    while store.undo():
        pass
    # The two oldest placements can no longer be undone.
    assert len(store.placed) == 2


def test_load_build_state_replaces_and_clears_history(store: BuildStore) -> None:
    store.set_mode("unlock")
    store.add_placed("dagger", 1, 2)

    state = BuildState(
        unlocked=[10, 3, 3],
        placed=[PlacedTile(instanceId="b", itemId="bow", x=0, y=0, rot=90)],
        trinkets=[TrinketEquip(slot=2, half=0, itemId="ember-charm")],
    )
    store.load_build_state(state)

    assert store.unlocked == [3, 10]
    assert [p.instanceId for p in store.placed] == ["b"]
    assert store.selected_id is None
    assert store.mode == "unlock"
    assert not store.can_undo
    assert not store.can_redo


def test_get_build_state_is_canonical(store: BuildStore) -> None:
    store.load_build_state(BuildState(
        unlocked=[5, 1],
        placed=[
            PlacedTile(instanceId="z", itemId="dagger", x=1, y=2),
            PlacedTile(instanceId="a", itemId="dagger", x=2, y=2),
        ],
        trinkets=[
            TrinketEquip(slot=1, half=1, itemId="frost-charm"),
            TrinketEquip(slot=0, half=1, itemId="ember-charm"),
            TrinketEquip(slot=1, half=0, itemId="ember-charm"),
        ],
    ))

    state = store.get_build_state()
    assert state.version == 1
    assert state.unlocked == [1, 5]
    assert [p.instanceId for p in state.placed] == ["a", "z"]
    assert [(t.slot, t.half) for t in state.trinkets] == [(0, 1), (1, 0), (1, 1)]


def test_snapshot_is_order_independent() -> None:
    a = PlacedTile(instanceId="a", itemId="dagger", x=0, y=0)
    b = PlacedTile(instanceId="b", itemId="dagger", x=1, y=0)
    assert Snapshot.of([2, 1], [a, b], []) == Snapshot.of([1, 2, 2], [b, a], [])


def test_new_instance_ids_skip_loaded_ones(store: BuildStore) -> None:
    store.load_build_state(BuildState(
        placed=[PlacedTile(instanceId="dagger-1", itemId="dagger", x=1, y=2)],
    ))
    assert store.add_placed("dagger", 2, 2) != "dagger-1"


def test_on_change_fires_for_visible_changes() -> None:
    calls = []
    store = BuildStore(on_change=calls.append)

    store.add_placed("dagger", 1, 2)
    store.select(None)
    store.set_mode("unlock")
    store.undo()
    assert len(calls) == 4
    assert calls[0] is store

    store.reset_unlocked_to_start()
    assert len(calls) == 4
