"""Functional tests for moving records within their group."""

from __future__ import annotations


def _fresh_positions(repo, records) -> list[int]:
    return [repo.fresh(r).position for r in records]


def _seed(repo, count: int, **attributes):
    return [repo.create(**attributes) for _ in range(count)]


def test_move_towards_start_opens_slot(categories) -> None:
    items = _seed(categories, 5)
    assert categories.move(items[3], 1) is True
    assert _fresh_positions(categories, items) == [0, 2, 3, 1, 4]


def test_move_towards_end_closes_gap(categories) -> None:
    items = _seed(categories, 5)
    assert categories.move(items[1], 3) is True
    assert _fresh_positions(categories, items) == [0, 3, 1, 2, 4]


def test_move_to_same_position_is_a_no_op(categories, statement_log) -> None:
    items = _seed(categories, 3)
    statement_log.enabled = True
    assert categories.move(items[1], 1) is False
    assert len(statement_log) == 0
    assert _fresh_positions(categories, items) == [0, 1, 2]


def test_move_to_start(categories) -> None:
    items = _seed(categories, 3)
    categories.move(items[2], 0)
    assert _fresh_positions(categories, items) == [1, 2, 0]


def test_move_to_end_with_relative_position(categories) -> None:
    items = _seed(categories, 4)
    categories.move(items[0], -1)
    assert categories.fresh(items[0]).position == 3
    assert _fresh_positions(categories, items) == [3, 0, 1, 2]


def test_move_to_second_last_with_relative_position(categories) -> None:
    items = _seed(categories, 4)
    categories.move(items[0], -2)
    assert _fresh_positions(categories, items) == [2, 0, 1, 3]


def test_move_never_touches_members_outside_range(categories) -> None:
    items = _seed(categories, 6)
    categories.move(items[4], 2)
    positions = _fresh_positions(categories, items)
    assert positions[0] == 0 and positions[1] == 1 and positions[5] == 5
    assert positions[2:5] == [3, 4, 2]


def test_saving_without_changes_skips_update(categories, statement_log) -> None:
    items = _seed(categories, 2)
    statement_log.enabled = True
    categories.save(items[0])
    assert len(statement_log) == 0


def test_updating_other_attributes_keeps_positions(categories) -> None:
    items = _seed(categories, 3, name="old")
    items[1].fill({"name": "renamed"})
    categories.save(items[1])
    fresh = categories.fresh(items[1])
    assert fresh.attributes["name"] == "renamed"
    assert _fresh_positions(categories, items) == [0, 1, 2]


def test_density_holds_after_mixed_operations(categories) -> None:
    items = _seed(categories, 5)
    categories.move(items[0], 4)
    categories.create(position=2)
    # Sibling shifts happen in SQL; reload before acting on another record
    categories.delete(categories.fresh(items[3]))
    categories.move(categories.fresh(items[4]), 0)
    categories.create(position=-1)
    positions = categories.positions()
    assert positions == list(range(len(positions)))


def test_relative_move_onto_current_slot_is_a_no_op(categories, statement_log) -> None:
    items = _seed(categories, 3)
    statement_log.enabled = True
    assert categories.move(items[2], -1) is False
    # only the group count is read
    assert len(statement_log) == 1
    assert statement_log.statements[0].lstrip().upper().startswith("SELECT")
    assert _fresh_positions(categories, items) == [0, 1, 2]


def test_relative_move_onto_other_slot_still_moves(categories) -> None:
    items = _seed(categories, 3)
    assert categories.move(items[2], -2) is True
    assert _fresh_positions(categories, items) == [0, 2, 1]
