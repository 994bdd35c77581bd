import pytest
from unittest.mock import MagicMock

from batching.coalescer import (
    CellByCellCoalescer,
    PendingWrite,
    RowRunCoalescer,
    WriteOp,
    apply_updates,
)
from clients.store import StoreError


def test_contiguous_columns_become_one_range_and_gap_a_cell(store):
    updates = [PendingWrite(5, 2, "x"), PendingWrite(5, 3, "y"), PendingWrite(5, 5, "z")]

    ops = apply_updates(store, "Riders", updates)

    assert ops == [WriteOp(5, 2, ["x", "y"]), WriteOp(5, 5, ["z"])]
    writes = [c for c in store.calls if c[0] in ("write_range", "write_cell")]
    assert writes == [
        ("write_range", "Riders", 5, 2, 2, ["x", "y"]),
        ("write_cell", "Riders", 5, 5, "z"),
    ]
    assert store.calls_named("flush") == [("flush",)]
    assert store.sheets["Riders"][4][1:5] == ["x", "y", "", "z"]


def test_input_order_does_not_matter():
    updates = [PendingWrite(7, 4, "d"), PendingWrite(3, 1, "a"), PendingWrite(7, 3, "c")]
    assert RowRunCoalescer().plan(updates) == [
        WriteOp(3, 1, ["a"]),
        WriteOp(7, 3, ["c", "d"]),
    ]


def test_duplicate_cell_last_write_wins():
    updates = [PendingWrite(2, 2, "old"), PendingWrite(2, 2, "new")]
    assert RowRunCoalescer().plan(updates) == [WriteOp(2, 2, ["new"])]


def test_cell_by_cell_strategy_issues_single_cells(store):
    updates = [PendingWrite(2, 2, "a"), PendingWrite(2, 3, "b")]
    ops = apply_updates(store, "Riders", updates, CellByCellCoalescer())
    assert [op.is_range for op in ops] == [False, False]
    assert len(store.calls_named("write_cell")) == 2
    assert len(store.calls_named("flush")) == 1


def test_empty_updates_touch_nothing(store):
    assert apply_updates(store, "Riders", []) == []
    assert store.calls == []


def test_zero_based_coordinates_are_rejected():
    with pytest.raises(ValueError):
        RowRunCoalescer().plan([PendingWrite(0, 1, "x")])


def test_failure_is_reraised_after_earlier_ops_applied():
    store = MagicMock()
    store.write_cell.side_effect = [None, StoreError("quota")]
    updates = [PendingWrite(2, 1, "a"), PendingWrite(3, 1, "b")]

    with pytest.raises(StoreError):
        apply_updates(store, "Requests", updates)

    assert store.write_cell.call_count == 2
    store.flush.assert_not_called()
