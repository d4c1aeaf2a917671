"""Tests for BoardEngine drag gestures and commit sequences."""

import asyncio

import pytest
from conftest import FakeStore, make_column, make_task

from taskboard.errors import GestureError
from taskboard.models import (
    CommitFailed,
    DropTarget,
    GesturePhase,
    Outcome,
    PositionsCommitted,
    StatusChanged,
)
from taskboard.services import BoardEngine


@pytest.fixture
def engine(store: FakeStore) -> BoardEngine:
    """A loaded engine over the fake store."""
    engine = BoardEngine("b1", store, store)
    asyncio.run(engine.load())
    return engine


def contiguous(store: FakeStore, status: str) -> bool:
    positions = [p for _, p in store.positions(status)]
    return positions == list(range(len(positions)))


class TestLoad:
    """Tests for loading the board."""

    def test_load_groups_tasks(self, engine: BoardEngine):
        """Tasks are grouped by status and ordered by position."""
        board = engine.board
        assert board.column_keys == ["todo", "doing", "done"]
        assert board.order_of("todo") == ["A", "B", "C"]
        assert board.get_column("doing") == []

    def test_load_failure_raises(self, store: FakeStore):
        """load() propagates store errors and leaves caches untouched."""
        store.fail_load = True
        engine = BoardEngine("b1", store, store)
        with pytest.raises(Exception, match="connection reset"):
            asyncio.run(engine.load())
        assert engine.tasks == {}

    def test_reload_failure_returns_result(self, engine: BoardEngine, store: FakeStore):
        """reload() reports failure instead of raising."""
        store.fail_load = True
        result = asyncio.run(engine.reload())
        assert not result.ok
        assert engine.needs_reload
        assert engine.last_error == result.message


class TestGestureStateMachine:
    """Tests for pick-up, hover and cancel."""

    def test_pick_up_starts_drag(self, engine: BoardEngine):
        """Picking up a task enters the dragging phase."""
        engine.pick_up("A")
        assert engine.phase == GesturePhase.DRAGGING
        assert engine.active_task_id == "A"

    def test_pick_up_unknown_task(self, engine: BoardEngine):
        """Picking up an unknown task is rejected."""
        with pytest.raises(GestureError):
            engine.pick_up("nope")
        assert engine.phase == GesturePhase.IDLE

    def test_only_one_gesture_at_a_time(self, engine: BoardEngine):
        """A second pick-up while dragging is rejected."""
        engine.pick_up("A")
        with pytest.raises(GestureError):
            engine.pick_up("B")

    def test_hover_requires_drag(self, engine: BoardEngine):
        """Hovering without a dragged task is rejected."""
        with pytest.raises(GestureError):
            engine.hover(DropTarget.column("doing"))

    def test_release_requires_drag(self, engine: BoardEngine, store: FakeStore):
        """Releasing without a dragged task is rejected."""
        with pytest.raises(GestureError):
            asyncio.run(engine.release())

        engine.pick_up("A")
        engine.cancel()
        with pytest.raises(GestureError):
            asyncio.run(engine.release(DropTarget.column("doing")))
        assert store.calls == []

    def test_hover_over_task_highlights_its_column(self, engine: BoardEngine, store: FakeStore):
        """Hovering over a task highlights the column that shows it."""
        engine.pick_up("A")
        assert engine.hover(DropTarget.task("C")) == "todo"
        assert engine.phase == GesturePhase.HOVER_RESOLVED
        assert store.calls == []

    def test_hover_outside_targets(self, engine: BoardEngine):
        """Hovering over nothing clears the highlight."""
        engine.pick_up("A")
        engine.hover(DropTarget.column("doing"))
        assert engine.hover(None) is None
        assert engine.highlighted_column is None
        assert engine.phase == GesturePhase.DRAGGING

    def test_cancel_has_no_side_effects(self, engine: BoardEngine, store: FakeStore):
        """Cancelling clears the gesture and issues no writes."""
        engine.pick_up("A")
        engine.hover(DropTarget.column("doing"))
        engine.cancel()
        assert engine.phase == GesturePhase.IDLE
        assert engine.highlighted_column is None
        assert store.calls == []

    def test_resolve_target(self, engine: BoardEngine):
        """Ids resolve to task targets, column targets or nothing."""
        assert engine.resolve_target("B") == DropTarget.task("B")
        assert engine.resolve_target("doing") == DropTarget.column("doing")
        assert engine.resolve_target("elsewhere") is None
        assert engine.resolve_target(None) is None


class TestSameColumnDrop:
    """Tests for reordering within one column."""

    def test_drop_onto_first_task(self, engine: BoardEngine, store: FakeStore):
        """Dropping C onto A yields C, A, B with three sequential writes."""
        result = asyncio.run(engine.move_task("C", DropTarget.task("A")))

        assert result.outcome == Outcome.COMMITTED
        assert store.writes == [
            ("C", {"position": 0}),
            ("A", {"position": 1}),
            ("B", {"position": 2}),
        ]
        assert store.positions("todo") == [("C", 0), ("A", 1), ("B", 2)]
        assert engine.board.order_of("todo") == ["C", "A", "B"]
        assert not result.status_changed

    def test_drop_onto_later_sibling(self, engine: BoardEngine, store: FakeStore):
        """Dropping onto a later sibling places the task after it."""
        asyncio.run(engine.move_task("A", DropTarget.task("B")))
        assert store.positions("todo") == [("B", 0), ("A", 1), ("C", 2)]

    def test_drop_on_own_position_is_noop(self, engine: BoardEngine, store: FakeStore):
        """Dropping a task onto itself issues no writes."""
        result = asyncio.run(engine.move_task("B", DropTarget.task("B")))
        assert result.outcome == Outcome.NOOP
        assert store.calls == []
        assert engine.phase == GesturePhase.IDLE

    def test_last_task_onto_own_column_is_noop(self, engine: BoardEngine, store: FakeStore):
        """The last task dropped on its own column zone stays put."""
        result = asyncio.run(engine.move_task("C", DropTarget.column("todo")))
        assert result.outcome == Outcome.NOOP
        assert store.calls == []

    def test_drop_outside_targets_is_noop(self, engine: BoardEngine, store: FakeStore):
        """Releasing outside every target issues no writes."""
        engine.pick_up("A")
        result = asyncio.run(engine.release(None))
        assert result.outcome == Outcome.NOOP
        assert store.calls == []

    def test_release_uses_last_hover(self, engine: BoardEngine, store: FakeStore):
        """Release without a target drops on the last hovered target."""
        engine.pick_up("A")
        engine.hover(DropTarget.task("C"))
        asyncio.run(engine.release())
        assert store.positions("todo") == [("B", 0), ("C", 1), ("A", 2)]

    def test_gapped_positions_are_repaired(self):
        """A reorder renumbers the whole column to 0..n-1."""
        store = FakeStore(
            [make_column("todo", 0)],
            [make_task("A", "todo", 3), make_task("B", "todo", 7), make_task("C", "todo", 7)],
        )
        engine = BoardEngine("b1", store, store)
        asyncio.run(engine.load())

        asyncio.run(engine.move_task("C", DropTarget.task("A")))

        assert store.positions("todo") == [("C", 0), ("A", 1), ("B", 2)]


class TestCrossColumnDrop:
    """Tests for moving a task to another column."""

    def test_drop_onto_empty_column(self, engine: BoardEngine, store: FakeStore):
        """Status is written first, then both columns are renumbered."""
        result = asyncio.run(engine.move_task("A", DropTarget.column("doing")))

        assert result.outcome == Outcome.COMMITTED
        assert result.status_changed
        assert store.writes == [
            ("A", {"status": "doing"}),
            ("A", {"position": 0}),
            ("B", {"position": 0}),
            ("C", {"position": 1}),
        ]
        assert store.positions("doing") == [("A", 0)]
        assert store.positions("todo") == [("B", 0), ("C", 1)]

    def test_drop_onto_task_in_other_column(self, store: FakeStore):
        """Dropping on a task inserts before it in the destination."""
        store.tasks["D"] = make_task("D", "doing", 0)
        store.tasks["E"] = make_task("E", "doing", 1)
        engine = BoardEngine("b1", store, store)
        asyncio.run(engine.load())

        asyncio.run(engine.move_task("B", DropTarget.task("E")))

        assert store.tasks["B"].status == "doing"
        assert store.positions("doing") == [("D", 0), ("B", 1), ("E", 2)]
        assert store.positions("todo") == [("A", 0), ("C", 1)]

    def test_task_appears_in_one_column(self, engine: BoardEngine):
        """After a move the task is shown only in the destination."""
        asyncio.run(engine.move_task("B", DropTarget.column("done")))
        board = engine.board
        shown = [key for key in board.column_keys if "B" in board.order_of(key)]
        assert shown == ["done"]
        assert engine.tasks["B"].status == "done"

    def test_all_columns_contiguous_after_moves(self, engine: BoardEngine, store: FakeStore):
        """Every column keeps contiguous positions across several moves."""
        asyncio.run(engine.move_task("A", DropTarget.column("doing")))
        asyncio.run(engine.move_task("C", DropTarget.task("A")))
        asyncio.run(engine.move_task("B", DropTarget.column("doing")))
        asyncio.run(engine.move_task("A", DropTarget.column("done")))

        for key in ("todo", "doing", "done"):
            assert contiguous(store, key)
        assert store.positions("doing") == [("C", 0), ("B", 1)]

    def test_stale_status_is_fixed_by_same_column_drop(self):
        """A task shown in the first column gets its status rewritten."""
        store = FakeStore(
            [make_column("todo", 0), make_column("done", 1)],
            [make_task("A", "todo", 0), make_task("X", "archived", 1)],
        )
        engine = BoardEngine("b1", store, store)
        asyncio.run(engine.load())

        result = asyncio.run(engine.move_task("X", DropTarget.task("A")))

        assert result.status_changed
        assert store.writes[0] == ("X", {"status": "todo"})
        assert store.positions("todo") == [("X", 0), ("A", 1)]

    def test_events_emitted(self, engine: BoardEngine):
        """A cross-column commit emits status and position events."""
        seen = []
        unsubscribe = engine.subscribe(seen.append)
        asyncio.run(engine.move_task("A", DropTarget.column("doing")))
        unsubscribe()

        types = [type(e) for e in seen]
        assert StatusChanged in types
        assert [e.column_key for e in seen if isinstance(e, PositionsCommitted)] == ["doing", "todo"]

    def test_failing_listener_does_not_stop_commit(self, engine: BoardEngine, store: FakeStore):
        """A listener that raises neither aborts the commit nor starves later listeners."""

        def broken(event):
            raise RuntimeError("listener bug")

        seen = []
        engine.subscribe(broken)
        engine.subscribe(seen.append)

        result = asyncio.run(engine.move_task("A", DropTarget.column("doing")))

        assert result.ok
        assert store.tasks["A"].status == "doing"
        assert store.positions("todo") == [("B", 0), ("C", 1)]
        assert any(isinstance(e, PositionsCommitted) for e in seen)
        assert not engine.needs_reload


class TestCommitFailure:
    """Tests for failure handling during a commit."""

    def test_failed_status_write_stops_sequence(self, engine: BoardEngine, store: FakeStore):
        """No position writes follow a failed status write."""
        store.fail_on_write = 0
        result = asyncio.run(engine.move_task("A", DropTarget.column("doing")))

        assert result.outcome == Outcome.FAILED
        assert len(store.calls) == 1
        assert result.writes == []
        assert engine.last_error == result.message

    def test_failure_reloads_board(self, engine: BoardEngine, store: FakeStore):
        """After a failure the caches match the store again."""
        store.fail_on_write = 2
        loads_before = store.loads

        result = asyncio.run(engine.move_task("C", DropTarget.task("A")))

        assert not result.ok
        assert len(result.writes) == 2
        assert store.loads == loads_before + 1
        # C and A were written, B was not
        assert {t.id: t.position for t in engine.tasks.values()} == {"A": 1, "B": 1, "C": 0}
        assert engine.phase == GesturePhase.IDLE
        assert not engine.needs_reload

    def test_failure_event_carries_context(self, engine: BoardEngine, store: FakeStore):
        """The failure event names the task and the attempted write."""
        store.fail_on_write = 1
        asyncio.run(engine.move_task("A", DropTarget.column("doing")))

        failures = [e for e in engine.events if isinstance(e, CommitFailed)]
        assert len(failures) == 1
        assert failures[0].task_id == "A"
        assert failures[0].attempted == {"position": 0}
        assert failures[0].writes_completed == 1

    def test_failure_without_reload(self, store: FakeStore):
        """With reload disabled the engine flags the board as stale."""
        engine = BoardEngine("b1", store, store, reload_on_failure=False)
        asyncio.run(engine.load())
        store.fail_on_write = 0

        asyncio.run(engine.move_task("A", DropTarget.column("doing")))

        assert engine.needs_reload
        # Optimistic state is left as is until the next reload
        assert engine.tasks["A"].status == "doing"

    def test_next_gesture_after_failure(self, engine: BoardEngine, store: FakeStore):
        """A failed commit leaves the engine ready for the next gesture."""
        store.fail_on_write = 0
        asyncio.run(engine.move_task("A", DropTarget.column("doing")))
        store.fail_on_write = None

        result = asyncio.run(engine.move_task("A", DropTarget.column("done")))

        assert result.ok
        assert store.tasks["A"].status == "done"


class TestEventLog:
    """Tests for the bounded event log."""

    def test_event_log_is_bounded(self, engine: BoardEngine):
        """Only the most recent events are kept."""
        for _ in range(BoardEngine.MAX_EVENTS):
            engine.pick_up("A")
            engine.cancel()
        assert len(engine.events) == BoardEngine.MAX_EVENTS
