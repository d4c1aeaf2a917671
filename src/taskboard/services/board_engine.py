"""Board ordering engine: drag gestures, reordering and column administration."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from typing import Any

from ..errors import ColumnError, GestureError, StoreError, TaskboardError
from ..models import (
    Board,
    BoardEvent,
    BoardReloaded,
    Column,
    ColumnChanges,
    ColumnCreated,
    ColumnDeleted,
    ColumnDraft,
    CommitFailed,
    CommitResult,
    DragCancelled,
    DragStarted,
    DropTarget,
    GesturePhase,
    HoverChanged,
    OperationFailed,
    OperationResult,
    Outcome,
    PositionsCommitted,
    StatusChanged,
    Task,
    Write,
)
from ..repositories import ColumnRegistryProtocol, TaskStoreProtocol
from .column_service import ColumnService
from .ordering import DropPlan, plan_drop, resolve_column

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong while saving your changes. Please try again."
COMMIT_ERROR = "Could not save the new task order. The board has been reloaded."
RELOAD_ERROR = "Could not load the board. Please refresh."

_UNSET: Any = object()

EventListener = Callable[[BoardEvent], None]


class BoardEngine:
    """
    Session-scoped engine for one board.

    Holds local caches of the board's columns and tasks, drives one drag
    gesture at a time through ``pick_up`` -> ``hover`` -> ``release``, and
    commits the result to the task store.

    The caches are not authoritative. Changes are applied to them
    optimistically before the store confirms. When any write fails the
    engine stops, records the error and reloads the whole board from the
    store. It never retries and never rolls back individual writes.

    No store error escapes ``release``, ``reload`` or the column
    operations; they return results carrying a user-facing message.
    Misusing the gesture state machine raises ``GestureError``.
    """

    MAX_EVENTS = 1000

    def __init__(
        self,
        board_id: str,
        task_store: TaskStoreProtocol,
        column_registry: ColumnRegistryProtocol,
        column_service: ColumnService | None = None,
        reload_on_failure: bool = True,
    ) -> None:
        """
        Initialize the engine.

        Args:
            board_id: The board this engine manages
            task_store: Source of truth for tasks
            column_registry: Source of truth for columns
            column_service: Column administration (created if omitted)
            reload_on_failure: Reload the board after a failed commit
        """
        self.board_id = board_id
        self.task_store = task_store
        self.column_registry = column_registry
        self.column_service = column_service or ColumnService(task_store, column_registry)
        self.reload_on_failure = reload_on_failure

        self.columns: list[Column] = []
        self.tasks: dict[str, Task] = {}

        # Gesture-scoped state
        self.phase = GesturePhase.IDLE
        self.active_task_id: str | None = None
        self.highlighted_column: str | None = None
        self._hover_target: DropTarget | None = None

        self.last_error: str | None = None  # Banner text for the user
        self.needs_reload = False
        self.events: deque[BoardEvent] = deque(maxlen=self.MAX_EVENTS)
        self._listeners: list[EventListener] = []

    # --- Board state ---

    @property
    def board(self) -> Board:
        """Current grouped view of the cached tasks."""
        return Board.from_tasks(list(self.tasks.values()), self.columns)

    async def load(self) -> None:
        """
        Fetch columns and tasks and replace the local caches.

        Raises:
            StoreError: If either fetch fails (caches are left untouched)
        """
        columns = await self.column_registry.get_columns(self.board_id)
        tasks = await self.task_store.get_tasks(self.board_id)

        self.columns = sorted(columns, key=lambda c: (c.position, c.id))
        self.tasks = {task.id: task for task in tasks}
        self.needs_reload = False
        logger.debug(
            "Board loaded: %s (%d columns, %d tasks)",
            self.board_id,
            len(self.columns),
            len(self.tasks),
        )
        self._emit(
            BoardReloaded(
                board_id=self.board_id,
                column_count=len(self.columns),
                task_count=len(self.tasks),
            )
        )

    async def reload(self) -> OperationResult:
        """Reload the board, reporting failure instead of raising."""
        try:
            await self.load()
        except StoreError as e:
            self.needs_reload = True
            return self._operation_failed("reload", e, RELOAD_ERROR)
        return OperationResult(Outcome.COMMITTED)

    # --- Events ---

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register an event listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: BoardEvent) -> None:
        self.events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A broken observer must not interrupt a commit sequence
                logger.exception("Event listener failed on %s", event.type)

    # --- Gesture ---

    def pick_up(self, task_id: str) -> None:
        """Start dragging a task card."""
        if self.phase != GesturePhase.IDLE:
            raise GestureError(f"Cannot pick up {task_id}: a gesture is already {self.phase.value}")
        task = self.tasks.get(task_id)
        if task is None:
            raise GestureError(f"Cannot pick up unknown task: {task_id}")

        self.phase = GesturePhase.DRAGGING
        self.active_task_id = task_id
        logger.debug("Drag started: %s (status=%s, pos=%d)", task_id, task.status, task.position)
        self._emit(
            DragStarted(
                board_id=self.board_id,
                task_id=task_id,
                status=task.status,
                position=task.position,
            )
        )

    def resolve_target(self, over_id: str | None) -> DropTarget | None:
        """Resolve the id of the element under the pointer.

        The id is either a task id or a column key. Anything else
        resolves to None.
        """
        if over_id is None:
            return None
        if over_id in self.tasks:
            return DropTarget.task(over_id)
        if any(col.key == over_id for col in self.columns):
            return DropTarget.column(over_id)
        return None

    def hover(self, target: DropTarget | None) -> str | None:
        """
        Update the hover target. Nothing is persisted.

        Returns:
            The key of the column to highlight, or None.
        """
        self._require_dragging("hover")

        column = resolve_column(self.board, target) if target is not None else None
        self._hover_target = target if column is not None else None
        self.phase = GesturePhase.HOVER_RESOLVED if column is not None else GesturePhase.DRAGGING

        if column != self.highlighted_column:
            self.highlighted_column = column
            self._emit(
                HoverChanged(
                    board_id=self.board_id,
                    task_id=self.active_task_id or "",
                    column_key=column,
                )
            )
        return column

    def cancel(self) -> None:
        """Abandon the current gesture with no side effects."""
        if self.phase not in (GesturePhase.DRAGGING, GesturePhase.HOVER_RESOLVED):
            return
        task_id = self.active_task_id or ""
        self._clear_gesture()
        logger.debug("Drag cancelled: %s", task_id)
        self._emit(DragCancelled(board_id=self.board_id, task_id=task_id))

    async def release(self, target: DropTarget | None = _UNSET) -> CommitResult:
        """
        Drop the dragged task and commit the result.

        Args:
            target: Drop target. Defaults to the last hover target; pass
                None to drop outside every target.

        Returns:
            A ``CommitResult``. A drop that changes nothing is a no-op with
            zero writes.
        """
        task_id = self._require_dragging("release")
        if target is _UNSET:
            target = self._hover_target

        try:
            plan = plan_drop(self.board, task_id, target)
            if plan is None:
                logger.debug("Drop is a no-op: %s", task_id)
                self._emit(DragCancelled(board_id=self.board_id, task_id=task_id))
                return CommitResult(Outcome.NOOP, task_id=task_id)

            self.phase = GesturePhase.COMMITTING
            return await self._commit(plan)
        finally:
            self._clear_gesture()

    async def move_task(self, task_id: str, target: DropTarget) -> CommitResult:
        """Run a complete gesture in one call (pick up, hover, release)."""
        self.pick_up(task_id)
        self.hover(target)
        return await self.release(target)

    def _require_dragging(self, action: str) -> str:
        """Return the dragged task id, or raise if no drag is in progress."""
        if (
            self.phase not in (GesturePhase.DRAGGING, GesturePhase.HOVER_RESOLVED)
            or self.active_task_id is None
        ):
            raise GestureError(f"Cannot {action}: no task is being dragged ({self.phase.value})")
        return self.active_task_id

    def _clear_gesture(self) -> None:
        self.phase = GesturePhase.IDLE
        self.active_task_id = None
        self.highlighted_column = None
        self._hover_target = None

    # --- Commit sequence ---

    async def _commit(self, plan: DropPlan) -> CommitResult:
        """Persist a drop plan: status first, then positions one at a time."""
        result = CommitResult(
            Outcome.COMMITTED,
            task_id=plan.task_id,
            from_status=plan.origin_status,
            to_status=plan.destination,
        )

        if plan.status_changed:
            logger.info(
                "Task moved: %s (%s -> %s)", plan.task_id, plan.origin_status, plan.destination
            )
            fields: dict[str, Any] = {"status": plan.destination}
            self._apply(plan.task_id, fields)
            try:
                await self.task_store.update_task_fields(plan.task_id, fields)
            except StoreError as e:
                return await self._commit_failed(result, plan.task_id, fields, e)
            result.writes.append(Write(plan.task_id, fields))
            self._emit(
                StatusChanged(
                    board_id=self.board_id,
                    task_id=plan.task_id,
                    from_status=plan.origin_status,
                    to_status=plan.destination,
                )
            )

        # Apply the whole renumbering locally, then write it in order
        for order in plan.orders.values():
            for position, task_id in enumerate(order):
                self._apply(task_id, {"position": position})

        for column_key, order in plan.orders.items():
            for position, task_id in enumerate(order):
                fields = {"position": position}
                try:
                    await self.task_store.update_task_fields(task_id, fields)
                except StoreError as e:
                    return await self._commit_failed(result, task_id, fields, e)
                result.writes.append(Write(task_id, fields))

            logger.debug("Positions committed: %s %s", column_key, order)
            self._emit(
                PositionsCommitted(board_id=self.board_id, column_key=column_key, task_ids=order)
            )

        self.last_error = None
        return result

    def _apply(self, task_id: str, fields: dict[str, Any]) -> None:
        """Apply fields to the cached task."""
        self.tasks[task_id] = self.tasks[task_id].model_copy(update=fields)

    async def _commit_failed(
        self,
        result: CommitResult,
        task_id: str,
        fields: dict[str, Any],
        error: StoreError,
    ) -> CommitResult:
        """Stop the commit sequence and recover by reloading the board."""
        self.phase = GesturePhase.ROLLED_BACK
        logger.error(
            "Commit failed: board=%s task=%s attempted=%s after %d writes: %s",
            self.board_id,
            task_id,
            fields,
            len(result.writes),
            error,
        )
        self._emit(
            CommitFailed(
                board_id=self.board_id,
                task_id=task_id,
                attempted=fields,
                error=str(error),
                writes_completed=len(result.writes),
            )
        )

        result.outcome = Outcome.FAILED
        result.message = COMMIT_ERROR
        self.last_error = COMMIT_ERROR
        self.needs_reload = True

        if self.reload_on_failure:
            reloaded = await self.reload()
            if not reloaded.ok:
                result.message = reloaded.message
        return result

    # --- Column administration ---

    async def create_column(self, draft: ColumnDraft) -> OperationResult:
        """Create a column at the end of the board."""
        try:
            column = await self.column_service.create_column(self.board_id, draft)
        except (ColumnError, StoreError) as e:
            return self._operation_failed("create_column", e)

        self.columns.append(column)
        self._emit(
            ColumnCreated(board_id=self.board_id, column_id=column.id, key=column.key)
        )
        self.last_error = None
        return OperationResult(
            Outcome.COMMITTED, message=f"Column '{column.name}' created", column_id=column.id
        )

    async def update_column(self, column_id: str, **changes: Any) -> OperationResult:
        """Update a column's name, icon or color."""
        try:
            updated = await self.column_service.update_column(column_id, ColumnChanges(**changes))
        except (ColumnError, StoreError) as e:
            return self._operation_failed("update_column", e)

        self.columns = [updated if c.id == column_id else c for c in self.columns]
        self.last_error = None
        return OperationResult(Outcome.COMMITTED, column_id=column_id)

    async def delete_column(self, column_id: str) -> OperationResult:
        """Delete a column, moving its tasks to the first remaining column."""
        try:
            deletion = await self.column_service.delete_column(self.board_id, column_id)
        except (ColumnError, StoreError) as e:
            result = self._operation_failed("delete_column", e)
            if isinstance(e, StoreError) and self.reload_on_failure:
                # Reassignment may have succeeded before the delete failed
                await self.reload()
            return result

        key = deletion.column.key
        for task_id, task in list(self.tasks.items()):
            if task.status == key:
                self._apply(task_id, {"status": deletion.fallback_key})
        self.columns = [c for c in self.columns if c.id != column_id]

        self._emit(
            ColumnDeleted(
                board_id=self.board_id,
                column_id=column_id,
                key=key,
                fallback_key=deletion.fallback_key,
                tasks_reassigned=deletion.reassigned,
            )
        )
        self.last_error = None
        return OperationResult(
            Outcome.COMMITTED,
            message=f"Column '{deletion.column.name}' deleted",
            column_id=column_id,
        )

    def _operation_failed(
        self, operation: str, error: TaskboardError, message: str | None = None
    ) -> OperationResult:
        """Log a failed operation and turn it into a user-facing result."""
        if isinstance(error, StoreError):
            logger.error("%s failed on board %s: %s", operation, self.board_id, error)
            message = message or GENERIC_ERROR
        else:
            # Column rule violations carry a message meant for the user
            logger.warning("%s rejected on board %s: %s", operation, self.board_id, error)
            message = message or str(error)

        self._emit(
            OperationFailed(board_id=self.board_id, operation=operation, error=str(error))
        )
        self.last_error = message
        return OperationResult(Outcome.FAILED, message=message)
