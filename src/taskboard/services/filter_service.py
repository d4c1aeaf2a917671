"""Service for parsing and applying filters to tasks."""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from ..models import PRIORITIES, Task
from ..utils import now_utc

DUE_VALUES = ("overdue", "today", "week", "month", "none")


@dataclass
class Filter:
    """Represents a parsed filter expression."""

    text: str | None = None  # Free text search
    priorities: list[str] = field(default_factory=list)  # priority:value
    assignees: list[str] = field(default_factory=list)  # assignee:user-id-or-email
    due: str | None = None  # due:overdue/today/week/month/none

    @property
    def is_empty(self) -> bool:
        """Whether the filter matches every task."""
        return not (self.text or self.priorities or self.assignees or self.due)


class FilterService:
    """Service for parsing and applying filters to tasks.

    Filtering only affects what is shown. Reordering always works on the
    full column, never on a filtered subset.
    """

    # Pattern for key:value tokens
    TOKEN_PATTERN = re.compile(r"(?:(priority|assignee|due):)?(\S+)")

    def parse(self, expression: str) -> Filter:
        """
        Parse a filter expression string.

        Syntax:
        - Free text: matches title or description
        - priority:low/medium/high
        - assignee:value - user id or email
        - due:overdue/today/week/month/none - by finish date

        Different keys are ANDed together; repeated keys are ORed.
        Unknown priority and due values are ignored.
        """
        f = Filter()
        text_parts: list[str] = []

        for match in self.TOKEN_PATTERN.finditer(expression):
            key = match.group(1)
            value = match.group(2).lower()

            if key is None:
                text_parts.append(match.group(2))

            elif key == "priority":
                if value in PRIORITIES:
                    f.priorities.append(value)

            elif key == "assignee":
                f.assignees.append(value)

            elif key == "due":
                if value in DUE_VALUES:
                    f.due = value

        if text_parts:
            f.text = " ".join(text_parts)

        return f

    def apply(self, tasks: list[Task], filter_: Filter, now: datetime | None = None) -> list[Task]:
        """Apply filter to a list of tasks, keeping their order."""
        now = now or now_utc()
        return [task for task in tasks if self._matches(task, filter_, now)]

    def _matches(self, task: Task, f: Filter, now: datetime) -> bool:
        """Check if a task matches the filter."""
        # Text search (case-insensitive)
        if f.text:
            search_text = f.text.lower()
            title = task.title.lower()
            description = (task.description or "").lower()
            if search_text not in title and search_text not in description:
                return False

        # Priority filter (any match)
        if f.priorities and task.priority not in f.priorities:
            return False

        # Assignee filter (any match on id or email)
        if f.assignees:
            candidates = {(task.assigned_to or "").lower(), (task.assigned_to_email or "").lower()}
            if not any(a in candidates for a in f.assignees):
                return False

        if f.due and not self._due_matches(task.finish_date, f.due, now):
            return False

        return True

    @staticmethod
    def _due_matches(due: datetime | None, window: str, now: datetime) -> bool:
        """Check a finish date against a due window."""
        if window == "none":
            return due is None
        if due is None:
            return False

        if due.tzinfo is None:
            due = due.replace(tzinfo=UTC)
        now = now.astimezone(UTC)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

        if window == "overdue":
            return due < start_of_day

        if window == "today":
            start, end = start_of_day, start_of_day + timedelta(days=1)
        elif window == "week":
            # Weeks start on Sunday
            start = start_of_day - timedelta(days=(start_of_day.weekday() + 1) % 7)
            end = start + timedelta(days=7)
        else:
            start = start_of_day.replace(day=1)
            if start.month == 12:
                end = start.replace(year=start.year + 1, month=1)
            else:
                end = start.replace(month=start.month + 1)

        return start <= due < end
