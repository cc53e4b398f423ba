"""
Aggregation reports over tasks.

The arithmetic lives in small pure helpers (completion rate, average
completion time, daily trend, on-time rate) so it can be checked without a
database; the report builders gather rows through the handlers and feed
them to those helpers.

Grouped counts never contain zero entries: a status, priority, assignee or
day with no tasks is simply absent from the result.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from vortexboard.db_handlers.activity_log import ActivityLogDBHandler
from vortexboard.db_handlers.board import BoardDBHandler
from vortexboard.db_handlers.task import TaskDBHandler
from vortexboard.models import Board, Task
from vortexboard.models.base import as_utc, utc_now
from vortexboard.utils.logger import setup_logger

logger = setup_logger("analytics")

SECONDS_PER_DAY = 24 * 60 * 60
RECENT_ACTIVITY_DAYS = 7
RECENT_ACTIVITY_LIMIT = 10
CREATION_TREND_DAYS = 30
BOARD_ACTIVITY_LIMIT = 20
DUE_WINDOW_DAYS = 7


def completion_rate(completed: int, total: int) -> float:
    """Percentage of completed tasks, two decimals; 0 when there are no tasks."""
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 2)


def average_completion_days(
    spans: Iterable[tuple[datetime, datetime | None]],
) -> float:
    """
    Mean of (completed - created) in days over the spans that have a
    completion time, two decimals; 0 when none do.
    """
    durations = [
        (as_utc(completed) - as_utc(created)).total_seconds()
        for created, completed in spans
        if completed is not None and created is not None
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations) / SECONDS_PER_DAY, 2)


def daily_trend(timestamps: Iterable[datetime]) -> list[dict]:
    """Counts per UTC calendar day (``YYYY-MM-DD``), ascending by day."""
    counts = Counter(
        as_utc(ts).strftime("%Y-%m-%d") for ts in timestamps if ts is not None
    )
    return [{"date": day, "count": counts[day]} for day in sorted(counts)]


def on_time_rate(pairs: Iterable[tuple[datetime | None, datetime | None]]) -> float:
    """
    Share of completed tasks finished on or before their own due date, as a
    percentage with two decimals. Tasks without a due date count as on time.
    """
    completed = [
        (completed_at, due_date)
        for completed_at, due_date in pairs
        if completed_at is not None
    ]
    on_time = sum(
        1
        for completed_at, due_date in completed
        if due_date is None or as_utc(completed_at) <= as_utc(due_date)
    )
    return completion_rate(on_time, len(completed))


def activity_entry(entry, include_user: bool = False) -> dict:
    data = {
        "id": entry.id,
        "action": entry.action,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "metadata": entry.details or {},
        "timestamp": entry.timestamp.isoformat(),
    }
    if include_user:
        data["user"] = (
            {"id": entry.user.id, "name": entry.user.name, "email": entry.user.email}
            if entry.user
            else None
        )
    return data


class AnalyticsService:
    """Builds the dashboard, board and productivity reports."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.boards = BoardDBHandler()
        self.tasks = TaskDBHandler()
        self.activity = ActivityLogDBHandler()

    async def dashboard(self, user_id: str, now: datetime | None = None) -> dict:
        now = now or utc_now()
        board_ids = await self.boards.get_accessible_board_ids(user_id, db=self.db)
        in_boards = Task.board_id.in_(board_ids)
        open_task = Task.status != "done"

        total_tasks = await self.tasks.count(in_boards, db=self.db)
        completed = await self.tasks.count(in_boards, Task.status == "done", db=self.db)
        overdue = await self.tasks.count(
            in_boards, open_task, Task.due_date < now, db=self.db
        )
        due_this_week = await self.tasks.count(
            in_boards,
            open_task,
            Task.due_date >= now,
            Task.due_date <= now + timedelta(days=DUE_WINDOW_DAYS),
            db=self.db,
        )
        assigned_to_me = await self.tasks.count(
            in_boards, Task.assigned_to_id == user_id, db=self.db
        )
        created_by_me = await self.tasks.count(
            in_boards, Task.created_by_id == user_id, db=self.db
        )

        recent_activity = await self.activity.get_user_activity(
            user_id,
            since=now - timedelta(days=RECENT_ACTIVITY_DAYS),
            limit=RECENT_ACTIVITY_LIMIT,
            db=self.db,
        )
        created_rows = await self.tasks.get_column_values(
            [Task.created_at],
            in_boards,
            Task.created_at >= now - timedelta(days=CREATION_TREND_DAYS),
            db=self.db,
        )

        return {
            "overview": {
                "total_boards": len(board_ids),
                "total_tasks": total_tasks,
                "tasks_assigned_to_me": assigned_to_me,
                "tasks_created_by_me": created_by_me,
                "overdue_tasks": overdue,
                "tasks_due_this_week": due_this_week,
                "completion_rate": completion_rate(completed, total_tasks),
            },
            "tasks_by_status": await self.tasks.count_grouped(
                Task.status, in_boards, db=self.db
            ),
            "tasks_by_priority": await self.tasks.count_grouped(
                Task.priority, in_boards, db=self.db
            ),
            "recent_activity": [activity_entry(entry) for entry in recent_activity],
            "task_creation_trend": daily_trend(row[0] for row in created_rows),
        }

    async def board(self, board: Board, now: datetime | None = None) -> dict:
        now = now or utc_now()
        on_board = Task.board_id == board.id

        spans = await self.tasks.get_column_values(
            [Task.created_at, Task.completed_at],
            on_board,
            Task.status == "done",
            db=self.db,
        )
        board_activity = await self.activity.get_entity_activity(
            "board", board.id, limit=BOARD_ACTIVITY_LIMIT, db=self.db
        )

        return {
            "board_name": board.name,
            "total_tasks": await self.tasks.count(on_board, db=self.db),
            "tasks_by_status": await self.tasks.count_grouped(
                Task.status, on_board, db=self.db
            ),
            "tasks_by_priority": await self.tasks.count_grouped(
                Task.priority, on_board, db=self.db
            ),
            "tasks_by_assignee": await self.tasks.count_by_assignee(
                on_board, db=self.db
            ),
            "avg_completion_time": average_completion_days(spans),
            "overdue_tasks": await self.tasks.count(
                on_board, Task.status != "done", Task.due_date < now, db=self.db
            ),
            "collaborators": len(board.collaborators),
            "board_activity": [
                activity_entry(entry, include_user=True) for entry in board_activity
            ],
        }

    async def productivity(
        self, user_id: str, period: int, now: datetime | None = None
    ) -> dict:
        now = now or utc_now()
        start = now - timedelta(days=period)
        assigned = Task.assigned_to_id == user_id

        completed_rows = await self.tasks.get_column_values(
            [Task.completed_at, Task.due_date],
            assigned,
            Task.status == "done",
            Task.completed_at >= start,
            db=self.db,
        )
        updated_rows = await self.tasks.get_column_values(
            [Task.updated_at], assigned, Task.updated_at >= start, db=self.db
        )

        return {
            "period": period,
            "tasks_completed": len(completed_rows),
            "tasks_created": await self.tasks.count(
                Task.created_by_id == user_id, Task.created_at >= start, db=self.db
            ),
            "active_tasks": await self.tasks.count(
                assigned, Task.status.in_(("todo", "in-progress")), db=self.db
            ),
            "on_time_completion_rate": on_time_rate(completed_rows),
            "daily_activity": daily_trend(row[0] for row in updated_rows),
        }
