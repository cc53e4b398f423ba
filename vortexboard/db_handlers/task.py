from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vortexboard.db_handlers.base import BaseDBHandler, check_local_db
from vortexboard.models import Attachment, Comment, Task, User
from vortexboard.utils.logger import setup_logger

logger = setup_logger("db_handlers.task")

SORTABLE_TASK_FIELDS = {
    "position": Task.position,
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "due_date": Task.due_date,
    "priority": Task.priority,
    "status": Task.status,
    "title": Task.title,
}


def task_load_options() -> list:
    return [selectinload(Task.created_by), selectinload(Task.assigned_to)]


def sort_field(sort: str | None) -> str:
    """Field name of a sort expression such as ``position`` or ``-due_date``."""
    return (sort or "position").strip().lstrip("-+")


def tag_match_clause(dialect_name: str, term: str):
    """
    EXISTS over the elements of the tags array, matching each tag's decoded
    text case-insensitively.
    """
    if dialect_name == "postgresql":
        elements = func.json_array_elements_text(Task.tags).table_valued("value")
    else:
        elements = func.json_each(Task.tags).table_valued("value")
    return (
        select(1)
        .select_from(elements)
        .where(func.lower(elements.c.value).contains(term, autoescape=True))
        .correlate(Task)
        .exists()
    )


def task_sort_clauses(sort: str | None) -> list:
    """
    Translate a sort expression into ORDER BY clauses. A leading ``-`` sorts
    descending. Callers validate the field against SORTABLE_TASK_FIELDS.
    """
    field = sort_field(sort)
    if field not in SORTABLE_TASK_FIELDS:
        raise ValueError(f"Unsortable task field: {field}")
    column = SORTABLE_TASK_FIELDS[field]
    descending = (sort or "").strip().startswith("-")
    primary = column.desc() if descending else column.asc()
    return [primary, Task.created_at.desc(), Task.id.desc()]


class TaskDBHandler(BaseDBHandler[Task]):
    def __init__(self):
        super().__init__(Task)

    @check_local_db
    async def get_task(self, task_id: str, *, db: AsyncSession = None) -> Task | None:
        """Get a task with creator and assignee loaded."""
        stmt = (
            select(Task)
            .where(Task.id == task_id)
            .options(*task_load_options())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @check_local_db
    async def next_position(self, board_id: str, *, db: AsyncSession = None) -> int:
        """Position after the last task of the board; 0 on an empty board."""
        result = await db.execute(
            select(func.max(Task.position)).where(Task.board_id == board_id)
        )
        max_position = result.scalar_one_or_none()
        return 0 if max_position is None else max_position + 1

    @check_local_db
    async def create_task(
        self, data: dict[str, Any], *, db: AsyncSession = None
    ) -> Task:
        data = dict(data)
        data["position"] = await self.next_position(data["board_id"], db=db)
        task = await self.create(data, db=db)
        logger.debug(f"Created task {task.id} at position {task.position}")
        return await self.get_task(task.id, db=db)

    @check_local_db
    async def update_task(
        self, task: Task, data: dict[str, Any], *, db: AsyncSession = None
    ) -> Task:
        await self.update(task, data, db=db)
        return await self.get_task(task.id, db=db)

    @check_local_db
    async def list_board_tasks(
        self,
        board_id: str,
        *,
        status: str | None = None,
        priority: str | None = None,
        search: str | None = None,
        sort: str | None = None,
        page: int = 1,
        limit: int = 50,
        db: AsyncSession = None,
    ) -> tuple[list[Task], int]:
        stmt = select(Task).where(Task.board_id == board_id)
        if status:
            stmt = stmt.where(Task.status == status)
        if priority:
            stmt = stmt.where(Task.priority == priority)
        if search and search.strip():
            term = search.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(Task.title).contains(term, autoescape=True),
                    func.lower(func.coalesce(Task.description, "")).contains(
                        term, autoescape=True
                    ),
                    tag_match_clause(db.get_bind().dialect.name, term),
                )
            )
        stmt = stmt.options(*task_load_options()).order_by(*task_sort_clauses(sort))
        return await self.paginate(stmt, page=page, limit=limit, db=db)

    @check_local_db
    async def get_tasks_by_status(
        self, board_id: str, status: str, *, db: AsyncSession = None
    ) -> list[Task]:
        """Tasks in one status column, by position then newest first."""
        return await self.get_multi_by_attributes(
            db=db,
            limit=None,
            board_id=board_id,
            status=status,
            options=task_load_options(),
            order_by=[Task.position.asc(), Task.created_at.desc()],
        )

    @check_local_db
    async def get_overdue_tasks(
        self, board_id: str, now: datetime, *, db: AsyncSession = None
    ) -> list[Task]:
        """Open tasks whose due date has passed, earliest due first."""
        stmt = (
            select(Task)
            .where(
                Task.board_id == board_id,
                Task.due_date.is_not(None),
                Task.due_date < now,
                Task.status != "done",
            )
            .options(*task_load_options())
            .order_by(Task.due_date.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def delete_task(self, task_id: str, *, db: AsyncSession = None) -> list[str]:
        """
        Delete a task with its comments and attachment records.

        Returns the storage paths of the removed attachments.
        """
        try:
            paths = (
                await db.execute(
                    select(Attachment.path).where(Attachment.task_id == task_id)
                )
            ).scalars().all()
            await db.execute(delete(Comment).where(Comment.task_id == task_id))
            await db.execute(delete(Attachment).where(Attachment.task_id == task_id))
            await db.execute(delete(Task).where(Task.id == task_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error deleting task {task_id}: {e}", exc_info=True)
            raise
        return list(paths)

    # --- Aggregations ---

    @check_local_db
    async def count_grouped(
        self, column, *conditions, db: AsyncSession = None
    ) -> dict[str, int]:
        """Task counts grouped by a column. Groups with no tasks are absent."""
        stmt = select(column, func.count()).where(*conditions).group_by(column)
        result = await db.execute(stmt)
        return {key: count for key, count in result.all() if key is not None}

    @check_local_db
    async def count_by_assignee(
        self, *conditions, db: AsyncSession = None
    ) -> list[dict[str, Any]]:
        """Per-assignee task counts with the assignee's id, name and email."""
        stmt = (
            select(User.id, User.name, User.email, func.count(Task.id))
            .join(User, Task.assigned_to_id == User.id)
            .where(*conditions)
            .group_by(User.id, User.name, User.email)
            .order_by(func.count(Task.id).desc(), User.name.asc())
        )
        result = await db.execute(stmt)
        return [
            {"id": user_id, "name": name, "email": email, "count": count}
            for user_id, name, email, count in result.all()
        ]

    @check_local_db
    async def get_column_values(
        self, columns: list, *conditions, db: AsyncSession = None
    ) -> list[tuple]:
        """Raw column tuples for tasks matching the conditions."""
        result = await db.execute(select(*columns).where(*conditions))
        return [tuple(row) for row in result.all()]

    @check_local_db
    async def get_reminder_candidates(
        self, start: datetime | None, end: datetime, *, db: AsyncSession = None
    ) -> list[Task]:
        """Assigned open tasks due before ``end`` (and at or after ``start`` when given)."""
        conditions = [
            Task.assigned_to_id.is_not(None),
            Task.due_date.is_not(None),
            Task.status != "done",
            Task.due_date < end,
        ]
        if start is not None:
            conditions.append(Task.due_date >= start)
        stmt = (
            select(Task)
            .where(*conditions)
            .options(selectinload(Task.assigned_to), selectinload(Task.board))
            .order_by(Task.due_date.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
