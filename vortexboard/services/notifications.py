"""
Notification dispatch for domain events.

Each event helper creates the in-app notifications for that event and sends
the matching email where there is one. The actor of an event is never
notified about it. Everything here is best-effort: failures are logged per
recipient and never propagate to the caller, which runs these helpers as
background tasks after the response is sent.
"""

from vortexboard.db_handlers.notification import NotificationDBHandler
from vortexboard.models import Board, Comment, Task, User
from vortexboard.models.notification import Notification
from vortexboard.services.email import EmailService
from vortexboard.utils.logger import setup_logger

logger = setup_logger("notifications")


class NotificationService:
    def __init__(
        self,
        email_service: EmailService,
        handler: NotificationDBHandler | None = None,
    ):
        self.email = email_service
        self.handler = handler or NotificationDBHandler()

    async def notify(
        self,
        recipient_id: str,
        notification_type: str,
        title: str,
        message: str,
        entity_type: str,
        entity_id: str,
        sender_id: str | None = None,
        priority: str = "medium",
    ) -> Notification | None:
        """Create one notification. Returns None when skipped or on failure."""
        if not recipient_id or recipient_id == sender_id:
            return None
        try:
            return await self.handler.create(
                {
                    "recipient_id": recipient_id,
                    "sender_id": sender_id,
                    "type": notification_type,
                    "title": title,
                    "message": message,
                    "entity_type": entity_type,
                    "entity_id": entity_id,
                    "priority": priority,
                }
            )
        except Exception as e:
            logger.error(
                f"Failed to create {notification_type} notification for {recipient_id}: {e}"
            )
            return None

    async def _send(self, description: str, coro) -> bool:
        try:
            await coro
            return True
        except Exception as e:
            logger.error(f"Failed to send {description} email: {e}")
            return False

    async def welcome(self, user: User) -> None:
        await self._send("welcome", self.email.send_welcome_email(user))

    async def task_assigned(self, task: Task, assignee: User, actor: User) -> None:
        if assignee.id == actor.id:
            return
        await self.notify(
            assignee.id,
            "task_assigned",
            "New task assigned",
            f"{actor.name} assigned you the task '{task.title}'",
            "task",
            task.id,
            sender_id=actor.id,
            priority="high" if task.priority == "high" else "medium",
        )
        await self._send(
            "task assigned", self.email.send_task_assigned_email(task, assignee, actor)
        )

    async def task_completed(self, task: Task, actor: User) -> None:
        await self.notify(
            task.created_by_id,
            "task_completed",
            "Task completed",
            f"{actor.name} completed the task '{task.title}'",
            "task",
            task.id,
            sender_id=actor.id,
        )

    async def task_updated(self, task: Task, actor: User) -> None:
        await self.notify(
            task.assigned_to_id,
            "task_updated",
            "Task updated",
            f"{actor.name} updated the task '{task.title}'",
            "task",
            task.id,
            sender_id=actor.id,
            priority="low",
        )

    async def board_shared(
        self, board: Board, collaborator: User, actor: User, permission: str
    ) -> None:
        if collaborator.id == actor.id:
            return
        await self.notify(
            collaborator.id,
            "board_shared",
            "Board shared with you",
            f"{actor.name} shared the board '{board.name}' with you ({permission} access)",
            "board",
            board.id,
            sender_id=actor.id,
        )
        await self._send(
            "board shared",
            self.email.send_board_shared_email(board, collaborator, actor, permission),
        )

    async def comment_added(
        self,
        comment: Comment,
        task: Task,
        author: User,
        mentioned_users: list[User],
    ) -> None:
        """
        Mentioned users get a mention notification and email; the task's
        assignee and creator get a plain comment notification unless they
        were mentioned or wrote the comment.
        """
        mentioned_ids = set()
        for user in mentioned_users:
            if user.id == author.id:
                continue
            mentioned_ids.add(user.id)
            await self.notify(
                user.id,
                "comment_mention",
                "You were mentioned",
                f"{author.name} mentioned you on '{task.title}'",
                "comment",
                comment.id,
                sender_id=author.id,
            )
            await self._send(
                "comment mention",
                self.email.send_comment_mention_email(comment, task, user, author),
            )

        watchers = []
        for user_id in (task.assigned_to_id, task.created_by_id):
            if user_id and user_id not in watchers and user_id not in mentioned_ids:
                watchers.append(user_id)
        for user_id in watchers:
            await self.notify(
                user_id,
                "comment_added",
                "New comment",
                f"{author.name} commented on '{task.title}'",
                "comment",
                comment.id,
                sender_id=author.id,
                priority="low",
            )

    async def task_reminder(self, task: Task, overdue: bool) -> bool:
        """Due-soon or overdue reminder to the assignee. Returns True if created."""
        assignee = task.assigned_to
        notification_type = "task_overdue" if overdue else "task_due_soon"
        created = await self.notify(
            assignee.id,
            notification_type,
            "Task overdue" if overdue else "Task due soon",
            f"'{task.title}' is overdue"
            if overdue
            else f"'{task.title}' is due soon",
            "task",
            task.id,
            priority="high",
        )
        if created is None:
            return False
        await self._send(
            "due reminder",
            self.email.send_task_due_reminder_email(task, assignee, overdue=overdue),
        )
        return True
