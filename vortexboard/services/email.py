"""
Transactional email composition and delivery.

EmailService builds the messages (welcome, task assigned, board shared,
comment mention, due reminder) and hands them to a transport chosen at
construction time:

- ConsoleTransport: logs the message instead of sending it (development)
- SmtpTransport: delivers through smtplib in a worker thread

Sending is best-effort from the caller's point of view; failures are
raised here and logged by whoever dispatched the email.
"""

import asyncio
import smtplib
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Protocol

from vortexboard.config import Settings, settings
from vortexboard.utils.logger import setup_logger

logger = setup_logger("email_service")

PRIORITY_COLORS = {"high": "#EF4444", "medium": "#F59E0B", "low": "#10B981"}
NO_DESCRIPTION = "No description provided"


class EmailTransport(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class ConsoleTransport:
    """Writes outgoing messages to the log."""

    async def send(self, message: EmailMessage) -> None:
        logger.info(
            f"[console email] to={message['To']} subject={message['Subject']!r}"
        )


class SmtpTransport:
    """Delivers messages over SMTP without blocking the event loop."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: int = 15,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._send_sync, message)


def _wrap(body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"{body}"
        '<p style="color: #666;">The VortexBoard Team</p>'
        "</div>"
    )


def _format_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


class EmailService:
    def __init__(self, transport: EmailTransport, sender: str | None = None):
        self.transport = transport
        self.sender = sender or settings.email_from

    async def send_email(
        self, to: str, subject: str, html: str, text: str | None = None
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text or subject)
        message.add_alternative(html, subtype="html")

        try:
            await self.transport.send(message)
        except Exception as e:
            logger.error(f"Error sending email to {to}: {e}")
            raise
        logger.info(f"Email sent to {to}: {subject}")
        return message

    async def send_welcome_email(self, user) -> EmailMessage:
        html = _wrap(
            '<h1 style="color: #3B82F6;">Welcome to VortexBoard!</h1>'
            f"<p>Hi {escape(user.name)},</p>"
            "<p>Thank you for joining VortexBoard! We're excited to have you on board.</p>"
            "<h3>Getting Started:</h3>"
            "<ul>"
            "<li>Create your first board</li>"
            "<li>Add tasks and set priorities</li>"
            "<li>Invite team members to collaborate</li>"
            "<li>Track your progress with analytics</li>"
            "</ul>"
            "<p>Happy organizing!</p>"
        )
        return await self.send_email(
            user.email,
            "Welcome to VortexBoard!",
            html,
            f"Hi {user.name}, welcome to VortexBoard!",
        )

    async def send_task_assigned_email(self, task, assignee, assigner) -> EmailMessage:
        due = (
            f"<p><strong>Due Date:</strong> {_format_date(task.due_date)}</p>"
            if task.due_date
            else ""
        )
        color = PRIORITY_COLORS.get(task.priority, "#10B981")
        html = _wrap(
            '<h2 style="color: #3B82F6;">New Task Assigned</h2>'
            f"<p>Hi {escape(assignee.name)},</p>"
            f"<p>{escape(assigner.name)} has assigned you a new task:</p>"
            '<div style="background: #f3f4f6; padding: 15px; border-radius: 8px;">'
            f'<h3 style="margin-top: 0;">{escape(task.title)}</h3>'
            f"<p>{escape(task.description or NO_DESCRIPTION)}</p>"
            f'<p><strong>Priority:</strong> <span style="color: {color}">{task.priority}</span></p>'
            f"{due}"
            "</div>"
            "<p>Log in to VortexBoard to view the full details and get started!</p>"
        )
        return await self.send_email(
            assignee.email,
            f"New Task Assigned: {task.title}",
            html,
            f"{assigner.name} assigned you the task '{task.title}'.",
        )

    async def send_task_due_reminder_email(
        self, task, user, overdue: bool = False
    ) -> EmailMessage:
        heading = "Task Overdue" if overdue else "Task Due Soon"
        html = _wrap(
            f'<h2 style="color: #F59E0B;">{heading}</h2>'
            f"<p>Hi {escape(user.name)},</p>"
            "<p>This is a reminder about the following task:</p>"
            '<div style="background: #FEF3C7; padding: 15px; border-radius: 8px; '
            'border-left: 4px solid #F59E0B;">'
            f'<h3 style="margin-top: 0;">{escape(task.title)}</h3>'
            f"<p>{escape(task.description or NO_DESCRIPTION)}</p>"
            f"<p><strong>Due Date:</strong> {_format_date(task.due_date)}</p>"
            f"<p><strong>Status:</strong> {task.status}</p>"
            "</div>"
        )
        subject = (
            f'Reminder: Task "{task.title}" is overdue'
            if overdue
            else f'Reminder: Task "{task.title}" is due soon'
        )
        return await self.send_email(user.email, subject, html)

    async def send_board_shared_email(
        self, board, recipient, sharer, permission: str
    ) -> EmailMessage:
        permission_label = "Can Edit" if permission == "write" else "Read Only"
        html = _wrap(
            '<h2 style="color: #3B82F6;">Board Shared With You</h2>'
            f"<p>Hi {escape(recipient.name)},</p>"
            f"<p>{escape(sharer.name)} has shared a board with you:</p>"
            '<div style="background: #f3f4f6; padding: 15px; border-radius: 8px;">'
            f'<h3 style="margin-top: 0;">{escape(board.name)}</h3>'
            f"<p>{escape(board.description or NO_DESCRIPTION)}</p>"
            f"<p><strong>Your Permission:</strong> {permission_label}</p>"
            "</div>"
            "<p>Log in to VortexBoard to start collaborating!</p>"
        )
        return await self.send_email(
            recipient.email,
            f"{sharer.name} shared a board with you: {board.name}",
            html,
        )

    async def send_comment_mention_email(
        self, comment, task, mentioned_user, author
    ) -> EmailMessage:
        html = _wrap(
            '<h2 style="color: #3B82F6;">You were mentioned in a comment</h2>'
            f"<p>Hi {escape(mentioned_user.name)},</p>"
            f'<p>{escape(author.name)} mentioned you in a comment on task "{escape(task.title)}":</p>'
            '<div style="background: #f3f4f6; padding: 15px; border-radius: 8px; '
            'border-left: 4px solid #3B82F6;">'
            f'<p style="margin: 0;">{escape(comment.content)}</p>'
            "</div>"
            "<p>Log in to VortexBoard to view and respond!</p>"
        )
        return await self.send_email(
            mentioned_user.email,
            f"{author.name} mentioned you in a comment",
            html,
        )


def build_email_service(app_settings: Settings = settings) -> EmailService:
    """EmailService wired to the transport selected by EMAIL_BACKEND."""
    if app_settings.email_backend == "smtp":
        transport = SmtpTransport(
            host=app_settings.smtp_host,
            port=app_settings.smtp_port,
            username=app_settings.smtp_user,
            password=app_settings.smtp_password,
            use_tls=app_settings.smtp_use_tls,
            timeout=app_settings.smtp_timeout_seconds,
        )
    else:
        transport = ConsoleTransport()
    return EmailService(transport, sender=app_settings.email_from)
