"""EmailService composition against a recording transport."""

from types import SimpleNamespace

import pytest

from vortexboard.config import Settings
from vortexboard.services.email import (
    ConsoleTransport,
    EmailService,
    SmtpTransport,
    build_email_service,
)

ALICE = SimpleNamespace(id="a" * 24, name="Alice", email="alice@example.com")
BOB = SimpleNamespace(id="b" * 24, name="Bob <script>", email="bob@example.com")


@pytest.fixture
def email_service(transport):
    return EmailService(transport, sender="noreply@vortexboard.local")


def html_part(message) -> str:
    return message.get_body(preferencelist=("html",)).get_content()


async def test_welcome_email(email_service, transport):
    message = await email_service.send_welcome_email(ALICE)

    assert transport.messages == [message]
    assert message["To"] == "alice@example.com"
    assert message["From"] == "noreply@vortexboard.local"
    assert message["Subject"] == "Welcome to VortexBoard!"
    assert "Hi Alice" in html_part(message)


async def test_task_assigned_email_escapes_user_content(email_service, transport):
    task = SimpleNamespace(
        title="Fix <b>login</b>", description=None, priority="high", due_date=None
    )
    message = await email_service.send_task_assigned_email(task, ALICE, BOB)

    html = html_part(message)
    assert message["Subject"] == "New Task Assigned: Fix <b>login</b>"
    assert "Fix &lt;b&gt;login&lt;/b&gt;" in html
    assert "Bob &lt;script&gt;" in html
    assert "No description provided" in html


async def test_due_reminder_subject_depends_on_overdue(email_service):
    task = SimpleNamespace(
        title="Report", description="Q3", status="todo", due_date=None, priority="low"
    )
    soon = await email_service.send_task_due_reminder_email(task, ALICE)
    late = await email_service.send_task_due_reminder_email(task, ALICE, overdue=True)

    assert soon["Subject"] == 'Reminder: Task "Report" is due soon'
    assert late["Subject"] == 'Reminder: Task "Report" is overdue'


async def test_board_shared_email_labels_permission(email_service):
    board = SimpleNamespace(name="Roadmap", description="Plans")
    message = await email_service.send_board_shared_email(board, ALICE, BOB, "write")

    assert "Can Edit" in html_part(message)
    assert message["Subject"] == "Bob <script> shared a board with you: Roadmap"


async def test_transport_failure_is_raised(transport):
    transport.fail = True
    service = EmailService(transport, sender="noreply@vortexboard.local")

    with pytest.raises(ConnectionError):
        await service.send_welcome_email(ALICE)


def test_build_email_service_selects_transport():
    console = build_email_service(Settings(EMAIL_BACKEND="console"))
    smtp = build_email_service(
        Settings(EMAIL_BACKEND="smtp", SMTP_HOST="mail.example.com", SMTP_PORT=2525)
    )

    assert isinstance(console.transport, ConsoleTransport)
    assert isinstance(smtp.transport, SmtpTransport)
    assert smtp.transport.host == "mail.example.com"
    assert smtp.transport.port == 2525
