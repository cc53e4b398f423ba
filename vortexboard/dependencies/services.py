from fastapi import Depends

from vortexboard.config import settings
from vortexboard.services.email import EmailService, build_email_service
from vortexboard.services.notifications import NotificationService


def get_email_service() -> EmailService:
    """FastAPI dependency for the email service (overridden in tests)."""
    return build_email_service(settings)


def get_notification_service(
    email_service: EmailService = Depends(get_email_service),
) -> NotificationService:
    return NotificationService(email_service)
