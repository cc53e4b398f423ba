"""
Activity recording for mutating operations.

Entries are written after the response is produced (FastAPI background
tasks), each in its own session. Recording never raises: a failed write is
logged and dropped so the triggering request is unaffected.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import BackgroundTasks, Request

from vortexboard.db_handlers.activity_log import ActivityLogDBHandler
from vortexboard.models.activity_log import ActivityLog
from vortexboard.utils.logger import setup_logger

logger = setup_logger("activity")


@dataclass(frozen=True)
class RequestMeta:
    method: str | None = None
    path: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestMeta":
        return cls(
            method=request.method,
            path=request.url.path,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )


class ActivityRecorder:
    def __init__(self, handler: ActivityLogDBHandler | None = None):
        self.handler = handler or ActivityLogDBHandler()

    async def record(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        meta: RequestMeta | None = None,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog | None:
        meta = meta or RequestMeta()
        metadata = {"method": meta.method, "path": meta.path, **(details or {})}
        try:
            return await self.handler.create(
                {
                    "user_id": user_id,
                    "action": action,
                    "entity_type": entity_type,
                    "entity_id": entity_id,
                    "details": metadata,
                    "ip_address": meta.ip_address,
                    "user_agent": meta.user_agent,
                }
            )
        except Exception as e:
            logger.error(
                f"Failed to record activity {action} on {entity_type}:{entity_id} "
                f"for user {user_id}: {e}"
            )
            return None


def log_activity(
    background_tasks: BackgroundTasks,
    request: Request,
    user_id: str,
    action: str,
    entity_type: str,
    entity_id: str,
    **details: Any,
) -> None:
    """Schedule an activity entry to be written once the response is sent."""
    background_tasks.add_task(
        ActivityRecorder().record,
        user_id,
        action,
        entity_type,
        entity_id,
        RequestMeta.from_request(request),
        details or None,
    )
