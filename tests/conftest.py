"""
Shared test configuration.

Environment defaults are set before any vortexboard module is imported so
that the settings object and the engine are built against a throwaway
in-memory database.
"""

import os
import tempfile

os.environ.setdefault("VORTEXBOARD_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "vortexboard-test-logs"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "vortexboard-test-uploads"))

import pytest

from vortexboard.models import Board, BoardCollaborator
from vortexboard.utils.object_id import generate_object_id


class RecordingTransport:
    """Email transport that keeps every message instead of sending it."""

    def __init__(self, fail: bool = False):
        self.messages = []
        self.fail = fail

    async def send(self, message) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.messages.append(message)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_board():
    """Build a transient board with the given owner and collaborators."""

    def _make_board(owner_id: str, collaborators: dict[str, str] | None = None) -> Board:
        board = Board(id=generate_object_id(), name="Roadmap", owner_id=owner_id)
        board.collaborators = [
            BoardCollaborator(user_id=user_id, permission=permission, position=index)
            for index, (user_id, permission) in enumerate((collaborators or {}).items())
        ]
        return board

    return _make_board
