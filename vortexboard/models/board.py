"""
Board and collaborator models.

A board is a named collection of tasks with a single owner and an ordered
list of collaborators, each holding a read or write permission. The owner is
fixed at creation and is never stored in the collaborator list.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from vortexboard.models.base import (
    Base,
    ObjectIdMixin,
    TimestampMixin,
    qualified,
    table_args,
)

BOARD_PERMISSIONS = ("read", "write")
DEFAULT_BOARD_COLOR = "#3B82F6"


class Board(Base, ObjectIdMixin, TimestampMixin):
    """Named collection of tasks owned by one user."""

    __tablename__ = "boards"
    __table_args__ = table_args(
        Index("ix_boards_owner_id_created_at", "owner_id", "created_at"),
    )

    name = Column(String(100), nullable=False, comment="Board name")

    description = Column(Text, nullable=True, comment="Optional description")

    color = Column(
        String(20),
        nullable=False,
        default=DEFAULT_BOARD_COLOR,
        comment="Display color",
    )

    owner_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
        comment="Reference to the owning user (never changes)",
    )

    owner = relationship("User", back_populates="owned_boards")

    collaborators = relationship(
        "BoardCollaborator",
        back_populates="board",
        order_by="BoardCollaborator.position",
        cascade="all, delete-orphan",
        doc="Collaborators in the order they were added",
    )

    tasks = relationship(
        "Task",
        back_populates="board",
        passive_deletes=True,
        doc="Tasks on this board",
    )

    def __repr__(self):
        return f"<Board(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"


class BoardCollaborator(Base, ObjectIdMixin, TimestampMixin):
    """A user granted read or write access to a board they do not own."""

    __tablename__ = "board_collaborators"
    __table_args__ = table_args(
        UniqueConstraint("board_id", "user_id", name="uq_board_collaborator"),
        Index("ix_board_collaborators_user_id", "user_id"),
    )

    board_id = Column(
        String(24),
        ForeignKey(qualified("boards.id"), ondelete="CASCADE"),
        nullable=False,
    )

    user_id = Column(
        String(24),
        ForeignKey(qualified("users.id"), ondelete="CASCADE"),
        nullable=False,
    )

    permission = Column(
        String(10),
        nullable=False,
        default="read",
        comment="Access level: read/write",
    )

    position = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Order in which the collaborator was added",
    )

    board = relationship("Board", back_populates="collaborators")
    user = relationship("User")

    @validates("permission")
    def validate_permission(self, key, value):
        if value not in BOARD_PERMISSIONS:
            raise ValueError(f"Invalid permission: {value}")
        return value

    def __repr__(self):
        return (
            f"<BoardCollaborator(board_id={self.board_id}, "
            f"user_id={self.user_id}, permission='{self.permission}')>"
        )
