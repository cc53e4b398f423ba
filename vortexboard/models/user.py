"""
User model for authentication and board ownership.

Architecture:
    User → Board (owner / collaborator) → Task → Comment / Attachment

Key Features:
    - Bcrypt password hashing (hash only, never the plain password)
    - Email-based identification, stored lower-cased and unique
    - Role for administrative access
"""

from sqlalchemy import Column, Index, String
from sqlalchemy.orm import relationship, validates

from vortexboard.models.base import Base, ObjectIdMixin, TimestampMixin, table_args

USER_ROLES = ("user", "admin")


class User(Base, ObjectIdMixin, TimestampMixin):
    """
    Registered account. Identity (id) never changes; name, email and
    password can be updated by the user.
    """

    __tablename__ = "users"
    __table_args__ = table_args(
        Index("ix_users_email", "email", unique=True),
    )

    name = Column(
        String(100),
        nullable=False,
        comment="Display name",
    )

    email = Column(
        String(255),
        nullable=False,
        comment="Unique login email, stored lower-cased",
    )

    hashed_password = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password for secure authentication",
    )

    role = Column(
        String(10),
        nullable=False,
        default="user",
        comment="Account role: user/admin",
    )

    owned_boards = relationship(
        "Board",
        back_populates="owner",
        doc="Boards created by this user",
    )

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value

    @validates("role")
    def validate_role(self, key, value):
        if value not in USER_ROLES:
            raise ValueError(f"Invalid role: {value}")
        return value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
