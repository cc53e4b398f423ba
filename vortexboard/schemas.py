import re
from datetime import datetime
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from vortexboard.models.attachment import file_extension, format_file_size
from vortexboard.models.attachment import is_document as mime_is_document
from vortexboard.models.attachment import is_image as mime_is_image
from vortexboard.models.base import as_utc, utc_now
from vortexboard.models.board import BOARD_PERMISSIONS
from vortexboard.models.task import TASK_PRIORITIES, TASK_STATUSES, normalize_tags
from vortexboard.utils.logger import setup_logger
from vortexboard.utils.object_id import is_valid_object_id

logger = setup_logger("schemas")

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
MIN_PASSWORD_LENGTH = 6


def _required_text(value: str | None, label: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


def _optional_text(value: str | None, label: str, max_length: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


def _valid_email(value: str | None) -> str:
    try:
        return validate_email(
            (value or "").strip(), check_deliverability=False
        ).normalized.lower()
    except EmailNotValidError as e:
        raise ValueError("Valid email is required") from e


def _one_of(value: str | None, allowed: tuple[str, ...], label: str) -> str | None:
    if value is not None and value not in allowed:
        raise ValueError(f"{label} must be one of: {', '.join(allowed)}")
    return value


def _object_id(value: str | None, label: str) -> str | None:
    if value is None:
        return None
    if not is_valid_object_id(value):
        raise ValueError(f"Invalid {label} format")
    return value.lower()


# ===== Users & authentication =====


class UserRegister(BaseModel):
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password, at least 6 characters")

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _required_text(v, "Name", 100)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _valid_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return v


class UserLogin(BaseModel):
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _valid_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class UserUpdateDetails(BaseModel):
    name: str | None = None
    email: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return None if v is None else _required_text(v, "Name", 100)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str | None) -> str | None:
        return None if v is None else _valid_email(v)


class UserUpdatePassword(BaseModel):
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., description="New password, at least 6 characters")

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return v


class UserBrief(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserSummary(UserBrief):
    role: str
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    success: bool = True
    token: str = Field(..., description="JWT bearer token")
    user: UserSummary


class UserResponse(BaseModel):
    success: bool = True
    user: UserSummary


class MessageResponse(BaseModel):
    success: bool = True
    message: str = Field(..., description="Response message")


# ===== Boards =====


class BoardCreate(BaseModel):
    name: str = Field(..., description="Board name (1-100 characters)")
    description: str | None = Field(None, description="Up to 500 characters")
    color: str | None = Field(None, description="Hex display color")

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _required_text(v, "Board name", 100)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        return _optional_text(v, "Description", 500)

    @field_validator("color")
    @classmethod
    def check_color(cls, v: str | None) -> str | None:
        if v is not None and not HEX_COLOR.match(v):
            raise ValueError("Color must be a hex color such as #3B82F6")
        return v


class BoardUpdate(BoardCreate):
    name: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return None if v is None else _required_text(v, "Board name", 100)


class CollaboratorAdd(BaseModel):
    user_id: str = Field(..., description="Id of the user to add")
    permission: str = Field("read", description="read or write")

    @field_validator("user_id")
    @classmethod
    def check_user_id(cls, v: str) -> str:
        return _object_id(v, "user ID")

    @field_validator("permission")
    @classmethod
    def check_permission(cls, v: str) -> str:
        return _one_of(v, BOARD_PERMISSIONS, "Permission")


class CollaboratorOut(BaseModel):
    user: UserBrief
    permission: str
    added_at: datetime = Field(validation_alias="created_at")

    model_config = ConfigDict(from_attributes=True)


class BoardOut(BaseModel):
    id: str
    name: str
    description: str | None
    color: str
    owner: UserBrief
    collaborators: list[CollaboratorOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BoardResponse(BaseModel):
    success: bool = True
    board: BoardOut


class BoardListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    total_pages: int
    current_page: int
    boards: list[BoardOut]


# ===== Tasks =====


class TaskCreate(BaseModel):
    title: str = Field(..., description="Task title (1-200 characters)")
    description: str | None = Field(None, description="Up to 2000 characters")
    status: str | None = Field(None, description="todo, in-progress or done")
    priority: str | None = Field(None, description="low, medium or high")
    due_date: datetime | None = None
    assigned_to: str | None = Field(None, description="Assignee user id")
    tags: list[str] | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _required_text(v, "Task title", 200)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        return _optional_text(v, "Description", 2000)

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str | None) -> str | None:
        return _one_of(v, TASK_STATUSES, "Status")

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v: str | None) -> str | None:
        return _one_of(v, TASK_PRIORITIES, "Priority")

    @field_validator("due_date")
    @classmethod
    def check_due_date(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @field_validator("assigned_to")
    @classmethod
    def check_assigned_to(cls, v: str | None) -> str | None:
        return _object_id(v, "assignee ID")

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else normalize_tags(v)


class TaskUpdate(TaskCreate):
    title: str | None = None
    position: int | None = Field(None, ge=0, description="Manual ordering")

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        return None if v is None else _required_text(v, "Task title", 200)


class TaskOut(BaseModel):
    id: str
    title: str
    description: str | None
    board_id: str
    created_by: UserBrief | None
    assigned_to: UserBrief | None
    status: str
    priority: str
    due_date: datetime | None
    tags: list[str]
    position: int
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status == "done":
            return False
        return as_utc(self.due_date) < utc_now()


class TaskResponse(BaseModel):
    success: bool = True
    task: TaskOut


class TaskListResponse(BaseModel):
    success: bool = True
    count: int
    total: int | None = None
    total_pages: int | None = None
    current_page: int | None = None
    tasks: list[TaskOut]


# ===== Comments =====


class CommentCreate(BaseModel):
    content: str = Field(..., description="Comment text (1-1000 characters)")
    parent_comment_id: str | None = Field(None, description="Comment being replied to")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return _required_text(v, "Comment content", 1000)

    @field_validator("parent_comment_id")
    @classmethod
    def check_parent(cls, v: str | None) -> str | None:
        return _object_id(v, "parent comment ID")


class CommentUpdate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return _required_text(v, "Comment content", 1000)


class CommentOut(BaseModel):
    id: str
    content: str
    task_id: str
    author: UserBrief | None
    parent_comment_id: str | None
    mentions: list[str]
    is_edited: bool
    edited_at: datetime | None
    created_at: datetime
    updated_at: datetime
    replies: list["CommentOut"] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    success: bool = True
    comment: CommentOut


class CommentListResponse(BaseModel):
    success: bool = True
    count: int
    comments: list[CommentOut]


# ===== Attachments =====


class AttachmentOut(BaseModel):
    id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    task_id: str
    uploaded_by: UserBrief | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def extension(self) -> str:
        return file_extension(self.original_name)

    @computed_field
    @property
    def formatted_size(self) -> str:
        return format_file_size(self.size)

    @computed_field
    @property
    def is_image(self) -> bool:
        return mime_is_image(self.mime_type)

    @computed_field
    @property
    def is_document(self) -> bool:
        return mime_is_document(self.mime_type)


class AttachmentResponse(BaseModel):
    success: bool = True
    attachment: AttachmentOut


class AttachmentListResponse(BaseModel):
    success: bool = True
    count: int
    attachments: list[AttachmentOut]


# ===== Notifications =====


class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    entity_type: str
    entity_id: str
    is_read: bool
    read_at: datetime | None
    priority: str
    sender: UserBrief | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationResponse(BaseModel):
    success: bool = True
    notification: NotificationOut


class NotificationListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    total_pages: int
    current_page: int
    unread_count: int
    notifications: list[NotificationOut]


class UnreadCountResponse(BaseModel):
    success: bool = True
    count: int


class MarkAllReadResponse(BaseModel):
    success: bool = True
    message: str
    modified: int


# ===== Activity & analytics =====


class ActivityOut(BaseModel):
    id: str
    action: str
    entity_type: str
    entity_id: str
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="details")
    ip_address: str | None = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityListResponse(BaseModel):
    success: bool = True
    count: int
    activities: list[ActivityOut]


class AnalyticsResponse(BaseModel):
    success: bool = True
    analytics: dict[str, Any]


def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit if limit > 0 else 0
