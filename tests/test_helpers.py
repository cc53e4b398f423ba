"""Identifier, mention, tag and attachment helpers."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from vortexboard.db_handlers.task import sort_field, task_sort_clauses
from vortexboard.models import Comment
from vortexboard.models.attachment import (
    file_extension,
    format_file_size,
    is_document,
    is_image,
)
from vortexboard.models.comment import extract_mentions
from vortexboard.models.task import normalize_tags
from vortexboard.schemas import BoardCreate, TaskCreate, UserRegister, total_pages
from vortexboard.utils.object_id import (
    generate_object_id,
    is_valid_object_id,
    object_id_timestamp,
)

USER_A = "65f1a2b3c4d5e6f708192a3b"
USER_B = "65F1A2B3C4D5E6F708192A3C"


def test_generated_ids_are_unique_24_hex():
    ids = {generate_object_id() for _ in range(500)}
    assert len(ids) == 500
    assert all(is_valid_object_id(value) for value in ids)


@pytest.mark.parametrize(
    "value", ["", "123", "z" * 24, USER_A + "0", None, 12345, "65f1a2b3c4d5e6f708192a3"]
)
def test_invalid_object_ids(value):
    assert not is_valid_object_id(value)


def test_object_id_encodes_creation_time():
    before = int(datetime.now(UTC).timestamp())
    created = object_id_timestamp(generate_object_id())
    assert before - 1 <= int(created.timestamp()) <= before + 1


def test_mentions_are_parsed_in_order_without_duplicates():
    content = (
        f"Thanks @[Bob]({USER_B}) and @[Alice]({USER_A}), "
        f"ping @[Bob again]({USER_B.lower()})"
    )
    assert extract_mentions(content) == [USER_B.lower(), USER_A]


def test_mentions_ignore_malformed_tokens():
    assert extract_mentions("@Bob @[Bob](123) @[](65f1a2b3c4d5e6f708192a3b)") == []
    assert extract_mentions(None) == []


def test_comment_content_derives_mentions():
    comment = Comment(content=f"  hi @[Alice]({USER_A})  ")
    assert comment.content == f"hi @[Alice]({USER_A})"
    assert comment.mentions == [USER_A]


def test_normalize_tags():
    assert normalize_tags([" ui ", "", "backend", "ui", "  "]) == ["ui", "backend"]
    assert normalize_tags(None) == []


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (3 * 1024**3, "3 GB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_file_extension():
    assert file_extension("report.final.pdf") == "pdf"
    assert file_extension("archive.tar.gz") == "gz"


def test_mime_classification():
    assert is_image("image/png")
    assert not is_image("application/pdf")
    assert is_document("application/pdf")
    assert not is_document("text/plain")


def test_total_pages():
    assert total_pages(0, 10) == 0
    assert total_pages(10, 10) == 1
    assert total_pages(11, 10) == 2


def test_register_schema_collects_every_error():
    with pytest.raises(ValidationError) as exc_info:
        UserRegister(name=" ", email="not-an-email", password="123")
    messages = [error["msg"] for error in exc_info.value.errors()]
    assert messages == [
        "Value error, Name is required",
        "Value error, Valid email is required",
        "Value error, Password must be at least 6 characters",
    ]


def test_register_schema_normalizes_email():
    user = UserRegister(name="Alice", email="  Alice@Example.com ", password="secret1")
    assert user.email == "alice@example.com"


def test_board_schema_rejects_bad_color_and_long_name():
    with pytest.raises(ValidationError):
        BoardCreate(name="Roadmap", color="blue")
    with pytest.raises(ValidationError):
        BoardCreate(name="x" * 101)


def test_task_schema_normalizes_input():
    task = TaskCreate(
        title="  Ship it ",
        tags=["a", "a", " b "],
        due_date="2024-05-01T10:00:00+02:00",
        assigned_to=USER_B,
    )
    assert task.title == "Ship it"
    assert task.tags == ["a", "b"]
    assert task.due_date == datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
    assert task.assigned_to == USER_B.lower()


def test_task_schema_rejects_unknown_status():
    with pytest.raises(ValidationError, match="Status must be one of"):
        TaskCreate(title="Ship it", status="blocked")


def test_sort_field_strips_direction():
    assert sort_field(None) == "position"
    assert sort_field("-due_date") == "due_date"
    assert sort_field(" +title ") == "title"


def test_task_sort_clauses_rejects_unknown_field_without_api_error():
    assert len(task_sort_clauses("-due_date")) == 3
    with pytest.raises(ValueError, match="color"):
        task_sort_clauses("color")
