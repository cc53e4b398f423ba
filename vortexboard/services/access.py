"""
Board access evaluation.

Pure predicates over an already-loaded board (owner id plus collaborator
rows). The owner is always a full participant even though it never appears
in the collaborator list.
"""

from enum import Enum

from vortexboard.models.board import Board


class AccessLevel(str, Enum):
    OWNER = "owner"
    WRITE = "write"
    READ = "read"
    NONE = "none"


def permission_map(board: Board) -> dict[str, str]:
    """Map of collaborator user id to permission."""
    return {
        collaborator.user_id: collaborator.permission
        for collaborator in board.collaborators
    }


def access_level(board: Board, user_id: str | None) -> AccessLevel:
    if not user_id:
        return AccessLevel.NONE
    if board.owner_id == user_id:
        return AccessLevel.OWNER
    permission = permission_map(board).get(user_id)
    if permission is None:
        return AccessLevel.NONE
    return AccessLevel(permission)


def has_access(board: Board, user_id: str | None) -> bool:
    return access_level(board, user_id) is not AccessLevel.NONE


def can_edit(board: Board, user_id: str | None) -> bool:
    return access_level(board, user_id) in (AccessLevel.OWNER, AccessLevel.WRITE)


def is_owner(board: Board, user_id: str | None) -> bool:
    return access_level(board, user_id) is AccessLevel.OWNER
