"""
Common utilities package for VortexBoard.

Logging and identifier helpers shared across the application. Authentication
helpers are imported from vortexboard.utils.auth.
"""

from vortexboard.utils.logger import setup_logger
from vortexboard.utils.object_id import (
    generate_object_id,
    is_valid_object_id,
    object_id_timestamp,
)

__all__ = [
    "setup_logger",
    "generate_object_id",
    "is_valid_object_id",
    "object_id_timestamp",
]
