"""
24-character hexadecimal identifiers in the object-id layout.

Layout: 4-byte big-endian seconds timestamp, 5 random bytes fixed per process,
3-byte counter. Ids sort roughly by creation time.
"""

import itertools
import os
import re
import threading
import time
from datetime import UTC, datetime

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

_process_random = os.urandom(5)
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
_lock = threading.Lock()


def generate_object_id() -> str:
    """Return a new lower-case 24-hex identifier."""
    with _lock:
        count = next(_counter) & 0xFFFFFF
    raw = (
        int(time.time()).to_bytes(4, "big")
        + _process_random
        + count.to_bytes(3, "big")
    )
    return raw.hex()


def is_valid_object_id(value) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_PATTERN.match(value))


def object_id_timestamp(value: str) -> datetime:
    """Creation time encoded in the first four bytes of an id."""
    return datetime.fromtimestamp(int(value[:8], 16), tz=UTC)
