"""
Identifier helpers shared by all tables.
"""
import re
import uuid

ID_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")


def new_id() -> str:
    """Generate an opaque 32-character hex identifier."""
    return uuid.uuid4().hex


def is_valid_id(value) -> bool:
    """Check that a value looks like an identifier produced by new_id()."""
    return isinstance(value, str) and bool(ID_PATTERN.match(value))
