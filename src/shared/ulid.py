"""ULID helpers.

ULIDs are unique and roughly time-ordered, so they break ties between rows
sharing a `created_at` value in keyset pagination.
"""

import ulid

ULID_LENGTH = 26


def generate_ulid() -> str:
    """Return a string ULID for primary keys."""
    return str(ulid.new())


def is_ulid(value: str) -> bool:
    if len(value) != ULID_LENGTH:
        return False
    try:
        ulid.from_str(value)
    except ValueError:
        return False
    return True
