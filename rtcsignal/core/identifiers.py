"""Connection identifier generation.

IDs are 24 characters drawn from [0-9a-zA-Z] using the ``secrets`` CSPRNG,
so they double as unguessable capability tokens for the session routes.
"""

from __future__ import annotations

import secrets
import string

CONNECTION_ID_LENGTH: int = 24
CONNECTION_ID_ALPHABET: str = string.digits + string.ascii_letters


def generate_connection_id(existing_ids: set[str] | None = None) -> str:
    """Generate a fresh connection ID.

    Args:
        existing_ids: IDs that must not be returned (live or pending).

    Returns:
        A 24-character alphanumeric ID not present in existing_ids.
    """
    taken = existing_ids or set()
    while True:
        candidate = "".join(
            secrets.choice(CONNECTION_ID_ALPHABET) for _ in range(CONNECTION_ID_LENGTH)
        )
        if candidate not in taken:
            return candidate
