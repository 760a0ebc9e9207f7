"""ULID and session identifier helpers."""

from datetime import date, time

import ulid

# Characters of a ULID after its 48-bit timestamp: 80 random bits
_ULID_RANDOM_CHARS = 16


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def build_session_id(prefix: str, entity_id: str, session_date: date, start_time: time) -> str:
    """
    Build the public session identifier.

    Format: ``<prefix>_<last 8 of entity id>_<YYYYMMDD>_<HHMM>_<16 random chars>``.
    Both variable parts come from the random half of a ULID, so entities
    created in the same millisecond still get distinct ids.
    """
    return "_".join(
        [
            prefix,
            str(entity_id)[-8:],
            session_date.strftime("%Y%m%d"),
            start_time.strftime("%H%M"),
            generate_ulid()[-_ULID_RANDOM_CHARS:],
        ]
    )
