"""
Model Escrow API: small shared helpers.
"""

import uuid
from datetime import datetime, timedelta, timezone

_last_issued: datetime | None = None


def utcnow() -> datetime:
    """Current UTC time, strictly increasing across calls in this process.

    Two calls inside the same clock tick would otherwise share a timestamp,
    which breaks newest-first ordering of activities written back to back.
    """
    global _last_issued
    now = datetime.now(timezone.utc)
    if _last_issued is not None and now <= _last_issued:
        now = _last_issued + timedelta(microseconds=1)
    _last_issued = now
    return now


def new_id() -> str:
    return str(uuid.uuid4())
