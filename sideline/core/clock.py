from datetime import datetime, timezone
from pydantic import TypeAdapter
from typing import Optional, Union

# Store timestamps come back with trimmed fractions (".12345+00:00"), which
# datetime.fromisoformat rejects before Python 3.11
_DATETIME = TypeAdapter(datetime)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    parsed = _DATETIME.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def advance_timestamp(previous: Optional[Union[str, datetime]]) -> str:
    """Current time, but never earlier than ``previous`` (clock skew between writers)."""
    now = utcnow()
    if previous:
        now = max(now, parse_timestamp(previous))
    return now.isoformat()
