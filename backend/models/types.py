import datetime as _dt

from sqlalchemy.types import TypeDecorator, DateTime


def utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def to_utc(value: _dt.datetime | str | None) -> _dt.datetime | None:
    """Normalize datetimes and ISO strings to tz-aware UTC.

    Naive values are assumed to be UTC already.
    >>> to_utc("2025-01-02T03:04:05Z").isoformat()
    '2025-01-02T03:04:05+00:00'
    >>> to_utc(None) is None
    True
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = _dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=_dt.timezone.utc)
    return value.astimezone(_dt.timezone.utc)


class UtcAwareDateTime(TypeDecorator):
    """Always write UTC and always return tz-aware datetimes (UTC)."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return to_utc(value)

    def process_result_value(self, value, dialect):
        # Some SQLite setups return strings
        return to_utc(value)
