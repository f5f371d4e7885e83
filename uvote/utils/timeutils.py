from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now, matching the naive timestamps stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
