from datetime import datetime, timezone

def utcnow() -> datetime:
    """Naive UTC now; every DateTime column in this app stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def as_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; naive input is taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def as_naive_utc(dt: datetime) -> datetime:
    return as_utc(dt).replace(tzinfo=None)
