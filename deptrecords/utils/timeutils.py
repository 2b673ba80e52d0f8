from datetime import datetime, timezone


def utcnow() -> datetime:
    """Текущее время UTC без tzinfo (так его хранит SQLAlchemy DateTime)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
