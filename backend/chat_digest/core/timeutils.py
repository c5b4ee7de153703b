from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in SQLite)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    # SQLite keeps no tz info; aware values are converted, naive ones are taken as UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Half-open ``[start 00:00, end+1 00:00)`` window covering both days entirely."""
    return (
        datetime.combine(start_date, time.min),
        datetime.combine(end_date + timedelta(days=1), time.min),
    )


def isoformat_z(value: datetime) -> str:
    return to_naive_utc(value).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
