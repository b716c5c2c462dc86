"""
Date helpers shared by the store, the API and the entitlement core.
"""
from datetime import UTC, date, datetime, timedelta


def utcnow():
    """
    Current UTC time as a naive datetime, matching what the database stores.

    Only the request and script layers call this; the entitlement core always
    receives ``now`` as an argument.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def add_months(start, months):
    """
    Add calendar months, keeping the day inside the target month.

    Jan 31 + 1 month gives Feb 28 (or 29). Works for ``date`` and
    ``datetime``; the time of day is preserved.
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return start.replace(year=y, month=m, day=min(start.day, last_day))


def parse_datetime(value):
    """
    Parse an ISO date or datetime string into a naive UTC datetime.

    ``datetime`` values pass through (aware ones are converted to UTC and
    made naive); ``date`` values become midnight.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed
