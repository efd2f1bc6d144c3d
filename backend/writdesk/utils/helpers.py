"""
Utility helper functions
"""
from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]

WRIT_TYPE_LABELS = {
    "BAIL": "Bail",
    "QUASHING": "Quashing",
    "DIRECTION": "Direction",
    "SUSPENSION_OF_SENTENCE": "Suspension of Sentence",
    "PAYROLL": "Payroll",
    "ANY_OTHER": "Other",
}

PROCEEDING_TYPE_LABELS = {
    "NOTICE_OF_MOTION": "Notice of Motion",
    "TO_FILE_REPLY": "Reply Tracking",
    "ARGUMENT": "Argument",
    "DECISION": "Decision",
    "ANY_OTHER": "Any Other",
}


def utcnow() -> datetime:
    """Naive UTC now; every parsed timestamp is normalised to naive UTC too."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: DateLike) -> Optional[datetime]:
    """
    Parse ISO dates/timestamps from the case service.
    Accepts 'YYYY-MM-DD', full ISO strings with or without 'Z', date and datetime.
    Returns naive UTC, or None when the value is empty or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_date(value: DateLike, format_str: str = "%Y-%m-%d") -> str:
    """Format a date-like value; empty string when missing"""
    parsed = parse_datetime(value)
    if not parsed:
        return ""
    return parsed.strftime(format_str)


def calendar_days_between(start: datetime, end: datetime) -> int:
    """Whole calendar days from start to end, ignoring time of day"""
    return (end.date() - start.date()).days


def format_status_label(status: Optional[str]) -> str:
    """REGISTERED_CASE -> 'Registered Case'"""
    if not status:
        return "Unknown"
    return " ".join(part.capitalize() for part in str(status).lower().split("_") if part)


def format_writ_type(writ_type: Optional[str]) -> str:
    if not writ_type:
        return "-"
    return WRIT_TYPE_LABELS.get(str(writ_type), format_status_label(str(writ_type)))
