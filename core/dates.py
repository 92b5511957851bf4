from datetime import date, datetime

from django.utils import timezone

DISPLAY_FORMAT = "%d/%m/%Y"
ISO_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def _parse(value, fmt):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip(), fmt).date()
    except ValueError:
        return None


def to_display(value):
    """``2024-03-05`` -> ``05/03/2024``; blank or invalid input gives ``""``."""
    parsed = _parse(value, ISO_FORMAT)
    return parsed.strftime(DISPLAY_FORMAT) if parsed else ""


def to_iso(value):
    """``05/03/2024`` -> ``2024-03-05``; blank or invalid input gives ``""``."""
    parsed = _parse(value, DISPLAY_FORMAT)
    return parsed.strftime(ISO_FORMAT) if parsed else ""


def parse_display(value):
    return _parse(value, DISPLAY_FORMAT)


def parse_iso(value):
    """Date part of an ISO date or timestamp; zero dates give None."""
    if isinstance(value, str):
        value = value.strip()[:10]
    return _parse(value, ISO_FORMAT)


def today_display():
    return timezone.localdate().strftime(DISPLAY_FORMAT)


def is_tat_overdue(value, today=None):
    """True when a ``dd/mm/yyyy`` TAT date falls on or before today."""
    due = parse_display(value)
    if due is None:
        return False
    today = today or timezone.localdate()
    return due <= today


def format_timestamp(value):
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    text = str(value).strip()
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d"):
        try:
            return datetime.strptime(text[:19], fmt).strftime(TIMESTAMP_FORMAT)
        except ValueError:
            continue
    return text
