from datetime import datetime, time, timedelta

DISPLAY_FORMAT = "%I:%M %p"      # '10:00 AM'
INPUT_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p")  # accepted by the schedule API


def format_timeslot(t: time) -> str:
    """
    Convert a time object to the display string 'h:MM AM/PM'.
    Used for CSV exports and admin listings.
    """
    if t is None:
        return ""
    return t.strftime(DISPLAY_FORMAT).lstrip("0")


def parse_date(value):
    """
    Parse a date string in 'YYYY-MM-DD' format into a date object.
    Returns None if parsing fails.
    """
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except(TypeError, ValueError):
        return None


def split_time_range(start: time, end: time, minutes: int):
    """
    Cut [start, end) into consecutive windows of `minutes` length.
    A trailing window shorter than `minutes` is dropped.
    """
    if minutes <= 0 or end <= start:
        return []

    anchor = datetime(2000, 1, 1)
    cursor = datetime.combine(anchor, start)
    stop = datetime.combine(anchor, end)
    step = timedelta(minutes=minutes)

    windows = []
    while cursor + step <= stop:
        windows.append((cursor.time(), (cursor + step).time()))
        cursor += step
    return windows
