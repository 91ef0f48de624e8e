from datetime import date, timedelta

from .stats import bucket_by_day

WINDOW = {"day": 7, "week": 4, "month": 6, "year": 6}


def _add_months(d: date, n: int) -> date:
    """Return a date n months from d (always day=1)."""
    y = d.year + (d.month - 1 + n) // 12
    m = (d.month - 1 + n) % 12 + 1
    return date(y, m, 1)


def _month_index(d: date, origin: date) -> int:
    return (d.year - origin.year) * 12 + (d.month - origin.month)


def count_into(dates, size, index_of):
    """
    `size` counters; each date lands in counter `index_of(date)`.
    Dates whose index falls outside [0, size) are not counted.
    """
    counts = [0] * size
    for d in dates:
        idx = index_of(d)
        if 0 <= idx < size:
            counts[idx] += 1
    return counts


def _day_view(bookings, base):
    n = WINDOW["day"]
    buckets = bucket_by_day(bookings, n, end=base)
    first, last = buckets[0].day, buckets[-1].day
    return {
        "labels": [b.day.strftime("%d %b") for b in buckets],
        "values": [b.count for b in buckets],
        "period_label": f"{first:%d %b} - {last:%d %b %Y}",
        "prev_start": first - timedelta(days=n),
        "next_start": last + timedelta(days=n),
    }


def _week_view(bookings, base):
    n = WINDOW["week"]
    span = timedelta(days=n * 7)
    first = base - span + timedelta(days=1)

    def week_of(d):
        return (d - first).days // 7 if first <= d <= base else -1

    return {
        "labels": [f"Week {i + 1}" for i in range(n)],
        "values": count_into((b.date for b in bookings), n, week_of),
        "period_label": f"{first:%d %b} - {base:%d %b %Y}",
        "prev_start": first - span,
        "next_start": base + span,
    }


def _month_view(bookings, base):
    n = WINDOW["month"]
    last = base.replace(day=1)
    first = _add_months(last, -(n - 1))
    return {
        "labels": [_add_months(first, i).strftime("%b") for i in range(n)],
        "values": count_into((b.date for b in bookings), n, lambda d: _month_index(d, first)),
        "period_label": f"{first:%b %Y} - {last:%b %Y}",
        "prev_start": _add_months(last, -n),
        "next_start": _add_months(last, n),
    }


def _year_view(bookings, base):
    n = WINDOW["year"]
    first = base.year - (n - 1)
    return {
        "labels": [str(first + i) for i in range(n)],
        "values": count_into((b.date for b in bookings), n, lambda d: d.year - first),
        "period_label": f"{first} - {base.year}",
        "prev_start": date(first - n, 1, 1),
        "next_start": date(base.year + n, 1, 1),
    }


VIEWS = {
    "day": _day_view,
    "week": _week_view,
    "month": _month_view,
    "year": _year_view,
}


def build_appointment_chart(bookings, view_mode: str, base: date):
    """
    Chart labels/values plus prev/next navigation dates for the
    day (7 days), week (4 weeks), month (6 months) and year (6 years) views.
    `bookings` only needs a `date` attribute per item; unknown views show days.
    """
    view_mode = (view_mode or "day").lower()
    if view_mode not in VIEWS:
        view_mode = "day"

    chart = VIEWS[view_mode](list(bookings), base)
    chart["prev_start"] = chart["prev_start"].isoformat()
    chart["next_start"] = chart["next_start"].isoformat()
    chart["view"] = view_mode
    return chart
