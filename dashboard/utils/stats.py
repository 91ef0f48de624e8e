"""
Aggregations over already-fetched bookings for dashboards and reports.

All functions are pure: they read booking attributes (``status``, ``date``,
``doctor_id``, ``patient_age``...) and never query or mutate anything.
Empty input yields zeroed results.
"""
import logging
from collections import namedtuple
from datetime import date, timedelta
from decimal import Decimal

from appointments.constants import BookingStatus, ACTIVE_BOOKING_STATUSES

logger = logging.getLogger(__name__)

DayBucket = namedtuple("DayBucket", ["day", "count", "confirmed", "completed"])
ValueRange = namedtuple("ValueRange", ["label", "low", "high"])  # inclusive; high=None is open

AGE_GROUPS = (
    ValueRange("0-18", 0, 18),
    ValueRange("19-45", 19, 45),
    ValueRange("46+", 46, None),
)

EXPERIENCE_RANGES = (
    ValueRange("0-5 years", 0, 5),
    ValueRange("6-10 years", 6, 10),
    ValueRange("11-20 years", 11, 20),
    ValueRange("20+ years", 21, None),
)

FEE_BANDS = (
    ValueRange("Under 500", Decimal("0"), Decimal("499.99")),
    ValueRange("500-999", Decimal("500"), Decimal("999.99")),
    ValueRange("1000-1999", Decimal("1000"), Decimal("1999.99")),
    ValueRange("2000+", Decimal("2000"), None),
)


def _clinic_of(booking):
    clinic_id = getattr(booking, "clinic_id", None)
    if clinic_id is None and getattr(booking, "slot", None) is not None:
        clinic_id = booking.slot.clinic_id
    return clinic_id


def filter_bookings(bookings, start=None, end=None, doctor_id=None, clinic_id=None):
    """Keep bookings inside [start, end] and matching the given ids."""
    result = []
    for b in bookings:
        if start is not None and b.date < start:
            continue
        if end is not None and b.date > end:
            continue
        if doctor_id is not None and b.doctor_id != doctor_id:
            continue
        if clinic_id is not None and _clinic_of(b) != clinic_id:
            continue
        result.append(b)
    return result


def count_by_status(bookings):
    """
    {status: count} with every known status present.
    Bookings with an unrecognised status are left out of every bucket.
    """
    counts = {s: 0 for s in BookingStatus}
    for b in bookings:
        if b.status in counts:
            counts[BookingStatus(b.status)] += 1
        else:
            logger.warning("Booking %s has unknown status %r", getattr(b, "id", None), b.status)
    return counts


def revenue(bookings, fee_for_doctor, estimated=False) -> Decimal:
    """
    Sum of doctor fees over Completed bookings.

    With estimated=True, Pending and Confirmed bookings are added too; such
    a figure must be labelled as an estimate wherever it is shown.
    Missing or negative fees count as zero.
    """
    counted = {BookingStatus.COMPLETED}
    if estimated:
        counted.update(ACTIVE_BOOKING_STATUSES)

    total = Decimal("0")
    for b in bookings:
        if b.status not in counted:
            continue
        fee = fee_for_doctor(b.doctor_id)
        if fee is None:
            continue
        fee = Decimal(str(fee))
        if fee > 0:
            total += fee
    return total


def bucket_by_day(bookings, window, end=None):
    """
    Trailing `window` days ending at `end` (default today), oldest first.
    Each bucket holds total, confirmed and completed counts for that day.
    """
    if window <= 0:
        return []
    end = end or date.today()
    start = end - timedelta(days=window - 1)

    totals = {}
    for b in bookings:
        if not (start <= b.date <= end):
            continue
        row = totals.setdefault(b.date, [0, 0, 0])
        row[0] += 1
        if b.status == BookingStatus.CONFIRMED:
            row[1] += 1
        elif b.status == BookingStatus.COMPLETED:
            row[2] += 1

    buckets = []
    for i in range(window):
        d = start + timedelta(days=i)
        count, confirmed, completed = totals.get(d, (0, 0, 0))
        buckets.append(DayBucket(d, count, confirmed, completed))
    return buckets


def bucket_by_range(items, ranges, key):
    """
    [(label, count)] in the order of `ranges`. `key(item)` gives the value
    to place; None or values outside every range are not counted.
    """
    counts = [0] * len(ranges)
    for item in items:
        value = key(item)
        if value is None:
            continue
        for i, r in enumerate(ranges):
            if value >= r.low and (r.high is None or value <= r.high):
                counts[i] += 1
                break
    return [(r.label, counts[i]) for i, r in enumerate(ranges)]


def completion_rate(bookings) -> float:
    """Percent of bookings that are Completed, one decimal."""
    total = len(bookings)
    if total == 0:
        return 0.0
    completed = sum(1 for b in bookings if b.status == BookingStatus.COMPLETED)
    return round(completed * 100.0 / total, 1)


def pct_change(curr: int, prev: int) -> float:
    if prev == 0:
        return 100.0 if curr > 0 else 0.0
    return round((curr - prev) * 100.0 / prev, 2)
