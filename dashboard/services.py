from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from django.db.models import Q

from appointments.constants import BookingStatus
from appointments.models import Doctor, TokenAppointment
from appointments.utils.time_utils import format_timeslot
from .utils.stats import (
    AGE_GROUPS,
    EXPERIENCE_RANGES,
    FEE_BANDS,
    bucket_by_day,
    bucket_by_range,
    completion_rate,
    count_by_status,
    filter_bookings,
    pct_change,
    revenue,
)


def bookings_queryset():
    return TokenAppointment.objects.select_related("doctor", "slot", "slot__clinic")


def fee_lookup(bookings) -> Dict[int, object]:
    """doctor_id -> consultation fee, from the doctors already joined on the bookings."""
    return {b.doctor_id: b.doctor.consultation_fee for b in bookings}


def appointment_row(b) -> Dict:
    """Flat booking row used by the global dashboard tables."""
    return {
        "id": b.id,
        "patientName": b.patient_name,
        "patientEmail": b.patient_email,
        "patientPhone": b.patient_phone,
        "tokenNumber": b.token_number,
        "date": b.date.isoformat(),
        "time": b.time.strftime("%H:%M"),
        "doctorName": b.doctor.name,
        "clinicName": b.slot.clinic.location_name,
        "status": b.status,
        "doctorFee": b.doctor.consultation_fee,
    }


def global_stats(today) -> Dict:
    todays = list(bookings_queryset().filter(date=today))
    yesterday_total = TokenAppointment.objects.filter(date=today - timedelta(days=1)).count()
    counts = count_by_status(todays)
    patients = {
        ((b.patient_phone or "").strip(), (b.patient_email or "").strip().lower(), b.patient_name.strip().lower())
        for b in todays
    }
    return {
        "totalDoctors": Doctor.objects.count(),
        "totalAppointmentsToday": len(todays),
        "totalPatientsToday": len(patients),
        "confirmedAppointments": counts[BookingStatus.CONFIRMED],
        "pendingAppointments": counts[BookingStatus.PENDING],
        "completedAppointments": counts[BookingStatus.COMPLETED],
        "cancelledAppointments": counts[BookingStatus.CANCELLED],
        "totalRevenue": revenue(todays, fee_lookup(todays).get),
        "appointmentsChange": pct_change(len(todays), yesterday_total),
    }


def appointments_between(start, end) -> List[TokenAppointment]:
    return list(
        bookings_queryset()
        .filter(date__range=(start, end))
        .order_by("date", "time", "token_number")
    )


def search_appointments(term: str, day=None) -> List[TokenAppointment]:
    qs = bookings_queryset()
    term = (term or "").strip()
    if term:
        qs = qs.filter(
            Q(patient_name__icontains=term)
            | Q(patient_phone__icontains=term)
            | Q(patient_email__icontains=term)
            | Q(token_number__icontains=term)
            | Q(doctor__name__icontains=term)
        )
    if day:
        qs = qs.filter(date=day)
    return list(qs.order_by("-date", "time"))


def doctor_wise_stats(day=None) -> List[Dict]:
    """Per-doctor totals; doctors without bookings are listed with zeros."""
    qs = bookings_queryset()
    if day:
        qs = qs.filter(date=day)
    bookings = list(qs)

    rows = []
    for doctor in Doctor.objects.order_by("name"):
        own = filter_bookings(bookings, doctor_id=doctor.id)
        counts = count_by_status(own)
        rows.append({
            "doctorId": doctor.id,
            "doctorName": doctor.name,
            "totalAppointments": len(own),
            "confirmedAppointments": counts[BookingStatus.CONFIRMED],
            "completedAppointments": counts[BookingStatus.COMPLETED],
            "totalRevenue": revenue(own, lambda _id, fee=doctor.consultation_fee: fee),
        })
    return rows


def get_latest_patients(limit: int = 5) -> List[TokenAppointment]:
    """
    Latest Patients widget: latest COMPLETED bookings.
    De-dupe by (phone,email,name) so same person doesn't appear repeatedly.
    """
    completed_qs = (
        bookings_queryset()
        .filter(status=BookingStatus.COMPLETED)
        .order_by("-date", "-time", "-id")
    )

    latest: List[TokenAppointment] = []
    seen: set[Tuple[str, str, str]] = set()

    for b in completed_qs:
        key = (
            (b.patient_phone or "").strip(),
            (b.patient_email or "").strip(),
            (b.patient_name or "").strip().lower(),
        )
        if key in seen:
            continue
        seen.add(key)
        latest.append(b)
        if len(latest) >= limit:
            break

    return latest


def report_summary(bookings, start=None, end=None, doctor_id: Optional[int] = None, today=None) -> Dict:
    """
    Reports page figures over `bookings`, after date/doctor filtering.
    Revenue is completed-only; the estimate is reported separately and labelled.
    """
    selected = filter_bookings(bookings, start=start, end=end, doctor_id=doctor_id)
    counts = count_by_status(selected)
    fees = fee_lookup(selected)
    trend_end = end or today
    doctors = list({b.doctor_id: b.doctor for b in selected}.values())

    return {
        "startDate": start.isoformat() if start else None,
        "endDate": end.isoformat() if end else None,
        "total": len(selected),
        "statusCounts": {str(k): v for k, v in counts.items()},
        "completed": counts[BookingStatus.COMPLETED],
        "missedOrCancelled": counts[BookingStatus.CANCELLED] + counts[BookingStatus.NO_SHOW],
        "revenue": revenue(selected, fees.get),
        "estimatedRevenue": {
            "label": "Revenue (est.)",
            "amount": revenue(selected, fees.get, estimated=True),
        },
        "completionRate": completion_rate(selected),
        "dailyTrend": [
            {
                "date": b.day.isoformat(),
                "appointments": b.count,
                "confirmed": b.confirmed,
                "completed": b.completed,
            }
            for b in bucket_by_day(selected, 30, end=trend_end)
        ],
        "demographics": [
            {"age": label, "count": count}
            for label, count in bucket_by_range(selected, AGE_GROUPS, key=lambda b: b.patient_age)
        ],
        "doctorExperience": [
            {"range": label, "count": count}
            for label, count in bucket_by_range(doctors, EXPERIENCE_RANGES, key=lambda d: d.experience)
        ],
        "doctorFees": [
            {"range": label, "count": count}
            for label, count in bucket_by_range(doctors, FEE_BANDS, key=lambda d: d.consultation_fee)
        ],
    }


def summary_csv_rows(summary) -> List[List]:
    rows = [
        ["Report Type", "Value"],
        ["Total Appointments", summary["total"]],
        ["Completed", summary["completed"]],
        ["Missed/Cancelled", summary["missedOrCancelled"]],
        ["Revenue", f"{summary['revenue']:.2f}"],
        [summary["estimatedRevenue"]["label"], f"{summary['estimatedRevenue']['amount']:.2f}"],
        ["Completion Rate", f"{summary['completionRate']}%"],
    ]
    if summary["startDate"] or summary["endDate"]:
        rows.append(["Date Range", f"{summary['startDate'] or '...'} - {summary['endDate'] or '...'}"])
    return rows


BOOKING_CSV_HEADER = ["Token", "Patient", "Email", "Phone", "Date", "Time", "Status", "Doctor", "Clinic"]


def booking_csv_rows(bookings) -> List[List]:
    return [
        [
            b.token_number,
            b.patient_name,
            b.patient_email,
            b.patient_phone,
            b.date.isoformat(),
            format_timeslot(b.time),
            b.status,
            b.doctor.name,
            b.slot.clinic.location_name,
        ]
        for b in bookings
    ]