import csv
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from appointments.services import scope_to_user
from appointments.utils.query_params import date_param, int_param
from users.permissions import IsAdminRole, IsClinicStaff
from . import services
from .utils.chart_utils import build_appointment_chart

logger = logging.getLogger(__name__)


def csv_response(filename, rows, header=None):
    response = HttpResponse(content_type="text/csv")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    writer = csv.writer(response)
    if header:
        writer.writerow(header)
    writer.writerows(rows)
    return response


# ---------- global dashboard (Admin) ----------

@api_view(['GET'])
@permission_classes([IsAdminRole])
def global_stats(request):
    return Response(services.global_stats(timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAdminRole])
def today_appointments(request):
    today = timezone.localdate()
    rows = services.appointments_between(today, today)
    return Response([services.appointment_row(b) for b in rows])


@api_view(['GET'])
@permission_classes([IsAdminRole])
def appointments_by_date_range(request):
    start = date_param(request, 'startDate')
    end = date_param(request, 'endDate')
    if start is None or end is None:
        raise ValidationError({'startDate': 'startDate and endDate are required'})
    if end < start:
        raise ValidationError({'endDate': 'endDate must not be before startDate'})
    rows = services.appointments_between(start, end)
    return Response([services.appointment_row(b) for b in rows])


@api_view(['GET'])
@permission_classes([IsAdminRole])
def doctor_wise_stats(request):
    return Response(services.doctor_wise_stats(date_param(request, 'date')))


@api_view(['GET'])
@permission_classes([IsAdminRole])
def search_appointments(request):
    rows = services.search_appointments(request.query_params.get('search', ''),
                                        date_param(request, 'date'))
    return Response([services.appointment_row(b) for b in rows])


@api_view(['GET'])
@permission_classes([IsAdminRole])
def latest_patients(request):
    return Response([services.appointment_row(b) for b in services.get_latest_patients()])


@api_view(['GET'])
@permission_classes([IsClinicStaff])
def appointments_chart(request):
    """Booking counts per day / week / month / year around `start`."""
    base = date_param(request, 'start', default=timezone.localdate())
    bookings = scope_to_user(services.bookings_queryset(), request.user).distinct()
    return Response(build_appointment_chart(list(bookings), request.query_params.get('view'), base))


# ---------- reports (staff, scoped) ----------

def _report(request):
    start = date_param(request, 'startDate')
    end = date_param(request, 'endDate')
    bookings = scope_to_user(services.bookings_queryset(), request.user).distinct()
    if start:
        bookings = bookings.filter(date__gte=start)
    if end:
        bookings = bookings.filter(date__lte=end)
    return services.report_summary(
        list(bookings),
        start=start,
        end=end,
        doctor_id=int_param(request, 'doctorId'),
        today=timezone.localdate(),
    )


@api_view(['GET'])
@permission_classes([IsClinicStaff])
def report_summary(request):
    return Response(_report(request))


@api_view(['GET'])
@permission_classes([IsClinicStaff])
def report_export(request):
    summary = _report(request)
    filename = f"reports-{timezone.localdate():%Y-%m-%d}.csv"
    return csv_response(filename, services.summary_csv_rows(summary))


@api_view(['GET'])
@permission_classes([IsClinicStaff])
def booking_export(request):
    """CSV of bookings, same filters as the booking list."""
    bookings = scope_to_user(services.bookings_queryset(), request.user)

    doctor_id = int_param(request, 'doctorId')
    if doctor_id:
        bookings = bookings.filter(doctor_id=doctor_id)
    clinic_id = int_param(request, 'clinicId')
    if clinic_id:
        bookings = bookings.filter(slot__clinic_id=clinic_id)
    day = date_param(request, 'date')
    if day:
        bookings = bookings.filter(date=day)
    booking_status = request.query_params.get('status')
    if booking_status:
        bookings = bookings.filter(status=booking_status)

    bookings = list(bookings.distinct().order_by("date", "time"))
    logger.info("Exporting %d bookings for %s", len(bookings), request.user)
    filename = f"appointments-{timezone.localdate():%Y-%m-%d}.csv"
    return csv_response(filename, services.booking_csv_rows(bookings), header=services.BOOKING_CSV_HEADER)
