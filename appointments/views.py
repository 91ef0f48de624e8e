import logging

from django.db.models import ProtectedError, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from users.constants import Role, STAFF_ROLES
from users.permissions import (
    IsAdminOrReadOnly,
    IsClinicStaff,
    IsDoctorOrAdmin,
    IsDoctorRole,
    has_role,
    require_role,
)
from .models import Clinic, Doctor, Assistant, Slot, TokenAppointment
from .serializers import (
    AssistantSerializer,
    BookingStatusSerializer,
    ClinicSerializer,
    DoctorSerializer,
    DoctorSummarySerializer,
    ScheduleSerializer,
    SlotSerializer,
    SlotStatusSerializer,
    SlotSummarySerializer,
    TokenAppointmentSerializer,
)
from .constants import ACTIVE_BOOKING_STATUSES, BookingStatus
from . import services
from .utils.query_params import date_param, int_param

logger = logging.getLogger(__name__)


def _slot_queryset():
    return Slot.objects.select_related("doctor", "clinic")


def _booking_queryset():
    return TokenAppointment.objects.select_related("doctor", "slot", "slot__clinic")


# ---------- slots ----------

@api_view(['GET', 'POST'])
@permission_classes([IsClinicStaff])
def slot_list(request):
    """
    GET: list slots with optional doctorId, clinicId, date, startDate,
    endDate and status filters (scoped to the caller's doctor).
    POST: create a single slot (Admin).
    """
    if request.method == 'POST':
        require_role(request.user, Role.ADMIN)
        serializer = SlotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        slot = serializer.save()
        logger.info("Slot %s created by %s", slot.pk, request.user)
        return Response(SlotSerializer(slot).data, status=status.HTTP_201_CREATED)

    slots = services.scope_to_user(_slot_queryset(), request.user)

    doctor_id = int_param(request, 'doctorId')
    if doctor_id:
        slots = slots.filter(doctor_id=doctor_id)
    clinic_id = int_param(request, 'clinicId')
    if clinic_id:
        slots = slots.filter(clinic_id=clinic_id)
    day = date_param(request, 'date')
    if day:
        slots = slots.filter(date=day)
    start_date = date_param(request, 'startDate')
    if start_date:
        slots = slots.filter(date__gte=start_date)
    end_date = date_param(request, 'endDate')
    if end_date:
        slots = slots.filter(date__lte=end_date)
    slot_status = request.query_params.get('status')
    if slot_status:
        slots = slots.filter(status=slot_status)

    return Response(SlotSerializer(slots.distinct(), many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def available_slots(request):
    """
    Slots open for booking on `date` (default today). Fullness is judged on
    the booking counter, not on the stored status alone.
    """
    day = date_param(request, 'date', default=timezone.localdate())
    slots = _slot_queryset().filter(date=day)

    doctor_id = int_param(request, 'doctorId')
    if doctor_id:
        slots = slots.filter(doctor_id=doctor_id)
    clinic_id = int_param(request, 'clinicId')
    if clinic_id:
        slots = slots.filter(clinic_id=clinic_id)

    return Response(SlotSerializer(services.bookable_slots(slots, day), many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def doctors_with_slots(request):
    """
    Calendar view for the booking wizard: every doctor with at least one
    bookable slot on `date` (default today), with those slots.
    """
    day = date_param(request, 'date', default=timezone.localdate())
    slots = _slot_queryset().filter(date=day).order_by("doctor__name", "start_time")

    by_doctor = {}
    for slot in services.bookable_slots(slots, day):
        by_doctor.setdefault(slot.doctor, []).append(slot)

    return Response([
        {
            'doctor': DoctorSummarySerializer(doctor).data,
            'availableSlots': SlotSummarySerializer(doctor_slots, many=True).data,
        }
        for doctor, doctor_slots in by_doctor.items()
    ])


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def slot_detail(request, pk):
    """
    GET: any signed-in user may read a slot, so a booking screen can refresh
    the seat count after booking. DELETE: Admin only.
    """
    slot = get_object_or_404(_slot_queryset(), pk=pk)

    if request.method == 'DELETE':
        require_role(request.user, Role.ADMIN)
        try:
            slot.delete()
        except ProtectedError:
            return Response({
                'message': 'Slot has bookings and cannot be deleted; cancel it instead',
            }, status=status.HTTP_409_CONFLICT)
        logger.info("Slot %s deleted by %s", pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(SlotSerializer(slot).data)


@api_view(['PATCH'])
@permission_classes([IsClinicStaff])
def slot_status(request, pk):
    slot = get_object_or_404(services.scope_to_user(_slot_queryset(), request.user).distinct(), pk=pk)
    serializer = SlotStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    slot = services.set_slot_status(slot, serializer.validated_data['status'], request.user)
    return Response(SlotSerializer(slot).data)


@api_view(['POST'])
@permission_classes([IsDoctorRole])
def create_schedule(request):
    """
    Split [startTime, endTime) into slotDuration-minute slots for the
    calling doctor, each taking patientPerSlot bookings.
    """
    doctor = Doctor.objects.filter(user=request.user).first()
    if doctor is None:
        return Response({'message': 'Create your doctor profile before adding a schedule'},
                        status=status.HTTP_400_BAD_REQUEST)

    serializer = ScheduleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    slots = services.create_schedule(
        doctor=doctor,
        clinic=data['clinicId'],
        day=data['date'],
        start=data['startTime'],
        end=data['endTime'],
        slot_duration=data['slotDuration'],
        patients_per_slot=data['patientPerSlot'],
    )
    return Response(SlotSerializer(slots, many=True).data, status=status.HTTP_201_CREATED)


# ---------- bookings ----------

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def booking_list(request):
    """
    GET (staff): bookings filtered by doctorId, clinicId, date, status.
    POST: book a seat in `appointmentId`.
    """
    if request.method == 'POST':
        serializer = TokenAppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        doctor = serializer.validated_data.get('doctor')

        booking = services.book_slot(
            slot_id=serializer.validated_data['slot'].pk,
            doctor_id=doctor.pk if doctor else None,
            patient=serializer.patient_fields(),
            user=request.user,
        )
        return Response(TokenAppointmentSerializer(_booking_queryset().get(pk=booking.pk)).data,
                        status=status.HTTP_201_CREATED)

    require_role(request.user, *STAFF_ROLES)
    bookings = services.scope_to_user(_booking_queryset(), request.user)

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

    return Response(TokenAppointmentSerializer(bookings.distinct(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_bookings(request):
    bookings = _booking_queryset().filter(services.owned_by(request.user))
    return Response(TokenAppointmentSerializer(bookings, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def upcoming_bookings(request):
    """Own Pending/Confirmed bookings from today on, soonest first."""
    bookings = (
        _booking_queryset()
        .filter(services.owned_by(request.user))
        .filter(date__gte=timezone.localdate(), status__in=ACTIVE_BOOKING_STATUSES)
        .order_by("date", "time")
    )
    return Response(TokenAppointmentSerializer(bookings, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booking_history(request):
    """Own past or closed bookings, newest first; `limit` caps the list."""
    closed = Q(date__lt=timezone.localdate()) | ~Q(status__in=ACTIVE_BOOKING_STATUSES)
    bookings = (
        _booking_queryset()
        .filter(services.owned_by(request.user))
        .filter(closed)
        .order_by("-date", "-time")
    )
    limit = int_param(request, 'limit')
    if limit:
        bookings = bookings[:limit]
    return Response(TokenAppointmentSerializer(bookings, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booking_by_token(request, token_number):
    bookings = _booking_queryset().filter(token_number=token_number)
    if request.user.role not in STAFF_ROLES:
        bookings = bookings.filter(services.owned_by(request.user))
    booking = bookings.order_by("-created_at").first()
    if booking is None:
        return Response({'message': f"No booking with token {token_number}"},
                        status=status.HTTP_404_NOT_FOUND)
    return Response(TokenAppointmentSerializer(booking).data)


def _booking_for_user(request, pk):
    """Staff get their scoped bookings, patients only the ones they own; anything else is a 404."""
    if has_role(request.user, *STAFF_ROLES):
        qs = services.scope_to_user(_booking_queryset(), request.user).distinct()
    else:
        qs = _booking_queryset().filter(services.owned_by(request.user))
    return get_object_or_404(qs, pk=pk)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def booking_detail(request, pk):
    """
    GET: one booking. DELETE: cancel it (bookings are never removed).
    """
    booking = _booking_for_user(request, pk)

    if request.method == 'DELETE':
        services.set_booking_status(booking, BookingStatus.CANCELLED, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(TokenAppointmentSerializer(booking).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def booking_status(request, pk):
    booking = _booking_for_user(request, pk)
    serializer = BookingStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    booking = services.set_booking_status(booking, serializer.validated_data['status'], request.user)
    return Response(TokenAppointmentSerializer(booking).data)


# ---------- doctors ----------

@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def doctor_list(request):
    if request.method == 'POST':
        serializer = DoctorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        doctor = serializer.save()
        logger.info("Doctor profile %s created by %s", doctor.pk, request.user)
        return Response(DoctorSerializer(doctor).data, status=status.HTTP_201_CREATED)

    doctors = Doctor.objects.all()
    specialization = request.query_params.get('specialization')
    if specialization:
        doctors = doctors.filter(specialization__icontains=specialization)
    return Response(DoctorSerializer(doctors, many=True).data)


@api_view(['GET', 'PATCH'])
@permission_classes([AllowAny])
def doctor_detail(request, pk):
    doctor = get_object_or_404(Doctor, pk=pk)

    if request.method == 'PATCH':
        if doctor.user_id != request.user.pk:
            require_role(request.user, Role.ADMIN)
        data = request.data.copy()
        data.pop('userId', None)
        serializer = DoctorSerializer(doctor, data=data, partial=True)
        serializer.is_valid(raise_exception=True)
        doctor = serializer.save()
        return Response(DoctorSerializer(doctor).data)

    return Response(DoctorSerializer(doctor).data)


@api_view(['GET'])
@permission_classes([IsDoctorRole])
def doctor_profile(request):
    doctor = Doctor.objects.filter(user=request.user).first()
    if doctor is None:
        return Response({'message': 'Doctor profile has not been created yet'},
                        status=status.HTTP_404_NOT_FOUND)
    return Response(DoctorSerializer(doctor).data)


@api_view(['GET'])
@permission_classes([IsDoctorRole])
def doctor_profile_exists(request):
    return Response({'exists': Doctor.objects.filter(user=request.user).exists()})


@api_view(['POST'])
@permission_classes([IsDoctorRole])
def doctor_my_profile(request):
    """Self-service profile creation for a doctor account."""
    if Doctor.objects.filter(user=request.user).exists():
        return Response({'message': 'Doctor profile already exists'}, status=status.HTTP_409_CONFLICT)

    data = request.data.copy()
    data['userId'] = request.user.pk
    serializer = DoctorSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    doctor = serializer.save()
    return Response(DoctorSerializer(doctor).data, status=status.HTTP_201_CREATED)


# ---------- assistants ----------

@api_view(['GET', 'POST'])
@permission_classes([IsDoctorOrAdmin])
def assistant_list(request):
    own_doctor = None
    if request.user.role == Role.DOCTOR:
        own_doctor = Doctor.objects.filter(user=request.user).first()
        if own_doctor is None:
            return Response({'message': 'Create your doctor profile first'},
                            status=status.HTTP_400_BAD_REQUEST)

    if request.method == 'POST':
        serializer = AssistantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if own_doctor is not None:
            assistant = serializer.save(doctor=own_doctor)
        elif serializer.validated_data.get('doctor') is None:
            return Response({'message': 'doctorId: This field is required.'},
                            status=status.HTTP_400_BAD_REQUEST)
        else:
            assistant = serializer.save()
        return Response(AssistantSerializer(assistant).data, status=status.HTTP_201_CREATED)

    assistants = Assistant.objects.select_related("doctor")
    if own_doctor is not None:
        assistants = assistants.filter(doctor=own_doctor)
    return Response(AssistantSerializer(assistants, many=True).data)


def _assistant_for(request, pk):
    """Admins reach every assistant, doctors only their own."""
    assistants = Assistant.objects.select_related("doctor")
    if request.user.role == Role.DOCTOR:
        assistants = assistants.filter(doctor__user=request.user)
    return get_object_or_404(assistants, pk=pk)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsDoctorOrAdmin])
def assistant_detail(request, pk):
    assistant = _assistant_for(request, pk)

    if request.method == 'PATCH':
        data = request.data.copy()
        data.pop('userId', None)
        if request.user.role == Role.DOCTOR:
            data.pop('doctorId', None)
        serializer = AssistantSerializer(assistant, data=data, partial=True)
        serializer.is_valid(raise_exception=True)
        assistant = serializer.save()
        logger.info("Assistant %s updated by %s", assistant.pk, request.user)
        return Response(AssistantSerializer(assistant).data)

    if request.method == 'DELETE':
        assistant.delete()
        logger.info("Assistant %s removed by %s", pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(AssistantSerializer(assistant).data)


@api_view(['PATCH'])
@permission_classes([IsDoctorOrAdmin])
def assistant_toggle_status(request, pk):
    """Flip is_active; an inactive assistant loses access to the doctor's bookings."""
    assistant = _assistant_for(request, pk)
    assistant.is_active = not assistant.is_active
    assistant.save(update_fields=["is_active", "updated_at"])
    logger.info("Assistant %s is_active=%s by %s", assistant.pk, assistant.is_active, request.user)
    return Response(AssistantSerializer(assistant).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def assistant_profile(request):
    require_role(request.user, Role.ASSISTANT)
    assistant = Assistant.objects.filter(user=request.user).first()
    if assistant is None:
        return Response({'message': 'Assistant profile has not been created yet'},
                        status=status.HTTP_404_NOT_FOUND)
    return Response(AssistantSerializer(assistant).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def assistant_profile_exists(request):
    require_role(request.user, Role.ASSISTANT)
    return Response({'exists': Assistant.objects.filter(user=request.user).exists()})


# ---------- clinics ----------

@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def clinic_list(request):
    if request.method == 'POST':
        serializer = ClinicSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        clinic = serializer.save()
        return Response(ClinicSerializer(clinic).data, status=status.HTTP_201_CREATED)

    return Response(ClinicSerializer(Clinic.objects.all(), many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def clinic_detail(request, pk):
    clinic = get_object_or_404(Clinic, pk=pk)

    if request.method == 'PATCH':
        serializer = ClinicSerializer(clinic, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        clinic = serializer.save()
        logger.info("Clinic %s updated by %s", clinic.pk, request.user)
        return Response(ClinicSerializer(clinic).data)

    if request.method == 'DELETE':
        try:
            clinic.delete()
        except ProtectedError:
            return Response({
                'message': 'Clinic has booked slots and cannot be deleted',
            }, status=status.HTTP_409_CONFLICT)
        logger.info("Clinic %s deleted by %s", pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(ClinicSerializer(clinic).data)
