import logging
from typing import List

from django.db import transaction
from django.db.models import Q

from users.constants import Role, STAFF_ROLES
from .constants import BookingStatus, TOKEN_NUMBER_FORMAT
from .models import Slot, TokenAppointment
from .scheduling import (
    OverbookedError,
    SchedulingError,
    apply_booking,
    check_booking_transition,
    check_slot_transition,
    is_bookable,
)
from .utils.time_utils import split_time_range

logger = logging.getLogger(__name__)


class DoctorMismatch(ValueError):
    pass


class EmptySchedule(ValueError):
    pass


def bookable_slots(slots, target_date) -> List[Slot]:
    """Slots from `slots` that accept another booking on target_date."""
    return [s for s in slots if is_bookable(s, target_date)]


def next_token_number(clinic_id, day) -> str:
    """
    Next token for a clinic on a given day: one past the bookings
    already issued there that day.
    """
    issued = TokenAppointment.objects.filter(slot__clinic_id=clinic_id, date=day).count()
    return TOKEN_NUMBER_FORMAT.format(clinic_id=clinic_id, day=day, seq=issued + 1)


def owned_by(user) -> Q:
    """
    Bookings a patient account owns: the ones it created, plus any booked
    under its email address (desk bookings made by staff on its behalf).
    """
    owned = Q(created_by=user)
    if user.email:
        owned |= Q(patient_email__iexact=user.email)
    return owned


def is_booking_owner(booking, user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if booking.created_by_id == user.pk:
        return True
    return bool(user.email) and booking.patient_email.lower() == user.email.lower()


def create_schedule(doctor, clinic, day, start, end, slot_duration, patients_per_slot=1) -> List[Slot]:
    """
    Create one Slot per `slot_duration`-minute window between start and end.
    Raises EmptySchedule when no full window fits.
    """
    windows = split_time_range(start, end, slot_duration)
    if not windows:
        raise EmptySchedule(
            f"No {slot_duration}-minute slot fits between {start:%H:%M} and {end:%H:%M}"
        )

    with transaction.atomic():
        slots = [
            Slot.objects.create(
                doctor=doctor,
                clinic=clinic,
                date=day,
                start_time=slot_start,
                end_time=slot_end,
                duration=slot_duration,
                max_patients=patients_per_slot,
            )
            for slot_start, slot_end in windows
        ]

    logger.info("Created %d slots for doctor %s at clinic %s on %s",
                len(slots), doctor.pk, clinic.pk, day)
    return slots


def book_slot(slot_id, doctor_id, patient, user=None) -> TokenAppointment:
    """
    Reserve one seat in a slot and create the booking.

    The slot row is locked for the duration of the transaction; occupancy
    goes through apply_booking so a full or closed slot raises
    OverbookedError and nothing is written.
    """
    with transaction.atomic():
        slot = Slot.objects.select_for_update().get(pk=slot_id)
        if doctor_id is not None and slot.doctor_id != doctor_id:
            raise DoctorMismatch(f"Slot {slot.pk} does not belong to doctor {doctor_id}")

        try:
            updated = apply_booking(slot)
        except OverbookedError:
            logger.warning("Rejected booking on slot %s (%s/%s, %s)",
                           slot.pk, slot.current_bookings, slot.max_patients, slot.status)
            raise

        updated.save(update_fields=["current_bookings", "status", "updated_at"])

        staff = user is not None and getattr(user, "role", None) in STAFF_ROLES
        booking = TokenAppointment.objects.create(
            slot=updated,
            doctor_id=updated.doctor_id,
            created_by=user if user is not None and user.is_authenticated else None,
            token_number=next_token_number(updated.clinic_id, updated.date),
            date=updated.date,
            time=updated.start_time,
            status=BookingStatus.CONFIRMED if staff else BookingStatus.PENDING,
            **patient,
        )

    logger.info("Booking %s (token %s) created on slot %s, %d/%d seats taken",
                booking.pk, booking.token_number, updated.pk,
                updated.current_bookings, updated.max_patients)
    return booking


def set_slot_status(slot, requested, user) -> Slot:
    role = getattr(user, "role", None)
    try:
        new_status = check_slot_transition(slot.status, requested, role)
    except SchedulingError as e:
        logger.info("Slot %s status change refused: %s", slot.pk, e)
        raise

    previous = slot.status
    slot.status = new_status
    slot.save(update_fields=["status", "updated_at"])
    logger.info("Slot %s status %s -> %s by %s", slot.pk, previous, new_status, user)
    return slot


def set_booking_status(booking, requested, user) -> TokenAppointment:
    role = getattr(user, "role", None)
    owner = role == Role.USER and is_booking_owner(booking, user)
    try:
        new_status = check_booking_transition(booking.status, requested, role, is_owner=owner)
    except SchedulingError as e:
        logger.info("Booking %s status change refused: %s", booking.pk, e)
        raise

    previous = booking.status
    booking.status = new_status
    booking.save(update_fields=["status", "updated_at"])
    logger.info("Booking %s status %s -> %s by %s", booking.pk, previous, new_status, user)
    return booking


def scope_to_user(queryset, user, doctor_field="doctor"):
    """
    Restrict a Slot/TokenAppointment queryset to what a staff user works on:
    doctors see their own, assistants their doctor's, admins everything.
    """
    role = getattr(user, "role", None)
    if role == Role.ADMIN:
        return queryset
    if role == Role.DOCTOR:
        return queryset.filter(**{f"{doctor_field}__user": user})
    if role == Role.ASSISTANT:
        return queryset.filter(**{
            f"{doctor_field}__assistants__user": user,
            f"{doctor_field}__assistants__is_active": True,
        })
    return queryset.none()
