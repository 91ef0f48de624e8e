"""
Slot availability, occupancy and status transitions.

Everything here works on plain objects exposing the Slot/TokenAppointment
attribute names (``date``, ``status``, ``current_bookings``,
``max_patients``), so the same rules apply to model instances, API payload
records and test doubles. Nothing in this module touches the database.
"""
import copy
from typing import Dict, FrozenSet

from users.constants import Role, STAFF_ROLES
from .constants import SlotStatus, BookingStatus


class SchedulingError(Exception):
    """Base class for booking/slot rule violations."""


class OverbookedError(SchedulingError):
    def __init__(self, slot):
        self.slot_id = getattr(slot, "id", None)
        super().__init__(
            f"Slot {self.slot_id} is not open for booking "
            f"({getattr(slot, 'current_bookings', '?')}/{getattr(slot, 'max_patients', '?')}, "
            f"status {getattr(slot, 'status', '?')})"
        )


class InvalidTransitionError(SchedulingError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change status from '{current}' to '{requested}'")


class TransitionNotPermitted(SchedulingError):
    def __init__(self, role, requested):
        self.role = role
        self.requested = requested
        super().__init__(f"Role '{role}' may not set status '{requested}'")


SLOT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    SlotStatus.AVAILABLE: frozenset({SlotStatus.BOOKED, SlotStatus.CANCELLED}),
    SlotStatus.BOOKED: frozenset({SlotStatus.COMPLETED, SlotStatus.CANCELLED}),
    SlotStatus.COMPLETED: frozenset(),
    SlotStatus.CANCELLED: frozenset(),
}

BOOKING_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW,
    }),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}


# ---------- availability ----------

def is_full(slot) -> bool:
    """
    Counter-based fullness. The stored status label is not consulted;
    a slot with no positive capacity is always full.
    """
    max_patients = slot.max_patients or 0
    if max_patients <= 0:
        return True
    return (slot.current_bookings or 0) >= max_patients


def is_bookable(slot, target_date) -> bool:
    """True iff the slot is on target_date, Available, and has a free seat."""
    if slot.date != target_date:
        return False
    if slot.status != SlotStatus.AVAILABLE:
        return False
    return not is_full(slot)


def apply_booking(slot):
    """
    Return a copy of ``slot`` holding one more booking.

    Raises OverbookedError when the slot is not bookable on its own date.
    When the new count reaches capacity the copy is marked Booked.
    The passed slot is left untouched.
    """
    if not is_bookable(slot, slot.date):
        raise OverbookedError(slot)

    updated = copy.copy(slot)
    updated.current_bookings = (slot.current_bookings or 0) + 1
    if is_full(updated):
        updated.status = SlotStatus.BOOKED
    return updated


# ---------- status transitions ----------

def allowed_slot_transitions(status) -> FrozenSet[str]:
    return SLOT_TRANSITIONS.get(status, frozenset())


def allowed_booking_transitions(status) -> FrozenSet[str]:
    return BOOKING_TRANSITIONS.get(status, frozenset())


def check_slot_transition(current, requested, role):
    """Validate a slot status change; returns the requested SlotStatus."""
    if requested not in allowed_slot_transitions(current):
        raise InvalidTransitionError(current, requested)
    if role not in STAFF_ROLES:
        raise TransitionNotPermitted(role, requested)
    return SlotStatus(requested)


def check_booking_transition(current, requested, role, is_owner=False):
    """
    Validate a booking status change; returns the requested BookingStatus.

    Staff roles may take any edge of the table. A patient may only cancel
    a booking they own.
    """
    if requested not in allowed_booking_transitions(current):
        raise InvalidTransitionError(current, requested)
    if role in STAFF_ROLES:
        return BookingStatus(requested)
    if role == Role.USER and is_owner and requested == BookingStatus.CANCELLED:
        return BookingStatus(requested)
    raise TransitionNotPermitted(role, requested)
