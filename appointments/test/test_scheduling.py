import unittest
from datetime import date, timedelta
from types import SimpleNamespace

from hypothesis import given, settings, strategies as st

from appointments.constants import BookingStatus, SlotStatus
from appointments.scheduling import (
    BOOKING_TRANSITIONS,
    SLOT_TRANSITIONS,
    InvalidTransitionError,
    OverbookedError,
    TransitionNotPermitted,
    apply_booking,
    check_booking_transition,
    check_slot_transition,
    is_bookable,
)
from users.constants import Role

DAY = date(2024, 1, 10)


def make_slot(current=0, max_patients=2, status=SlotStatus.AVAILABLE, day=DAY, id=1):
    return SimpleNamespace(id=id, date=day, current_bookings=current,
                           max_patients=max_patients, status=status)


@st.composite
def slots(draw):
    return make_slot(
        current=draw(st.integers(min_value=0, max_value=20)),
        max_patients=draw(st.integers(min_value=-3, max_value=20)),
        status=draw(st.sampled_from(list(SlotStatus) + ["Full", ""])),
        day=DAY + timedelta(days=draw(st.integers(min_value=-2, max_value=2))),
    )


class BookabilityTests(unittest.TestCase):
    @given(st.integers(min_value=1, max_value=50), st.integers(min_value=0, max_value=50),
           st.sampled_from(list(SlotStatus) + ["Full"]))
    @settings(max_examples=200)
    def test_full_slot_is_never_bookable(self, max_patients, extra, status):
        slot = make_slot(current=max_patients + extra, max_patients=max_patients, status=status)
        self.assertFalse(is_bookable(slot, DAY))

    @given(st.integers(min_value=-10, max_value=0), st.integers(min_value=0, max_value=5))
    def test_no_capacity_is_never_bookable(self, max_patients, current):
        slot = make_slot(current=current, max_patients=max_patients)
        self.assertFalse(is_bookable(slot, DAY))

    def test_three_slots_scenario(self):
        print("\n[TEST] bookability of 0/2, 1/2, 2/2 slots on and off their date")
        trio = [make_slot(current=n, max_patients=2, id=n) for n in (0, 1, 2)]

        self.assertEqual([is_bookable(s, date(2024, 1, 10)) for s in trio], [True, True, False])
        self.assertEqual([is_bookable(s, date(2024, 1, 11)) for s in trio], [False, False, False])

    def test_status_is_checked_besides_counter(self):
        self.assertFalse(is_bookable(make_slot(status=SlotStatus.CANCELLED), DAY))
        self.assertFalse(is_bookable(make_slot(status=SlotStatus.BOOKED), DAY))


class ApplyBookingTests(unittest.TestCase):
    @given(slots())
    @settings(max_examples=300)
    def test_non_bookable_slot_is_rejected_untouched(self, slot):
        if is_bookable(slot, slot.date):
            return
        before = slot.current_bookings
        with self.assertRaises(OverbookedError):
            apply_booking(slot)
        self.assertEqual(slot.current_bookings, before)

    @given(slots())
    def test_bookable_slot_gains_one(self, slot):
        if not is_bookable(slot, slot.date):
            return
        updated = apply_booking(slot)
        self.assertEqual(updated.current_bookings, slot.current_bookings + 1)
        self.assertLessEqual(updated.current_bookings, updated.max_patients)

    def test_second_booking_overflows(self):
        print("\n[TEST] 1/2 slot takes one booking, then refuses the next")
        slot = make_slot(current=1, max_patients=2)

        updated = apply_booking(slot)
        print("  - after booking:", updated.current_bookings, updated.status)

        self.assertEqual(updated.current_bookings, 2)
        self.assertEqual(updated.status, SlotStatus.BOOKED)
        self.assertEqual(slot.current_bookings, 1)
        with self.assertRaises(OverbookedError) as ctx:
            apply_booking(updated)
        self.assertEqual(ctx.exception.slot_id, 1)
        self.assertEqual(updated.current_bookings, 2)

    def test_partial_slot_stays_available(self):
        updated = apply_booking(make_slot(current=0, max_patients=3))
        self.assertEqual(updated.status, SlotStatus.AVAILABLE)


class TransitionTests(unittest.TestCase):
    def test_slot_table_is_exhaustive(self):
        for current in SlotStatus:
            for requested in SlotStatus:
                allowed = requested in SLOT_TRANSITIONS[current]
                with self.subTest(current=current, requested=requested):
                    if allowed:
                        self.assertEqual(check_slot_transition(current, requested, Role.ADMIN), requested)
                    else:
                        with self.assertRaises(InvalidTransitionError):
                            check_slot_transition(current, requested, Role.ADMIN)

    def test_booking_table_is_exhaustive(self):
        for current in BookingStatus:
            for requested in BookingStatus:
                allowed = requested in BOOKING_TRANSITIONS[current]
                with self.subTest(current=current, requested=requested):
                    if allowed:
                        self.assertEqual(check_booking_transition(current, requested, Role.DOCTOR), requested)
                    else:
                        with self.assertRaises(InvalidTransitionError):
                            check_booking_transition(current, requested, Role.DOCTOR)

    def test_same_state_is_rejected(self):
        with self.assertRaises(InvalidTransitionError):
            check_booking_transition(BookingStatus.PENDING, BookingStatus.PENDING, Role.ADMIN)

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(InvalidTransitionError):
            check_slot_transition(SlotStatus.AVAILABLE, "Full", Role.ADMIN)

    def test_patient_may_only_cancel_own_booking(self):
        self.assertEqual(
            check_booking_transition(BookingStatus.PENDING, BookingStatus.CANCELLED, Role.USER, is_owner=True),
            BookingStatus.CANCELLED,
        )
        with self.assertRaises(TransitionNotPermitted):
            check_booking_transition(BookingStatus.PENDING, BookingStatus.CANCELLED, Role.USER)
        with self.assertRaises(TransitionNotPermitted):
            check_booking_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED, Role.USER, is_owner=True)

    def test_patient_cannot_change_slot(self):
        with self.assertRaises(TransitionNotPermitted):
            check_slot_transition(SlotStatus.AVAILABLE, SlotStatus.CANCELLED, Role.USER)
