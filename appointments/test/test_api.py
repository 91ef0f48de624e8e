from datetime import date, time, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from appointments.constants import BookingStatus, SlotStatus
from appointments.models import Assistant, Clinic, Doctor, Slot, TokenAppointment
from users.constants import Role
from users.models import User

PATIENT = {
    "patientName": "Maria Santos",
    "patientEmail": "maria@example.com",
    "patientPhone": "0917 555 0101",
    "patientAge": 34,
    "patientGender": "Female",
    "reasonForVisit": "Toothache",
}


class ClinicApiTestCase(TestCase):
    """Shared fixtures: one clinic, one doctor with an assistant, an admin and a patient."""

    def setUp(self):
        self.api = APIClient()
        self.day = timezone.localdate() + timedelta(days=1)

        self.admin = User.objects.create_user("admin", password="pw-admin-1", role=Role.ADMIN)
        self.doctor_user = User.objects.create_user("drcruz", password="pw-doctor-1", role=Role.DOCTOR)
        self.assistant_user = User.objects.create_user("desk", password="pw-desk-1", role=Role.ASSISTANT)
        self.patient = User.objects.create_user(
            "maria", email="maria@example.com", password="pw-maria-1", role=Role.USER
        )

        self.clinic = Clinic.objects.create(location_name="Main Street", address="1 Main St", city="Cebu")
        self.doctor = Doctor.objects.create(
            user=self.doctor_user, name="Dr. Cruz", specialization="Dentist",
            license_number="LIC-1", consultation_fee=Decimal("500.00"),
        )
        Assistant.objects.create(user=self.assistant_user, doctor=self.doctor, name="Desk")

    def make_slot(self, current=0, max_patients=2, day=None, status=SlotStatus.AVAILABLE, hour=9):
        return Slot.objects.create(
            doctor=self.doctor, clinic=self.clinic, date=day or self.day,
            start_time=time(hour, 0), end_time=time(hour, 30), duration=30,
            max_patients=max_patients, current_bookings=current, status=status,
        )

    def book(self, slot, user=None, **extra):
        self.api.force_authenticate(user=user or self.patient)
        payload = dict(PATIENT, appointmentId=slot.pk, doctorId=self.doctor.pk)
        payload.update(extra)
        return self.api.post("/token-appointments", payload, format="json")


class BookingApiTests(ClinicApiTestCase):
    def test_patient_books_pending_and_counter_moves(self):
        print("\n[TEST] patient booking creates a Pending token and takes a seat")
        slot = self.make_slot(current=0, max_patients=2)

        response = self.book(slot)
        print("  - response:", response.status_code, response.data.get("tokenNumber"))

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["status"], BookingStatus.PENDING)
        self.assertEqual(response.data["tokenNumber"], f"{self.clinic.pk}-{self.day:%Y%m%d}-001")
        self.assertEqual(response.data["date"], self.day.isoformat())
        slot.refresh_from_db()
        self.assertEqual(slot.current_bookings, 1)
        self.assertEqual(slot.status, SlotStatus.AVAILABLE)

    def test_staff_booking_starts_confirmed(self):
        slot = self.make_slot()
        response = self.book(slot, user=self.assistant_user)
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["status"], BookingStatus.CONFIRMED)

    def test_last_seat_marks_slot_booked_then_overbooking_is_409(self):
        print("\n[TEST] filling the last seat closes the slot")
        slot = self.make_slot(current=1, max_patients=2)

        self.assertEqual(self.book(slot).status_code, 201)
        slot.refresh_from_db()
        self.assertEqual(slot.current_bookings, 2)
        self.assertEqual(slot.status, SlotStatus.BOOKED)

        response = self.book(slot)
        print("  - second booking:", response.status_code, response.data)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["details"]["slotId"], slot.pk)
        slot.refresh_from_db()
        self.assertEqual(slot.current_bookings, 2)
        self.assertEqual(TokenAppointment.objects.count(), 1)

    def test_counter_wins_over_stale_status(self):
        slot = self.make_slot(current=2, max_patients=2, status=SlotStatus.AVAILABLE)
        self.assertEqual(self.book(slot).status_code, 409)

    def test_wrong_doctor_is_400(self):
        other_user = User.objects.create_user("drlee", password="pw-lee-1", role=Role.DOCTOR)
        other = Doctor.objects.create(user=other_user, name="Dr. Lee", license_number="LIC-2")
        slot = self.make_slot()

        response = self.book(slot, doctorId=other.pk)

        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.data)
        slot.refresh_from_db()
        self.assertEqual(slot.current_bookings, 0)

    def test_invalid_payload_has_message(self):
        slot = self.make_slot()
        response = self.book(slot, patientName="A")
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.data["message"].startswith("patientName"))

    def test_anonymous_cannot_book(self):
        slot = self.make_slot()
        response = self.api.post("/token-appointments", dict(PATIENT, appointmentId=slot.pk), format="json")
        self.assertEqual(response.status_code, 401)

    def test_my_appointments_and_token_lookup(self):
        slot = self.make_slot()
        token = self.book(slot).data["tokenNumber"]

        mine = self.api.get("/token-appointments/my-appointments")
        self.assertEqual([b["tokenNumber"] for b in mine.data], [token])

        found = self.api.get(f"/token-appointments/token/{token}")
        self.assertEqual(found.status_code, 200)
        self.assertEqual(found.data["patientName"], PATIENT["patientName"])

        missing = self.api.get("/token-appointments/token/nope")
        self.assertEqual(missing.status_code, 404)
        self.assertIn("message", missing.data)

    def test_staff_list_is_scoped_to_doctor(self):
        slot = self.make_slot()
        self.book(slot)

        self.api.force_authenticate(user=self.assistant_user)
        self.assertEqual(len(self.api.get("/token-appointments").data), 1)

        self.api.force_authenticate(user=self.patient)
        self.assertEqual(self.api.get("/token-appointments").status_code, 403)


class BookingStatusApiTests(ClinicApiTestCase):
    def setUp(self):
        super().setUp()
        self.slot = self.make_slot()
        self.booking_id = self.book(self.slot).data["id"]

    def patch_status(self, user, new_status):
        self.api.force_authenticate(user=user)
        return self.api.patch(f"/token-appointments/{self.booking_id}/status", {"status": new_status}, format="json")

    def test_doctor_walks_the_table(self):
        self.assertEqual(self.patch_status(self.doctor_user, "Confirmed").status_code, 200)
        response = self.patch_status(self.doctor_user, "Completed")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], BookingStatus.COMPLETED)

    def test_terminal_status_is_409(self):
        print("\n[TEST] Completed booking cannot move back to Pending")
        self.patch_status(self.doctor_user, "Confirmed")
        self.patch_status(self.doctor_user, "Completed")

        response = self.patch_status(self.doctor_user, "Pending")
        print("  - response:", response.status_code, response.data["message"])

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["details"], {"current": "Completed", "requested": "Pending"})

    def test_skipping_confirmation_is_409(self):
        self.assertEqual(self.patch_status(self.doctor_user, "Completed").status_code, 409)

    def test_patient_cannot_confirm(self):
        self.assertEqual(self.patch_status(self.patient, "Confirmed").status_code, 403)

    def test_unknown_status_is_400(self):
        self.assertEqual(self.patch_status(self.doctor_user, "Done").status_code, 400)

    def test_patient_cancels_own_booking_with_delete(self):
        self.api.force_authenticate(user=self.patient)
        response = self.api.delete(f"/token-appointments/{self.booking_id}")

        self.assertEqual(response.status_code, 204)
        booking = TokenAppointment.objects.get(pk=self.booking_id)
        self.assertEqual(booking.status, BookingStatus.CANCELLED)

    def test_other_patient_gets_404_for_someone_elses_booking(self):
        print("\n[TEST] a stranger cannot tell whether another patient's booking exists")
        self.patch_status(self.doctor_user, "Confirmed")
        self.patch_status(self.doctor_user, "Completed")

        stranger = User.objects.create_user("stranger", email="s@example.com", password="pw-s-1")
        self.api.force_authenticate(user=stranger)
        response = self.api.delete(f"/token-appointments/{self.booking_id}")
        print("  - delete:", response.status_code, response.data)

        self.assertEqual(response.status_code, 404)
        self.assertNotIn("details", response.data)
        self.assertEqual(self.patch_status(stranger, "Cancelled").status_code, 404)
        self.assertEqual(self.api.get(f"/token-appointments/{self.booking_id}").status_code, 404)
        self.assertEqual(TokenAppointment.objects.get(pk=self.booking_id).status, BookingStatus.COMPLETED)


class DeskBookingOwnershipTests(ClinicApiTestCase):
    """Bookings staff make at the desk belong to the patient whose email they carry."""

    def setUp(self):
        super().setUp()
        self.slot = self.make_slot()
        response = self.book(self.slot, user=self.assistant_user)
        self.assertEqual(response.status_code, 201, response.data)
        self.booking = response.data

    def test_patient_lists_desk_booking(self):
        print("\n[TEST] desk booking shows up in the patient's own list")
        self.api.force_authenticate(user=self.patient)
        response = self.api.get("/token-appointments/my-appointments")
        print("  - my appointments:", [b["tokenNumber"] for b in response.data])

        self.assertEqual([b["id"] for b in response.data], [self.booking["id"]])
        found = self.api.get(f"/token-appointments/token/{self.booking['tokenNumber']}")
        self.assertEqual(found.status_code, 200)
        self.assertEqual(self.api.get(f"/token-appointments/{self.booking['id']}").status_code, 200)

    def test_patient_cancels_desk_booking(self):
        self.api.force_authenticate(user=self.patient)
        response = self.api.delete(f"/token-appointments/{self.booking['id']}")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(TokenAppointment.objects.get(pk=self.booking["id"]).status, BookingStatus.CANCELLED)

    def test_email_match_ignores_case(self):
        self.patient.email = "MARIA@example.com"
        self.patient.save()
        self.api.force_authenticate(user=self.patient)
        self.assertEqual(len(self.api.get("/token-appointments/my-appointments").data), 1)

    def test_other_patient_does_not_see_it(self):
        stranger = User.objects.create_user("stranger", email="s@example.com", password="pw-s-1")
        self.api.force_authenticate(user=stranger)
        self.assertEqual(self.api.get("/token-appointments/my-appointments").data, [])
        self.assertEqual(
            self.api.get(f"/token-appointments/token/{self.booking['tokenNumber']}").status_code, 404
        )

    def test_patient_without_email_owns_only_what_they_created(self):
        no_email = User.objects.create_user("walkin", password="pw-w-1")
        self.api.force_authenticate(user=no_email)
        self.assertEqual(self.api.get("/token-appointments/my-appointments").data, [])


class PatientBookingListTests(ClinicApiTestCase):
    def setUp(self):
        super().setUp()
        today = timezone.localdate()
        self.future = self.book(self.make_slot(day=today + timedelta(days=2), hour=9)).data
        self.closed = self.book(self.make_slot(day=today + timedelta(days=3), hour=10)).data
        self.api.delete(f"/token-appointments/{self.closed['id']}")

        past_slot = self.make_slot(day=today - timedelta(days=5), hour=11, current=1)
        self.past = TokenAppointment.objects.create(
            slot=past_slot, doctor=self.doctor, created_by=self.patient, token_number="1-old-001",
            patient_name="Maria Santos", patient_email="maria@example.com", patient_phone="0917",
            patient_age=34, patient_gender="Female", date=past_slot.date, time=past_slot.start_time,
            status=BookingStatus.CONFIRMED,
        )

    def test_upcoming_has_only_active_future_bookings(self):
        self.api.force_authenticate(user=self.patient)
        response = self.api.get("/patients/upcoming-appointments")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([b["id"] for b in response.data], [self.future["id"]])

    def test_history_has_past_and_closed_bookings(self):
        print("\n[TEST] history lists cancelled and past bookings, newest first")
        self.api.force_authenticate(user=self.patient)
        response = self.api.get("/patients/appointment-history")
        print("  - history:", [(b["date"], b["status"]) for b in response.data])

        self.assertEqual([b["id"] for b in response.data], [self.closed["id"], self.past.pk])
        limited = self.api.get("/patients/appointment-history", {"limit": 1})
        self.assertEqual(len(limited.data), 1)

    def test_history_rejects_bad_limit(self):
        self.api.force_authenticate(user=self.patient)
        self.assertEqual(self.api.get("/patients/appointment-history", {"limit": "ten"}).status_code, 400)


class SlotApiTests(ClinicApiTestCase):
    def test_available_filters_by_counter_status_and_date(self):
        open_slot = self.make_slot(current=0, hour=9)
        self.make_slot(current=2, hour=10)
        self.make_slot(status=SlotStatus.CANCELLED, hour=11)
        self.make_slot(day=self.day + timedelta(days=1), hour=12)

        response = self.api.get("/appointments/available", {"date": self.day.isoformat()})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([s["id"] for s in response.data], [open_slot.pk])
        self.assertTrue(response.data[0]["isBookable"])

    def test_available_rejects_bad_date(self):
        response = self.api.get("/appointments/available", {"date": "10/01/2024"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "date: Date must be in YYYY-MM-DD format")

    def test_slot_status_transitions(self):
        slot = self.make_slot()
        self.api.force_authenticate(user=self.doctor_user)

        response = self.api.patch(f"/appointments/{slot.pk}/status", {"status": "Completed"}, format="json")
        self.assertEqual(response.status_code, 409)

        response = self.api.patch(f"/appointments/{slot.pk}/status", {"status": "Cancelled"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], SlotStatus.CANCELLED)

    def test_admin_creates_and_deletes_slot(self):
        self.api.force_authenticate(user=self.admin)
        response = self.api.post("/appointments", {
            "doctorId": self.doctor.pk,
            "clinicId": self.clinic.pk,
            "date": self.day.isoformat(),
            "startTime": "14:00",
            "endTime": "14:30",
            "duration": 30,
            "maxPatients": 3,
        }, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["status"], SlotStatus.AVAILABLE)

        self.assertEqual(self.api.delete(f"/appointments/{response.data['id']}").status_code, 204)

    def test_slot_with_bookings_cannot_be_deleted(self):
        slot = self.make_slot()
        self.book(slot)
        self.api.force_authenticate(user=self.admin)
        self.assertEqual(self.api.delete(f"/appointments/{slot.pk}").status_code, 409)

    def test_doctor_cannot_create_single_slot(self):
        self.api.force_authenticate(user=self.doctor_user)
        response = self.api.post("/appointments", {}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_create_schedule_drops_partial_window(self):
        print("\n[TEST] 09:00-10:40 in 30-minute slots gives three slots")
        self.api.force_authenticate(user=self.doctor_user)
        response = self.api.post("/doctors/dashboard/create-schedule", {
            "clinicId": self.clinic.pk,
            "date": self.day.isoformat(),
            "startTime": "9:00 AM",
            "endTime": "10:40",
            "slotDuration": 30,
            "patientPerSlot": 4,
        }, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        print("  - slots:", [(s["startTime"], s["endTime"]) for s in response.data])
        self.assertEqual([s["startTime"] for s in response.data], ["09:00", "09:30", "10:00"])
        self.assertTrue(all(s["maxPatients"] == 4 for s in response.data))

    def test_create_schedule_with_no_window_is_400(self):
        self.api.force_authenticate(user=self.doctor_user)
        response = self.api.post("/doctors/dashboard/create-schedule", {
            "clinicId": self.clinic.pk,
            "date": self.day.isoformat(),
            "startTime": "09:00",
            "endTime": "09:20",
            "slotDuration": 30,
        }, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Slot.objects.count(), 0)

    def test_patient_can_read_single_slot(self):
        slot = self.make_slot()
        self.api.force_authenticate(user=self.patient)
        response = self.api.get(f"/appointments/{slot.pk}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["currentBookings"], 0)

        self.assertEqual(self.api.delete(f"/appointments/{slot.pk}").status_code, 403)
        self.api.force_authenticate(user=None)
        self.assertEqual(self.api.get(f"/appointments/{slot.pk}").status_code, 401)

    def test_doctors_with_slots_lists_only_bookable(self):
        print("\n[TEST] public calendar lists doctors that still have open seats")
        other_user = User.objects.create_user("drlee", password="pw-lee-1", role=Role.DOCTOR)
        lee = Doctor.objects.create(user=other_user, name="Dr. Lee", license_number="LIC-2")
        Slot.objects.create(doctor=lee, clinic=self.clinic, date=self.day, start_time=time(9, 0),
                            end_time=time(9, 30), duration=30, max_patients=1, current_bookings=1)
        open_slot = self.make_slot(hour=9)
        self.make_slot(hour=10, status=SlotStatus.CANCELLED)

        response = self.api.get("/public/doctors-with-slots", {"date": self.day.isoformat()})
        print("  - doctors:", [row["doctor"]["name"] for row in response.data])

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["doctor"]["id"], self.doctor.pk)
        self.assertEqual([s["id"] for s in response.data[0]["availableSlots"]], [open_slot.pk])

        other_day = self.api.get("/public/doctors-with-slots",
                                 {"date": (self.day + timedelta(days=7)).isoformat()})
        self.assertEqual(other_day.data, [])

    def test_slot_and_booking_labels(self):
        slot = self.make_slot()
        self.assertEqual(str(slot), f"Dr. Cruz @ Main Street - {self.day} 09:00-09:30")

        response = self.book(slot)
        booking = TokenAppointment.objects.get(pk=response.data["id"])
        self.assertEqual(str(booking), f"#{booking.token_number} Maria Santos - {self.day} 09:00")


class ClinicManagementApiTests(ClinicApiTestCase):
    def test_admin_updates_clinic(self):
        self.api.force_authenticate(user=self.admin)
        response = self.api.patch(f"/clinics/{self.clinic.pk}", {"city": "Manila"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["city"], "Manila")
        self.assertEqual(response.data["locationName"], "Main Street")

    def test_non_admin_cannot_update(self):
        self.api.force_authenticate(user=self.doctor_user)
        self.assertEqual(self.api.patch(f"/clinics/{self.clinic.pk}", {"city": "X"}, format="json").status_code, 403)
        self.assertEqual(self.api.get(f"/clinics/{self.clinic.pk}").status_code, 200)

    def test_delete_clinic(self):
        empty = Clinic.objects.create(location_name="Annex")
        self.api.force_authenticate(user=self.admin)
        self.assertEqual(self.api.delete(f"/clinics/{empty.pk}").status_code, 204)
        self.assertFalse(Clinic.objects.filter(pk=empty.pk).exists())

    def test_clinic_with_bookings_is_kept(self):
        self.book(self.make_slot())
        self.api.force_authenticate(user=self.admin)
        self.assertEqual(self.api.delete(f"/clinics/{self.clinic.pk}").status_code, 409)
        self.assertTrue(Clinic.objects.filter(pk=self.clinic.pk).exists())


class AssistantManagementApiTests(ClinicApiTestCase):
    def setUp(self):
        super().setUp()
        self.assistant = Assistant.objects.get(user=self.assistant_user)

    def test_doctor_updates_own_assistant(self):
        self.api.force_authenticate(user=self.doctor_user)
        response = self.api.patch(f"/assistants/{self.assistant.pk}", {"phone": "0917 000 1111"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["phone"], "0917 000 1111")

    def test_toggle_status_cuts_booking_access(self):
        print("\n[TEST] deactivated assistant no longer sees the doctor's bookings")
        self.book(self.make_slot())
        self.api.force_authenticate(user=self.doctor_user)
        response = self.api.patch(f"/assistants/{self.assistant.pk}/toggle-status")
        print("  - isActive:", response.data["isActive"])
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["isActive"])

        self.api.force_authenticate(user=self.assistant_user)
        self.assertEqual(self.api.get("/token-appointments").data, [])

        self.api.force_authenticate(user=self.doctor_user)
        self.assertTrue(self.api.patch(f"/assistants/{self.assistant.pk}/toggle-status").data["isActive"])

    def test_other_doctor_cannot_reach_assistant(self):
        other_user = User.objects.create_user("drlee", password="pw-lee-1", role=Role.DOCTOR)
        Doctor.objects.create(user=other_user, name="Dr. Lee", license_number="LIC-2")
        self.api.force_authenticate(user=other_user)
        self.assertEqual(self.api.get(f"/assistants/{self.assistant.pk}").status_code, 404)
        self.assertEqual(self.api.patch(f"/assistants/{self.assistant.pk}/toggle-status").status_code, 404)

    def test_admin_removes_assistant(self):
        self.api.force_authenticate(user=self.admin)
        self.assertEqual(self.api.delete(f"/assistants/{self.assistant.pk}").status_code, 204)
        self.assertFalse(Assistant.objects.filter(pk=self.assistant.pk).exists())

    def test_patient_is_refused(self):
        self.api.force_authenticate(user=self.patient)
        self.assertEqual(self.api.get(f"/assistants/{self.assistant.pk}").status_code, 403)


class ProfileApiTests(ClinicApiTestCase):
    def test_profile_exists_flags(self):
        self.api.force_authenticate(user=self.doctor_user)
        self.assertEqual(self.api.get("/doctors/profile/exists").data, {"exists": True})

        newcomer = User.objects.create_user("drnew", password="pw-new-1", role=Role.DOCTOR)
        self.api.force_authenticate(user=newcomer)
        response = self.api.get("/doctors/profile/exists")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"exists": False})

    def test_assistant_profile_exists(self):
        self.api.force_authenticate(user=self.assistant_user)
        self.assertEqual(self.api.get("/assistants/profile/exists").data, {"exists": True})

    def test_doctor_list_is_public(self):
        response = self.api.get("/doctors")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["name"], "Dr. Cruz")


class BearerAuthTests(ClinicApiTestCase):
    def test_bearer_token_authenticates(self):
        token = Token.objects.create(user=self.admin)
        self.api.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
        self.assertEqual(self.api.get("/appointments").status_code, 200)

    def test_bad_token_is_401(self):
        self.api.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        self.assertEqual(self.api.get("/appointments").status_code, 401)
