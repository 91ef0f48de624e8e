from collections import namedtuple

BookingResult = namedtuple("BookingResult", ["booking", "slot"])


def _day(value):
    return value.isoformat() if hasattr(value, "isoformat") else value


class AppointmentService:
    def __init__(self, api):
        self.api = api

    # slots
    def slots(self, doctor_id=None, clinic_id=None, day=None, status=None):
        return self.api.get("/appointments", doctorId=doctor_id, clinicId=clinic_id,
                            date=_day(day), status=status)

    def available(self, doctor_id=None, clinic_id=None, day=None):
        return self.api.get("/appointments/available", doctorId=doctor_id,
                            clinicId=clinic_id, date=_day(day))

    def slot(self, slot_id):
        return self.api.get(f"/appointments/{slot_id}")

    def create_schedule(self, clinic_id, day, start_time, end_time, slot_duration, patients_per_slot=1):
        return self.api.post("/doctors/dashboard/create-schedule", json={
            "clinicId": clinic_id,
            "date": _day(day),
            "startTime": start_time,
            "endTime": end_time,
            "slotDuration": slot_duration,
            "patientPerSlot": patients_per_slot,
        })

    def set_slot_status(self, slot_id, status):
        return self.api.patch(f"/appointments/{slot_id}/status", json={"status": status})

    # bookings
    def book(self, slot_id, doctor_id, patient):
        """
        Book `slot_id` for `patient` (camelCase patient fields) and return
        the new booking together with a freshly fetched copy of the slot.
        """
        payload = dict(patient, appointmentId=slot_id, doctorId=doctor_id)
        booking = self.api.post("/token-appointments", json=payload)
        return BookingResult(booking, self.slot(slot_id))

    def set_booking_status(self, booking_id, status):
        return self.api.patch(f"/token-appointments/{booking_id}/status", json={"status": status})

    def cancel(self, booking_id):
        self.api.delete(f"/token-appointments/{booking_id}")

    def my_bookings(self):
        return self.api.get("/token-appointments/my-appointments")

    def by_token(self, token_number):
        return self.api.get(f"/token-appointments/token/{token_number}")


class DashboardService:
    def __init__(self, api):
        self.api = api

    def stats(self):
        return self.api.get("/global-dashboard/stats")

    def today(self):
        return self.api.get("/global-dashboard/today-appointments")

    def between(self, start, end):
        return self.api.get("/global-dashboard/appointments-by-date-range",
                            startDate=_day(start), endDate=_day(end))

    def doctor_wise(self, day=None):
        return self.api.get("/global-dashboard/doctor-wise-stats", date=_day(day))

    def search(self, term, day=None):
        return self.api.get("/global-dashboard/search-appointments", search=term, date=_day(day))


class DoctorService:
    def __init__(self, api):
        self.api = api

    def list(self, specialization=None):
        return self.api.get("/doctors", specialization=specialization)

    def get(self, doctor_id):
        return self.api.get(f"/doctors/{doctor_id}")

    def profile(self):
        return self.api.get("/doctors/profile")

    def profile_exists(self):
        return bool(self.api.get("/doctors/profile/exists")["exists"])
