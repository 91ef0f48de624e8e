import unittest
from datetime import date, time, timedelta
from decimal import Decimal
from types import SimpleNamespace

from django.test import TestCase
from django.utils import timezone
from hypothesis import given, settings, strategies as st
from rest_framework.test import APIClient

from appointments.constants import BookingStatus, SlotStatus
from appointments.models import Clinic, Doctor, Slot, TokenAppointment
from dashboard.utils.chart_utils import build_appointment_chart, count_into
from dashboard.utils.stats import (
    AGE_GROUPS,
    bucket_by_day,
    bucket_by_range,
    completion_rate,
    count_by_status,
    pct_change,
    revenue,
)
from users.constants import Role
from users.models import User

FEES = {1: Decimal("500"), 2: Decimal("750.50"), 3: Decimal("-20"), 4: None}


def booking(status=BookingStatus.PENDING, day=date(2024, 1, 10), doctor_id=1, age=30):
    return SimpleNamespace(status=status, date=day, doctor_id=doctor_id, patient_age=age)


bookings_st = st.lists(
    st.builds(
        booking,
        status=st.sampled_from(list(BookingStatus)),
        day=st.dates(min_value=date(2024, 1, 1), max_value=date(2024, 2, 1)),
        doctor_id=st.sampled_from(sorted(FEES)),
        age=st.one_of(st.none(), st.integers(min_value=0, max_value=100)),
    ),
    max_size=40,
)


class StatsTests(unittest.TestCase):
    def test_count_by_status_empty(self):
        counts = count_by_status([])
        self.assertEqual(set(counts), set(BookingStatus))
        self.assertTrue(all(v == 0 for v in counts.values()))

    @given(bookings_st)
    @settings(max_examples=200)
    def test_count_by_status_sums_to_total(self, bookings):
        self.assertEqual(sum(count_by_status(bookings).values()), len(bookings))

    def test_unknown_status_is_left_out(self):
        counts = count_by_status([booking(), booking(status="Rescheduled")])
        self.assertEqual(sum(counts.values()), 1)

    @given(bookings_st)
    @settings(max_examples=200)
    def test_revenue_is_completed_fees_only(self, bookings):
        expected = sum(
            (FEES[b.doctor_id] for b in bookings
             if b.status == BookingStatus.COMPLETED and FEES[b.doctor_id] is not None and FEES[b.doctor_id] > 0),
            Decimal("0"),
        )
        total = revenue(bookings, FEES.get)
        self.assertGreaterEqual(total, 0)
        self.assertEqual(total, expected)
        self.assertGreaterEqual(revenue(bookings, FEES.get, estimated=True), total)

    def test_revenue_scenario(self):
        bookings = [
            booking(BookingStatus.COMPLETED, doctor_id=1),
            booking(BookingStatus.COMPLETED, doctor_id=2),
            booking(BookingStatus.CONFIRMED, doctor_id=1),
            booking(BookingStatus.CANCELLED, doctor_id=2),
        ]
        self.assertEqual(revenue(bookings, FEES.get), Decimal("1250.50"))
        self.assertEqual(revenue(bookings, FEES.get, estimated=True), Decimal("1750.50"))

    def test_bucket_by_day_empty_week(self):
        buckets = bucket_by_day([], 7, end=date(2024, 1, 10))
        self.assertEqual(len(buckets), 7)
        self.assertTrue(all(b.count == 0 for b in buckets))
        self.assertEqual(buckets[0].day, date(2024, 1, 4))
        self.assertEqual(buckets[-1].day, date(2024, 1, 10))

    def test_bucket_by_day_counts(self):
        bookings = [
            booking(BookingStatus.CONFIRMED, day=date(2024, 1, 9)),
            booking(BookingStatus.COMPLETED, day=date(2024, 1, 9)),
            booking(day=date(2024, 1, 10)),
            booking(day=date(2023, 12, 1)),
        ]
        buckets = bucket_by_day(bookings, 3, end=date(2024, 1, 10))
        self.assertEqual([b.count for b in buckets], [0, 2, 1])
        self.assertEqual((buckets[1].confirmed, buckets[1].completed), (1, 1))
        self.assertEqual(bucket_by_day(bookings, 0), [])

    def test_bucket_by_range_ages(self):
        bookings = [booking(age=a) for a in (5, 18, 19, 45, 46, 90, None)]
        self.assertEqual(
            bucket_by_range(bookings, AGE_GROUPS, key=lambda b: b.patient_age),
            [("0-18", 2), ("19-45", 2), ("46+", 2)],
        )

    def test_completion_rate_and_pct_change(self):
        self.assertEqual(completion_rate([]), 0.0)
        self.assertEqual(completion_rate([booking(BookingStatus.COMPLETED), booking(), booking()]), 33.3)
        self.assertEqual(pct_change(15, 10), 50.0)
        self.assertEqual(pct_change(3, 0), 100.0)
        self.assertEqual(pct_change(0, 0), 0.0)


class ChartTests(unittest.TestCase):
    def test_day_view_has_seven_days(self):
        chart = build_appointment_chart([booking(day=date(2024, 1, 10))], "day", date(2024, 1, 10))
        self.assertEqual(len(chart["labels"]), 7)
        self.assertEqual(chart["values"][-1], 1)
        self.assertEqual(chart["prev_start"], "2023-12-28")

    def test_week_view(self):
        bookings = [booking(day=date(2024, 1, 10)), booking(day=date(2023, 12, 14))]
        chart = build_appointment_chart(bookings, "week", date(2024, 1, 10))
        self.assertEqual(chart["labels"], ["Week 1", "Week 2", "Week 3", "Week 4"])
        self.assertEqual(chart["values"], [1, 0, 0, 1])

    def test_month_and_year_views(self):
        bookings = [booking(day=date(2024, 1, 10)), booking(day=date(2023, 8, 1)), booking(day=date(2019, 5, 5))]
        month = build_appointment_chart(bookings, "month", date(2024, 1, 10))
        self.assertEqual(month["labels"], ["Aug", "Sep", "Oct", "Nov", "Dec", "Jan"])
        self.assertEqual(month["values"], [1, 0, 0, 0, 0, 1])

        year = build_appointment_chart(bookings, "year", date(2024, 1, 10))
        self.assertEqual(year["labels"], ["2019", "2020", "2021", "2022", "2023", "2024"])
        self.assertEqual(year["values"], [1, 0, 0, 0, 1, 1])

    def test_unknown_view_falls_back_to_day(self):
        self.assertEqual(build_appointment_chart([], "decade", date(2024, 1, 10))["view"], "day")

    def test_count_into_skips_out_of_range(self):
        days = [date(2024, 1, d) for d in (1, 2, 2, 9)]
        self.assertEqual(count_into(days, 3, lambda d: d.day - 1), [1, 2, 0])


class DashboardApiTests(TestCase):
    def setUp(self):
        self.api = APIClient()
        self.today = timezone.localdate()
        self.admin = User.objects.create_user("admin", password="pass12345", role=Role.ADMIN)
        self.patient = User.objects.create_user("user", password="pass12345", role=Role.USER)

        clinic = Clinic.objects.create(location_name="Main Street")
        self.doctors = []
        for n, fee in enumerate((Decimal("500"), Decimal("800")), start=1):
            user = User.objects.create_user(f"doctor{n}", password="pass12345", role=Role.DOCTOR)
            self.doctors.append(Doctor.objects.create(
                user=user, name=f"Dr. {n}", license_number=f"LIC-{n}", consultation_fee=fee, experience=n * 6,
            ))

        statuses = [
            (self.doctors[0], BookingStatus.COMPLETED, 30),
            (self.doctors[0], BookingStatus.CONFIRMED, 12),
            (self.doctors[1], BookingStatus.COMPLETED, 50),
            (self.doctors[1], BookingStatus.CANCELLED, 50),
        ]
        for i, (doctor, booking_status, age) in enumerate(statuses):
            slot = Slot.objects.create(
                doctor=doctor, clinic=clinic, date=self.today, start_time=time(9 + i, 0),
                end_time=time(9 + i, 30), duration=30, max_patients=1, current_bookings=1,
                status=SlotStatus.BOOKED,
            )
            TokenAppointment.objects.create(
                slot=slot, doctor=doctor, token_number=f"{clinic.pk}-{self.today:%Y%m%d}-{i + 1:03d}",
                patient_name=f"Patient {i}", patient_phone=f"0917{i}", patient_email=f"p{i}@example.com",
                patient_age=age, patient_gender="Other", date=self.today, time=slot.start_time,
                status=booking_status,
            )

    def test_global_stats(self):
        print("\n[TEST] global stats count completed revenue only")
        self.api.force_authenticate(user=self.admin)
        response = self.api.get("/global-dashboard/stats")
        print("  - stats:", response.data)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["totalDoctors"], 2)
        self.assertEqual(response.data["totalAppointmentsToday"], 4)
        self.assertEqual(response.data["totalPatientsToday"], 4)
        self.assertEqual(response.data["completedAppointments"], 2)
        self.assertEqual(response.data["cancelledAppointments"], 1)
        self.assertEqual(Decimal(str(response.data["totalRevenue"])), Decimal("1300"))
        self.assertEqual(response.data["appointmentsChange"], 100.0)

    def test_global_dashboard_is_admin_only(self):
        self.api.force_authenticate(user=self.doctors[0].user)
        self.assertEqual(self.api.get("/global-dashboard/stats").status_code, 403)
        self.api.force_authenticate(user=self.patient)
        self.assertEqual(self.api.get("/global-dashboard/today-appointments").status_code, 403)

    def test_today_search_and_doctor_wise(self):
        self.api.force_authenticate(user=self.admin)

        today = self.api.get("/global-dashboard/today-appointments")
        self.assertEqual(len(today.data), 4)
        self.assertEqual(today.data[0]["clinicName"], "Main Street")

        found = self.api.get("/global-dashboard/search-appointments", {"search": "patient 2"})
        self.assertEqual([row["patientName"] for row in found.data], ["Patient 2"])

        per_doctor = self.api.get("/global-dashboard/doctor-wise-stats").data
        self.assertEqual([row["totalAppointments"] for row in per_doctor], [2, 2])
        self.assertEqual(Decimal(str(per_doctor[1]["totalRevenue"])), Decimal("800"))

    def test_date_range_requires_both_dates(self):
        self.api.force_authenticate(user=self.admin)
        self.assertEqual(self.api.get("/global-dashboard/appointments-by-date-range").status_code, 400)
        response = self.api.get("/global-dashboard/appointments-by-date-range", {
            "startDate": (self.today - timedelta(days=1)).isoformat(),
            "endDate": self.today.isoformat(),
        })
        self.assertEqual(len(response.data), 4)

    def test_latest_patients_are_completed(self):
        self.api.force_authenticate(user=self.admin)
        rows = self.api.get("/global-dashboard/latest-patients").data
        self.assertEqual({row["status"] for row in rows}, {BookingStatus.COMPLETED})
        self.assertEqual(len(rows), 2)

    def test_doctor_report_is_scoped(self):
        self.api.force_authenticate(user=self.doctors[0].user)
        report = self.api.get("/reports/summary").data

        self.assertEqual(report["total"], 2)
        self.assertEqual(Decimal(str(report["revenue"])), Decimal("500"))
        self.assertEqual(report["estimatedRevenue"]["label"], "Revenue (est.)")
        self.assertEqual(Decimal(str(report["estimatedRevenue"]["amount"])), Decimal("1000"))
        self.assertEqual(report["completionRate"], 50.0)
        self.assertEqual(len(report["dailyTrend"]), 30)
        self.assertEqual(report["dailyTrend"][-1]["appointments"], 2)
        self.assertEqual(report["demographics"], [
            {"age": "0-18", "count": 1}, {"age": "19-45", "count": 1}, {"age": "46+", "count": 0},
        ])
        self.assertEqual(report["doctorExperience"][1], {"range": "6-10 years", "count": 1})

    def test_admin_report_doctor_filter(self):
        self.api.force_authenticate(user=self.admin)
        report = self.api.get("/reports/summary", {"doctorId": self.doctors[1].pk}).data
        self.assertEqual(report["total"], 2)
        self.assertEqual(report["missedOrCancelled"], 1)

    def test_chart_endpoint(self):
        self.api.force_authenticate(user=self.admin)
        chart = self.api.get("/global-dashboard/chart", {"view": "day"}).data
        self.assertEqual(chart["values"][-1], 4)

    def test_csv_exports(self):
        self.api.force_authenticate(user=self.admin)

        response = self.api.get("/token-appointments/export", {"status": BookingStatus.COMPLETED})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("attachment;", response["Content-Disposition"])
        lines = response.content.decode().strip().splitlines()
        self.assertEqual(lines[0], "Token,Patient,Email,Phone,Date,Time,Status,Doctor,Clinic")
        self.assertEqual(len(lines), 3)

        summary = self.api.get("/reports/export")
        self.assertEqual(summary.status_code, 200)
        body = summary.content.decode()
        self.assertIn("Revenue,1300.00", body)
        self.assertIn("Revenue (est.),1800.00", body)

    def test_patient_cannot_export(self):
        self.api.force_authenticate(user=self.patient)
        self.assertEqual(self.api.get("/reports/export").status_code, 403)
