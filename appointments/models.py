from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .constants import SlotStatus, BookingStatus


class Clinic(models.Model):
	location_name = models.CharField(max_length=150)
	address = models.CharField(max_length=255)
	city = models.CharField(max_length=100)
	state = models.CharField(max_length=100, blank=True)
	postal_code = models.CharField(max_length=20, blank=True)
	phone = models.CharField(max_length=40)
	email = models.EmailField(blank=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["location_name"]

	def __str__(self):
		return f"{self.location_name}, {self.city}"


class Doctor(models.Model):
	user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="doctor_profile")
	name = models.CharField(max_length=120)
	specialization = models.CharField(max_length=120)
	experience = models.PositiveIntegerField(null=True, blank=True)  # years
	license_number = models.CharField(max_length=60, unique=True)
	qualification = models.CharField(max_length=200)
	bio = models.TextField(blank=True)
	consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name"]

	def __str__(self):
		return f"Dr. {self.name} ({self.specialization})"


class Assistant(models.Model):
	user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="assistant_profile")
	doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="assistants")
	name = models.CharField(max_length=120)
	email = models.EmailField()
	phone = models.CharField(max_length=40)
	qualification = models.CharField(max_length=200, blank=True)
	experience = models.PositiveIntegerField(null=True, blank=True)
	is_active = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name"]

	def __str__(self):
		return f"{self.name} (assists {self.doctor.name})"


class Slot(models.Model):
	"""A bookable time window for a doctor at a clinic."""
	doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="slots")
	clinic = models.ForeignKey(Clinic, on_delete=models.CASCADE, related_name="slots")
	date = models.DateField()
	start_time = models.TimeField()
	end_time = models.TimeField()
	duration = models.PositiveIntegerField(help_text="minutes")
	max_patients = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
	current_bookings = models.PositiveIntegerField(default=0)
	status = models.CharField(
		max_length=10,
		choices=SlotStatus.choices,
		default=SlotStatus.AVAILABLE,
	)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		indexes = [
			models.Index(fields=["date"], name="appointment_date_6f1c2b_idx"),
			models.Index(fields=["doctor", "date"], name="appointment_doctor__8a3e41_idx"),
		]
		ordering = ["date", "start_time", "id"]
		constraints = [
			models.CheckConstraint(
				condition=models.Q(current_bookings__lte=models.F("max_patients")),
				name="slot_bookings_within_capacity",
			),
		]

	def __str__(self):
		return f"{self.doctor.name} @ {self.clinic.location_name} - {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

	def clean(self):
		if self.start_time and self.end_time and self.end_time <= self.start_time:
			raise ValidationError({"end_time": "End time must be after start time."})


class TokenAppointment(models.Model):
	"""A patient's booking against one Slot, identified to people by its token number."""
	slot = models.ForeignKey(Slot, on_delete=models.PROTECT, related_name="bookings")
	doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name="bookings")
	created_by = models.ForeignKey(
		settings.AUTH_USER_MODEL,
		on_delete=models.SET_NULL,
		null=True,
		blank=True,
		related_name="bookings",
	)
	token_number = models.CharField(max_length=40, db_index=True)

	patient_name = models.CharField(max_length=120)
	patient_email = models.EmailField(blank=True)
	patient_phone = models.CharField(max_length=40)
	patient_age = models.PositiveIntegerField()
	patient_gender = models.CharField(max_length=20)
	reason_for_visit = models.TextField(blank=True)
	notes = models.TextField(blank=True)  # for staff notes

	# copied from the slot when booked
	date = models.DateField()
	time = models.TimeField()

	status = models.CharField(
		max_length=10,
		choices=BookingStatus.choices,
		default=BookingStatus.PENDING,
	)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		indexes = [
			models.Index(fields=["date"], name="appointment_date_2d9b70_idx"),
			models.Index(fields=["patient_name"], name="appointment_patient_c41f07_idx"),
		]
		ordering = ["-date", "time", "patient_name"]

	def __str__(self):
		return f"#{self.token_number} {self.patient_name} - {self.date} {self.time:%H:%M}"

	@property
	def clinic_id(self):
		return self.slot.clinic_id

	def clean(self):
		if self.slot_id and self.doctor_id and self.slot.doctor_id != self.doctor_id:
			raise ValidationError({"doctor": "Booking doctor must match the slot's doctor."})
