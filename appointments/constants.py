from django.db import models


class SlotStatus(models.TextChoices):
    AVAILABLE = "Available", "Available"
    BOOKED = "Booked", "Booked"
    COMPLETED = "Completed", "Completed"
    CANCELLED = "Cancelled", "Cancelled"


class BookingStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    CONFIRMED = "Confirmed", "Confirmed"
    COMPLETED = "Completed", "Completed"
    CANCELLED = "Cancelled", "Cancelled"
    NO_SHOW = "No Show", "No Show"


GENDER_CHOICES = ["Male", "Female", "Other"]

# bookings that still hold a seat and may turn into revenue
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

# "{clinic_id}-{YYYYMMDD}-{sequence}"
TOKEN_NUMBER_FORMAT = "{clinic_id}-{day:%Y%m%d}-{seq:03d}"
