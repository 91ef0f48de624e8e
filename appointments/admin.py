from django.contrib import admin

from .forms import SlotAdminForm, TokenAppointmentAdminForm
from .models import Clinic, Doctor, Assistant, Slot, TokenAppointment
from .utils.time_utils import format_timeslot


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ("id", "location_name", "city", "phone", "email")
    search_fields = ("location_name", "city", "address")


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "specialization", "experience", "consultation_fee", "license_number")
    list_filter = ("specialization",)
    search_fields = ("name", "license_number", "specialization")


@admin.register(Assistant)
class AssistantAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "doctor", "email", "phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "email", "phone")


@admin.register(Slot)
class SlotAdmin(admin.ModelAdmin):
    form = SlotAdminForm

    # table columns
    list_display = ("id", "date", "window", "doctor", "clinic", "occupancy", "status")
    list_display_links = ("id", "date")

    # right sidebar filters
    list_filter = ("status", "date", "clinic")

    # date drilldown nav
    date_hierarchy = "date"

    # pagination
    list_per_page = 25

    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        ("Schedule", {"fields": ("doctor", "clinic", "date", "start_time", "end_time", "duration")}),
        ("Capacity", {"fields": ("max_patients", "current_bookings", "status")}),
        ("Meta",     {"fields": ("created_at", "updated_at")}),
    )

    @admin.display(description="Time")
    def window(self, obj):
        return f"{format_timeslot(obj.start_time)} - {format_timeslot(obj.end_time)}"

    @admin.display(description="Booked")
    def occupancy(self, obj):
        return f"{obj.current_bookings}/{obj.max_patients}"


@admin.register(TokenAppointment)
class TokenAppointmentAdmin(admin.ModelAdmin):
    form = TokenAppointmentAdminForm

    # table columns
    list_display = ("id", "token_number", "date", "time", "patient_name", "patient_phone", "doctor", "status", "created_at")
    list_display_links = ("id", "token_number")

    # right sidebar filters
    list_filter = ("status", "date", "created_at")

    # top search bar
    search_fields = ("patient_name", "patient_phone", "patient_email", "token_number")

    # date drilldown nav
    date_hierarchy = "date"

    # pagination
    list_per_page = 25

    # booking identity and occupancy are set by the booking flow
    readonly_fields = ("slot", "doctor", "token_number", "date", "time", "created_by", "created_at", "updated_at")

    # how the edit form is grouped
    fieldsets = (
        ("Patient", {"fields": ("patient_name", "patient_phone", "patient_email", "patient_age", "patient_gender")}),
        ("Booking", {"fields": ("slot", "doctor", "token_number", "date", "time", "status", "reason_for_visit")}),
        ("Notes",   {"fields": ("notes",)}),
        ("Meta",    {"fields": ("created_by", "created_at", "updated_at")}),
    )

    def has_add_permission(self, request):
        # bookings go through the booking endpoint so slot occupancy stays right
        return False
