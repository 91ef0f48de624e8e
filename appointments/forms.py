from django import forms

from .constants import SlotStatus
from .models import Slot, TokenAppointment
from .scheduling import allowed_booking_transitions, allowed_slot_transitions


class StatusTransitionForm(forms.ModelForm):
    """
    Admin edit form that only accepts status changes allowed by the
    transition table. New objects may start in any status.
    """
    allowed_transitions = None

    def clean_status(self):
        new_status = self.cleaned_data.get("status")
        if not self.instance.pk:
            return new_status

        current = type(self.instance).objects.values_list("status", flat=True).get(pk=self.instance.pk)
        if new_status == current:
            return new_status

        allowed = type(self).allowed_transitions(current)
        if new_status not in allowed:
            choices = ", ".join(sorted(allowed)) or "none (final status)"
            raise forms.ValidationError(
                f"Cannot change status from '{current}' to '{new_status}'. Allowed: {choices}."
            )
        return new_status


class SlotAdminForm(StatusTransitionForm):
    allowed_transitions = staticmethod(allowed_slot_transitions)

    class Meta:
        model = Slot
        fields = ["doctor", "clinic", "date", "start_time", "end_time", "duration",
                  "max_patients", "current_bookings", "status"]

    def clean(self):
        cleaned = super().clean()
        max_patients = cleaned.get("max_patients")
        current = cleaned.get("current_bookings")
        if max_patients is not None and current is not None and current > max_patients:
            raise forms.ValidationError("Current bookings cannot exceed the slot's capacity.")
        status = cleaned.get("status")
        if (status == SlotStatus.AVAILABLE and max_patients is not None and current is not None
                and current >= max_patients):
            raise forms.ValidationError("A full slot cannot stay Available; set it to Booked or lower the count.")
        return cleaned


class TokenAppointmentAdminForm(StatusTransitionForm):
    allowed_transitions = staticmethod(allowed_booking_transitions)

    class Meta:
        model = TokenAppointment
        fields = ["patient_name", "patient_phone", "patient_email", "patient_age", "patient_gender",
                  "status", "reason_for_visit", "notes"]
