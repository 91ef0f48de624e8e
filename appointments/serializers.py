from django.contrib.auth import get_user_model
from rest_framework import serializers

from .constants import SlotStatus, BookingStatus, GENDER_CHOICES
from .models import Clinic, Doctor, Assistant, Slot, TokenAppointment
from .scheduling import is_bookable
from .utils.time_utils import INPUT_FORMATS

User = get_user_model()


class ClinicSerializer(serializers.ModelSerializer):
    locationName = serializers.CharField(source="location_name")
    postalCode = serializers.CharField(source="postal_code", required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Clinic
        fields = ["id", "locationName", "address", "city", "state", "postalCode",
                  "phone", "email", "createdAt", "updatedAt"]


class DoctorSerializer(serializers.ModelSerializer):
    userId = serializers.PrimaryKeyRelatedField(source="user", queryset=User.objects.all())
    licenseNumber = serializers.CharField(source="license_number")
    consultationFee = serializers.DecimalField(source="consultation_fee", max_digits=10, decimal_places=2,
                                               min_value=0)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Doctor
        fields = ["id", "name", "specialization", "experience", "licenseNumber", "qualification",
                  "bio", "consultationFee", "userId", "createdAt", "updatedAt"]


class DoctorSummarySerializer(serializers.ModelSerializer):
    consultationFee = serializers.DecimalField(source="consultation_fee", max_digits=10, decimal_places=2,
                                               read_only=True)

    class Meta:
        model = Doctor
        fields = ["id", "name", "specialization", "consultationFee"]


class AssistantSerializer(serializers.ModelSerializer):
    userId = serializers.PrimaryKeyRelatedField(source="user", queryset=User.objects.all())
    doctorId = serializers.PrimaryKeyRelatedField(source="doctor", queryset=Doctor.objects.all(),
                                                  required=False)
    isActive = serializers.BooleanField(source="is_active", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Assistant
        fields = ["id", "name", "email", "phone", "qualification", "experience", "doctorId",
                  "isActive", "userId", "createdAt", "updatedAt"]


class SlotSerializer(serializers.ModelSerializer):
    doctorId = serializers.PrimaryKeyRelatedField(source="doctor", queryset=Doctor.objects.all())
    clinicId = serializers.PrimaryKeyRelatedField(source="clinic", queryset=Clinic.objects.all())
    doctor = DoctorSummarySerializer(read_only=True)
    clinic = ClinicSerializer(read_only=True)
    startTime = serializers.TimeField(source="start_time")
    endTime = serializers.TimeField(source="end_time")
    maxPatients = serializers.IntegerField(source="max_patients", min_value=1, default=1)
    currentBookings = serializers.IntegerField(source="current_bookings", read_only=True)
    isBookable = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Slot
        fields = ["id", "doctorId", "doctor", "clinicId", "clinic", "date", "startTime", "endTime",
                  "duration", "status", "maxPatients", "currentBookings", "isBookable",
                  "createdAt", "updatedAt"]
        read_only_fields = ["status"]

    def get_isBookable(self, obj):
        return is_bookable(obj, obj.date)

    def validate(self, attrs):
        start, end = attrs.get("start_time"), attrs.get("end_time")
        if start and end and end <= start:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})
        if "duration" in attrs and attrs["duration"] <= 0:
            raise serializers.ValidationError({"duration": "Duration must be a positive number of minutes."})
        return attrs


class ScheduleSerializer(serializers.Serializer):
    """Doctor's self-service schedule: one slot per window in the range."""
    clinicId = serializers.PrimaryKeyRelatedField(queryset=Clinic.objects.all())
    date = serializers.DateField()
    startTime = serializers.TimeField(input_formats=INPUT_FORMATS)
    endTime = serializers.TimeField(input_formats=INPUT_FORMATS)
    slotDuration = serializers.IntegerField(min_value=1)
    patientPerSlot = serializers.IntegerField(min_value=1, default=1)

    def validate(self, attrs):
        if attrs["endTime"] <= attrs["startTime"]:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})
        return attrs


class SlotStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SlotStatus.choices)


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices)


class SlotSummarySerializer(serializers.ModelSerializer):
    clinicId = serializers.IntegerField(source="clinic_id", read_only=True)
    startTime = serializers.TimeField(source="start_time", read_only=True)
    endTime = serializers.TimeField(source="end_time", read_only=True)
    maxPatients = serializers.IntegerField(source="max_patients", read_only=True)
    currentBookings = serializers.IntegerField(source="current_bookings", read_only=True)

    class Meta:
        model = Slot
        fields = ["id", "clinicId", "date", "startTime", "endTime", "status",
                  "maxPatients", "currentBookings"]


class TokenAppointmentSerializer(serializers.ModelSerializer):
    tokenNumber = serializers.CharField(source="token_number", read_only=True)
    patientName = serializers.CharField(source="patient_name", max_length=120)
    patientEmail = serializers.EmailField(source="patient_email", required=False, allow_blank=True)
    patientPhone = serializers.CharField(source="patient_phone", max_length=40)
    patientAge = serializers.IntegerField(source="patient_age", min_value=0, max_value=150)
    patientGender = serializers.ChoiceField(source="patient_gender", choices=GENDER_CHOICES)
    reasonForVisit = serializers.CharField(source="reason_for_visit", required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    appointmentId = serializers.PrimaryKeyRelatedField(source="slot", queryset=Slot.objects.all())
    doctorId = serializers.PrimaryKeyRelatedField(source="doctor", queryset=Doctor.objects.all(),
                                                  required=False)
    doctor = DoctorSummarySerializer(read_only=True)
    appointment = SlotSummarySerializer(source="slot", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = TokenAppointment
        fields = ["id", "tokenNumber", "patientName", "patientEmail", "patientPhone", "patientAge",
                  "patientGender", "reasonForVisit", "notes", "date", "time", "status",
                  "doctorId", "doctor", "appointmentId", "appointment", "createdAt", "updatedAt"]
        read_only_fields = ["date", "time", "status"]

    def validate_patientName(self, value):
        if len(value.strip()) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters long")
        return value.strip()

    def validate_patientEmail(self, value):
        return value.lower().strip()

    def patient_fields(self):
        """Patient details from validated data, keyed by model field name."""
        data = self.validated_data
        return {
            "patient_name": data["patient_name"],
            "patient_email": data.get("patient_email", ""),
            "patient_phone": data["patient_phone"],
            "patient_age": data["patient_age"],
            "patient_gender": data["patient_gender"],
            "reason_for_visit": data.get("reason_for_visit", ""),
            "notes": data.get("notes", ""),
        }
