from django.contrib.auth import get_user_model
from rest_framework import serializers

from .constants import Role

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", required=False, allow_blank=True)
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "email", "firstName", "lastName", "phone", "role", "isActive", "createdAt"]
        read_only_fields = ["id", "role"]


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)


class RegisterSerializer(serializers.ModelSerializer):
    """Self-service signup; always creates a patient account."""
    password = serializers.CharField(write_only=True, min_length=8)
    firstName = serializers.CharField(source="first_name", required=False, allow_blank=True)
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ["username", "email", "password", "firstName", "lastName", "phone"]

    def validate_email(self, value):
        value = value.lower().strip()
        if value and User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with that email already exists")
        return value

    def create(self, validated_data):
        password = validated_data.pop("password")
        user = User(role=Role.USER, **validated_data)
        user.set_password(password)
        user.save()
        return user
