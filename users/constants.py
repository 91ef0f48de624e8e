from django.db import models


class Role(models.TextChoices):
    ADMIN = "Admin", "Admin"
    DOCTOR = "Doctor", "Doctor"
    ASSISTANT = "Assistant", "Assistant"
    USER = "User", "Patient"


# roles allowed to run the clinic side of the system
STAFF_ROLES = frozenset({Role.ADMIN, Role.DOCTOR, Role.ASSISTANT})
