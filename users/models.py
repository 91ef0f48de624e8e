from django.contrib.auth.models import AbstractUser
from django.db import models

from .constants import Role, STAFF_ROLES


class User(AbstractUser):
	role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)
	phone = models.CharField(max_length=40, blank=True)

	@property
	def is_clinic_staff(self):
		return self.role in STAFF_ROLES

	def __str__(self):
		return f"{self.username} ({self.role})"
