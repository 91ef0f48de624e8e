"""
Role-based permission classes for the clinic API.

- Admin: full access, including slot creation and reference data
- Doctor: own schedule, own bookings, status changes
- Assistant: bookings and status changes for the clinic side
- User (patient): booking wizard and own bookings only
"""

from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .constants import Role, STAFF_ROLES


def has_role(user, *roles):
    if not user or not user.is_authenticated:
        return False
    return user.role in roles


class IsClinicStaff(BasePermission):
    """Admin, Doctor or Assistant."""

    def has_permission(self, request, view):
        return has_role(request.user, *STAFF_ROLES)


class IsAdminRole(BasePermission):

    def has_permission(self, request, view):
        return has_role(request.user, Role.ADMIN)


class IsDoctorRole(BasePermission):

    def has_permission(self, request, view):
        return has_role(request.user, Role.DOCTOR)


class IsDoctorOrAdmin(BasePermission):

    def has_permission(self, request, view):
        return has_role(request.user, Role.DOCTOR, Role.ADMIN)


class IsAdminOrReadOnly(BasePermission):
    """
    Reads are public, writes need the Admin role.
    """

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return has_role(request.user, Role.ADMIN)


def require_role(user, *roles):
    """Raise PermissionDenied unless the user holds one of `roles`."""
    if not user or not user.is_authenticated:
        raise NotAuthenticated()
    if not has_role(user, *roles):
        raise PermissionDenied("Your role does not allow this action")
