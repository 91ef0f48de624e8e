"""
Python client for the clinic appointment API.

    >>> api = ApiClient("http://localhost:8000", token_path="~/.clinic-token")
    >>> api.login("reception", "secret")
    >>> AppointmentService(api).available(doctor_id=3)
"""
from .api import ApiClient
from .errors import (
    AuthenticationRequired,
    ClientError,
    NotFound,
    RequestRejected,
    ServerError,
    TransportError,
)
from .services import AppointmentService, BookingResult, DashboardService, DoctorService

__all__ = [
    "ApiClient",
    "AppointmentService",
    "AuthenticationRequired",
    "BookingResult",
    "ClientError",
    "DashboardService",
    "DoctorService",
    "NotFound",
    "RequestRejected",
    "ServerError",
    "TransportError",
]
