import logging

from django.core.exceptions import ObjectDoesNotExist
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .scheduling import InvalidTransitionError, OverbookedError, TransitionNotPermitted
from .services import DoctorMismatch, EmptySchedule

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Dig the first human-readable string out of a DRF error detail."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key in ('non_field_errors', 'detail'):
                return message
            return f"{key}: {message}"
    if isinstance(detail, (list, tuple)) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """
    Convert domain errors into API responses; everything carries a
    top-level `message` so clients can surface it verbatim.
    """
    if isinstance(exc, OverbookedError):
        return Response({
            'message': str(exc),
            'details': {'slotId': exc.slot_id},
        }, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, InvalidTransitionError):
        return Response({
            'message': str(exc),
            'details': {'current': exc.current, 'requested': exc.requested},
        }, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, TransitionNotPermitted):
        return Response({
            'message': str(exc),
            'details': {'role': exc.role, 'requested': exc.requested},
        }, status=status.HTTP_403_FORBIDDEN)

    if isinstance(exc, (DoctorMismatch, EmptySchedule)):
        return Response({'message': str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, ObjectDoesNotExist):
        return Response({'message': str(exc)}, status=status.HTTP_404_NOT_FOUND)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.error("Unhandled API error in %s: %s", view.__class__.__name__ if view else '?', exc,
                     exc_info=exc)
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            'message': _first_message(response.data),
            'details': response.data,
        }
    elif isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'message': str(response.data['detail'])}
    return response
