from rest_framework.exceptions import ValidationError

from .time_utils import parse_date


def int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ""):
        return None
    if not value.isdigit():
        raise ValidationError({name: f"{name} must be a numeric value"})
    return int(value)


def date_param(request, name, default=None):
    value = request.query_params.get(name)
    if value in (None, ""):
        return default
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError({name: "Date must be in YYYY-MM-DD format"})
    return parsed
