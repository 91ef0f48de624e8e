from django.conf import settings
from rest_framework.authentication import TokenAuthentication


class BearerTokenAuthentication(TokenAuthentication):
    """
    DRF token auth that reads `Authorization: Bearer <key>` instead of
    the default `Token <key>` header.
    """
    keyword = getattr(settings, "API_TOKEN_KEYWORD", "Bearer")
