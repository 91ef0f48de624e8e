import logging

from django.contrib.auth import authenticate, get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .permissions import IsAdminRole
from .serializers import LoginSerializer, RegisterSerializer, UserSerializer

logger = logging.getLogger(__name__)
User = get_user_model()


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    Exchange username/password for an API token.

    Returns {access_token, user}; the token goes into
    `Authorization: Bearer <access_token>` on later calls.
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = authenticate(
        request,
        username=serializer.validated_data['username'],
        password=serializer.validated_data['password'],
    )
    if user is None:
        logger.info("Failed login for %s", serializer.validated_data['username'])
        return Response({'message': 'Invalid username or password'},
                        status=status.HTTP_401_UNAUTHORIZED)

    token, _ = Token.objects.get_or_create(user=user)
    return Response({
        'access_token': token.key,
        'user': UserSerializer(user).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    token = Token.objects.create(user=user)
    logger.info("Registered patient account %s", user.username)
    return Response({
        'access_token': token.key,
        'user': UserSerializer(user).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    return Response(UserSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([IsAdminRole])
def user_list(request):
    """All accounts, newest first; optional `role` and `isActive` filters."""
    users = User.objects.order_by('-date_joined')
    role = request.query_params.get('role')
    if role:
        users = users.filter(role=role)
    is_active = request.query_params.get('isActive')
    if is_active in ('true', 'false'):
        users = users.filter(is_active=is_active == 'true')
    return Response(UserSerializer(users, many=True).data)


def _set_active(request, pk, active):
    user = get_object_or_404(User, pk=pk)
    if user.pk == request.user.pk and not active:
        return Response({'message': 'You cannot deactivate your own account'},
                        status=status.HTTP_400_BAD_REQUEST)
    user.is_active = active
    user.save(update_fields=['is_active'])
    if not active:
        # drop the API token so the account is signed out everywhere
        Token.objects.filter(user=user).delete()
    logger.info("User %s is_active=%s by %s", user.username, active, request.user)
    return Response(UserSerializer(user).data)


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def activate_user(request, pk):
    return _set_active(request, pk, True)


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def deactivate_user(request, pk):
    return _set_active(request, pk, False)
