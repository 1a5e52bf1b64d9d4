from rest_framework import status, generics, serializers
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from apps.core.exceptions import ServiceError, error_response

from .models import User
from .permissions import IsSystemAdmin
from .serializers import (
    UserRegistrationSerializer,
    UserLoginSerializer,
    UserSerializer,
    CurrentUserSerializer,
    UserPublicSerializer,
    UserAdminSerializer,
    ProfileUpdateSerializer,
    ChangePasswordSerializer,
    AvatarUploadSerializer,
    SetActiveSerializer,
)
from .services import (
    register_user,
    authenticate_user,
    update_profile as update_profile_service,
    change_password as change_password_service,
    update_avatar,
    deactivate_account,
    set_user_active,
    search_users,
    AccountsServiceError,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def _token_pair(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@extend_schema(
    request=UserRegistrationSerializer,
    responses={
        201: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Register with an institutional email and receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new user account."""
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = register_user(**serializer.validated_data)
    except AccountsServiceError as e:
        return error_response(e)

    return Response({
        'message': 'User registered successfully',
        'user': UserSerializer(user).data,
        'tokens': _token_pair(user),
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        user = authenticate_user(**serializer.validated_data)
    except AccountsServiceError as e:
        return error_response(e)

    return Response({
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'tokens': _token_pair(user),
    })


@extend_schema(
    responses={200: CurrentUserSerializer},
    description="Get the current user's profile including joined groups.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current authenticated user profile."""
    return Response(CurrentUserSerializer(request.user).data)


@extend_schema(
    request=ProfileUpdateSerializer,
    responses={200: UserSerializer, 400: ErrorResponseSerializer},
    description="Update the current user's profile (name, bio, graduation_year).",
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    """Update user profile."""
    serializer = ProfileUpdateSerializer(data=request.data, partial=True)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = update_profile_service(user=request.user, **serializer.validated_data)
    return Response(UserSerializer(user).data)


@extend_schema(
    request=ChangePasswordSerializer,
    responses={200: MessageResponseSerializer, 400: ErrorResponseSerializer},
    description="Change password after confirming the current one.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    """Change the current user's password."""
    serializer = ChangePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        change_password_service(user=request.user, **serializer.validated_data)
    except AccountsServiceError as e:
        return error_response(e)

    return Response({'message': 'Password changed successfully'})


@extend_schema(
    request={'multipart/form-data': AvatarUploadSerializer},
    responses={200: UserSerializer, 400: ErrorResponseSerializer},
    description="Upload a new profile picture.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def upload_avatar(request):
    """Replace the current user's avatar."""
    serializer = AvatarUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        user = update_avatar(user=request.user, uploaded_file=serializer.validated_data['avatar'])
    except ServiceError as e:
        # Media validation errors come from apps.core
        return error_response(e)

    return Response(UserSerializer(user).data)


@extend_schema(
    request=None,
    responses={200: MessageResponseSerializer},
    description="Deactivate the current user's account (soft delete).",
    tags=['auth'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def deactivate(request):
    """Deactivate own account."""
    deactivate_account(user=request.user)
    return Response({'message': 'Account deactivated successfully'})


class UserPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 100


class UserListView(generics.ListAPIView):
    """
    List active users (system admin only).

    GET /api/auth/users/?search=<name or email>
    """
    serializer_class = UserAdminSerializer
    permission_classes = [IsAuthenticated, IsSystemAdmin]
    pagination_class = UserPagination

    def get_queryset(self):
        return search_users(search=self.request.query_params.get('search'))


class UserDetailView(generics.RetrieveAPIView):
    """
    Get user profile by ID.

    GET /api/auth/users/{id}/
    """
    queryset = User.objects.filter(is_active=True)
    serializer_class = UserPublicSerializer
    permission_classes = [IsAuthenticated]


@extend_schema(
    request=SetActiveSerializer,
    responses={200: UserAdminSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Activate or deactivate a user (system admin only).",
    tags=['admin'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSystemAdmin])
def set_active(request, pk):
    """Moderate a user account."""
    serializer = SetActiveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = set_user_active(
            user_id=pk,
            is_active=serializer.validated_data['is_active'],
            performed_by=request.user,
        )
    except AccountsServiceError as e:
        return error_response(e)

    return Response(UserAdminSerializer(user).data)
