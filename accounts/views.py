# ====================================================
# DJANGO IMPORTS
# ====================================================
import logging

from django.contrib.auth import authenticate, get_user_model

# ====================================================
# DJANGO REST FRAMEWORK IMPORTS
# ====================================================
from rest_framework import generics, status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

# ====================================================
# JWT IMPORTS
# ====================================================
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

# ====================================================
# LOCAL IMPORTS
# ====================================================
from campusconnect.storage import store_upload
from . import services
from .models import AuditLog
from .permissions import IsAdmin, IsAnyRole
from .serializers import (
    AdminUserSerializer,
    AuditLogSerializer,
    ChangePasswordSerializer,
    ProfilePictureSerializer,
    RegenerateOtpSerializer,
    RegisterSerializer,
    UserProfileSerializer,
    VerifyOtpSerializer,
)


# ====================================================
# GLOBALS
# ====================================================
User = get_user_model()
logger = logging.getLogger(__name__)


def _token_response(user, message):
    refresh = RefreshToken.for_user(user)
    return {
        "message": message,
        "access": str(refresh.access_token),
        "refresh": str(refresh),
        "user": UserProfileSerializer(user).data,
    }


# ====================================================
# USER REGISTRATION
# ====================================================
class RegisterView(generics.CreateAPIView):
    queryset = User.objects.all()
    serializer_class = RegisterSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info(f"User {user.email} registered, awaiting OTP verification")

        return Response(
            {
                "message": "User registered successfully. Please check your email for OTP to verify your account.",
                "user_id": user.id,
            },
            status=status.HTTP_201_CREATED,
        )


# ====================================================
# OTP VERIFICATION
# ====================================================
class VerifyOtpView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = VerifyOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = services.verify_otp(
            serializer.validated_data["email"],
            serializer.validated_data["otp"],
        )

        return Response(
            _token_response(user, "Account verified successfully"),
            status=status.HTTP_200_OK,
        )


class RegenerateOtpView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegenerateOtpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.regenerate_otp(serializer.validated_data["email"])

        return Response(
            {"message": "New OTP sent to your email"},
            status=status.HTTP_200_OK,
        )


# ====================================================
# LOGIN
# ====================================================
class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        email = request.data.get("email")
        password = request.data.get("password")

        if isinstance(email, str):
            email = email.strip().lower()

        if not email or not password:
            return Response(
                {"error": "Email and password are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user = authenticate(request, email=email, password=password)

        if not user:
            return Response(
                {"error": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        if not user.is_verified:
            return Response(
                {"error": "Account not verified. Please verify your email with OTP."},
                status=status.HTTP_403_FORBIDDEN,
            )

        if not user.is_active:
            return Response(
                {"error": "User account is deactivated"},
                status=status.HTTP_403_FORBIDDEN,
            )

        return Response(
            _token_response(user, "Login successful"),
            status=status.HTTP_200_OK,
        )


# ====================================================
# LOGOUT
# ====================================================
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get("refresh")

        if not refresh_token:
            return Response(
                {"detail": "Refresh token is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            token = RefreshToken(refresh_token)
            token.blacklist()
        except TokenError:
            return Response(
                {"detail": "Invalid refresh token"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {"detail": "Logged out successfully"},
            status=status.HTTP_200_OK,
        )


# ====================================================
# PROFILE
# ====================================================
class ProfileView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get(self, request):
        user = request.user
        data = UserProfileSerializer(user).data
        data["joined_clubs_count"] = user.club_memberships.count()
        data["posts_count"] = user.posts.count()
        return Response(data)

    def patch(self, request):
        serializer = UserProfileSerializer(
            request.user,
            data=request.data,
            partial=True,
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {"message": "Profile updated successfully", "user": serializer.data}
        )

    put = patch


class ProfilePictureView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def post(self, request):
        serializer = ProfilePictureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.profile_picture = store_upload(
            serializer.validated_data["profile_picture"], "profile_pictures"
        )
        user.save(update_fields=["profile_picture"])

        return Response(
            {
                "message": "Profile picture updated successfully",
                "user": UserProfileSerializer(user).data,
            }
        )


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def put(self, request):
        serializer = ChangePasswordSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"message": "Password changed successfully"})

    post = put


# ====================================================
# ADMIN / USER MODERATION
# ====================================================
class AdminUserListView(ListAPIView):
    serializer_class = AdminUserSerializer
    permission_classes = [IsAuthenticated, IsAdmin]

    def get_queryset(self):
        params = self.request.query_params
        return services.search_users(
            search=params.get("search"),
            role=params.get("role"),
        )


class AdminToggleUserStatusView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def put(self, request, pk):
        user = services.toggle_user_status(pk, actor=request.user)
        return Response(
            {
                "message": f"User {'activated' if user.is_active else 'deactivated'} successfully",
                "user": {"id": user.id, "is_active": user.is_active},
            },
            status=status.HTTP_200_OK,
        )

    post = put


class AdminUserDeleteView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def delete(self, request, pk):
        services.delete_user(pk, actor=request.user)
        return Response(
            {"message": "User deleted successfully"},
            status=status.HTTP_200_OK,
        )


class AuditLogListView(ListAPIView):
    serializer_class = AuditLogSerializer
    permission_classes = [IsAuthenticated, IsAdmin]
    queryset = AuditLog.objects.select_related("actor", "target_user")
