from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ChangePasswordView,
    LoginView,
    LogoutView,
    ProfilePictureView,
    ProfileView,
    RegenerateOtpView,
    RegisterView,
    VerifyOtpView,
)

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("verify-otp/", VerifyOtpView.as_view(), name="verify-otp"),
    path("regenerate-otp/", RegenerateOtpView.as_view(), name="regenerate-otp"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path("profile/picture/", ProfilePictureView.as_view(), name="profile-picture"),
    path("change-password/", ChangePasswordView.as_view(), name="change-password"),
]
