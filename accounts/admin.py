from django.contrib import admin
from .models import AuditLog, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = (
        "email",
        "first_name",
        "last_name",
        "role",
        "is_verified",
        "is_active",
    )

    list_filter = ("role", "is_verified", "is_active")
    search_fields = ("email", "first_name", "last_name", "phone")
    exclude = ("password", "otp", "otp_expiry")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "actor", "target_user", "timestamp")
    list_filter = ("action",)
    search_fields = ("notes", "actor__email", "target_user__email")
