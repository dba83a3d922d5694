from rest_framework.permissions import BasePermission


class RolePermission(BasePermission):
    """
    Base permission class for role-based access control.
    Re-checks that the user is active and verified on every request.
    """
    allowed_roles = set()
    message = "Access denied. Your role is not authorized for this action."

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        if not user.is_active:
            self.message = "User account is deactivated"
            return False

        # Superusers always bypass role checks
        if user.is_superuser:
            return True

        if not getattr(user, "is_verified", False):
            self.message = "Account not verified. Please verify your email with OTP."
            return False

        return getattr(user, "role", None) in self.allowed_roles


# Specific Role Permissions
class IsAdmin(RolePermission):
    allowed_roles = {"admin"}


class IsAnyRole(RolePermission):
    allowed_roles = {"user", "club_owner", "admin"}
