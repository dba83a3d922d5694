"""
Identity store and credential service, plus the admin actions that operate
directly on user accounts.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import check_password, make_password
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from campusconnect.exceptions import ConflictError, NotFoundError, ValidationError
from clubs.models import Club
from .emails import send_new_otp_email
from .models import AuditLog

logger = logging.getLogger(__name__)

User = get_user_model()


# ====================================================
# LOOKUPS
# ====================================================
def find_user_by_id(user_id):
    return User.objects.filter(pk=user_id).first()


def find_user_by_email(email):
    if not email:
        return None
    return User.objects.filter(email__iexact=str(email).strip()).first()


def get_user_or_404(user_id):
    user = find_user_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


# ====================================================
# PASSWORDS
# ====================================================
def hash_password(raw_password):
    return make_password(raw_password)


def verify_password(user, raw_password):
    if user is None or not raw_password:
        return False
    return check_password(raw_password, user.password)


# ====================================================
# OTP VERIFICATION
# ====================================================
def generate_otp(length=None):
    length = length or settings.OTP_LENGTH
    lower = 10 ** (length - 1)
    return str(lower + secrets.randbelow(9 * lower))


def issue_otp(user):
    otp = generate_otp()
    user.otp = otp
    user.otp_expiry = timezone.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)
    user.save(update_fields=["otp", "otp_expiry"])
    return otp


def verify_otp(email, otp):
    if not email or not otp:
        raise ValidationError("Email and OTP are required")

    user = find_user_by_email(email)
    if user is None or not user.otp_is_valid(otp):
        raise ValidationError("Invalid or expired OTP")

    user.is_verified = True
    user.otp = None
    user.otp_expiry = None
    user.save(update_fields=["is_verified", "otp", "otp_expiry"])

    logger.info(f"User {user.email} verified their account")
    return user


def regenerate_otp(email):
    if not email:
        raise ValidationError("Email is required")

    user = find_user_by_email(email)
    if user is None:
        raise NotFoundError("User not found")

    if user.is_verified:
        raise ConflictError("Account is already verified")

    otp = issue_otp(user)
    send_new_otp_email(user, otp)
    return user


# ====================================================
# ROOT ADMIN
# ====================================================
def is_root_admin(user):
    return (
        user is not None
        and user.role == User.ROLE_ADMIN
        and user.email == settings.ROOT_ADMIN_EMAIL
    )


def ensure_root_admin():
    """
    Create the root admin account if it does not exist yet.
    Safe to run on every boot; returns (user, created).
    """
    existing = find_user_by_email(settings.ROOT_ADMIN_EMAIL)
    if existing:
        logger.info(f"Root admin {existing.email} already exists")
        return existing, False

    admin = User.objects.create_user(
        email=settings.ROOT_ADMIN_EMAIL,
        password=settings.ROOT_ADMIN_PASSWORD,
        first_name=settings.ROOT_ADMIN_FIRST_NAME,
        last_name=settings.ROOT_ADMIN_LAST_NAME,
        phone=settings.ROOT_ADMIN_PHONE,
        faculty="administration",
        role=User.ROLE_ADMIN,
        is_verified=True,
        is_active=True,
        is_staff=True,
    )
    logger.info(f"Root admin {admin.email} created")
    return admin, True


# ====================================================
# ADMIN ACTIONS ON USERS
# ====================================================
def record_audit(actor, action, target_user=None, notes=""):
    return AuditLog.objects.create(
        actor=actor,
        target_user=target_user,
        action=action,
        notes=notes,
    )


def toggle_user_status(user_id, actor=None):
    """
    Flip is_active. Tokens already issued stay structurally valid, but every
    authenticated request re-checks is_active, so a deactivated user is
    refused from the next request on.
    """
    with transaction.atomic():
        user = User.objects.select_for_update().filter(pk=user_id).first()
        if user is None:
            raise NotFoundError("User not found")

        user.is_active = not user.is_active
        user.save(update_fields=["is_active"])

        record_audit(
            actor,
            "ACTIVATION" if user.is_active else "DEACTIVATION",
            target_user=user,
            notes=f"User {user.email} {'activated' if user.is_active else 'deactivated'}",
        )

    logger.info(f"User {user.email} is_active={user.is_active}")
    return user


def delete_user(user_id, actor=None):
    """
    Permanently delete a user. Owned clubs, memberships, authored posts, join
    requests and notifications cascade with the account.
    """
    user = get_user_or_404(user_id)

    if is_root_admin(user):
        raise ConflictError("Cannot delete the main admin account")

    email = user.email
    with transaction.atomic():
        # Clubs they own go with them; the rest lose a membership edge.
        joined_clubs = list(
            Club.objects.select_for_update()
            .filter(memberships__user=user)
            .exclude(owner=user)
        )

        record_audit(
            actor,
            "USER_DELETION",
            notes=f"User account permanently deleted: {email} (ID: {user.pk})",
        )
        user.delete()

        for club in joined_clubs:
            club.refresh_member_count()

    logger.info(f"User {email} deleted")
    return email


def search_users(search=None, role=None):
    queryset = User.objects.all()
    if search:
        queryset = queryset.filter(
            Q(first_name__icontains=search)
            | Q(last_name__icontains=search)
            | Q(email__icontains=search)
        )
    if role:
        queryset = queryset.filter(role=role)
    return queryset.order_by("-date_joined", "-id")
