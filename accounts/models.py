from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone
from .managers import UserManager


class User(AbstractUser):
    username = None

    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, unique=True, blank=True, null=True)
    faculty = models.CharField(max_length=100, blank=True)
    profile_picture = models.URLField(max_length=500, blank=True, null=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    ROLE_USER = "user"
    ROLE_CLUB_OWNER = "club_owner"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_USER, "User"),
        (ROLE_CLUB_OWNER, "Club Owner"),
        (ROLE_ADMIN, "Admin"),
    )

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_USER)
    is_verified = models.BooleanField(default=False)

    # Transient verification secret, cleared once the account is verified.
    otp = models.CharField(max_length=10, blank=True, null=True)
    otp_expiry = models.DateTimeField(blank=True, null=True)

    objects = UserManager()

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_superuser

    def promote_to_club_owner(self):
        """
        Called after a successful club creation. Never demotes, and leaves
        admins untouched.
        """
        if self.role != self.ROLE_USER:
            return False

        self.role = self.ROLE_CLUB_OWNER
        self.save(update_fields=["role"])
        return True

    def otp_is_valid(self, otp):
        return (
            bool(self.otp)
            and self.otp == str(otp).strip()
            and self.otp_expiry is not None
            and self.otp_expiry > timezone.now()
        )

    def __str__(self):
        return self.email


class AuditLog(models.Model):
    ACTION_CHOICES = (
        ("CLUB_APPROVAL", "Club Approval"),
        ("CLUB_REJECTION", "Club Rejection"),
        ("CLUB_DELETION", "Club Deletion"),
        ("POST_DELETION", "Post Deletion"),
        ("ACTIVATION", "Activation"),
        ("DEACTIVATION", "Deactivation"),
        ("USER_DELETION", "User Deletion"),
        ("ROLE_CHANGE", "Role Change"),
    )

    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="actions_performed",
    )
    target_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    timestamp = models.DateTimeField(auto_now_add=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-timestamp"]
        verbose_name = "Audit Log"
        verbose_name_plural = "Audit Logs"

    def __str__(self):
        actor_name = self.actor.email if self.actor else "SYSTEM"
        target = self.target_user.email if self.target_user else "-"
        return f"{actor_name} -> {self.action} -> {target}"
