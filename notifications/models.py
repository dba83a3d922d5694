from django.db import models
from django.conf import settings

from .refs import KIND_CHOICES, ref_from_columns, ref_to_columns

User = settings.AUTH_USER_MODEL


class Notification(models.Model):
    TYPE_CHOICES = (
        ("JOIN_REQUEST", "Join Request"),
        ("JOIN_APPROVED", "Join Approved"),
        ("JOIN_DECLINED", "Join Declined"),
        ("CLUB_APPROVAL", "Club Awaiting Approval"),
        ("CLUB_APPROVED", "Club Approved"),
        ("CLUB_REJECTED", "Club Rejected"),
        ("NEW_POST", "New Post"),
        ("OTHER", "Other"),
    )

    recipient = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    # Rendered once at creation; never re-derived from the related object.
    message = models.TextField()
    related_object_type = models.CharField(
        max_length=10,
        choices=KIND_CHOICES,
        blank=True,
        null=True,
    )
    related_object_id = models.PositiveBigIntegerField(blank=True, null=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(related_object_type__isnull=True, related_object_id__isnull=True)
                    | models.Q(related_object_type__isnull=False, related_object_id__isnull=False)
                ),
                name="notification_related_object_complete",
            ),
        ]

    @property
    def related_object(self):
        return ref_from_columns(self.related_object_type, self.related_object_id)

    @related_object.setter
    def related_object(self, ref):
        self.related_object_type, self.related_object_id = ref_to_columns(ref)

    def __str__(self):
        return f"{self.type} - {self.recipient}"
