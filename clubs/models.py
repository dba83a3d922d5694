from django.db import models
from django.conf import settings

User = settings.AUTH_USER_MODEL


class Club(models.Model):
    CATEGORY_CHOICES = (
        ("academic", "Academic"),
        ("sports", "Sports"),
        ("tech", "Tech"),
        ("arts", "Arts"),
        ("cultural", "Cultural"),
        ("political", "Political"),
        ("other", "Other"),
    )

    STATUS_PENDING = "pending"
    STATUS_ACTIVE = "active"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_REJECTED, "Rejected"),
    )

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    logo = models.URLField(max_length=500, blank=True, null=True)
    banner = models.URLField(max_length=500, blank=True, null=True)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="owned_clubs",
    )
    members = models.ManyToManyField(
        User,
        through="ClubMembership",
        related_name="joined_clubs",
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )
    member_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def is_member(self, user_id):
        return self.memberships.filter(user_id=user_id).exists()

    def refresh_member_count(self):
        """Recompute member_count from the membership rows and persist it."""
        self.member_count = self.memberships.count()
        self.save(update_fields=["member_count", "updated_at"])
        return self.member_count

    def __str__(self):
        return self.name


class ClubMembership(models.Model):
    ROLE_CHOICES = (
        ("member", "Member"),
        ("moderator", "Moderator"),
    )

    club = models.ForeignKey(
        Club,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="club_memberships",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="member")
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["club", "user"],
                name="unique_club_membership",
            ),
        ]

    def __str__(self):
        return f"{self.user} - {self.club} ({self.role})"


class JoinRequest(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_DECLINED = "declined"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_DECLINED, "Declined"),
    )

    club = models.ForeignKey(
        Club,
        on_delete=models.CASCADE,
        related_name="join_requests",
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="join_requests",
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["club", "user"],
                condition=models.Q(status="pending"),
                name="unique_pending_join_request",
            ),
        ]

    def __str__(self):
        return f"{self.user} -> {self.club} ({self.status})"


class Post(models.Model):
    title = models.CharField(max_length=200)
    content = models.TextField()
    media = models.URLField(max_length=500, blank=True, null=True)
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="posts",
    )
    club = models.ForeignKey(
        Club,
        on_delete=models.CASCADE,
        related_name="posts",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title
