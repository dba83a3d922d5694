import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("JOIN_REQUEST", "Join Request"),
                            ("JOIN_APPROVED", "Join Approved"),
                            ("JOIN_DECLINED", "Join Declined"),
                            ("CLUB_APPROVAL", "Club Awaiting Approval"),
                            ("CLUB_APPROVED", "Club Approved"),
                            ("CLUB_REJECTED", "Club Rejected"),
                            ("NEW_POST", "New Post"),
                            ("OTHER", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("message", models.TextField()),
                (
                    "related_object_type",
                    models.CharField(
                        blank=True,
                        choices=[("CLUB", "Club"), ("POST", "Post"), ("USER", "User")],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("related_object_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("related_object_id__isnull", True), ("related_object_type__isnull", True)),
                            models.Q(("related_object_id__isnull", False), ("related_object_type__isnull", False)),
                            _connector="OR",
                        ),
                        name="notification_related_object_complete",
                    ),
                ],
            },
        ),
    ]
