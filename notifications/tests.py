from django.urls import reverse
from django.db import IntegrityError, transaction
from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model

from campusconnect.exceptions import AuthorizationError, NotFoundError, ValidationError
from .models import Notification
from .refs import ClubRef, PostRef, UserRef, ref_from_columns, ref_to_columns
from . import services

User = get_user_model()


class NotificationServiceTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            email="test@campus.edu",
            password="pass1234",
            first_name="Test",
            last_name="User",
            is_verified=True,
        )

    def test_notify_stores_related_object(self):
        notification = services.notify(self.user.pk, "CLUB_APPROVED", "Approved", ClubRef(7))

        notification.refresh_from_db()
        self.assertEqual(notification.related_object_type, "CLUB")
        self.assertEqual(notification.related_object_id, 7)
        self.assertEqual(notification.related_object, ClubRef(7))
        self.assertFalse(notification.read)

    def test_notify_without_related_object(self):
        notification = services.notify(self.user.pk, "OTHER", "Hello")
        self.assertIsNone(notification.related_object)

    def test_notify_missing_recipient(self):
        with self.assertRaises(NotFoundError):
            services.notify(99999, "OTHER", "Nobody home")
        self.assertFalse(Notification.objects.exists())

    def test_notify_unknown_type(self):
        with self.assertRaises(ValidationError):
            services.notify(self.user.pk, "BIRTHDAY", "Cake")

    def test_type_enum_is_closed(self):
        self.assertEqual(
            services.NOTIFICATION_TYPES,
            {
                "JOIN_REQUEST",
                "JOIN_APPROVED",
                "JOIN_DECLINED",
                "CLUB_APPROVAL",
                "CLUB_APPROVED",
                "CLUB_REJECTED",
                "NEW_POST",
                "OTHER",
            },
        )
        with self.assertRaises(ValidationError):
            services.notify(self.user.pk, "CLUB_DELETED", "Gone")

    def test_best_effort_skips_missing_recipient(self):
        self.assertIsNone(services.notify_best_effort(99999, "OTHER", "Nobody home"))

    def test_notify_many_continues_past_missing_recipients(self):
        created = services.notify_many([self.user.pk, 99999], "NEW_POST", "New post", PostRef(3))
        self.assertEqual(len(created), 1)
        self.assertEqual(created[0].recipient_id, self.user.pk)

    def test_half_set_related_columns_are_rejected(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Notification.objects.create(
                recipient=self.user,
                type="OTHER",
                message="Broken",
                related_object_type="CLUB",
            )

    def test_mark_all_read(self):
        services.notify(self.user.pk, "OTHER", "One")
        services.notify(self.user.pk, "OTHER", "Two")

        self.assertEqual(services.mark_all_read(self.user.pk), 2)
        self.assertEqual(services.mark_all_read(self.user.pk), 0)

    def test_parse_read_filter(self):
        self.assertTrue(services.parse_read_filter("true"))
        self.assertFalse(services.parse_read_filter("False"))
        self.assertIsNone(services.parse_read_filter(None))
        self.assertIsNone(services.parse_read_filter("maybe"))


class RelatedRefTests(APITestCase):
    def test_columns_round_trip(self):
        for ref in (ClubRef(1), PostRef(2), UserRef(3), None):
            self.assertEqual(ref_from_columns(*ref_to_columns(ref)), ref)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            ref_from_columns("EVENT", 1)


class NotificationApiTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            email="reader@campus.edu",
            password="pass1234",
            is_verified=True,
        )
        self.other = User.objects.create_user(
            email="other@campus.edu",
            password="pass1234",
            is_verified=True,
        )
        self.admin = User.objects.create_user(
            email="admin@campus.edu",
            password="pass1234",
            role="admin",
            is_verified=True,
        )
        self.client.force_authenticate(user=self.user)

    def test_list_notifications_newest_first(self):
        first = services.notify(self.user.pk, "OTHER", "Message 1")
        second = services.notify(self.user.pk, "OTHER", "Message 2", UserRef(self.other.pk))
        services.notify(self.other.pk, "OTHER", "Not mine")

        response = self.client.get(reverse("notification-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        results = response.data["results"]
        self.assertEqual([n["id"] for n in results], [second.pk, first.pk])
        self.assertEqual(results[0]["related_object"], {"type": "USER", "id": self.other.pk})
        self.assertIsNone(results[1]["related_object"])

    def test_filter_by_read(self):
        unread = services.notify(self.user.pk, "OTHER", "Unread")
        read = services.notify(self.user.pk, "OTHER", "Read")
        services.mark_read(read.pk, self.user)

        response = self.client.get(reverse("notification-list"), {"read": "false"})
        self.assertEqual([n["id"] for n in response.data["results"]], [unread.pk])

        response = self.client.get(reverse("notification-list"), {"read": "true"})
        self.assertEqual([n["id"] for n in response.data["results"]], [read.pk])

    def test_mark_read(self):
        notification = services.notify(self.user.pk, "OTHER", "Hello")

        response = self.client.put(reverse("notification-mark-read", args=[notification.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["notification"]["read"])

        # Idempotent
        response = self.client.put(reverse("notification-mark-read", args=[notification.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_cannot_mark_someone_elses_notification(self):
        notification = services.notify(self.other.pk, "OTHER", "Private")

        response = self.client.put(reverse("notification-mark-read", args=[notification.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        notification.refresh_from_db()
        self.assertFalse(notification.read)

    def test_mark_missing_notification(self):
        response = self.client.put(reverse("notification-mark-read", args=[99999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_numeric_id_is_not_found(self):
        response = self.client.put("/api/notifications/abc/read/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get("/api/notifications/abc/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        with self.assertRaises(NotFoundError):
            services.mark_read("abc", self.user)

    def test_mark_all_read_endpoint(self):
        services.notify(self.user.pk, "OTHER", "One")
        services.notify(self.user.pk, "OTHER", "Two")
        services.notify(self.other.pk, "OTHER", "Theirs")

        response = self.client.post(reverse("notification-mark-all-read"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["updated"], 2)
        self.assertEqual(Notification.objects.filter(read=False).count(), 1)

    def test_admin_can_mark_any_notification(self):
        notification = services.notify(self.user.pk, "OTHER", "Hello")

        self.client.force_authenticate(user=self.admin)
        response = self.client.put(reverse("admin-notification-read", args=[notification.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["notification"]["recipient_email"], "reader@campus.edu")

        notification.refresh_from_db()
        self.assertTrue(notification.read)

    def test_admin_lists_all_notifications_by_type(self):
        services.notify(self.user.pk, "OTHER", "One")
        services.notify(self.other.pk, "NEW_POST", "Two", PostRef(1))

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse("admin-notifications"), {"type": "NEW_POST"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["results"]), 1)
        self.assertEqual(response.data["results"][0]["recipient_email"], "other@campus.edu")

    def test_admin_list_is_forbidden_to_users(self):
        response = self.client.get(reverse("admin-notifications"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_mark_read_service_authorization(self):
        notification = services.notify(self.other.pk, "OTHER", "Private")
        with self.assertRaises(AuthorizationError):
            services.mark_read(notification.pk, self.user)
        self.assertTrue(services.mark_read(notification.pk, self.admin).read)
