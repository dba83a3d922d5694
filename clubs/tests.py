from unittest.mock import MagicMock, patch

from django.urls import reverse
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model

from accounts import services as account_services
from accounts.models import AuditLog
from campusconnect.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from notifications.models import Notification
from notifications.refs import ClubRef, PostRef, UserRef
from . import moderation, services
from .models import Club, ClubMembership, JoinRequest, Post

User = get_user_model()


def make_user(email, role="user", **extra):
    extra.setdefault("first_name", email.split("@")[0].title())
    extra.setdefault("last_name", "Tester")
    extra.setdefault("is_verified", True)
    return User.objects.create_user(email=email, password="pass1234", role=role, **extra)


def make_active_club(owner, name="Robotics", **extra):
    club = services.create_club(owner.pk, name, "We build robots", "tech", **extra)
    club.status = Club.STATUS_ACTIVE
    club.save(update_fields=["status"])
    return club


def add_member(club, user):
    ClubMembership.objects.create(club=club, user=user)
    club.refresh_member_count()


# Smallest valid GIF, accepted by ImageField.
TINY_GIF = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff"
    b"!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)


def image_upload(name="logo.gif"):
    return SimpleUploadedFile(name, TINY_GIF, content_type="image/gif")


def fake_storage():
    storage = MagicMock()
    storage.save.side_effect = lambda path, content: path
    storage.url.side_effect = lambda path: f"/media/{path}"
    return storage


# -------------------------
# Full Workflow (API)
# -------------------------
class ClubWorkflowTests(APITestCase):

    def setUp(self):
        self.admin = make_user("admin@campus.edu", role="admin")
        self.owner = make_user("owner@campus.edu")
        self.student = make_user("student@campus.edu")

    def test_create_approve_join_post_leave(self):
        # 1. Owner creates a club; admins are notified and emailed.
        self.client.force_authenticate(user=self.owner)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                reverse("club-create"),
                {"name": "Chess Club", "description": "Weekly games", "category": "academic"},
            )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        club = Club.objects.get(name="Chess Club")
        self.assertEqual(club.status, Club.STATUS_PENDING)
        self.assertEqual(club.member_count, 1)
        self.assertTrue(club.is_member(self.owner.pk))

        self.owner.refresh_from_db()
        self.assertEqual(self.owner.role, "club_owner")

        admin_note = Notification.objects.get(recipient=self.admin, type="CLUB_APPROVAL")
        self.assertEqual(admin_note.related_object, ClubRef(club.pk))
        self.assertIn("Chess Club", admin_note.message)
        self.assertEqual(mail.outbox[-1].to, ["admin@campus.edu"])

        # 2. Pending clubs do not accept members.
        self.client.force_authenticate(user=self.student)
        response = self.client.post(reverse("club-join", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        # 3. Admin approves.
        self.client.force_authenticate(user=self.admin)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.put(reverse("admin-club-approve", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        club.refresh_from_db()
        self.assertEqual(club.status, Club.STATUS_ACTIVE)
        self.assertTrue(
            Notification.objects.filter(recipient=self.owner, type="CLUB_APPROVED").exists()
        )
        self.assertEqual(mail.outbox[-1].to, ["owner@campus.edu"])

        # 4. Student asks to join; owner is notified with a reference to the student.
        self.client.force_authenticate(user=self.student)
        response = self.client.post(reverse("club-join", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        request_note = Notification.objects.get(recipient=self.owner, type="JOIN_REQUEST")
        self.assertEqual(request_note.related_object, UserRef(self.student.pk))

        # 5. Owner sees and approves the request.
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("club-requests", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"][0]["user"]["id"], self.student.pk)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.put(
                reverse("club-request-respond", args=[club.pk, self.student.pk]),
                {"action": "approve"},
            )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["club"]["member_count"], 2)
        self.assertTrue(
            Notification.objects.filter(recipient=self.student, type="JOIN_APPROVED").exists()
        )
        self.assertEqual(mail.outbox[-1].to, ["student@campus.edu"])
        self.assertEqual(
            JoinRequest.objects.get(club=club, user=self.student).status,
            JoinRequest.STATUS_APPROVED,
        )

        # 6. Owner publishes a post; members other than the author are notified.
        response = self.client.post(
            reverse("club-posts", args=[club.pk]),
            {"title": "Tournament", "content": "Saturday at noon"},
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        post = Post.objects.get(title="Tournament")
        post_note = Notification.objects.get(recipient=self.student, type="NEW_POST")
        self.assertEqual(post_note.related_object, PostRef(post.pk))
        self.assertFalse(
            Notification.objects.filter(recipient=self.owner, type="NEW_POST").exists()
        )

        # 7. The post shows up in the student's feed.
        self.client.force_authenticate(user=self.student)
        response = self.client.get(reverse("club-feed"))
        self.assertEqual([p["id"] for p in response.data["results"]], [post.pk])

        # 8. Student leaves.
        response = self.client.delete(reverse("club-leave", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        club.refresh_from_db()
        self.assertEqual(club.member_count, 1)
        self.assertFalse(club.is_member(self.student.pk))

    def test_public_listing_shows_only_active_clubs(self):
        make_active_club(self.owner, name="Robotics")
        services.create_club(self.owner.pk, "Drama", "Stage plays", "arts")

        response = self.client.get(reverse("club-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c["name"] for c in response.data["results"]], ["Robotics"])

    def test_pending_club_hidden_from_strangers(self):
        club = services.create_club(self.owner.pk, "Drama", "Stage plays", "arts")

        self.client.force_authenticate(user=self.student)
        response = self.client.get(reverse("club-detail", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("club-detail", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_duplicate_club_name_conflicts_without_notifying(self):
        services.create_club(self.owner.pk, "Chess Club", "Weekly games", "academic")
        notes_before = Notification.objects.count()

        self.client.force_authenticate(user=self.student)
        response = self.client.post(
            reverse("club-create"),
            {"name": "Chess Club", "description": "Another one", "category": "academic"},
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")
        self.assertEqual(Club.objects.filter(name="Chess Club").count(), 1)
        self.assertEqual(Notification.objects.count(), notes_before)

        self.student.refresh_from_db()
        self.assertEqual(self.student.role, "user")

    def test_create_club_requires_fields(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post(reverse("club-create"), {"name": "Solo"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Name, description, and category are required")

    def test_rejected_club_create_discards_uploaded_logo(self):
        services.create_club(self.owner.pk, "Chess Club", "Weekly games", "academic")
        storage = fake_storage()

        self.client.force_authenticate(user=self.student)
        with patch("campusconnect.storage.default_storage", storage):
            response = self.client.post(
                reverse("club-create"),
                {
                    "name": "Chess Club",
                    "description": "Another one",
                    "category": "academic",
                    "logo": image_upload(),
                },
            )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        storage.save.assert_called_once()
        saved_path = storage.save.call_args[0][0]
        storage.delete.assert_called_once_with(saved_path)

    def test_accepted_club_create_keeps_uploaded_logo(self):
        storage = fake_storage()

        self.client.force_authenticate(user=self.owner)
        with patch("campusconnect.storage.default_storage", storage):
            response = self.client.post(
                reverse("club-create"),
                {
                    "name": "Photo Club",
                    "description": "Cameras",
                    "category": "arts",
                    "logo": image_upload(),
                },
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        storage.delete.assert_not_called()
        saved_path = storage.save.call_args[0][0]
        self.assertEqual(Club.objects.get(name="Photo Club").logo, f"/media/{saved_path}")

    def test_rejected_post_discards_uploaded_media(self):
        club = make_active_club(self.owner)
        add_member(club, self.student)
        storage = fake_storage()

        self.client.force_authenticate(user=self.student)
        with patch("campusconnect.storage.default_storage", storage):
            response = self.client.post(
                reverse("club-posts", args=[club.pk]),
                {"title": "Hello", "content": "Not the owner", "media": image_upload("m.gif")},
            )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        storage.delete.assert_called_once_with(storage.save.call_args[0][0])
        self.assertFalse(Post.objects.exists())

    def test_non_owner_post_is_forbidden(self):
        club = make_active_club(self.owner)
        add_member(club, self.student)

        self.client.force_authenticate(user=self.student)
        response = self.client.post(
            reverse("club-posts", args=[club.pk]),
            {"title": "Hello", "content": "I am not the owner"},
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Post.objects.exists())

    def test_owner_deletes_own_post(self):
        club = make_active_club(self.owner)
        post = services.create_post(club.pk, self.owner.pk, "Hi", "Welcome")

        self.client.force_authenticate(user=self.student)
        response = self.client.delete(reverse("club-post-delete", args=[club.pk, post.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("club-my-posts"))
        self.assertEqual([p["id"] for p in response.data["results"]], [post.pk])

        response = self.client.delete(reverse("club-post-delete", args=[club.pk, post.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())

    def test_members_listing(self):
        club = make_active_club(self.owner)
        add_member(club, self.student)

        self.client.force_authenticate(user=self.student)
        response = self.client.get(reverse("club-members", args=[club.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [m["user"]["id"] for m in response.data["results"]],
            [self.owner.pk, self.student.pk],
        )

    def test_unverified_user_cannot_create_club(self):
        unverified = make_user("new@campus.edu", is_verified=False)
        self.client.force_authenticate(user=unverified)
        response = self.client.post(
            reverse("club-create"),
            {"name": "Nope", "description": "x", "category": "other"},
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Club.objects.exists())


# -------------------------
# Membership Service Tests
# -------------------------
class MembershipServiceTests(APITestCase):

    def setUp(self):
        self.owner = make_user("owner@campus.edu")
        self.student = make_user("student@campus.edu")
        self.club = make_active_club(self.owner)

    def test_create_club_rejects_unknown_category(self):
        with self.assertRaises(ValidationError):
            services.create_club(self.owner.pk, "Other", "desc", "gardening")

    def test_owner_cannot_request_to_join(self):
        with self.assertRaises(ConflictError):
            services.send_join_request(self.club.pk, self.owner.pk)

    def test_member_cannot_request_to_join(self):
        add_member(self.club, self.student)
        with self.assertRaises(ConflictError):
            services.send_join_request(self.club.pk, self.student.pk)

    def test_duplicate_pending_request_conflicts(self):
        services.send_join_request(self.club.pk, self.student.pk)
        with self.assertRaises(ConflictError):
            services.send_join_request(self.club.pk, self.student.pk)
        self.assertEqual(JoinRequest.objects.filter(user=self.student).count(), 1)

    def test_join_request_for_missing_club(self):
        with self.assertRaises(NotFoundError):
            services.send_join_request(99999, self.student.pk)

    def test_only_owner_responds(self):
        intruder = make_user("intruder@campus.edu")
        services.send_join_request(self.club.pk, self.student.pk)
        with self.assertRaises(AuthorizationError):
            services.respond_to_join_request(
                self.club.pk, intruder.pk, self.student.pk, "approve"
            )
        self.assertFalse(self.club.is_member(self.student.pk))

    def test_invalid_action(self):
        with self.assertRaises(ValidationError):
            services.respond_to_join_request(
                self.club.pk, self.owner.pk, self.student.pk, "maybe"
            )

    def test_approving_existing_member_conflicts_and_keeps_count(self):
        add_member(self.club, self.student)
        with self.assertRaises(ConflictError):
            services.respond_to_join_request(
                self.club.pk, self.owner.pk, self.student.pk, "approve"
            )
        self.club.refresh_from_db()
        self.assertEqual(self.club.member_count, 2)
        self.assertEqual(self.club.memberships.filter(user=self.student).count(), 1)

    def test_racing_approval_hits_unique_membership_constraint(self):
        services.send_join_request(self.club.pk, self.student.pk)
        services.respond_to_join_request(
            self.club.pk, self.owner.pk, self.student.pk, "approve"
        )

        # A second approval that read the roster before the first committed.
        with patch.object(Club, "is_member", return_value=False):
            with self.assertRaises(ConflictError):
                services.respond_to_join_request(
                    self.club.pk, self.owner.pk, self.student.pk, "approve"
                )

        self.club.refresh_from_db()
        self.assertEqual(self.club.memberships.filter(user=self.student).count(), 1)
        self.assertEqual(self.club.member_count, 2)
        self.assertEqual(self.club.member_count, self.club.memberships.count())
        self.assertEqual(
            Notification.objects.filter(recipient=self.student, type="JOIN_APPROVED").count(), 1
        )

    def test_duplicate_membership_row_is_rejected_by_database(self):
        add_member(self.club, self.student)
        with self.assertRaises(IntegrityError), transaction.atomic():
            ClubMembership.objects.create(club=self.club, user=self.student)
        self.assertEqual(self.club.memberships.filter(user=self.student).count(), 1)

    def test_deleting_member_account_updates_member_count(self):
        other_club = make_active_club(make_user("chair@campus.edu"), name="Debate")
        add_member(self.club, self.student)
        add_member(other_club, self.student)

        account_services.delete_user(self.student.pk)

        for club in (self.club, other_club):
            club.refresh_from_db()
            self.assertEqual(club.member_count, 1)
            self.assertEqual(club.member_count, club.memberships.count())

    def test_decline_notifies_and_keeps_membership_unchanged(self):
        services.send_join_request(self.club.pk, self.student.pk)
        with self.captureOnCommitCallbacks(execute=True):
            services.respond_to_join_request(
                self.club.pk, self.owner.pk, self.student.pk, "decline"
            )

        self.club.refresh_from_db()
        self.assertEqual(self.club.member_count, 1)
        self.assertTrue(
            Notification.objects.filter(recipient=self.student, type="JOIN_DECLINED").exists()
        )
        self.assertIn("Declined", mail.outbox[-1].subject)

        # A declined request can be sent again.
        services.send_join_request(self.club.pk, self.student.pk)

    def test_leave_when_not_member(self):
        with self.assertRaises(ConflictError):
            services.leave_club(self.club.pk, self.student.pk)

    def test_member_count_matches_memberships(self):
        others = [make_user(f"m{i}@campus.edu") for i in range(3)]
        for user in others:
            services.send_join_request(self.club.pk, user.pk)
            services.respond_to_join_request(self.club.pk, self.owner.pk, user.pk, "approve")
        services.leave_club(self.club.pk, others[0].pk)

        self.club.refresh_from_db()
        self.assertEqual(self.club.member_count, self.club.memberships.count())
        self.assertEqual(self.club.member_count, 3)

    def test_post_requires_title_and_content(self):
        with self.assertRaises(ValidationError):
            services.create_post(self.club.pk, self.owner.pk, "", "content")

    def test_email_failure_does_not_undo_approval(self):
        services.send_join_request(self.club.pk, self.student.pk)

        with patch(
            "campusconnect.mailer.EmailMultiAlternatives.send",
            side_effect=ConnectionRefusedError("SMTP down"),
        ):
            with self.captureOnCommitCallbacks(execute=True):
                services.respond_to_join_request(
                    self.club.pk, self.owner.pk, self.student.pk, "approve"
                )

        self.assertTrue(self.club.is_member(self.student.pk))
        self.assertTrue(
            Notification.objects.filter(recipient=self.student, type="JOIN_APPROVED").exists()
        )

    def test_deleting_owner_cascades_to_club(self):
        add_member(self.club, self.student)
        post = services.create_post(self.club.pk, self.owner.pk, "Hi", "Welcome")

        self.owner.delete()

        self.assertFalse(Club.objects.filter(pk=self.club.pk).exists())
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())
        self.assertFalse(ClubMembership.objects.filter(user=self.student).exists())
        # The student's post notification outlives the club.
        self.assertTrue(
            Notification.objects.filter(recipient=self.student, type="NEW_POST").exists()
        )


# -------------------------
# Admin Moderation Tests
# -------------------------
class ModerationTests(APITestCase):

    def setUp(self):
        self.admin = make_user("admin@campus.edu", role="admin")
        self.owner = make_user("owner@campus.edu")
        self.pending = services.create_club(self.owner.pk, "Film Society", "Movies", "arts")
        self.client.force_authenticate(user=self.admin)

    def test_reject_deletes_club_and_notifies_owner_by_name(self):
        club_pk = self.pending.pk

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.put(reverse("admin-club-reject", args=[club_pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertFalse(Club.objects.filter(pk=club_pk).exists())
        note = Notification.objects.get(recipient=self.owner, type="CLUB_REJECTED")
        self.assertIn("Film Society", note.message)
        self.assertEqual(note.related_object, ClubRef(club_pk))
        self.assertEqual(mail.outbox[-1].to, ["owner@campus.edu"])
        self.assertTrue(AuditLog.objects.filter(action="CLUB_REJECTION").exists())

    def test_approve_non_pending_conflicts(self):
        moderation.approve_club(self.pending.pk)
        response = self.client.put(reverse("admin-club-approve", args=[self.pending.pk]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(
            Notification.objects.filter(recipient=self.owner, type="CLUB_APPROVED").count(), 1
        )

    def test_reject_active_club_conflicts(self):
        moderation.approve_club(self.pending.pk)
        with self.assertRaises(ConflictError):
            moderation.reject_club(self.pending.pk)
        self.assertTrue(Club.objects.filter(pk=self.pending.pk).exists())

    def test_approve_missing_club(self):
        response = self.client.put(reverse("admin-club-approve", args=[99999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_email_failure_does_not_undo_club_approval(self):
        with patch(
            "campusconnect.mailer.EmailMultiAlternatives.send",
            side_effect=ConnectionRefusedError("SMTP down"),
        ):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.put(
                    reverse("admin-club-approve", args=[self.pending.pk])
                )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, Club.STATUS_ACTIVE)

    def test_admin_delete_club(self):
        club_pk = self.pending.pk
        response = self.client.delete(reverse("admin-club-delete", args=[club_pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Club.objects.filter(pk=club_pk).exists())
        note = Notification.objects.get(recipient=self.owner, type="OTHER")
        self.assertIn("Film Society", note.message)
        self.assertEqual(note.related_object, ClubRef(club_pk))

    def test_admin_delete_post(self):
        moderation.approve_club(self.pending.pk)
        post = services.create_post(self.pending.pk, self.owner.pk, "Screening", "Friday")

        response = self.client.delete(reverse("admin-post-delete", args=[post.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action="POST_DELETION").exists())

    def test_dashboard_stats(self):
        response = self.client.get(reverse("admin-dashboard"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data["stats"]
        self.assertEqual(stats["total_users"], 2)
        self.assertEqual(stats["total_clubs"], 1)
        self.assertEqual(stats["pending_clubs"], 1)

    def test_admin_club_listing_filters_by_status(self):
        response = self.client.get(reverse("admin-clubs"), {"status": "pending"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c["name"] for c in response.data["results"]], ["Film Society"])

    def test_non_admin_cannot_moderate(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.put(reverse("admin-club-approve", args=[self.pending.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, Club.STATUS_PENDING)
