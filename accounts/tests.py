from django.urls import reverse
from django.core import mail
from django.conf import settings
from rest_framework.test import APITestCase
from rest_framework import status
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import RefreshToken

from campusconnect.exceptions import ConflictError
from .models import AuditLog
from . import services

User = get_user_model()


def make_user(email, password="pass1234", role="user", **extra):
    extra.setdefault("first_name", "Test")
    extra.setdefault("last_name", "User")
    extra.setdefault("is_verified", True)
    extra.setdefault("is_active", True)
    return User.objects.create_user(email=email, password=password, role=role, **extra)


def authenticate(client, user):
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return refresh


# -------------------------
# Registration + OTP Tests
# -------------------------
class RegistrationTests(APITestCase):

    def register(self, **overrides):
        data = {
            "email": "Student@Campus.edu",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "phone": "0712345678",
            "faculty": "Engineering",
            "password": "secret123",
        }
        data.update(overrides)
        return self.client.post(reverse("register"), data)

    def test_registration_creates_unverified_user_and_sends_otp(self):
        response = self.register()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        user = User.objects.get(email="student@campus.edu")
        self.assertFalse(user.is_verified)
        self.assertEqual(user.role, "user")
        self.assertEqual(len(user.otp), settings.OTP_LENGTH)

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(user.otp, mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ["student@campus.edu"])

    def test_duplicate_email_is_rejected(self):
        make_user("student@campus.edu")
        response = self.register()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data)

    def test_short_password_is_rejected(self):
        response = self.register(password="abc")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email="student@campus.edu").exists())

    def test_verify_otp_activates_account_and_returns_tokens(self):
        self.register()
        user = User.objects.get(email="student@campus.edu")

        response = self.client.post(
            reverse("verify-otp"), {"email": user.email, "otp": user.otp}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

        user.refresh_from_db()
        self.assertTrue(user.is_verified)
        self.assertIsNone(user.otp)

    def test_verify_with_wrong_otp_fails(self):
        self.register()
        response = self.client.post(
            reverse("verify-otp"), {"email": "student@campus.edu", "otp": "0000x"}
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Invalid or expired OTP")
        self.assertFalse(User.objects.get(email="student@campus.edu").is_verified)

    def test_regenerate_otp_sends_new_code(self):
        self.register()
        mail.outbox.clear()

        response = self.client.post(
            reverse("regenerate-otp"), {"email": "student@campus.edu"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)

        user = User.objects.get(email="student@campus.edu")
        self.assertIn(user.otp, mail.outbox[0].body)

    def test_regenerate_otp_for_verified_account_conflicts(self):
        make_user("done@campus.edu")
        response = self.client.post(reverse("regenerate-otp"), {"email": "done@campus.edu"})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")


# -------------------------
# Login / Logout Tests
# -------------------------
class LoginTests(APITestCase):

    def setUp(self):
        self.user = make_user("member@campus.edu", password="pass1234")

    def test_login_success(self):
        response = self.client.post(
            reverse("login"), {"email": "MEMBER@campus.edu", "password": "pass1234"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertEqual(response.data["user"]["email"], "member@campus.edu")

    def test_login_with_wrong_password(self):
        response = self.client.post(
            reverse("login"), {"email": "member@campus.edu", "password": "nope"}
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_requires_both_fields(self):
        response = self.client.post(reverse("login"), {"email": "member@campus.edu"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_fails_if_not_verified(self):
        make_user("pending@campus.edu", password="pass1234", is_verified=False)
        response = self.client.post(
            reverse("login"), {"email": "pending@campus.edu", "password": "pass1234"}
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_login_fails_if_deactivated(self):
        make_user("off@campus.edu", password="pass1234", is_active=False)
        response = self.client.post(
            reverse("login"), {"email": "off@campus.edu", "password": "pass1234"}
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_logout_blacklists_refresh_token(self):
        refresh = authenticate(self.client, self.user)

        response = self.client.post(reverse("logout"), {"refresh": str(refresh)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials()
        response = self.client.post(reverse("token-refresh"), {"refresh": str(refresh)})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_without_token(self):
        authenticate(self.client, self.user)
        response = self.client.post(reverse("logout"), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


# -------------------------
# Profile Tests
# -------------------------
class ProfileTests(APITestCase):

    def setUp(self):
        self.user = make_user("profile@campus.edu", password="pass1234", phone="0700000001")
        authenticate(self.client, self.user)

    def test_get_profile(self):
        response = self.client.get(reverse("profile"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "profile@campus.edu")
        self.assertEqual(response.data["joined_clubs_count"], 0)
        self.assertEqual(response.data["posts_count"], 0)

    def test_update_profile_ignores_read_only_fields(self):
        response = self.client.patch(
            reverse("profile"), {"faculty": "Law", "role": "admin"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.user.refresh_from_db()
        self.assertEqual(self.user.faculty, "Law")
        self.assertEqual(self.user.role, "user")

    def test_phone_must_stay_unique(self):
        make_user("other@campus.edu", phone="0700000002")
        response = self.client.patch(reverse("profile"), {"phone": "0700000002"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_change_password(self):
        response = self.client.put(
            reverse("change-password"),
            {"current_password": "pass1234", "new_password": "newpass99"},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.user.refresh_from_db()
        self.assertTrue(services.verify_password(self.user, "newpass99"))
        self.assertFalse(services.verify_password(self.user, "pass1234"))

    def test_change_password_requires_current_password(self):
        response = self.client.put(
            reverse("change-password"),
            {"current_password": "wrong", "new_password": "newpass99"},
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unauthenticated_profile_access(self):
        self.client.credentials()
        response = self.client.get(reverse("profile"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


# -------------------------
# Admin User Moderation Tests
# -------------------------
class AdminUserTests(APITestCase):

    def setUp(self):
        self.admin = make_user("admin@campus.edu", role="admin")
        self.user = make_user("target@campus.edu", password="pass1234")
        authenticate(self.client, self.admin)

    def test_admin_lists_users(self):
        response = self.client.get(reverse("admin-users"), {"search": "target"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        emails = [u["email"] for u in response.data["results"]]
        self.assertEqual(emails, ["target@campus.edu"])

    def test_non_admin_is_forbidden(self):
        authenticate(self.client, self.user)
        response = self.client.get(reverse("admin-users"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_deactivated_user_is_refused_on_next_request(self):
        user_client = self.client_class()
        authenticate(user_client, self.user)
        self.assertEqual(user_client.get(reverse("profile")).status_code, status.HTTP_200_OK)

        response = self.client.put(
            reverse("admin-user-toggle-status", args=[self.user.id])
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["user"]["is_active"])

        # Token was issued before deactivation and is still unexpired.
        response = user_client.get(reverse("profile"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.assertTrue(
            AuditLog.objects.filter(action="DEACTIVATION", target_user=self.user).exists()
        )

    def test_toggle_twice_reactivates(self):
        url = reverse("admin-user-toggle-status", args=[self.user.id])
        self.client.put(url)
        self.client.put(url)

        self.user.refresh_from_db()
        self.assertTrue(self.user.is_active)

    def test_delete_user(self):
        response = self.client.delete(reverse("admin-user-delete", args=[self.user.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action="USER_DELETION").exists())

    def test_delete_missing_user(self):
        response = self.client.delete(reverse("admin-user-delete", args=[99999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_root_admin_cannot_be_deleted(self):
        root, _ = services.ensure_root_admin()
        response = self.client.delete(reverse("admin-user-delete", args=[root.id]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(User.objects.filter(pk=root.pk).exists())

    def test_audit_log_listing(self):
        self.client.put(reverse("admin-user-toggle-status", args=[self.user.id]))
        response = self.client.get(reverse("admin-audit-logs"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"][0]["actor_email"], "admin@campus.edu")
        self.assertEqual(response.data["results"][0]["target_email"], "target@campus.edu")


# -------------------------
# Credential Service Tests
# -------------------------
class CredentialServiceTests(APITestCase):

    def test_hash_and_verify_password(self):
        user = make_user("hash@campus.edu", password="pass1234")
        hashed = services.hash_password("pass1234")

        self.assertNotEqual(hashed, "pass1234")
        self.assertTrue(services.verify_password(user, "pass1234"))
        self.assertFalse(services.verify_password(user, "pass12345"))
        self.assertFalse(services.verify_password(None, "pass1234"))

    def test_find_user_by_email_is_case_insensitive(self):
        user = make_user("case@campus.edu")
        self.assertEqual(services.find_user_by_email("  CASE@campus.EDU "), user)
        self.assertIsNone(services.find_user_by_email("missing@campus.edu"))

    def test_ensure_root_admin_is_idempotent(self):
        first, created = services.ensure_root_admin()
        self.assertTrue(created)
        self.assertEqual(first.role, "admin")
        self.assertTrue(first.is_verified)
        self.assertTrue(services.is_root_admin(first))

        second, created = services.ensure_root_admin()
        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(User.objects.filter(email=settings.ROOT_ADMIN_EMAIL).count(), 1)

    def test_delete_root_admin_service_conflict(self):
        root, _ = services.ensure_root_admin()
        with self.assertRaises(ConflictError):
            services.delete_user(root.pk)

    def test_promote_to_club_owner_never_demotes(self):
        user = make_user("plain@campus.edu")
        admin = make_user("boss@campus.edu", role="admin")

        self.assertTrue(user.promote_to_club_owner())
        self.assertFalse(user.promote_to_club_owner())
        self.assertFalse(admin.promote_to_club_owner())

        admin.refresh_from_db()
        self.assertEqual(admin.role, "admin")
