from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from rest_framework import serializers

from .emails import send_welcome_email
from .models import AuditLog
from .services import issue_otp
from .validators import validate_image_size

User = get_user_model()


class UserBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id",
            "first_name",
            "last_name",
            "email",
            "profile_picture",
        )
        read_only_fields = fields


# ====================================================
# REGISTRATION + OTP VERIFICATION
# ====================================================
class RegisterSerializer(serializers.ModelSerializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20)
    faculty = serializers.CharField(max_length=100)

    class Meta:
        model = User
        fields = (
            "email",
            "first_name",
            "last_name",
            "phone",
            "faculty",
            "password",
        )
        extra_kwargs = {
            "password": {"write_only": True},
            # Uniqueness is checked in validate_email with a clearer message.
            "email": {"validators": []},
        }

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("User already exists with this email")
        return value

    def validate_phone(self, value):
        value = value.strip()
        if User.objects.filter(phone=value).exists():
            raise serializers.ValidationError("User already exists with this phone number")
        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def create(self, validated_data):
        with transaction.atomic():
            user = User.objects.create_user(
                email=validated_data["email"],
                password=validated_data["password"],
                first_name=validated_data["first_name"].strip(),
                last_name=validated_data["last_name"].strip(),
                phone=validated_data["phone"],
                faculty=validated_data["faculty"].strip(),
                role=User.ROLE_USER,
                is_verified=False,
                is_active=True,
            )
            otp = issue_otp(user)

        send_welcome_email(user, otp)
        return user


class VerifyOtpSerializer(serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.CharField(max_length=10)


class RegenerateOtpSerializer(serializers.Serializer):
    email = serializers.EmailField()


# ====================================================
# PROFILE
# ====================================================
class UserProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "first_name",
            "last_name",
            "phone",
            "faculty",
            "role",
            "is_verified",
            "is_active",
            "profile_picture",
        )
        read_only_fields = (
            "id",
            "email",
            "role",
            "is_verified",
            "is_active",
            "profile_picture",
        )

    def validate_phone(self, value):
        value = (value or "").strip() or None
        if value and User.objects.filter(phone=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("Phone number already in use")
        return value


class ProfilePictureSerializer(serializers.Serializer):
    profile_picture = serializers.ImageField(validators=[validate_image_size])


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, min_length=6)

    def validate_current_password(self, value):
        user = self.context["request"].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value

    def save(self):
        user = self.context["request"].user
        user.set_password(self.validated_data["new_password"])
        user.save(update_fields=["password"])
        return user


# ====================================================
# ADMIN
# ====================================================
class AdminUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id",
            "first_name",
            "last_name",
            "email",
            "role",
            "is_verified",
            "is_active",
            "date_joined",
        )
        read_only_fields = fields


class AuditLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.CharField(
        source="actor.email",
        read_only=True,
        default=None,
    )
    target_email = serializers.CharField(
        source="target_user.email",
        read_only=True,
        default=None,
    )

    class Meta:
        model = AuditLog
        fields = (
            "id",
            "actor_email",
            "target_email",
            "action",
            "timestamp",
            "notes",
        )
