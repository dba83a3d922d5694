from rest_framework import serializers

from accounts.serializers import UserBriefSerializer
from accounts.validators import validate_image_size
from .models import Club, ClubMembership, JoinRequest, Post


class ClubSerializer(serializers.ModelSerializer):
    owner = UserBriefSerializer(read_only=True)

    class Meta:
        model = Club
        fields = (
            "id",
            "name",
            "description",
            "category",
            "logo",
            "banner",
            "owner",
            "status",
            "member_count",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class ClubSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Club
        fields = (
            "id",
            "name",
            "description",
            "category",
            "member_count",
            "logo",
            "banner",
        )
        read_only_fields = fields


class ClubInputSerializer(serializers.Serializer):
    """
    Parses club form data and uploads. Required-field and uniqueness rules
    are enforced by the workflow service.
    """
    name = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True)
    logo = serializers.ImageField(
        required=False, allow_null=True, validators=[validate_image_size]
    )
    banner = serializers.ImageField(
        required=False, allow_null=True, validators=[validate_image_size]
    )


class MembershipSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = ClubMembership
        fields = ("user", "role", "joined_at")
        read_only_fields = fields


class JoinRequestSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = JoinRequest
        fields = ("id", "club", "user", "status", "created_at", "responded_at")
        read_only_fields = fields


class RespondJoinRequestSerializer(serializers.Serializer):
    action = serializers.CharField()


class PostSerializer(serializers.ModelSerializer):
    author = UserBriefSerializer(read_only=True)
    club_name = serializers.CharField(source="club.name", read_only=True)

    class Meta:
        model = Post
        fields = (
            "id",
            "title",
            "content",
            "media",
            "author",
            "club",
            "club_name",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class PostInputSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True)
    content = serializers.CharField(required=False, allow_blank=True)
    media = serializers.ImageField(
        required=False, allow_null=True, validators=[validate_image_size]
    )
