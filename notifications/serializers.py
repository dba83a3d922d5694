from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    related_object = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = (
            "id",
            "type",
            "message",
            "related_object",
            "read",
            "created_at",
        )
        read_only_fields = fields

    def get_related_object(self, obj):
        ref = obj.related_object
        if ref is None:
            return None
        return {"type": ref.kind, "id": ref.id}


class AdminNotificationSerializer(NotificationSerializer):
    recipient_email = serializers.CharField(source="recipient.email", read_only=True)

    class Meta(NotificationSerializer.Meta):
        fields = NotificationSerializer.Meta.fields + ("recipient", "recipient_email")
        read_only_fields = fields
