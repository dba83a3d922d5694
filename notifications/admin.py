from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("type", "recipient", "related_object_type", "related_object_id", "read", "created_at")
    list_filter = ("type", "read", "created_at")
    search_fields = ("message", "recipient__email")
