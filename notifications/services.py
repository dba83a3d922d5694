"""
Notification fan-out: creating notifications for recipients and querying
them back.

``notify`` is strict and raises ``NotFoundError`` for an unknown recipient.
Workflow steps that treat notifications as a side effect use
``notify_best_effort`` / ``notify_many`` instead, which log and continue.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from campusconnect.exceptions import AuthorizationError, NotFoundError, ValidationError
from .models import Notification

logger = logging.getLogger(__name__)

User = get_user_model()

NOTIFICATION_TYPES = {choice for choice, _ in Notification.TYPE_CHOICES}


def notify(recipient_id, type, message, related=None):
    if type not in NOTIFICATION_TYPES:
        raise ValidationError(f"Unknown notification type: {type}")

    if not User.objects.filter(pk=recipient_id).exists():
        raise NotFoundError("Notification recipient not found")

    notification = Notification(
        recipient_id=recipient_id,
        type=type,
        message=message,
    )
    notification.related_object = related
    notification.save()
    return notification


def notify_best_effort(recipient_id, type, message, related=None):
    # Savepoint so a failed insert does not poison the caller's transaction.
    try:
        with transaction.atomic():
            return notify(recipient_id, type, message, related)
    except NotFoundError:
        logger.warning(f"Skipping {type} notification: recipient {recipient_id} not found")
    except DatabaseError:
        logger.exception(f"Failed to create {type} notification for recipient {recipient_id}")
    return None


def notify_many(recipient_ids, type, message, related=None):
    """
    One notification per recipient. A failure for one recipient is logged
    and does not stop the others.
    """
    created = []
    for recipient_id in recipient_ids:
        notification = notify_best_effort(recipient_id, type, message, related)
        if notification is not None:
            created.append(notification)
    return created


def parse_read_filter(value):
    if value is None:
        return None
    value = str(value).strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def list_for_user(user_id, read=None):
    queryset = Notification.objects.filter(recipient_id=user_id)
    if read is not None:
        queryset = queryset.filter(read=read)
    return queryset.order_by("-created_at", "-id")


def list_all(type=None, read=None):
    queryset = Notification.objects.select_related("recipient")
    if type:
        queryset = queryset.filter(type=type)
    if read is not None:
        queryset = queryset.filter(read=read)
    return queryset.order_by("-created_at", "-id")


def mark_read(notification_id, caller):
    try:
        notification_id = int(notification_id)
    except (TypeError, ValueError):
        raise NotFoundError("Notification not found")

    notification = Notification.objects.filter(pk=notification_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")

    if notification.recipient_id != caller.pk and not caller.is_admin:
        raise AuthorizationError("Notification not found or not authorized")

    if not notification.read:
        notification.read = True
        notification.save(update_fields=["read"])
    return notification


def mark_all_read(user_id):
    return Notification.objects.filter(recipient_id=user_id, read=False).update(read=True)
