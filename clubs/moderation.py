"""
Admin moderation of clubs and posts.

The caller has already been checked as an admin by the view layer, so these
functions apply no ownership rules. Owner lookup and the club name are
captured before any delete, because the notification outlives the club.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from accounts.services import record_audit
from campusconnect.exceptions import ConflictError, NotFoundError
from notifications.models import Notification
from notifications.refs import ClubRef
from notifications.services import notify_best_effort
from .emails import (
    send_club_approved_email,
    send_club_deleted_email,
    send_club_rejected_email,
)
from .models import Club, Post
from .services import get_club_or_404

logger = logging.getLogger(__name__)

User = get_user_model()


def approve_club(club_id, actor=None):
    with transaction.atomic():
        club = get_club_or_404(club_id, for_update=True)
        if club.status != Club.STATUS_PENDING:
            raise ConflictError("Club is not pending approval")

        club.status = Club.STATUS_ACTIVE
        club.save(update_fields=["status", "updated_at"])

        owner = club.owner
        notify_best_effort(
            owner.pk,
            "CLUB_APPROVED",
            f'Your club "{club.name}" has been approved by the admin.',
            related=ClubRef(club.pk),
        )
        send_club_approved_email(owner, club.name)

        record_audit(
            actor,
            "CLUB_APPROVAL",
            target_user=owner,
            notes=f"Club '{club.name}' (ID: {club.pk}) approved",
        )

    logger.info(f"Club '{club.name}' (ID: {club.pk}) approved")
    return club


def reject_club(club_id, actor=None):
    """
    Rejected clubs are deleted, not archived. The owner's notification keeps
    the club's name in its message.
    """
    with transaction.atomic():
        club = get_club_or_404(club_id, for_update=True)
        if club.status != Club.STATUS_PENDING:
            raise ConflictError("Club is not pending approval")

        owner = club.owner
        club_name = club.name
        club_pk = club.pk

        club.delete()

        notify_best_effort(
            owner.pk,
            "CLUB_REJECTED",
            f'Your club "{club_name}" has been rejected by the admin and deleted.',
            related=ClubRef(club_pk),
        )
        send_club_rejected_email(owner, club_name)

        record_audit(
            actor,
            "CLUB_REJECTION",
            target_user=owner,
            notes=f"Club '{club_name}' (ID: {club_pk}) rejected and deleted",
        )

    logger.info(f"Club '{club_name}' (ID: {club_pk}) rejected and deleted")
    return club_name


def delete_club(club_id, actor=None):
    with transaction.atomic():
        club = get_club_or_404(club_id, for_update=True)

        owner = club.owner
        club_name = club.name
        club_pk = club.pk

        club.delete()

        notify_best_effort(
            owner.pk,
            "OTHER",
            f'Your club "{club_name}" has been deleted by the admin.',
            related=ClubRef(club_pk),
        )
        send_club_deleted_email(owner, club_name)

        record_audit(
            actor,
            "CLUB_DELETION",
            target_user=owner,
            notes=f"Club '{club_name}' (ID: {club_pk}) deleted by admin",
        )

    logger.info(f"Club '{club_name}' (ID: {club_pk}) deleted by admin")
    return club_name


def delete_post(post_id, actor=None):
    post = Post.objects.select_related("author").filter(pk=post_id).first()
    if post is None:
        raise NotFoundError("Post not found")

    with transaction.atomic():
        record_audit(
            actor,
            "POST_DELETION",
            target_user=post.author,
            notes=f"Post '{post.title}' (ID: {post.pk}) deleted by admin",
        )
        post.delete()

    logger.info(f"Post {post_id} deleted by admin")


# ====================================================
# ADMIN LISTINGS
# ====================================================
def dashboard_stats():
    return {
        "total_users": User.objects.count(),
        "total_clubs": Club.objects.count(),
        "total_posts": Post.objects.count(),
        "pending_clubs": Club.objects.filter(status=Club.STATUS_PENDING).count(),
        "total_notifications": Notification.objects.count(),
    }


def list_clubs(search=None, status=None, category=None):
    queryset = Club.objects.select_related("owner")
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(description__icontains=search)
        )
    if status:
        queryset = queryset.filter(status=status)
    if category:
        queryset = queryset.filter(category=category)
    return queryset.order_by("-created_at", "-id")


def list_posts(search=None):
    queryset = Post.objects.select_related("author", "club")
    if search:
        queryset = queryset.filter(
            Q(title__icontains=search) | Q(content__icontains=search)
        )
    return queryset.order_by("-created_at", "-id")
