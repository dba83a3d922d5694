"""
Club membership workflow.

Club creation, join requests and their approval, leaving a club, and the
owner-authored posts that fan out to members. Every mutation of a club's
membership runs inside ``transaction.atomic()`` with the club row locked,
and ``member_count`` is recomputed before the transaction commits.

Notifications are created in the same transaction as the state change they
describe; emails are queued with ``transaction.on_commit`` and their
failures are only logged.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from accounts.services import get_user_or_404
from campusconnect.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from notifications.refs import ClubRef, PostRef, UserRef
from notifications.services import notify_best_effort, notify_many
from .emails import (
    send_club_awaiting_approval_email,
    send_join_request_approved_email,
    send_join_request_declined_email,
)
from .models import Club, ClubMembership, JoinRequest, Post

logger = logging.getLogger(__name__)

User = get_user_model()

CATEGORIES = {choice for choice, _ in Club.CATEGORY_CHOICES}

JOIN_ACTIONS = ("approve", "decline")


def _clean(value):
    return str(value).strip() if value is not None else ""


def get_club_or_404(club_id, for_update=False):
    queryset = Club.objects.select_for_update() if for_update else Club.objects
    club = queryset.filter(pk=club_id).first()
    if club is None:
        raise NotFoundError("Club not found")
    return club


def _get_owned_club(club_id, owner_id, for_update=False):
    club = get_club_or_404(club_id, for_update=for_update)
    if club.owner_id != owner_id:
        raise AuthorizationError("You are not the owner of this club")
    return club


def _ensure_name_available(name, exclude_pk=None):
    queryset = Club.objects.filter(name=name)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise ConflictError("A club with this name already exists")


# ====================================================
# CLUB CREATION
# ====================================================
def create_club(owner_id, name, description, category, logo=None, banner=None):
    name = _clean(name)
    description = _clean(description)
    category = _clean(category)

    if not name or not description or not category:
        raise ValidationError("Name, description, and category are required")

    if category not in CATEGORIES:
        raise ValidationError(
            f"Invalid category. Choices are: {sorted(CATEGORIES)}"
        )

    owner = get_user_or_404(owner_id)

    with transaction.atomic():
        _ensure_name_available(name)

        try:
            with transaction.atomic():
                club = Club.objects.create(
                    name=name,
                    description=description,
                    category=category,
                    logo=logo or None,
                    banner=banner or None,
                    owner=owner,
                    status=Club.STATUS_PENDING,
                )
        except IntegrityError:
            raise ConflictError("A club with this name already exists")

        # The owner is a member from the start.
        ClubMembership.objects.create(club=club, user=owner, role="member")
        club.refresh_member_count()

        if owner.promote_to_club_owner():
            logger.info(f"User {owner.email} promoted to club_owner")

        _notify_admins_of_new_club(club, owner)

    logger.info(f"Club '{club.name}' (ID: {club.pk}) created by {owner.email}, awaiting approval")
    return club


def _notify_admins_of_new_club(club, owner):
    admins = list(User.objects.filter(role=User.ROLE_ADMIN))
    message = (
        f'New club "{club.name}" created by {owner.full_name}. Awaiting approval.'
    )

    notify_many(
        [admin.pk for admin in admins],
        "CLUB_APPROVAL",
        message,
        related=ClubRef(club.pk),
    )
    for admin in admins:
        send_club_awaiting_approval_email(admin, club, owner)


# ====================================================
# CLUB UPDATES (OWNER)
# ====================================================
def update_club(club_id, owner_id, name=None, description=None, category=None, logo=None, banner=None):
    with transaction.atomic():
        club = _get_owned_club(club_id, owner_id, for_update=True)
        update_fields = []

        name = _clean(name)
        if name and name != club.name:
            _ensure_name_available(name, exclude_pk=club.pk)
            club.name = name
            update_fields.append("name")

        description = _clean(description)
        if description:
            club.description = description
            update_fields.append("description")

        category = _clean(category)
        if category:
            if category not in CATEGORIES:
                raise ValidationError(
                    f"Invalid category. Choices are: {sorted(CATEGORIES)}"
                )
            club.category = category
            update_fields.append("category")

        if logo:
            club.logo = logo
            update_fields.append("logo")

        if banner:
            club.banner = banner
            update_fields.append("banner")

        if update_fields:
            try:
                with transaction.atomic():
                    club.save(update_fields=update_fields + ["updated_at"])
            except IntegrityError:
                raise ConflictError("A club with this name already exists")

    return club


def delete_club_as_owner(club_id, owner_id):
    with transaction.atomic():
        club = _get_owned_club(club_id, owner_id, for_update=True)
        name = club.name
        club.delete()

    logger.info(f"Club '{name}' (ID: {club_id}) deleted by its owner")
    return name


# ====================================================
# JOIN REQUESTS
# ====================================================
def send_join_request(club_id, user_id):
    club = get_club_or_404(club_id)
    user = get_user_or_404(user_id)

    if club.owner_id == user.pk:
        raise ConflictError("You are the owner of this club")

    if club.is_member(user.pk):
        raise ConflictError("You are already a member of this club")

    if club.status != Club.STATUS_ACTIVE:
        raise ConflictError("This club is not accepting members yet")

    with transaction.atomic():
        if JoinRequest.objects.filter(
            club=club, user=user, status=JoinRequest.STATUS_PENDING
        ).exists():
            raise ConflictError("You already have a pending request for this club")

        try:
            with transaction.atomic():
                join_request = JoinRequest.objects.create(club=club, user=user)
        except IntegrityError:
            raise ConflictError("You already have a pending request for this club")

        notify_best_effort(
            club.owner_id,
            "JOIN_REQUEST",
            f"{user.full_name} requested to join your club: {club.name}",
            related=UserRef(user.pk),
        )

    logger.info(f"User {user.email} requested to join club '{club.name}'")
    return join_request


def list_join_requests(club_id, owner_id):
    club = _get_owned_club(club_id, owner_id)
    return (
        club.join_requests.filter(status=JoinRequest.STATUS_PENDING)
        .select_related("user")
        .order_by("created_at", "id")
    )


def respond_to_join_request(club_id, owner_id, target_user_id, action):
    """
    Approve or decline a user's request to join. The club row stays locked
    until commit, so concurrent approvals for the same user cannot add a
    second membership edge; the unique constraint backs this up.
    """
    if action not in JOIN_ACTIONS:
        raise ValidationError('Invalid action. Use "approve" or "decline".')

    with transaction.atomic():
        club = _get_owned_club(club_id, owner_id, for_update=True)
        target = get_user_or_404(target_user_id)

        join_request = (
            JoinRequest.objects.select_for_update()
            .filter(club=club, user=target, status=JoinRequest.STATUS_PENDING)
            .first()
        )

        if action == "approve":
            if club.is_member(target.pk):
                raise ConflictError("User is already a member")

            try:
                with transaction.atomic():
                    ClubMembership.objects.create(club=club, user=target, role="member")
            except IntegrityError:
                raise ConflictError("User is already a member")

            club.refresh_member_count()
            _resolve_join_request(join_request, JoinRequest.STATUS_APPROVED)

            notify_best_effort(
                target.pk,
                "JOIN_APPROVED",
                f'Your request to join the club "{club.name}" has been approved.',
                related=ClubRef(club.pk),
            )
            send_join_request_approved_email(target, club)
        else:
            _resolve_join_request(join_request, JoinRequest.STATUS_DECLINED)

            notify_best_effort(
                target.pk,
                "JOIN_DECLINED",
                f'Your request to join the club "{club.name}" has been declined.',
                related=ClubRef(club.pk),
            )
            send_join_request_declined_email(target, club)

    logger.info(f"Join request of {target.email} for club '{club.name}': {action}")
    return club


def _resolve_join_request(join_request, status):
    if join_request is None:
        return
    join_request.status = status
    join_request.responded_at = timezone.now()
    join_request.save(update_fields=["status", "responded_at"])


# ====================================================
# LEAVING
# ====================================================
def leave_club(club_id, user_id):
    with transaction.atomic():
        club = get_club_or_404(club_id, for_update=True)

        membership = (
            club.memberships.filter(user_id=user_id)
            .order_by("joined_at", "id")
            .first()
        )
        if membership is None:
            raise ConflictError("You are not a member of this club")

        membership.delete()
        club.refresh_member_count()

    logger.info(f"User {user_id} left club '{club.name}'")
    return club


# ====================================================
# POSTS
# ====================================================
def create_post(club_id, author_id, title, content, media=None):
    club = get_club_or_404(club_id)
    if club.owner_id != author_id:
        raise AuthorizationError("Only the club owner can publish posts")

    title = _clean(title)
    content = _clean(content)
    if not title or not content:
        raise ValidationError("Title and content are required")

    post = Post.objects.create(
        title=title,
        content=content,
        media=media or None,
        author_id=author_id,
        club=club,
    )

    recipients = list(
        club.memberships.exclude(user_id=author_id).values_list("user_id", flat=True)
    )
    notify_many(
        recipients,
        "NEW_POST",
        f'New post "{post.title}" published in club "{club.name}".',
        related=PostRef(post.pk),
    )

    logger.info(
        f"Post '{post.title}' (ID: {post.pk}) published in club '{club.name}', "
        f"{len(recipients)} member(s) notified"
    )
    return post


def delete_post(post_id, caller_id, club_id=None):
    post = Post.objects.select_related("club").filter(pk=post_id).first()
    if post is None or (club_id is not None and post.club_id != int(club_id)):
        raise NotFoundError("Post not found")

    if post.author_id != caller_id or post.club.owner_id != caller_id:
        raise AuthorizationError("You are not authorized to delete this post")

    post.delete()
    logger.info(f"Post {post_id} deleted by its author")


# ====================================================
# QUERIES
# ====================================================
def get_club_for_viewer(club_id, viewer=None):
    """
    Active clubs are visible to everyone; pending ones only to their owner
    and admins.
    """
    club = get_club_or_404(club_id)
    if club.status == Club.STATUS_ACTIVE:
        return club

    if viewer is not None and (club.owner_id == viewer.pk or viewer.is_admin):
        return club

    raise NotFoundError("Club is not active")


def list_active_clubs(search=None, category=None):
    queryset = Club.objects.filter(status=Club.STATUS_ACTIVE)
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(description__icontains=search)
        )
    if category:
        queryset = queryset.filter(category=category)
    return queryset.order_by("-created_at", "-id")


def list_owned_clubs(user_id):
    return Club.objects.filter(owner_id=user_id).order_by("-created_at", "-id")


def list_joined_clubs(user_id):
    return Club.objects.filter(memberships__user_id=user_id).distinct()


def list_members(club_id):
    club = get_club_or_404(club_id)
    return club.memberships.select_related("user")


def list_club_posts(club_id):
    club = get_club_or_404(club_id)
    return club.posts.select_related("author").order_by("-created_at", "-id")


def list_feed_posts(user_id):
    """Posts from every club the user belongs to, newest first."""
    return (
        Post.objects.filter(club__memberships__user_id=user_id)
        .select_related("author", "club")
        .distinct()
        .order_by("-created_at", "-id")
    )


def list_user_posts(user_id):
    return (
        Post.objects.filter(author_id=user_id)
        .select_related("club")
        .order_by("-created_at", "-id")
    )
