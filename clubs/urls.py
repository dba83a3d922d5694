from django.urls import path
from .views import (
    ActiveClubListView,
    ClubCreateView,
    ClubDetailView,
    ClubMembersView,
    ClubPostDeleteView,
    ClubPostsView,
    FeedPostsView,
    JoinClubView,
    JoinedClubsView,
    JoinRequestListView,
    LeaveClubView,
    MyClubsView,
    MyPostsView,
    PublicClubDetailView,
    RespondJoinRequestView,
)

urlpatterns = [
    path("", ActiveClubListView.as_view(), name="club-list"),
    path("create/", ClubCreateView.as_view(), name="club-create"),
    path("my/", MyClubsView.as_view(), name="club-my"),
    path("joined/", JoinedClubsView.as_view(), name="club-joined"),
    path("feed/", FeedPostsView.as_view(), name="club-feed"),
    path("posts/mine/", MyPostsView.as_view(), name="club-my-posts"),
    path("public/<int:pk>/", PublicClubDetailView.as_view(), name="club-public-detail"),
    path("<int:pk>/", ClubDetailView.as_view(), name="club-detail"),
    path("<int:pk>/join/", JoinClubView.as_view(), name="club-join"),
    path("<int:pk>/leave/", LeaveClubView.as_view(), name="club-leave"),
    path("<int:pk>/requests/", JoinRequestListView.as_view(), name="club-requests"),
    path(
        "<int:pk>/requests/<int:user_id>/",
        RespondJoinRequestView.as_view(),
        name="club-request-respond",
    ),
    path("<int:pk>/members/", ClubMembersView.as_view(), name="club-members"),
    path("<int:pk>/posts/", ClubPostsView.as_view(), name="club-posts"),
    path(
        "<int:pk>/posts/<int:post_id>/",
        ClubPostDeleteView.as_view(),
        name="club-post-delete",
    ),
]
