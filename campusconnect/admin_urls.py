from django.urls import path

from accounts.views import (
    AdminToggleUserStatusView,
    AdminUserDeleteView,
    AdminUserListView,
    AuditLogListView,
)
from clubs.views import (
    AdminApproveClubView,
    AdminClubDeleteView,
    AdminClubListView,
    AdminDashboardView,
    AdminPostDeleteView,
    AdminPostListView,
    AdminRejectClubView,
)
from notifications.views import AdminMarkNotificationReadView, AdminNotificationListView

urlpatterns = [
    path("dashboard/", AdminDashboardView.as_view(), name="admin-dashboard"),
    path("users/", AdminUserListView.as_view(), name="admin-users"),
    path("users/<int:pk>/toggle-status/", AdminToggleUserStatusView.as_view(), name="admin-user-toggle-status"),
    path("users/<int:pk>/", AdminUserDeleteView.as_view(), name="admin-user-delete"),
    path("clubs/", AdminClubListView.as_view(), name="admin-clubs"),
    path("clubs/<int:pk>/approve/", AdminApproveClubView.as_view(), name="admin-club-approve"),
    path("clubs/<int:pk>/reject/", AdminRejectClubView.as_view(), name="admin-club-reject"),
    path("clubs/<int:pk>/", AdminClubDeleteView.as_view(), name="admin-club-delete"),
    path("posts/", AdminPostListView.as_view(), name="admin-posts"),
    path("posts/<int:pk>/", AdminPostDeleteView.as_view(), name="admin-post-delete"),
    path("notifications/", AdminNotificationListView.as_view(), name="admin-notifications"),
    path(
        "notifications/<int:pk>/read/",
        AdminMarkNotificationReadView.as_view(),
        name="admin-notification-read",
    ),
    path("audit-logs/", AuditLogListView.as_view(), name="admin-audit-logs"),
]
