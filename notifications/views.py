from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdmin, IsAnyRole
from . import services
from .serializers import AdminNotificationSerializer, NotificationSerializer


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        read = services.parse_read_filter(self.request.query_params.get("read"))
        return services.list_for_user(self.request.user.pk, read=read)

    @action(detail=True, methods=["post", "put"], url_path="read")
    def mark_read(self, request, pk=None):
        notification = services.mark_read(pk, request.user)
        return Response(
            {
                "message": "Notification marked as read",
                "notification": NotificationSerializer(notification).data,
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["post", "put"], url_path="read-all")
    def mark_all_read(self, request):
        updated = services.mark_all_read(request.user.pk)
        return Response(
            {"message": "All notifications marked as read", "updated": updated},
            status=status.HTTP_200_OK,
        )


# ====================================================
# ADMIN
# ====================================================
class AdminNotificationListView(ListAPIView):
    serializer_class = AdminNotificationSerializer
    permission_classes = [IsAuthenticated, IsAdmin]

    def get_queryset(self):
        params = self.request.query_params
        return services.list_all(
            type=params.get("type"),
            read=services.parse_read_filter(params.get("read")),
        )


class AdminMarkNotificationReadView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def put(self, request, pk):
        notification = services.mark_read(pk, request.user)
        return Response(
            {
                "message": "Notification marked as read",
                "notification": AdminNotificationSerializer(notification).data,
            },
            status=status.HTTP_200_OK,
        )

    post = put
