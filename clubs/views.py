from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdmin, IsAnyRole
from campusconnect.storage import stored_uploads
from . import moderation, services
from .serializers import (
    ClubInputSerializer,
    ClubSerializer,
    ClubSummarySerializer,
    JoinRequestSerializer,
    MembershipSerializer,
    PostInputSerializer,
    PostSerializer,
    RespondJoinRequestSerializer,
)


# ====================================================
# PUBLIC CLUB DIRECTORY
# ====================================================
class ActiveClubListView(ListAPIView):
    serializer_class = ClubSummarySerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        params = self.request.query_params
        return services.list_active_clubs(
            search=params.get("search"),
            category=params.get("category"),
        )


class PublicClubDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, pk):
        club = services.get_club_for_viewer(pk)
        return Response({"club": ClubSerializer(club).data})


# ====================================================
# CLUB LIFECYCLE (OWNER)
# ====================================================
class ClubCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def post(self, request):
        serializer = ClubInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with stored_uploads(
            "clubs", logo=data.get("logo"), banner=data.get("banner")
        ) as urls:
            club = services.create_club(
                request.user.pk,
                data.get("name"),
                data.get("description"),
                data.get("category"),
                logo=urls["logo"],
                banner=urls["banner"],
            )

        return Response(
            {
                "message": "Club created successfully and awaiting admin approval.",
                "club": ClubSerializer(club).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ClubDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get(self, request, pk):
        club = services.get_club_for_viewer(pk, request.user)
        return Response({"club": ClubSerializer(club).data})

    def put(self, request, pk):
        serializer = ClubInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with stored_uploads(
            "clubs", logo=data.get("logo"), banner=data.get("banner")
        ) as urls:
            club = services.update_club(
                pk,
                request.user.pk,
                name=data.get("name"),
                description=data.get("description"),
                category=data.get("category"),
                logo=urls["logo"],
                banner=urls["banner"],
            )
        return Response(
            {"message": "Club updated successfully", "club": ClubSerializer(club).data}
        )

    patch = put

    def delete(self, request, pk):
        services.delete_club_as_owner(pk, request.user.pk)
        return Response({"message": "Club deleted successfully"})


class MyClubsView(ListAPIView):
    serializer_class = ClubSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_owned_clubs(self.request.user.pk)


class JoinedClubsView(ListAPIView):
    serializer_class = ClubSummarySerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_joined_clubs(self.request.user.pk).order_by("-created_at", "-id")


# ====================================================
# MEMBERSHIP
# ====================================================
class JoinClubView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def post(self, request, pk):
        join_request = services.send_join_request(pk, request.user.pk)
        return Response(
            {
                "message": "Join request sent successfully",
                "request": JoinRequestSerializer(join_request).data,
            },
            status=status.HTTP_201_CREATED,
        )


class LeaveClubView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def delete(self, request, pk):
        services.leave_club(pk, request.user.pk)
        return Response({"message": "Successfully left the club"})

    post = delete


class JoinRequestListView(ListAPIView):
    serializer_class = JoinRequestSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_join_requests(self.kwargs["pk"], self.request.user.pk)


class RespondJoinRequestView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def put(self, request, pk, user_id):
        serializer = RespondJoinRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        action = serializer.validated_data["action"]

        club = services.respond_to_join_request(pk, request.user.pk, user_id, action)
        verb = "approved" if action == "approve" else "declined"
        return Response(
            {
                "message": f"Join request {verb} successfully",
                "club": ClubSerializer(club).data,
            }
        )

    post = put


class ClubMembersView(ListAPIView):
    serializer_class = MembershipSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_members(self.kwargs["pk"])


# ====================================================
# POSTS
# ====================================================
class ClubPostsView(ListAPIView):
    serializer_class = PostSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_club_posts(self.kwargs["pk"])

    def post(self, request, pk):
        serializer = PostInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with stored_uploads("posts", media=data.get("media")) as urls:
            post = services.create_post(
                pk,
                request.user.pk,
                data.get("title"),
                data.get("content"),
                media=urls["media"],
            )
        return Response(
            {"message": "Post created successfully", "post": PostSerializer(post).data},
            status=status.HTTP_201_CREATED,
        )


class ClubPostDeleteView(APIView):
    permission_classes = [IsAuthenticated, IsAnyRole]

    def delete(self, request, pk, post_id):
        services.delete_post(post_id, request.user.pk, club_id=pk)
        return Response({"message": "Post deleted successfully"})


class MyPostsView(ListAPIView):
    serializer_class = PostSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_user_posts(self.request.user.pk)


class FeedPostsView(ListAPIView):
    serializer_class = PostSerializer
    permission_classes = [IsAuthenticated, IsAnyRole]

    def get_queryset(self):
        return services.list_feed_posts(self.request.user.pk)


# ====================================================
# ADMIN MODERATION
# ====================================================
class AdminDashboardView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response({"stats": moderation.dashboard_stats()})


class AdminClubListView(ListAPIView):
    serializer_class = ClubSerializer
    permission_classes = [IsAuthenticated, IsAdmin]

    def get_queryset(self):
        params = self.request.query_params
        return moderation.list_clubs(
            search=params.get("search"),
            status=params.get("status"),
            category=params.get("category"),
        )


class AdminApproveClubView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def put(self, request, pk):
        club = moderation.approve_club(pk, actor=request.user)
        return Response(
            {"message": "Club approved successfully", "club": ClubSerializer(club).data}
        )

    post = put


class AdminRejectClubView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def put(self, request, pk):
        moderation.reject_club(pk, actor=request.user)
        return Response({"message": "Club rejected and deleted successfully"})

    post = put


class AdminClubDeleteView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def delete(self, request, pk):
        moderation.delete_club(pk, actor=request.user)
        return Response({"message": "Club deleted successfully"})


class AdminPostListView(ListAPIView):
    serializer_class = PostSerializer
    permission_classes = [IsAuthenticated, IsAdmin]

    def get_queryset(self):
        return moderation.list_posts(search=self.request.query_params.get("search"))


class AdminPostDeleteView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    def delete(self, request, pk):
        moderation.delete_post(pk, actor=request.user)
        return Response({"message": "Post deleted successfully"})
