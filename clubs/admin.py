from django.contrib import admin
from .models import Club, ClubMembership, JoinRequest, Post


class ClubMembershipInline(admin.TabularInline):
    model = ClubMembership
    extra = 0


@admin.register(Club)
class ClubAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "owner", "status", "member_count", "created_at")
    list_filter = ("status", "category")
    search_fields = ("name", "description", "owner__email")
    readonly_fields = ("member_count",)
    inlines = [ClubMembershipInline]


@admin.register(JoinRequest)
class JoinRequestAdmin(admin.ModelAdmin):
    list_display = ("club", "user", "status", "created_at", "responded_at")
    list_filter = ("status",)
    search_fields = ("club__name", "user__email")


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ("title", "club", "author", "created_at")
    search_fields = ("title", "content", "club__name")
