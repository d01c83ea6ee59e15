"""
Django admin configuration for the mood voting models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Group, Membership, Voting, Vote


class MembershipInline(admin.TabularInline):
    model = Membership
    fk_name = "group"
    extra = 0
    fields = ["user", "is_admin", "acceptance_pending", "otp_created_at", "member_from"]
    readonly_fields = ["otp_created_at", "member_from"]


class VotingInline(admin.TabularInline):
    model = Voting
    extra = 0
    fields = ["created_at", "duration", "average", "moving_average"]
    readonly_fields = ["created_at", "duration", "average", "moving_average"]
    can_delete = False


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Platform Info", {"fields": ("registration_pending",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    readonly_fields = ["created_at", "updated_at"]
    list_display = ["username", "email", "registration_pending", "is_staff", "created_at"]
    list_filter = ["registration_pending", "is_staff", "is_active", "created_at"]
    search_fields = ["username", "email"]


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "voting_days",
        "voting_time",
        "voting_duration",
        "anonymous_vote",
        "created_at",
    ]
    list_filter = ["anonymous_vote", "created_at"]
    search_fields = ["name"]
    readonly_fields = ["created_at"]
    inlines = [MembershipInline, VotingInline]


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = [
        "user",
        "group",
        "is_admin",
        "acceptance_pending",
        "otp_created_at",
        "invited_by",
        "member_from",
    ]
    list_filter = ["is_admin", "acceptance_pending", "created_at"]
    search_fields = ["user__username", "user__email", "group__name"]
    readonly_fields = ["invitation_otp", "otp_created_at", "member_from", "created_at"]


@admin.register(Voting)
class VotingAdmin(admin.ModelAdmin):
    list_display = ["group", "window_start", "created_at", "duration", "average", "moving_average"]
    list_filter = ["created_at"]
    search_fields = ["group__name"]
    readonly_fields = ["window_start", "created_at", "average", "moving_average"]


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    list_display = ["voting", "author", "score", "created_at"]
    list_filter = ["score", "created_at"]
    search_fields = ["voting__group__name", "comment"]
    readonly_fields = ["voting", "user", "score", "comment", "created_at"]

    @admin.display(description="User")
    def author(self, obj):
        return obj.user.username if obj.user else "anonymous"

    def has_add_permission(self, request):
        return False
