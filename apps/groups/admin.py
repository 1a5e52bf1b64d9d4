# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from apps.groups.models import Group, GroupMembership, JoinRequest


class GroupMembershipInline(admin.TabularInline):
    """Inline admin for group memberships."""
    model = GroupMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


class JoinRequestInline(admin.TabularInline):
    """Inline admin for pending join requests."""
    model = JoinRequest
    extra = 0
    fields = ['user', 'requested_at']
    readonly_fields = ['requested_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Groups."""

    list_display = [
        'name',
        'creator',
        'member_count',
        'post_count',
        'is_private',
        'is_active',
        'created_at'
    ]
    list_filter = ['is_private', 'is_active', 'created_at']
    search_fields = ['name', 'description', 'creator__email']
    readonly_fields = ['member_count', 'post_count', 'created_at', 'updated_at']
    inlines = [GroupMembershipInline, JoinRequestInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'creator', 'is_private', 'tags')
        }),
        ('Counters', {
            'fields': ('member_count', 'post_count')
        }),
        ('Status', {
            'fields': ('is_active',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['recount']

    def recount(self, request, queryset):
        """Recompute member and post counters for selected groups."""
        for group in queryset:
            group.refresh_member_count()
            group.refresh_post_count()
        self.message_user(request, f"Recounted {queryset.count()} groups")
    recount.short_description = "Recompute counters"


@admin.register(GroupMembership)
class GroupMembershipAdmin(admin.ModelAdmin):
    """Admin interface for Group Memberships."""

    list_display = ['user', 'group', 'role', 'joined_at']
    list_filter = ['role', 'joined_at']
    search_fields = ['user__email', 'group__name']
    readonly_fields = ['joined_at']
    date_hierarchy = 'joined_at'
    ordering = ['-joined_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group')


@admin.register(JoinRequest)
class JoinRequestAdmin(admin.ModelAdmin):
    """Admin interface for Join Requests."""

    list_display = ['user', 'group', 'requested_at']
    search_fields = ['user__email', 'group__name']
    readonly_fields = ['requested_at']
    ordering = ['-requested_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group')
