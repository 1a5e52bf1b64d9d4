# ==========================================
# apps/posts/admin.py
# ==========================================

from django.contrib import admin
from apps.posts.models import Post, PostMedia, Comment


class PostMediaInline(admin.TabularInline):
    """Inline admin for post media."""
    model = PostMedia
    extra = 0
    fields = ['position', 'media_type', 'url', 'filename', 'size']
    readonly_fields = ['url', 'size']


class CommentInline(admin.TabularInline):
    """Inline admin for comments."""
    model = Comment
    extra = 0
    fields = ['author', 'content', 'is_edited', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    """Admin interface for Posts."""

    list_display = [
        'short_content',
        'author',
        'group',
        'visibility',
        'like_count',
        'comment_count',
        'is_active',
        'created_at'
    ]
    list_filter = ['visibility', 'is_active', 'created_at']
    search_fields = ['content', 'author__email', 'group__name']
    readonly_fields = ['like_count', 'comment_count', 'edited_at', 'created_at', 'updated_at']
    inlines = [PostMediaInline, CommentInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def short_content(self, obj):
        return obj.content[:60]
    short_content.short_description = 'Content'

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('author', 'group')

    actions = ['recompute_engagement']

    def recompute_engagement(self, request, queryset):
        """Recompute like and comment counters for selected posts."""
        for post in queryset:
            post.recompute_engagement()
        self.message_user(request, f"Recomputed engagement for {queryset.count()} posts")
    recompute_engagement.short_description = "Recompute engagement counters"


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    """Admin interface for Comments."""

    list_display = ['author', 'post', 'is_edited', 'created_at']
    list_filter = ['is_edited', 'created_at']
    search_fields = ['content', 'author__email']
    readonly_fields = ['created_at', 'edited_at']
    ordering = ['-created_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('author', 'post')
