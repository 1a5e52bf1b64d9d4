from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'posts'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.PostViewSet, basename='post')

urlpatterns = [
    # Post ViewSet routes
    # GET    /api/posts/               - Feed (?group=, ?author=, ?ordering=)
    # POST   /api/posts/               - Create post (JSON or multipart with media)
    # GET    /api/posts/{id}/          - Get post with comments
    # PUT    /api/posts/{id}/          - Update post (author / system admin)
    # PATCH  /api/posts/{id}/          - Partial update
    # DELETE /api/posts/{id}/          - Soft delete (author / system admin)

    # Custom post actions
    # POST   /api/posts/{id}/like/                               - Toggle like
    # POST   /api/posts/{id}/comments/                           - Add comment
    # PATCH  /api/posts/{id}/comments/{comment_id}/              - Edit comment (comment author)
    # DELETE /api/posts/{id}/comments/{comment_id}/              - Remove comment (comment / post author)
    # POST   /api/posts/{id}/comments/{comment_id}/like/         - Toggle comment like
    # GET    /api/posts/group/{group_id}/                        - Group feed
    # GET    /api/posts/user/{user_id}/                          - User feed

    # Include router URLs
    path('', include(router.urls)),
]
