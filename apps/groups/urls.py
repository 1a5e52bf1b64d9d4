from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/              - List active groups (?search=)
    # POST   /api/groups/              - Create group
    # GET    /api/groups/{id}/         - Get group details
    # PUT    /api/groups/{id}/         - Update group (privileged)
    # PATCH  /api/groups/{id}/         - Partial update (privileged)
    # DELETE /api/groups/{id}/         - Soft delete (creator / system admin)

    # Custom group actions
    # POST   /api/groups/{id}/join/                              - Join or request to join
    # POST   /api/groups/{id}/leave/                             - Leave group
    # GET    /api/groups/{id}/members/                           - List members
    # POST   /api/groups/{id}/members/                           - Add member (privileged)
    # DELETE /api/groups/{id}/members/{user_id}/                 - Remove member (privileged)
    # PUT    /api/groups/{id}/members/{user_id}/role/            - Update member role (privileged)
    # GET    /api/groups/{id}/requests/                          - Pending join requests (privileged)
    # POST   /api/groups/{id}/requests/{user_id}/approve/        - Approve request (privileged)
    # POST   /api/groups/{id}/requests/{user_id}/reject/         - Reject request (privileged)

    # Additional endpoints
    path('my/', views.my_groups, name='my-groups'),

    # Include router URLs
    path('', include(router.urls)),
]
