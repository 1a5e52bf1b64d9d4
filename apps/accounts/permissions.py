from rest_framework import permissions


class IsSystemAdmin(permissions.BasePermission):
    """
    Permission: User must hold the system-wide admin role.
    """

    message = 'Admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_system_admin)
