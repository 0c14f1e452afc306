from django.conf import settings
from rest_framework import permissions


class ApiAccess(permissions.BasePermission):
    """
    Entity endpoints are open unless API_REQUIRE_AUTH is enabled, in which
    case an authenticated user (JWT or session) is required.
    """

    def has_permission(self, request, view):
        if not getattr(settings, 'API_REQUIRE_AUTH', False):
            return True
        user = getattr(request, 'user', None)
        return bool(user and user.is_authenticated)
