from rest_framework import permissions


class IsSelfOrAdmin(permissions.BasePermission):
    """
    Read access for everyone; changing or deleting an account is reserved
    to the account owner or an admin.
    """

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        # DRF turns this into 401 for anonymous users
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_staff or obj.pk == request.user.pk
