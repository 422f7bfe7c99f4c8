from rest_framework import permissions


class IsAuthorOrAdmin(permissions.BasePermission):
    """
    Anyone may read. Changing or deleting a post or comment is reserved to
    its author or an admin.
    """

    def has_permission(self, request, view):
        # 1. Read-only requests (GET, HEAD, OPTIONS) are open to everyone
        if request.method in permissions.SAFE_METHODS:
            return True

        # 2. Writes require authentication; DRF answers 401 for anonymous users
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True

        # Admins (staff) always have permission
        if request.user.is_staff:
            return True

        # Only the object's author has permission
        return obj.author_id == request.user.pk
