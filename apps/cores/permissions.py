from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    def has_permission(self, request, view):
        return (
            request.user.is_authenticated
            and request.user.role == "admin"
        )


class IsClient(BasePermission):
    def has_permission(self, request, view):
        return (
            request.user.is_authenticated
            and request.user.role == "client"
        )


class IsPartner(BasePermission):
    def has_permission(self, request, view):
        return (
            request.user.is_authenticated
            and request.user.role == "partner"
        )


class IsProjectOwnerOrAdmin(BasePermission):
    """
    Object level check for anything that hangs off a project.
    Works for Project itself and for models exposing `.project`.
    """

    def has_object_permission(self, request, view, obj):
        if request.user.role == "admin":
            return True
        project = getattr(obj, "project", obj)
        return project.client_id == request.user.id
