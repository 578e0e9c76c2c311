from rest_framework.permissions import BasePermission


def is_admin(user):
    return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'admin')


class IsAdminRole(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsAdminOrReadOnly(BasePermission):
    def has_permission(self, request, view):
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return is_admin(request.user)
