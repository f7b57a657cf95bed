# apps/users/permissions.py
from rest_framework.permissions import BasePermission

from .models import CustomUser


class IsOwner(BasePermission):
    """Only the owner role can access"""
    message = "Only the owner can perform this action."

    def has_permission(self, request, view):
        return request.user.is_authenticated and getattr(request.user, "role", None) == CustomUser.OWNER

