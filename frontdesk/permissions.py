"""
Capability based permission classes.

The caller's :class:`frontdesk.roles.Capability` is resolved on first use
and cached on the request, so every check within one request sees the same
role.
"""
from rest_framework.permissions import BasePermission

from frontdesk import roles
from frontdesk.services.accounts import resolve_capability

_CACHE_ATTR = '_frontdesk_capability'


def capability_for(request):
    if not hasattr(request, _CACHE_ATTR):
        setattr(request, _CACHE_ATTR, resolve_capability(getattr(request, 'user', None)))
    return getattr(request, _CACHE_ATTR)


class CapabilityPermission(BasePermission):
    permission = ''

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        cap = capability_for(request)
        return bool(cap and cap.allows(self.permission))


class HasRole(BasePermission):
    """Any authenticated user with a staff role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return capability_for(request) is not None


class CanRegisterPatients(CapabilityPermission):
    permission = roles.REGISTER_PATIENTS


class CanViewPatients(CapabilityPermission):
    permission = roles.VIEW_PATIENTS


class CanManageQueue(CapabilityPermission):
    permission = roles.MANAGE_QUEUE


class CanAnnotate(CapabilityPermission):
    permission = roles.ANNOTATE


class CanManageAccounts(CapabilityPermission):
    permission = roles.MANAGE_ACCOUNTS
