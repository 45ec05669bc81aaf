"""
Organization-staff permission checks.

Reading a camp's schedule is public. Changing it requires membership in
the organization that runs the camp.
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import Camp, OrganizationMember


def can_manage_camp(user, camp: Camp) -> bool:
    """Check whether ``user`` is staff of the organization running ``camp``."""
    if user is None or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return OrganizationMember.objects.filter(
        user=user,
        organization_id=camp.organization_id
    ).exists()


class IsCampStaffOrReadOnly(BasePermission):
    """Object-level permission; objects are camps or belong to one."""

    message = "You don't have permission to manage this camp"

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        camp = obj if isinstance(obj, Camp) else obj.camp
        return can_manage_camp(request.user, camp)
