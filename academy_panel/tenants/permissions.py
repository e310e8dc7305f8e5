"""
Tenant-aware permissions для DRF.

JWT-пользователь известен только внутри DRF, поэтому membership
вычисляется здесь лениво и кешируется на request.
"""
from rest_framework.permissions import BasePermission

_MISSING = object()


def get_request_membership(request):
    """Активное членство request.user в request.tenant (или None)."""
    cached = getattr(request, '_tenant_membership_cache', _MISSING)
    if cached is not _MISSING:
        return cached

    membership = None
    tenant = getattr(request, 'tenant', None)
    user = getattr(request, 'user', None)
    if tenant is not None and user is not None and user.is_authenticated:
        from .models import TenantMembership
        membership = TenantMembership.objects.filter(
            tenant=tenant, user=user, is_active=True
        ).first()
    request._tenant_membership_cache = membership
    return membership


class IsTenantAdmin(BasePermission):
    """Пользователь должен быть admin/owner в текущем tenant'е."""

    message = 'Необходима роль администратора организации.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.user.is_superuser:
            return True
        membership = get_request_membership(request)
        return membership is not None and membership.is_admin
