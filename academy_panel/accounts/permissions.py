"""
Role-Based Access Control (RBAC) для разделов CRM.

Роль берётся из CustomUser.role, принадлежность к академии - из
TenantMembership текущего request.tenant. Пользователь чужой академии
получает 403 даже с подходящей ролью.

    from accounts.permissions import IsAdminRole, IsAdminOrTeacher

    class SubjectViewSet(...):
        permission_classes = [IsAdminRole]

Карта доступа к разделам (ROUTE_ACCESS_MAP) отдаётся фронтенду в /api/me/.
"""
import logging

from rest_framework.permissions import BasePermission

from tenants.permissions import get_request_membership

logger = logging.getLogger(__name__)

ADMIN = 'admin'
TEACHER = 'teacher'

ROUTE_ACCESS_MAP = {
    'dashboard': (ADMIN, TEACHER),
    'attendances': (ADMIN, TEACHER),
    'lessons': (ADMIN, TEACHER),
    'groups': (ADMIN, TEACHER),
    'students': (ADMIN, TEACHER),
    'teachers': (ADMIN,),
    'subjects': (ADMIN,),
    'courses': (ADMIN,),
    'payments': (ADMIN,),
    'statistics': (ADMIN,),
    'settings': (ADMIN,),
}


def effective_role(user):
    if user.is_superuser:
        return ADMIN
    return getattr(user, 'role', None)


def allowed_sections(user):
    """Разделы, доступные роли пользователя (в порядке ROUTE_ACCESS_MAP)."""
    role = effective_role(user)
    return [section for section, roles in ROUTE_ACCESS_MAP.items() if role in roles]


class _RolePermission(BasePermission):
    allowed_roles = ()

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.is_superuser:
            return True
        if effective_role(user) not in self.allowed_roles:
            return False
        if get_request_membership(request) is None:
            logger.warning(
                'User %s denied: no membership in tenant %s',
                user.email, getattr(getattr(request, 'tenant', None), 'slug', None),
            )
            return False
        return True


class IsAdminRole(_RolePermission):
    """Доступ только для администраторов академии"""
    message = 'Доступно только для администраторов'
    allowed_roles = (ADMIN,)


class IsAdminOrTeacher(_RolePermission):
    """Доступ для преподавателей и администраторов академии"""
    message = 'Доступно только для преподавателей и администраторов'
    allowed_roles = (ADMIN, TEACHER)


def is_admin(user):
    return effective_role(user) == ADMIN
