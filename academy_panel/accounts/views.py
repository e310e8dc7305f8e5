import logging

from django.contrib.auth import get_user_model
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.datatable import Column
from core.mixins import DataTableViewSetMixin, invalidate_with_dependents
from core.query_cache import QueryCache
from tenants.models import TenantMembership
from tenants.permissions import get_request_membership

from .permissions import IsAdminRole, allowed_sections, effective_role
from .serializers import TeacherSerializer, UserProfileSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


class MeView(APIView):
    """
    Профиль текущего пользователя + роль, доступные разделы и конфиг академии.
    Фронтенд строит меню и редиректы по `sections`.
    """

    permission_classes = [IsAuthenticated]
    query_cache = QueryCache()

    def _payload(self, request, user):
        data = UserProfileSerializer(user).data
        tenant = getattr(request, 'tenant', None)
        membership = get_request_membership(request)
        data['role'] = effective_role(user)
        data['sections'] = allowed_sections(user)
        data['tenant'] = tenant.to_frontend_config() if tenant else None
        data['tenant_role'] = membership.role if membership else None
        return data

    def get(self, request):
        return Response(self._payload(request, request.user))

    def patch(self, request):
        serializer = UserProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        # Имя преподавателя есть в строках других списков
        invalidate_with_dependents(self.query_cache, 'teachers')
        return Response(self._payload(request, user))


class TeacherViewSet(DataTableViewSetMixin, viewsets.ModelViewSet):
    """
    Преподаватели академии. Создание заводит пользователя и членство
    в текущем tenant; удаление убирает членство.
    """
    serializer_class = TeacherSerializer
    permission_classes = [IsAdminRole]
    queryset = User.objects.filter(role='teacher')
    cache_tag = 'teachers'
    table_columns = (
        Column('name', 'Name', sortable=True),
        Column('email', 'Email', sortable=True),
        Column('phone_number', 'Phone'),
        Column('subjects', 'Subjects', render=lambda value, row: ', '.join(value or [])),
        Column('rating', 'Rating', sortable=True),
        Column('date_of_birth', 'Birthday', sortable=True),
    )

    def get_queryset(self):
        tenant = getattr(self.request, 'tenant', None)
        if tenant is None:
            return User.objects.none()
        return (
            super().get_queryset()
            .filter(tenant_memberships__tenant=tenant, tenant_memberships__is_active=True)
            .prefetch_related('subjects')
            .order_by('-created_at')
        )

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['tenant'] = getattr(self.request, 'tenant', None)
        return context

    def perform_create(self, serializer):
        super().perform_create(serializer)
        TenantMembership.objects.create(
            tenant=self.request.tenant,
            user=serializer.instance,
            role=TenantMembership.TenantRole.TEACHER,
        )

    def perform_destroy(self, instance):
        tenant = self.request.tenant
        TenantMembership.objects.filter(tenant=tenant, user=instance).delete()
        if not instance.tenant_memberships.filter(is_active=True).exists():
            instance.is_active = False
            instance.save(update_fields=['is_active'])
        self.invalidate_cache()
        logger.info('Teacher %s removed from tenant %s by %s',
                    instance.email, tenant.slug, self.request.user.email)
