"""
API views для tenants.

TenantConfigView - публичный endpoint, отдаёт конфиг академии для frontend.
TenantDetailView - просмотр/редактирование академии администратором.
TenantMembersView - список сотрудников академии.
"""
import logging

from django.conf import settings as django_settings
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .mixins import TenantAPIViewMixin
from .permissions import IsTenantAdmin
from .serializers import TenantSerializer, TenantMembershipSerializer

logger = logging.getLogger(__name__)


class TenantConfigView(APIView):
    """
    GET /api/tenant/config/

    Публичный endpoint - конфиг текущей академии для frontend.
    Академия определяется TenantMiddleware по hostname.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        tenant = getattr(request, 'tenant', None)
        if tenant:
            return Response(tenant.to_frontend_config())

        # Fallback до создания первого Tenant
        return Response({
            'id': None,
            'slug': django_settings.DEFAULT_TENANT_SLUG,
            'name': 'Academy Panel',
            'logo_url': '',
            'timezone': django_settings.TIME_ZONE,
            'locale': 'en',
            'currency': django_settings.REPORT_CURRENCY,
            'features': {},
        })


class TenantDetailView(TenantAPIViewMixin, APIView):
    """
    GET/PATCH /api/tenant/detail/

    Контакты, локализация и метаданные академии (для owner/admin).
    """
    permission_classes = [IsTenantAdmin]

    def get(self, request):
        return Response(TenantSerializer(request.tenant).data)

    def patch(self, request):
        serializer = TenantSerializer(request.tenant, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info('Tenant %s updated by %s', request.tenant.slug, request.user.email)
        return Response(serializer.data)


class TenantMembersView(TenantAPIViewMixin, APIView):
    """GET /api/tenant/members/ - активные и неактивные сотрудники академии."""
    permission_classes = [IsTenantAdmin]

    def get(self, request):
        memberships = request.tenant.memberships.select_related('user').order_by('role', 'user__email')
        return Response(TenantMembershipSerializer(memberships, many=True).data)
