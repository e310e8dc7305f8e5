"""
Дашборды и статистика.

GET /api/dashboard/                 - карточки главной (админ или преподаватель)
GET /api/statistics/                - данные страницы статистики (админ)
GET /api/statistics/export/         - Excel-книга (7 листов)
GET /api/statistics/export/?format=csv&section=revenue - один раздел в CSV
"""
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import IsAdminOrTeacher, IsAdminRole, is_admin

from . import export
from .services import admin_dashboard, collect_statistics, teacher_dashboard

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAdminOrTeacher])
def dashboard(request):
    """Администратору - сводка академии, преподавателю - его группы и занятия дня."""
    if is_admin(request.user):
        return Response({'role': 'admin', **admin_dashboard(request.tenant)})
    return Response({'role': 'teacher', **teacher_dashboard(request.tenant, request.user)})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def statistics(request):
    stats = collect_statistics(request.tenant)
    return Response(stats.as_dict())


@api_view(['GET'])
@permission_classes([IsAdminRole])
def statistics_export(request):
    """
    Выгрузка статистики.

    ?format=csv&section=revenue|courses|attendance|teachers|sources - CSV раздела,
    без параметров - xlsx со всеми листами.
    """
    export_format = (request.GET.get('format') or 'xlsx').lower()
    tenant = request.tenant
    today = timezone.localdate()
    stats = collect_statistics(tenant, today)

    if export_format == 'csv':
        section = request.GET.get('section', '')
        try:
            content = export.csv_content(stats, section)
        except export.UnknownSection:
            return Response(
                {'error': f'Unknown section. Use one of: {", ".join(export.CSV_SECTIONS)}'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        response = HttpResponse(content, content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{export.csv_filename(section, today)}"'
        logger.info('Statistics CSV export (%s) for tenant %s by %s', section, tenant.slug, request.user.email)
        return response

    workbook = export.build_workbook(stats, tenant.currency)
    response = HttpResponse(export.workbook_bytes(workbook), content_type=export.XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{export.export_filename(today)}"'
    logger.info('Statistics xlsx export for tenant %s by %s', tenant.slug, request.user.email)
    return response
