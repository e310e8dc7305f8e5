"""
Finance API views.

Endpoints:
- /api/payments/ - платежи учеников (таблица + CRUD, только администратор)
- /api/payments/summary/ - выручка месяца против прошлого и по месяцам
"""
import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsAdminRole
from core.datatable import Column, SortState
from core.formatting import format_date, format_money
from core.mixins import DataTableViewSetMixin
from tenants.mixins import TenantViewSetMixin

from .models import Payment
from .serializers import PaymentSerializer
from .services import compare_with_last_month, monthly_revenue

logger = logging.getLogger(__name__)


class PaymentViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    """
    Платежи. Фильтры: ?student=&group=
    """
    queryset = Payment.objects.select_related('student', 'group')
    serializer_class = PaymentSerializer
    permission_classes = [IsAdminRole]
    cache_tag = 'payments'
    default_sort = SortState('date', 'desc')
    table_columns = (
        Column('student_name', 'Student', sortable=True),
        Column('amount', 'Amount', sortable=True),
        Column('group_name', 'Group', sortable=True),
        Column('date', 'Date', sortable=True, render=lambda value, row: format_date(value)),
        Column('description', 'Description'),
    )

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        if params.get('student'):
            qs = qs.filter(student_id=params['student'])
        if params.get('group'):
            qs = qs.filter(group_id=params['group'])
        return qs

    @action(detail=False, methods=['get'])
    def summary(self, request):
        tenant = request.tenant
        comparison = compare_with_last_month(tenant)
        currency = tenant.currency if tenant is not None else ''
        return Response({
            **comparison.as_dict(),
            'current_display': format_money(comparison.current, currency),
            'months': [
                {**row, 'start': row['start'].isoformat()}
                for row in monthly_revenue(tenant)
            ],
        })
