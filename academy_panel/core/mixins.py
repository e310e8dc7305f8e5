"""
DataTableViewSetMixin - списки CRM через DataTable.

GET /api/<resource>/?search=&sort=&direction=&page=&page_size=

Строки (сериализованный queryset) кешируются в query_cache по
(cache_tag, tenant, пользователь, прочие query-параметры); любое
create/update/destroy сбрасывает тег и зависимые списки (DEPENDENT_CACHE_TAGS).

Использование:
    class StudentViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
        cache_tag = 'students'
        table_columns = (
            Column('name', 'Name', sortable=True),
            Column('phone', 'Phone'),
        )
"""
import logging

from django.conf import settings
from rest_framework.response import Response

from .datatable import ASC, DESC, DataTable, SortState
from .query_cache import QueryCache

logger = logging.getLogger(__name__)

TABLE_PARAMS = ('search', 'sort', 'direction', 'page', 'page_size')

# Списки, в строках которых есть поля сущности-ключа (student_name,
# group_name, teacher_name, счётчики). Запись в ключ сбрасывает и их.
DEPENDENT_CACHE_TAGS = {
    'subjects': ('courses', 'teachers'),
    'courses': ('subjects', 'students', 'groups'),
    'sources': ('students',),
    'students': ('sources', 'courses', 'groups', 'payments', 'attendances'),
    'teachers': ('subjects', 'courses', 'groups', 'lessons', 'attendances'),
    'groups': ('students', 'lessons', 'payments', 'attendances'),
    'lessons': ('attendances',),
    'attendances': ('students',),
    'payments': ('students',),
}


def invalidate_with_dependents(query_cache, tag):
    """Сбросить тег и все списки, которые показывают его поля."""
    tags = (tag,) + DEPENDENT_CACHE_TAGS.get(tag, ())
    for name in tags:
        query_cache.invalidate(name)
    return tags


def _positive_int(raw, default):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def parse_table_params(query_params, columns, default_page_size=None):
    """search/sort/page из query-параметров. Неизвестная колонка сортировки игнорируется."""
    default_page_size = default_page_size or settings.DATATABLE_PAGE_SIZE
    page_size = min(
        _positive_int(query_params.get('page_size'), default_page_size),
        settings.DATATABLE_MAX_PAGE_SIZE,
    )
    sort = None
    sort_key = (query_params.get('sort') or '').strip()
    sortable = {column.key for column in columns if column.sortable}
    if sort_key in sortable:
        direction = (query_params.get('direction') or ASC).lower()
        sort = SortState(sort_key, DESC if direction == DESC else ASC)
    return {
        'search': query_params.get('search', '') or '',
        'sort': sort,
        'page': _positive_int(query_params.get('page'), 1),
        'page_size': page_size,
    }


class DataTableViewSetMixin:
    table_columns = ()
    table_page_size = None
    default_sort = None
    cache_tag = None
    query_cache = QueryCache()

    def get_table_columns(self):
        return self.table_columns

    def get_cache_tag(self):
        return self.cache_tag or self.get_queryset().model._meta.label_lower

    def get_cache_params(self):
        request = self.request
        tenant = getattr(request, 'tenant', None)
        user = request.user
        role = 'admin' if user.is_superuser else getattr(user, 'role', None)
        return {
            'tenant': str(tenant.pk) if tenant is not None else None,
            'role': role,
            # Преподаватель видит только своё, поэтому кеш у каждого свой
            'user': None if role == 'admin' else user.pk,
            'filters': {
                key: request.query_params.getlist(key)
                for key in sorted(request.query_params)
                if key not in TABLE_PARAMS
            },
        }

    def fetch_rows(self):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = self.get_serializer(queryset, many=True)
        return [dict(row) for row in serializer.data]

    def get_rows(self):
        descriptor = (self.get_cache_tag(), self.get_cache_params())
        return self.query_cache.get_or_set(descriptor, self.fetch_rows)

    def build_table(self, rows):
        columns = self.get_table_columns()
        params = parse_table_params(
            self.request.query_params, columns, self.table_page_size
        )
        table = DataTable(rows, columns, page_size=params['page_size'])
        table.on_search_change(params['search'])
        table.sort = params['sort'] or self.default_sort
        table.on_page_change(params['page'])
        return table

    def list(self, request, *args, **kwargs):
        table = self.build_table(self.get_rows())
        return Response(table.view().as_dict())

    def invalidate_cache(self):
        invalidate_with_dependents(self.query_cache, self.get_cache_tag())

    def perform_create(self, serializer):
        instance = super().perform_create(serializer)
        self.invalidate_cache()
        logger.info('%s created: id=%s by %s', self.get_cache_tag(),
                    serializer.instance.pk, self.request.user.email)
        return instance

    def perform_update(self, serializer):
        instance = super().perform_update(serializer)
        self.invalidate_cache()
        logger.info('%s updated: id=%s by %s', self.get_cache_tag(),
                    serializer.instance.pk, self.request.user.email)
        return instance

    def perform_destroy(self, instance):
        pk = instance.pk
        super().perform_destroy(instance)
        self.invalidate_cache()
        logger.info('%s deleted: id=%s by %s', self.get_cache_tag(), pk, self.request.user.email)
