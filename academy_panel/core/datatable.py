"""
DataTable - поиск, сортировка и пагинация строк в памяти.

Используется всеми списочными endpoint'ами CRM (ученики, группы, уроки,
платежи...). Движок ничего не знает о моделях: строка - это dict
(или любой объект), колонка описывает, как достать и показать значение.

    table = DataTable(rows, columns, page_size=8)
    table.on_search_change('anna')
    table.on_sort('name')
    view = table.view()

Порядок значений при сортировке:
  - None больше любого значения: в asc пустые в конце, в desc в начале;
  - значения несравнимых типов упорядочены по имени типа, затем по str().
"""
import functools
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

ASC = 'asc'
DESC = 'desc'
DIRECTIONS = (ASC, DESC)

DEFAULT_PAGE_SIZE = 8

EMPTY_TITLE = 'No data found'
EMPTY_HINT_SEARCH = 'Try a different search term'
EMPTY_HINT_NO_DATA = 'No data available'


def resolve_path(row, path):
    """
    Значение по ключу или пути через точку ('group.name').
    Отсутствующий ключ или атрибут даёт None, исключений нет.
    """
    value = row
    for part in path.split('.'):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


@dataclass(frozen=True)
class Column:
    """Описание колонки таблицы."""
    key: str
    label: str = ''
    sortable: bool = False
    render: Optional[Callable[[Any, Any], Any]] = None
    accessor: Optional[Callable[[Any], Any]] = None

    def value(self, row):
        if self.accessor is not None:
            return self.accessor(row)
        return resolve_path(row, self.key)

    def display(self, row):
        value = self.value(row)
        if self.render is not None:
            return self.render(value, row)
        return value

    def as_dict(self):
        return {'key': self.key, 'label': self.label or self.key, 'sortable': self.sortable}


@dataclass(frozen=True)
class SortState:
    key: str
    direction: str = ASC

    def __post_init__(self):
        if self.direction not in DIRECTIONS:
            raise ValueError(f'Unknown sort direction: {self.direction!r}')


def _row_values(row):
    if isinstance(row, dict):
        return row.values()
    return vars(row).values() if hasattr(row, '__dict__') else (row,)


def _as_text(value):
    return '' if value is None else str(value)


def filter_rows(rows, query):
    """
    Строки, в которых хотя бы одно поле содержит query (без учёта регистра).
    Пустой или пробельный query возвращает строки без изменений.
    """
    if query is None or not str(query).strip():
        return list(rows)
    needle = str(query).lower()
    return [
        row for row in rows
        if any(needle in _as_text(value).lower() for value in _row_values(row))
    ]


def compare_values(a, b):
    """Трёхзначное сравнение с явным порядком для None и несравнимых типов."""
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    try:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0
    except TypeError:
        key_a = (type(a).__name__, str(a))
        key_b = (type(b).__name__, str(b))
        return (key_a > key_b) - (key_a < key_b)


def sort_rows(rows, sort_state, columns=None):
    """
    Стабильная сортировка по sort_state.key.

    desc инвертирует сравнение, а не результат, поэтому равные значения
    сохраняют исходный порядок в обоих направлениях.
    """
    rows = list(rows)
    if sort_state is None:
        return rows

    column = None
    for candidate in columns or ():
        if candidate.key == sort_state.key:
            column = candidate
            break
    if column is None:
        column = Column(key=sort_state.key)

    sign = -1 if sort_state.direction == DESC else 1

    def cmp(row_a, row_b):
        return sign * compare_values(column.value(row_a), column.value(row_b))

    return sorted(rows, key=functools.cmp_to_key(cmp))


def paginate(rows, page_size, page_number):
    """Срез [(page-1)*size, page*size). Страница вне диапазона - пустой список."""
    if page_size <= 0:
        raise ValueError('page_size must be positive')
    start = max(0, (page_number - 1) * page_size)
    end = page_number * page_size
    if end <= start:
        return []
    return list(rows)[start:end]


def total_pages(count, page_size):
    return math.ceil(count / page_size) if page_size > 0 else 0


def clamp_page(page, pages):
    return min(max(1, page), max(1, pages))


def toggle_sort(current, key):
    """Повторный клик по той же колонке: asc -> desc; иначе начинаем с asc."""
    if current is not None and current.key == key and current.direction == ASC:
        return SortState(key, DESC)
    return SortState(key, ASC)


@dataclass
class TableView:
    """Снимок таблицы для отображения."""
    rows: List[Any]
    cells: List[Dict[str, Any]]
    columns: List[Column]
    count: int
    page: int
    page_size: int
    total_pages: int
    search: str
    sort: Optional[SortState]
    start: int = 0
    end: int = 0

    @property
    def is_empty(self):
        return not self.rows

    @property
    def showing(self):
        if self.count == 0:
            return ''
        return f'Showing {self.start} to {self.end} of {self.count} entries'

    @property
    def empty_message(self):
        if not self.is_empty:
            return None
        hint = EMPTY_HINT_SEARCH if self.search.strip() else EMPTY_HINT_NO_DATA
        return {'title': EMPTY_TITLE, 'hint': hint}

    def as_dict(self):
        return {
            'count': self.count,
            'page': self.page,
            'page_size': self.page_size,
            'total_pages': self.total_pages,
            'sort': (
                {'key': self.sort.key, 'direction': self.sort.direction}
                if self.sort else None
            ),
            'search': self.search,
            'columns': [column.as_dict() for column in self.columns],
            'results': self.rows,
            'cells': self.cells,
            'showing': self.showing,
            'empty_message': self.empty_message,
        }


@dataclass
class DataTable:
    """
    Состояние таблицы: строки, колонки, поиск, сортировка, страница.
    Входные строки не изменяются.
    """
    rows: Sequence[Any]
    columns: Sequence[Column]
    page_size: int = DEFAULT_PAGE_SIZE
    page: int = 1
    search: str = ''
    sort: Optional[SortState] = None
    _sortable: frozenset = field(init=False, repr=False)

    def __post_init__(self):
        self._sortable = frozenset(c.key for c in self.columns if c.sortable)

    def on_search_change(self, query):
        self.search = query or ''
        self.page = 1

    def on_sort(self, key):
        if key not in self._sortable:
            return
        self.sort = toggle_sort(self.sort, key)

    def on_page_change(self, page):
        self.page = clamp_page(page, self.total_pages())

    def processed_rows(self):
        return sort_rows(filter_rows(self.rows, self.search), self.sort, self.columns)

    def total_pages(self):
        return total_pages(len(filter_rows(self.rows, self.search)), self.page_size)

    def view(self):
        processed = self.processed_rows()
        count = len(processed)
        pages = total_pages(count, self.page_size)
        page_rows = paginate(processed, self.page_size, self.page)
        start = (self.page - 1) * self.page_size
        return TableView(
            rows=page_rows,
            cells=[
                {column.key: column.display(row) for column in self.columns}
                for row in page_rows
            ],
            columns=list(self.columns),
            count=count,
            page=self.page,
            page_size=self.page_size,
            total_pages=pages,
            search=self.search,
            sort=self.sort,
            start=start + 1 if page_rows else 0,
            end=min(start + self.page_size, count) if page_rows else 0,
        )
