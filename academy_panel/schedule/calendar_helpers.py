"""
Вспомогательные функции для работы с расписанием.

Главное правило: воскресенье не показывается никогда. Любая дата,
выбранная пользователем или взятая как "сегодня", проходит через
resolve_display_date(), и воскресенье превращается в следующий понедельник.
"""
from collections import namedtuple
from datetime import date, datetime, timedelta

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

WEEKDAY_NAMES = (
    'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday',
)
SUNDAY = 6

INVALID_DATE_MESSAGE = 'Invalid date format. Use ISO format (YYYY-MM-DD)'

DisplayDate = namedtuple('DisplayDate', ['date', 'adjusted'])


def _as_date(value):
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f'Expected date or datetime, got {type(value).__name__}')


def parse_iso_date(value):
    """
    'YYYY-MM-DD' или ISO datetime -> date.
    ValueError для пустого или неразборчивого значения.
    """
    if isinstance(value, (date, datetime)):
        return _as_date(value)
    text = (value or '').strip()
    if not text:
        raise ValueError(INVALID_DATE_MESSAGE)
    try:
        parsed = parse_date(text) or parse_datetime(text)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValueError(INVALID_DATE_MESSAGE)
    return _as_date(parsed)


def today():
    return timezone.localdate()


def resolve_display_date(reference=None):
    """
    Дата для отображения расписания.

    Воскресенье -> понедельник (adjusted=True), остальные дни без изменений.
    Без аргумента берётся сегодняшняя дата в текущем часовом поясе.
    """
    day = today() if reference is None else _as_date(reference)
    if day.weekday() == SUNDAY:
        return DisplayDate(day + timedelta(days=1), True)
    return DisplayDate(day, False)


def week_window(anchor):
    """7 дат с понедельника по воскресенье недели, в которую входит anchor."""
    day = _as_date(anchor)
    monday = day - timedelta(days=day.weekday())
    return [monday + timedelta(days=offset) for offset in range(7)]


def shift_day(day, n=1):
    return _as_date(day) + timedelta(days=n)


def shift_week(day, n=1):
    return _as_date(day) + timedelta(weeks=n)


def day_of_week_excluding_sunday(value):
    """Название дня недели ('Monday'..'Saturday'); None для воскресенья и мусора."""
    try:
        day = _as_date(value)
    except TypeError:
        return None
    if day.weekday() == SUNDAY:
        return None
    return WEEKDAY_NAMES[day.weekday()]


def _start_of(entry, field):
    if isinstance(entry, dict):
        return entry.get(field)
    return getattr(entry, field, None)


def _entry_date(value):
    if isinstance(value, (date, datetime)):
        return _as_date(value)
    if isinstance(value, str):
        try:
            return parse_iso_date(value)
        except ValueError:
            return None
    return None


def bucket_by_day(entries, window, start='start_time'):
    """
    Раскладывает записи по дням окна: {'YYYY-MM-DD': [entries...]}.

    День записи - календарная дата её начала (aware datetime сначала
    переводится в текущий часовой пояс). Дни без записей -> [],
    порядок внутри дня - как во входе. Записи вне окна отбрасываются.
    """
    buckets = {day.isoformat(): [] for day in window}
    for entry in entries:
        day = _entry_date(_start_of(entry, start))
        if day is None:
            continue
        key = day.isoformat()
        if key in buckets:
            buckets[key].append(entry)
    return buckets


def lessons_on_weekday(lessons, weekday_name):
    """
    Уроки, у которых в days_of_week есть weekday_name.
    Фильтр в Python: JSON contains не поддерживается в SQLite.
    """
    if weekday_name is None:
        return []
    return [lesson for lesson in lessons if weekday_name in (lesson.days_of_week or [])]
