"""
Форматирование дат для отображения.

Любое значение, которое не удалось разобрать, выводится как "Invalid date";
функции никогда не бросают исключения.
"""
import datetime as dt
from decimal import Decimal, InvalidOperation

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

INVALID_DATE = 'Invalid date'

DATE_FORMAT = '%b %d, %Y'
DATETIME_FORMAT = '%b %d, %Y %H:%M'
TIME_FORMAT = '%H:%M'


def coerce_datetime(value):
    """datetime / date / ISO-строка -> datetime (локальное время), иначе None."""
    if isinstance(value, dt.datetime):
        result = value
    elif isinstance(value, dt.date):
        result = dt.datetime.combine(value, dt.time.min)
    elif isinstance(value, str):
        text = value.strip()
        try:
            result = parse_datetime(text)
            if result is None:
                parsed = parse_date(text)
                result = dt.datetime.combine(parsed, dt.time.min) if parsed else None
        except ValueError:
            # Формат верный, но значения вне диапазона (2024-02-31)
            return None
    else:
        return None

    if result is not None and timezone.is_aware(result):
        result = timezone.localtime(result)
    return result


def coerce_date(value):
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return value
    parsed = coerce_datetime(value)
    return parsed.date() if parsed else None


def format_date(value, fmt=DATE_FORMAT):
    parsed = coerce_date(value)
    return parsed.strftime(fmt) if parsed else INVALID_DATE


def format_datetime(value, fmt=DATETIME_FORMAT):
    parsed = coerce_datetime(value)
    return parsed.strftime(fmt) if parsed else INVALID_DATE


def format_time(value, fmt=TIME_FORMAT):
    if isinstance(value, dt.time):
        return value.strftime(fmt)
    parsed = coerce_datetime(value)
    return parsed.strftime(fmt) if parsed else INVALID_DATE


def format_money(amount, currency='USD'):
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return str(amount)
    return f'{value:,.2f} {currency}'
