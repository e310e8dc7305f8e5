"""
Расчёты выручки по платежам.

Все функции принимают tenant явно и дату "сегодня" параметром, чтобы
дашборды и тесты считали одинаково.
"""
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from django.db.models import Sum
from django.utils import timezone

from .models import Payment

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class MonthComparison:
    """Выручка текущего месяца против прошлого."""
    current: Decimal
    previous: Decimal
    percent: float
    trend: str

    def as_dict(self):
        return {
            'current': self.current,
            'previous': self.previous,
            'percent': self.percent,
            'trend': self.trend,
        }


def month_bounds(day: date):
    """Первый и последний день месяца, в который входит day."""
    first = day.replace(day=1)
    last = day.replace(day=monthrange(day.year, day.month)[1])
    return first, last


def previous_month(day: date) -> date:
    return day.replace(day=1) - timedelta(days=1)


def shift_months(day: date, months: int) -> date:
    """Первое число месяца, отстоящего от day на months (может быть < 0)."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def revenue_between(tenant, start: date, end: date) -> Decimal:
    """Сумма платежей tenant'а с start по end включительно."""
    total = (
        Payment.objects.for_tenant(tenant)
        .filter(date__gte=start, date__lte=end)
        .aggregate(total=Sum('amount'))['total']
    )
    return total or ZERO


def percent_of_previous(current: Decimal, previous: Decimal) -> float:
    """
    Выручка месяца в процентах от прошлого месяца.
    Прошлый месяц без платежей -> 100.
    """
    if not previous:
        return 100.0
    return round(float(current * 100 / previous), 2)


def compare_with_last_month(tenant, today: Optional[date] = None) -> MonthComparison:
    today = today or timezone.localdate()
    current = revenue_between(tenant, *month_bounds(today))
    previous = revenue_between(tenant, *month_bounds(previous_month(today)))
    return MonthComparison(
        current=current,
        previous=previous,
        percent=percent_of_previous(current, previous),
        trend='down' if previous > current else 'up',
    )


def monthly_revenue(tenant, months: int = 6, today: Optional[date] = None) -> List[dict]:
    """
    Выручка по месяцам, от самого старого к текущему.

    [{'month': 'Oct', 'year': 2024, 'start': date, 'revenue': Decimal}, ...]
    """
    today = today or timezone.localdate()
    result = []
    for offset in range(months - 1, -1, -1):
        first = shift_months(today, -offset)
        _, last = month_bounds(first)
        result.append({
            'month': first.strftime('%b'),
            'year': first.year,
            'start': first,
            'revenue': revenue_between(tenant, first, last),
        })
    return result

