"""
Сводки для дашбордов и страницы статистики.

- admin_dashboard: карточки главной страницы администратора
- teacher_dashboard: карточки и занятия дня для преподавателя
- collect_statistics: всё для страницы статистики и выгрузки в Excel

Все расчёты в рамках одного tenant'а. "Сегодня" передаётся параметром.
"""
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.utils import timezone

from core.models import Course, Student, StudentSource
from finance.models import Payment
from finance.services import (
    ZERO,
    compare_with_last_month,
    month_bounds,
    monthly_revenue,
    revenue_between,
)
from schedule.calendar_helpers import (
    day_of_week_excluding_sunday,
    lessons_on_weekday,
    resolve_display_date,
)
from schedule.models import Attendance, Group, Lesson

logger = logging.getLogger(__name__)

User = get_user_model()

ATTENDANCE_WINDOW_DAYS = 30
TOP_COURSES = 6
TOP_TEACHERS = 5
STUDENTS_FOR_FULL_LOAD = 50


@dataclass
class DashboardStats:
    total_students: int
    total_teachers: int
    total_groups: int
    total_courses: int
    monthly_revenue: Decimal
    total_revenue: Decimal
    attendance_rate: float
    new_students_this_month: int


@dataclass
class TeacherPerformance:
    name: str
    rating: float
    students: int
    attendance_rate: float
    score: float = field(init=False)

    def __post_init__(self):
        self.score = performance_score(self.rating, self.attendance_rate, self.students)


@dataclass
class Statistics:
    dashboard: DashboardStats
    revenue: List[Dict[str, Any]]
    courses: List[Dict[str, Any]]
    attendance: List[Dict[str, Any]]
    teachers: List[TeacherPerformance]
    sources: List[Dict[str, Any]]
    generated_on: date

    def as_dict(self):
        data = asdict(self)
        data['generated_on'] = self.generated_on.isoformat()
        for row in data['revenue']:
            row['start'] = row['start'].isoformat()
        for row in data['attendance']:
            row['date'] = row['date'].isoformat()
        return data


def performance_score(rating, attendance_rate, students):
    """rating * 0.4 + attendance_rate * 0.3 + min(students / 50, 1) * 0.3"""
    load = min(students / STUDENTS_FOR_FULL_LOAD, 1)
    return round(rating * 0.4 + attendance_rate * 0.3 + load * 0.3, 2)


def percent(part, total, digits=1):
    if not total:
        return 0.0
    return round(part * 100 / total, digits)


def tenant_teachers(tenant):
    return User.objects.filter(
        role='teacher',
        is_active=True,
        tenant_memberships__tenant=tenant,
        tenant_memberships__is_active=True,
    ).distinct()


def _new_students_in_month(tenant, day):
    first, last = month_bounds(day)
    return Student.objects.for_tenant(tenant).filter(
        created_at__date__gte=first, created_at__date__lte=last
    ).count()


def _teacher_lessons(tenant, teacher):
    return Lesson.objects.for_tenant(tenant).filter(
        Q(teacher=teacher) | Q(group__teacher=teacher)
    ).select_related('group').distinct().order_by('start_time')


def _lesson_card(lesson):
    start = timezone.localtime(lesson.start_time)
    end = timezone.localtime(lesson.end_time)
    return {
        'id': lesson.id,
        'group': lesson.group.name,
        'room': lesson.room,
        'start': start.strftime('%H:%M'),
        'end': end.strftime('%H:%M'),
        'status': lesson.status,
    }


# ═══════════════════════════════════════════════════════════════
# DASHBOARDS
# ═══════════════════════════════════════════════════════════════

def admin_dashboard(tenant, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or timezone.localdate()
    display = resolve_display_date(today)

    total_students = Student.objects.for_tenant(tenant).count()
    comparison = compare_with_last_month(tenant, today)
    attendance_today = Attendance.objects.for_tenant(tenant).filter(date=today).count()

    return {
        'total_students': total_students,
        'total_teachers': tenant_teachers(tenant).count(),
        'payments_this_month': comparison.current,
        'payments_last_month': comparison.previous,
        'percent_of_last_month': comparison.percent,
        'trend': comparison.trend,
        'attendance_rate': round(percent(attendance_today, total_students)),
        'new_students_this_month': _new_students_in_month(tenant, today),
        'display_date': display.date.isoformat(),
        'display_date_adjusted': display.adjusted,
    }


def teacher_dashboard(tenant, teacher, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or timezone.localdate()
    display = resolve_display_date(today)
    weekday = day_of_week_excluding_sunday(display.date)

    lessons = lessons_on_weekday(_teacher_lessons(tenant, teacher), weekday)

    first, last = month_bounds(today)
    month_marks = Attendance.objects.for_tenant(tenant).filter(
        Q(teacher=teacher) | Q(lesson__group__teacher=teacher),
        date__gte=first, date__lte=last,
    )
    counts = month_marks.aggregate(
        total=Count('id'),
        present=Count('id', filter=Q(status=Attendance.Status.PRESENT)),
    )

    return {
        'students': Student.objects.for_tenant(tenant).filter(group__teacher=teacher).count(),
        'groups': Group.objects.for_tenant(tenant).filter(teacher=teacher).count(),
        'todays_lessons': [_lesson_card(lesson) for lesson in lessons],
        'attendance_rate': percent(counts['present'], counts['total']),
        'display_date': display.date.isoformat(),
        'display_date_adjusted': display.adjusted,
        'day_of_week': weekday,
    }


# ═══════════════════════════════════════════════════════════════
# STATISTICS
# ═══════════════════════════════════════════════════════════════

def _recent_attendance(tenant, today):
    since = today - timedelta(days=ATTENDANCE_WINDOW_DAYS)
    return Attendance.objects.for_tenant(tenant).filter(date__gte=since, date__lte=today)


def dashboard_stats(tenant, today):
    first, last = month_bounds(today)
    recent = _recent_attendance(tenant, today)
    total_revenue = Payment.objects.for_tenant(tenant).aggregate(total=Sum('amount'))['total']
    return DashboardStats(
        total_students=Student.objects.for_tenant(tenant).count(),
        total_teachers=tenant_teachers(tenant).count(),
        total_groups=Group.objects.for_tenant(tenant).count(),
        total_courses=Course.objects.for_tenant(tenant).count(),
        monthly_revenue=revenue_between(tenant, first, last),
        total_revenue=total_revenue or ZERO,
        attendance_rate=percent(recent.filter(status=Attendance.Status.PRESENT).count(), recent.count()),
        new_students_this_month=_new_students_in_month(tenant, today),
    )


def revenue_by_month(tenant, today, months=6):
    rows = monthly_revenue(tenant, months=months, today=today)
    for row in rows:
        row['students'] = _new_students_in_month(tenant, row['start'])
    return rows


def course_popularity(tenant, limit=TOP_COURSES):
    courses = (
        Course.objects.for_tenant(tenant)
        .annotate(student_count=Count('students', distinct=True))
        .order_by('-student_count', 'name')[:limit]
    )
    result = []
    for course in courses:
        revenue = Payment.objects.for_tenant(tenant).filter(
            group__course=course
        ).aggregate(total=Sum('amount'))['total']
        result.append({
            'name': course.name,
            'students': course.student_count,
            'revenue': revenue or ZERO,
        })
    return result


def attendance_last_days(tenant, today, days=7):
    """Присутствия/отсутствия по дням, от старого дня к сегодняшнему."""
    rows = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        marks = Attendance.objects.for_tenant(tenant).filter(date=day)
        total = marks.count()
        present = marks.filter(status=Attendance.Status.PRESENT).count()
        rows.append({
            'day': day.strftime('%a'),
            'date': day,
            'present': present,
            'absent': total - present,
            'total': total,
            'rate': percent(present, total),
        })
    return rows


def teacher_performance(tenant, today, limit=TOP_TEACHERS):
    recent = _recent_attendance(tenant, today)
    result = []
    for teacher in tenant_teachers(tenant):
        students = Course.students.through.objects.filter(
            course__tenant=tenant, course__teachers=teacher
        ).count()
        marks = recent.filter(teacher=teacher)
        result.append(TeacherPerformance(
            name=teacher.get_full_name(),
            rating=float(teacher.rating or 0),
            students=students,
            attendance_rate=percent(marks.filter(status=Attendance.Status.PRESENT).count(), marks.count()),
        ))
    result.sort(key=lambda item: item.rating, reverse=True)
    return result[:limit]


def source_distribution(tenant):
    total = Student.objects.for_tenant(tenant).count()
    sources = (
        StudentSource.objects.for_tenant(tenant)
        .annotate(student_count=Count('students'))
        .order_by('-student_count', 'name')
    )
    return [
        {
            'name': source.name,
            'students': source.student_count,
            'value': source.student_count,
            'percentage': percent(source.student_count, total),
        }
        for source in sources
    ]


def collect_statistics(tenant, today: Optional[date] = None) -> Statistics:
    today = today or timezone.localdate()
    stats = Statistics(
        dashboard=dashboard_stats(tenant, today),
        revenue=revenue_by_month(tenant, today),
        courses=course_popularity(tenant),
        attendance=attendance_last_days(tenant, today),
        teachers=teacher_performance(tenant, today),
        sources=source_distribution(tenant),
        generated_on=today,
    )
    logger.info('Statistics collected for tenant %s', getattr(tenant, 'slug', None))
    return stats
