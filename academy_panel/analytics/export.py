"""
Выгрузка статистики в Excel (openpyxl) и CSV.

Книга состоит из 7 листов: Dashboard Summary, Revenue Analysis,
Course Analysis, Attendance, Teacher Performance, Student Sources,
Data Summary. Ширина колонки = самая длинная ячейка + 2, но не больше 50.
"""
import csv
import io
from datetime import date
from decimal import Decimal

from django.conf import settings
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from core.formatting import format_money

from .services import Statistics

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
MAX_COLUMN_WIDTH = 50

SHEET_TITLES = (
    'Dashboard Summary',
    'Revenue Analysis',
    'Course Analysis',
    'Attendance',
    'Teacher Performance',
    'Student Sources',
    'Data Summary',
)


class UnknownSection(ValueError):
    """Запрошен неизвестный раздел для CSV."""


def export_filename(day: date) -> str:
    return f'academy_dashboard_{day.isoformat()}.xlsx'


def _number(value):
    if isinstance(value, Decimal):
        return float(value)
    return value


def _average(total, count):
    return total / count if count else 0


def _status(value, target):
    return 'Achieved' if value >= target else 'Below Target'


# ═══════════════════════════════════════════════════════════════
# ROWS PER SHEET
# ═══════════════════════════════════════════════════════════════

def summary_rows(stats: Statistics, currency: str):
    dash = stats.dashboard
    revenue_target = settings.MONTHLY_REVENUE_TARGET
    attendance_target = settings.ATTENDANCE_RATE_TARGET
    students_target = settings.NEW_STUDENTS_TARGET
    return [
        ['Dashboard Summary', '', '', ''],
        ['Generated on:', stats.generated_on.isoformat(), '', ''],
        ['', '', '', ''],
        ['Metric', 'Value', 'Target', 'Status'],
        ['Total Students', dash.total_students, 'N/A', 'Actual'],
        ['Total Teachers', dash.total_teachers, 'N/A', 'Actual'],
        ['Total Groups', dash.total_groups, 'N/A', 'Actual'],
        ['Total Courses', dash.total_courses, 'N/A', 'Actual'],
        ['Monthly Revenue', format_money(dash.monthly_revenue, currency),
         format_money(revenue_target, currency), _status(dash.monthly_revenue, revenue_target)],
        ['Total Revenue', format_money(dash.total_revenue, currency), 'N/A', 'Actual'],
        ['Attendance Rate', f'{dash.attendance_rate}%', f'{attendance_target}%',
         _status(dash.attendance_rate, attendance_target)],
        ['New Students (Month)', dash.new_students_this_month, students_target,
         _status(dash.new_students_this_month, students_target)],
    ]


def revenue_rows(stats: Statistics):
    rows = [
        ['Revenue Analysis by Month', '', '', ''],
        ['Month', 'Revenue', 'New Students', 'Revenue per Student'],
    ]
    for item in stats.revenue:
        revenue = _number(item['revenue'])
        rows.append([item['month'], revenue, item['students'], _average(revenue, item['students'])])
    return rows


def course_rows(stats: Statistics):
    rows = [
        ['Course Popularity & Revenue', '', '', ''],
        ['Course Name', 'Number of Students', 'Total Revenue', 'Average per Student'],
    ]
    for course in stats.courses:
        revenue = _number(course['revenue'])
        rows.append([course['name'], course['students'], revenue, _average(revenue, course['students'])])
    return rows


def attendance_rows(stats: Statistics):
    rows = [
        ['Attendance Analysis', '', '', '', ''],
        ['Day', 'Present', 'Absent', 'Total', 'Attendance Rate'],
    ]
    for day in stats.attendance:
        rows.append([day['day'], day['present'], day['absent'], day['total'], day['rate']])
    return rows


def teacher_rows(stats: Statistics):
    rows = [
        ['Teacher Performance Metrics', '', '', '', ''],
        ['Teacher Name', 'Rating (1-5)', 'Total Students', 'Attendance Rate', 'Performance Score'],
    ]
    for teacher in stats.teachers:
        rows.append([
            teacher.name,
            f'{teacher.rating:.1f}',
            teacher.students,
            f'{teacher.attendance_rate:.1f}%',
            f'{teacher.score:.2f}',
        ])
    return rows


def source_rows(stats: Statistics):
    rows = [
        ['Student Source Distribution', '', '', ''],
        ['Source', 'Number of Students', 'Percentage', 'Value'],
    ]
    for source in stats.sources:
        rows.append([source['name'], source['students'], f"{source['percentage']:.1f}%", source['value']])
    return rows


def data_summary_rows(stats: Statistics):
    def line(label, items, value):
        values = [_number(value(item)) for item in items]
        total = sum(values)
        return [label, len(values), total, _average(total, len(values))]

    return [
        ['Raw Data Summary', '', '', ''],
        ['Data Type', 'Count', 'Total Value', 'Average'],
        line('Courses', stats.courses, lambda c: c['revenue']),
        line('Revenue Months', stats.revenue, lambda r: r['revenue']),
        line('Attendance Days', stats.attendance, lambda a: a['total']),
        line('Teachers', stats.teachers, lambda t: t.students),
        line('Sources', stats.sources, lambda s: s['students']),
    ]


# ═══════════════════════════════════════════════════════════════
# WORKBOOK
# ═══════════════════════════════════════════════════════════════

def autosize_columns(worksheet: Worksheet):
    """Ширина колонки по самой длинной ячейке (+2), не больше 50."""
    widths = {}
    for row in worksheet.iter_rows():
        for cell in row:
            length = len(str(cell.value)) if cell.value is not None else 0
            widths[cell.column] = max(widths.get(cell.column, 0), length)
    for column, width in widths.items():
        worksheet.column_dimensions[get_column_letter(column)].width = min(width + 2, MAX_COLUMN_WIDTH)


def _style_headers(worksheet: Worksheet):
    title_font = Font(bold=True, size=13)
    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid')
    worksheet['A1'].font = title_font
    # Строка с заголовками колонок: вторая, а в сводке четвёртая
    header_row = 4 if worksheet.title == SHEET_TITLES[0] else 2
    for cell in worksheet[header_row]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center', vertical='center')


def _fill_sheet(worksheet: Worksheet, rows):
    for row in rows:
        worksheet.append([_number(value) for value in row])
    _style_headers(worksheet)
    autosize_columns(worksheet)


def build_workbook(stats: Statistics, currency: str) -> Workbook:
    workbook = Workbook()
    sheets = (
        summary_rows(stats, currency),
        revenue_rows(stats),
        course_rows(stats),
        attendance_rows(stats),
        teacher_rows(stats),
        source_rows(stats),
        data_summary_rows(stats),
    )
    first = workbook.active
    first.title = SHEET_TITLES[0]
    _fill_sheet(first, sheets[0])
    for title, rows in zip(SHEET_TITLES[1:], sheets[1:]):
        _fill_sheet(workbook.create_sheet(title), rows)
    return workbook


def workbook_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ═══════════════════════════════════════════════════════════════
# CSV
# ═══════════════════════════════════════════════════════════════

CSV_SECTIONS = {
    'revenue': 'Revenue_Analysis',
    'courses': 'Course_Analysis',
    'attendance': 'Attendance_Report',
    'teachers': 'Teacher_Performance',
    'sources': 'Student_Sources',
}


def csv_records(stats: Statistics, section: str):
    """Заголовки и строки раздела для CSV (одна запись = один объект раздела)."""
    if section == 'revenue':
        header = ['month', 'year', 'revenue', 'students']
        records = stats.revenue
    elif section == 'courses':
        header = ['name', 'students', 'revenue']
        records = stats.courses
    elif section == 'attendance':
        header = ['day', 'date', 'present', 'absent', 'total', 'rate']
        records = stats.attendance
    elif section == 'teachers':
        header = ['name', 'rating', 'students', 'attendance_rate', 'score']
        records = [vars(teacher) for teacher in stats.teachers]
    elif section == 'sources':
        header = ['name', 'students', 'value', 'percentage']
        records = stats.sources
    else:
        raise UnknownSection(section)
    return header, [[record[key] for key in header] for record in records]


def csv_filename(section: str, day: date) -> str:
    return f'{CSV_SECTIONS[section].lower()}_{day.isoformat()}.csv'


def csv_content(stats: Statistics, section: str) -> str:
    header, rows = csv_records(stats, section)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()
