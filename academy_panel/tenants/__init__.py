"""
Tenants app - мультитенантность учебных центров.

Каждая академия (Tenant) = отдельный набор данных на одном движке.
Разделение через subdomain: riverside.academy-panel.app → Tenant(slug='riverside')

Модель данных:
    Tenant ← N TenantMembership (кто работает в этой академии)
    Tenant ← FK из Subject, Course, Student, Group, Lesson, Payment ...
"""
