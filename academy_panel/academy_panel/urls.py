"""
URL configuration for academy_panel project.

Все API под /api/. Списки отдаются через DataTable
(?search=&sort=&direction=&page=&page_size=).
"""
from django.contrib import admin
from django.urls import include, path

from .health import health_check, live_check, ready_check

urlpatterns = [
    path('admin/', admin.site.urls),

    # Health checks для мониторинга
    path('api/health/', health_check, name='health'),
    path('api/health/ready/', ready_check, name='health-ready'),
    path('api/health/live/', live_check, name='health-live'),

    path('api/tenant/', include('tenants.urls')),
    path('api/', include('accounts.urls')),
    path('api/', include('core.urls')),
    path('api/', include('schedule.urls')),
    path('api/', include('finance.urls')),
    path('api/', include('analytics.urls')),
]
