from django.urls import path
from . import views

urlpatterns = [
    path('config/', views.TenantConfigView.as_view(), name='tenant-config'),
    path('detail/', views.TenantDetailView.as_view(), name='tenant-detail'),
    path('members/', views.TenantMembersView.as_view(), name='tenant-members'),
]
