from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'accounts'

router = DefaultRouter()
router.register(r'teachers', views.TeacherViewSet, basename='teacher')

urlpatterns = [
    path('me/', views.MeView.as_view(), name='me'),
    path('', include(router.urls)),
]
