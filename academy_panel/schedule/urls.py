from rest_framework.routers import DefaultRouter

from . import views

app_name = 'schedule'

router = DefaultRouter()
router.register(r'groups', views.GroupViewSet, basename='group')
router.register(r'lessons', views.LessonViewSet, basename='lesson')
router.register(r'attendances', views.AttendanceViewSet, basename='attendance')

urlpatterns = router.urls
