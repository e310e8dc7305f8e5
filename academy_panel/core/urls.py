from rest_framework.routers import DefaultRouter

from . import views

app_name = 'core'

router = DefaultRouter()
router.register(r'subjects', views.SubjectViewSet, basename='subject')
router.register(r'courses', views.CourseViewSet, basename='course')
router.register(r'sources', views.StudentSourceViewSet, basename='source')
router.register(r'students', views.StudentViewSet, basename='student')

urlpatterns = router.urls
