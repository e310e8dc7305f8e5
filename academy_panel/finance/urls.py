"""
Finance app URL configuration.
"""
from rest_framework.routers import DefaultRouter

from . import views

app_name = 'finance'

router = DefaultRouter()
router.register('payments', views.PaymentViewSet, basename='payment')

urlpatterns = router.urls
