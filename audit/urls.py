"""
Audit URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from audit import views

app_name = 'audit'

router = DefaultRouter()
router.register(r'requests', views.AuditRequestViewSet, basename='auditrequest')

urlpatterns = [
    path('', include(router.urls)),
]
