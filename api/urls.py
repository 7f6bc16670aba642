"""
API URLs for Job Trail
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from jobs.views import JobDispatchViewSet, JobBatchViewSet

# Create router
router = DefaultRouter()
router.register(r'job-dispatches', JobDispatchViewSet, basename='jobdispatch')
router.register(r'job-batches', JobBatchViewSet, basename='jobbatch')

urlpatterns = [
    # JWT Authentication
    path('auth/login/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Audit requests
    path('audit/', include('audit.urls')),

    # API routes
    path('', include(router.urls)),
]
