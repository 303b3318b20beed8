from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# Swagger/OpenAPI configuration
schema_view = get_schema_view(
    openapi.Info(
        title="Logistics Shipment API",
        default_version='v1',
        description="Shipment lifecycle, tracking and dispatch service",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API Documentation
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),

    path('api/v1/', include([
        path('auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
        path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
        path('users/', include('users.urls')),
        path('', include('shipments.urls')),
    ])),
]
