from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView, TokenVerifyView

from apps.cores.views import AdminDashboardView, HealthView

urlpatterns = [
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    path("api/health/", HealthView.as_view(), name="health"),
    path("api/admin/stats/", AdminDashboardView.as_view(), name="admin-stats"),

    path("api/", include("apps.users.urls")),
    path("api/", include("apps.projects.urls")),
    path("api/", include("apps.payments.urls")),
    path("api/", include("apps.negotiations.urls")),
    path("api/", include("apps.support.urls")),
    path("api/", include("apps.notifications.urls")),
    path("api/", include("apps.billing.urls")),
    path("admin/", admin.site.urls),

    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/token/verify/", TokenVerifyView.as_view(), name="token_verify"),
]


if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
