"""
Root URL configuration.

``/admin/`` serves the Django admin, everything else under the front desk
routes.  The OpenAPI schema is published as JSON and rendered by Swagger UI
and ReDoc.
"""
from django.contrib import admin
from django.urls import include, path, re_path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

api_info = openapi.Info(
    title="Clinic Front Desk API",
    default_version="v1",
    description="Patient registration, coupon numbers, department waiting lists and doctor annotations.",
    contact=openapi.Contact(email="frontdesk@clinic.test"),
)

schema_view = get_schema_view(api_info, public=True, permission_classes=(permissions.AllowAny,))

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("frontdesk.routers")),
    re_path(r"^swagger(?P<format>\.json|\.yaml)$", schema_view.without_ui(cache_timeout=0), name="schema-json"),
    path("swagger/", schema_view.with_ui("swagger", cache_timeout=0), name="schema-swagger-ui"),
    path("redoc/", schema_view.with_ui("redoc", cache_timeout=0), name="schema-redoc"),
]
