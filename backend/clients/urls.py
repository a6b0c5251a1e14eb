"""
Clients app URL configuration.

Included as ``path('api/', include('clients.urls'))``.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ClientViewSet

app_name = "clients"

router = DefaultRouter()
router.register(r"clients", ClientViewSet, basename="client")

urlpatterns = [
    path("", include(router.urls)),
]
