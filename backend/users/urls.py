"""
Users app URL configuration.

Included in the project-level ``urls.py`` as::

    path('api/users/', include('users.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/login/                     → LoginView
    POST   /auth/token/refresh/             → TokenRefreshView (SimpleJWT)

Current User
    GET    /me/                             → MeView (retrieve)
    PATCH  /me/                             → MeView (partial update)

User Management
    GET    /accounts/                       → UserViewSet.list
    PATCH  /accounts/{id}/assign-role/      → UserViewSet.assign_role
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import LoginView, MeView, UserViewSet

app_name = "users"

router = DefaultRouter()
router.register(r"accounts", UserViewSet, basename="user")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),

    # ── Router-registered viewsets ───────────────────────────────────
    path("", include(router.urls)),
]
