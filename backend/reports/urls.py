"""
Reports app URL configuration.

Included as ``path('api/', include('reports.urls'))``.

Endpoint summary
----------------
GET/POST   /api/reports/: list / create
GET/PATCH  /api/reports/{id}/: retrieve / edit
POST       /api/reports/{id}/transition/: generic transition
POST       /api/reports/{id}/submit/: submit for QS review
POST       /api/reports/{id}/start-review/: QS starts review
POST       /api/reports/{id}/decision/: QS decision
POST       /api/reports/{id}/archive/: archive
GET        /api/reports/{id}/status-log/: audit trail
GET/POST   /api/reports/{id}/photos/: geotagged photos
GET/POST   /api/reports/{id}/attachments/: documents
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ReportViewSet

app_name = "reports"

router = DefaultRouter()
router.register(r"reports", ReportViewSet, basename="report")

urlpatterns = [
    path("", include(router.urls)),
]
