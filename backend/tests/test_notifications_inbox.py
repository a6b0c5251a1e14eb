"""
Integration tests: notification inbox.

Endpoints under test:
    GET  /api/core/notifications/              core:notification-list
    POST /api/core/notifications/{id}/read/    core:notification-mark-as-read
    POST /api/core/notifications/read-all/     core:notification-mark-all-as-read
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from core.domain.notifications import NotificationService
from core.models import Notification

pytestmark = pytest.mark.django_db


@pytest.fixture()
def inbox(create_user):
    owner = create_user(username="inbox_owner")
    other = create_user(username="inbox_other")
    NotificationService.create(
        actor=other,
        recipients=owner,
        event_type="report_approved",
        payload={"report_id": "abc"},
        link="/reports/abc",
    )
    NotificationService.create(actor=other, recipients=[owner, other], event_type="report_rejected")
    return owner, other


def test_create_uses_event_templates(inbox):
    owner, _ = inbox
    approved = Notification.objects.get(recipient=owner, title="Report Approved")
    assert approved.notification_type == "success"
    assert approved.payload == {"report_id": "abc"}
    assert approved.link == "/reports/abc"


def test_create_with_no_recipients_creates_nothing(create_user):
    actor = create_user(username="lonely")
    assert NotificationService.create(actor=actor, recipients=[], event_type="report_approved") == []
    assert not Notification.objects.exists()


def test_list_only_shows_own_notifications(api_client, inbox):
    owner, _ = inbox
    api_client.force_authenticate(owner)

    resp = api_client.get(reverse("core:notification-list"))

    assert resp.status_code == status.HTTP_200_OK
    assert {n["title"] for n in resp.data} == {"Report Approved", "Report Rejected"}
    assert all(n["is_read"] is False for n in resp.data)


def test_mark_one_and_filter_unread(api_client, inbox):
    owner, _ = inbox
    api_client.force_authenticate(owner)
    target = Notification.objects.get(recipient=owner, title="Report Approved")

    resp = api_client.post(reverse("core:notification-mark-as-read", kwargs={"pk": target.pk}))
    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["is_read"] is True

    resp = api_client.get(reverse("core:notification-list"), {"unread": "true"})
    assert [n["title"] for n in resp.data] == ["Report Rejected"]


def test_cannot_read_someone_elses_notification(api_client, inbox):
    owner, other = inbox
    api_client.force_authenticate(other)
    foreign = Notification.objects.get(recipient=owner, title="Report Approved")

    resp = api_client.post(reverse("core:notification-mark-as-read", kwargs={"pk": foreign.pk}))
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_mark_all_as_read(api_client, inbox):
    owner, other = inbox
    api_client.force_authenticate(owner)

    resp = api_client.post(reverse("core:notification-mark-all-as-read"))

    assert resp.data == {"updated": 2}
    assert not Notification.objects.filter(recipient=owner, is_read=False).exists()
    assert Notification.objects.filter(recipient=other, is_read=False).count() == 1
