"""
Integration tests: client records.

Endpoints under test:
    GET/POST          /api/clients/        clients:client-list
    GET/PATCH/DELETE  /api/clients/{id}/   clients:client-detail
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from clients.models import Client
from reports.services import ReportCreationService

pytestmark = pytest.mark.django_db

ALL_CLIENT_TOKENS = ["clients.view", "clients.create", "clients.edit", "clients.delete"]


@pytest.fixture()
def office(create_user):
    return create_user(username="office", permissions=ALL_CLIENT_TOKENS + ["reports.create"])


@pytest.fixture()
def acme():
    return Client.objects.create(customer_number="C-0001", name="Acme Construction", project_name="Dock 7")


def test_create_and_retrieve(api_client, office):
    api_client.force_authenticate(office)
    resp = api_client.post(
        reverse("clients:client-list"),
        {"customer_number": "C-0100", "name": "Brightside Homes", "email": "ops@brightside.test"},
        format="json",
    )
    assert resp.status_code == status.HTTP_201_CREATED

    detail = api_client.get(reverse("clients:client-detail", kwargs={"pk": resp.data["id"]}))
    assert detail.data["name"] == "Brightside Homes"


def test_duplicate_customer_number_is_a_conflict(api_client, office, acme):
    api_client.force_authenticate(office)
    resp = api_client.post(
        reverse("clients:client-list"),
        {"customer_number": "C-0001", "name": "Acme Again"},
        format="json",
    )
    assert resp.status_code == status.HTTP_409_CONFLICT


def test_search(api_client, office, acme):
    Client.objects.create(customer_number="C-0002", name="Other Ltd")
    api_client.force_authenticate(office)

    resp = api_client.get(reverse("clients:client-list"), {"search": "dock"})
    assert [c["customer_number"] for c in resp.data] == ["C-0001"]


def test_viewing_needs_a_token(api_client, create_user, acme):
    api_client.force_authenticate(create_user(username="stranger"))
    assert api_client.get(reverse("clients:client-list")).status_code == status.HTTP_403_FORBIDDEN


def test_update(api_client, office, acme):
    api_client.force_authenticate(office)
    resp = api_client.patch(
        reverse("clients:client-detail", kwargs={"pk": acme.pk}),
        {"contact_person": "J. Mensah"},
        format="json",
    )
    assert resp.status_code == status.HTTP_200_OK
    acme.refresh_from_db()
    assert acme.contact_person == "J. Mensah"


def test_referenced_client_cannot_be_deleted(api_client, office, acme):
    ReportCreationService.create_report({"title": "Dock survey", "client_id": acme.pk}, office)
    api_client.force_authenticate(office)

    resp = api_client.delete(reverse("clients:client-detail", kwargs={"pk": acme.pk}))
    assert resp.status_code == status.HTTP_409_CONFLICT
    assert Client.objects.filter(pk=acme.pk).exists()


def test_unreferenced_client_is_deleted(api_client, office, acme):
    api_client.force_authenticate(office)
    resp = api_client.delete(reverse("clients:client-detail", kwargs={"pk": acme.pk}))
    assert resp.status_code == status.HTTP_204_NO_CONTENT
    assert not Client.objects.exists()
