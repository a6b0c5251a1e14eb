"""
Clients app services.

CRUD on ``Client`` records, each operation gated by its
``clients.*`` token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q, QuerySet

from core.domain.access import require_permission
from core.domain.exceptions import Conflict, NotFound
from core.permissions_constants import ClientsPerms, token_for

from .models import Client

if TYPE_CHECKING:
    from users.models import User

logger = logging.getLogger(__name__)


class ClientService:

    @staticmethod
    def list_clients(requesting_user: User, *, search: str | None = None) -> QuerySet[Client]:
        require_permission(requesting_user, token_for("clients", ClientsPerms.VIEW))
        qs = Client.objects.all()
        if search:
            qs = qs.filter(
                Q(name__icontains=search)
                | Q(customer_number__icontains=search)
                | Q(project_name__icontains=search)
            )
        return qs

    @staticmethod
    def get_client(client_id: int, requesting_user: User) -> Client:
        require_permission(requesting_user, token_for("clients", ClientsPerms.VIEW))
        try:
            return Client.objects.get(pk=client_id)
        except (Client.DoesNotExist, ValueError):
            raise NotFound(f"Client with id {client_id} not found.")

    @staticmethod
    def create_client(validated_data: dict[str, Any], requesting_user: User) -> Client:
        require_permission(requesting_user, token_for("clients", ClientsPerms.CREATE))
        try:
            with transaction.atomic():
                client = Client.objects.create(**validated_data)
        except IntegrityError:
            raise Conflict(
                f"A client with customer number '{validated_data.get('customer_number')}' already exists."
            )
        logger.info("Client %s created by %s", client.customer_number, requesting_user)
        return client

    @staticmethod
    def update_client(client_id: int, validated_data: dict[str, Any], requesting_user: User) -> Client:
        require_permission(requesting_user, token_for("clients", ClientsPerms.EDIT))
        client = ClientService.get_client(client_id, requesting_user)
        for field, value in validated_data.items():
            setattr(client, field, value)
        try:
            with transaction.atomic():
                client.save()
        except IntegrityError:
            raise Conflict("Another client already uses that customer number.")
        return client

    @staticmethod
    def delete_client(client_id: int, requesting_user: User) -> None:
        """
        Delete a client that no report refers to.

        Raises ``Conflict`` while reports still reference it.
        """
        require_permission(requesting_user, token_for("clients", ClientsPerms.DELETE))
        client = ClientService.get_client(client_id, requesting_user)
        try:
            client.delete()
        except ProtectedError:
            raise Conflict("Client is referenced by existing reports and cannot be deleted.")
        logger.info("Client %s deleted by %s", client.customer_number, requesting_user)
