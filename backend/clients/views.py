"""
Clients app views: **Thin Views**.

Every operation delegates to ``ClientService``, which enforces the
``clients.*`` permission tokens.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view

from .serializers import ClientSerializer
from .services import ClientService


@extend_schema_view(
    list=extend_schema(
        summary="List clients",
        parameters=[OpenApiParameter(name="search", type=str, required=False)],
        tags=["Clients"],
    ),
    create=extend_schema(summary="Create client", request=ClientSerializer, tags=["Clients"]),
    retrieve=extend_schema(summary="Retrieve client", tags=["Clients"]),
    partial_update=extend_schema(summary="Update client", request=ClientSerializer, tags=["Clients"]),
    destroy=extend_schema(summary="Delete client", tags=["Clients"]),
)
class ClientViewSet(viewsets.ViewSet):
    """
    GET    /api/clients/        → list      (``clients.view``)
    POST   /api/clients/        → create    (``clients.create``)
    GET    /api/clients/{id}/   → retrieve  (``clients.view``)
    PATCH  /api/clients/{id}/   → update    (``clients.edit``)
    DELETE /api/clients/{id}/   → delete    (``clients.delete``)
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ClientSerializer

    def list(self, request: Request) -> Response:
        clients = ClientService.list_clients(
            request.user,
            search=request.query_params.get("search"),
        )
        return Response(ClientSerializer(clients, many=True).data)

    def create(self, request: Request) -> Response:
        serializer = ClientSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client = ClientService.create_client(serializer.validated_data, request.user)
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str = None) -> Response:
        client = ClientService.get_client(pk, request.user)
        return Response(ClientSerializer(client).data)

    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = ClientSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        client = ClientService.update_client(pk, serializer.validated_data, request.user)
        return Response(ClientSerializer(client).data)

    def destroy(self, request: Request, pk: str = None) -> Response:
        ClientService.delete_client(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
