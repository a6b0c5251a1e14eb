"""
Clients app serializers.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import Client


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = [
            "id",
            "customer_number",
            "name",
            "email",
            "phone",
            "address",
            "contact_person",
            "project_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        # Uniqueness is reported by the service as a 409.
        extra_kwargs = {"customer_number": {"validators": []}}
