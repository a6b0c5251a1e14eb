"""
Clients app models.

A ``Client`` is the customer a site-inspection report is written for.
"""

from django.db import models

from core.models import TimeStampedModel
from core.permissions_constants import ClientsPerms


class Client(TimeStampedModel):
    """Customer record referenced by reports."""

    customer_number = models.CharField(
        max_length=50,
        unique=True,
        verbose_name="Customer Number",
    )
    name = models.CharField(max_length=255, verbose_name="Name")
    email = models.EmailField(blank=True, default="", verbose_name="Email")
    phone = models.CharField(max_length=30, blank=True, default="", verbose_name="Phone")
    address = models.TextField(blank=True, default="", verbose_name="Address")
    contact_person = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Contact Person",
    )
    project_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Project Name",
    )

    class Meta:
        verbose_name = "Client"
        verbose_name_plural = "Clients"
        ordering = ["name"]
        default_permissions = ()
        permissions = [
            (ClientsPerms.VIEW, "Can view clients"),
            (ClientsPerms.CREATE, "Can create clients"),
            (ClientsPerms.EDIT, "Can edit clients"),
            (ClientsPerms.DELETE, "Can delete clients"),
        ]

    def __str__(self):
        return f"{self.customer_number} - {self.name}"
