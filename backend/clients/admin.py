from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("customer_number", "name", "contact_person", "project_name", "email")
    search_fields = ("customer_number", "name", "project_name")
