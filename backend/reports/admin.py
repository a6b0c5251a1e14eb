from django.contrib import admin

from .models import Attachment, GeotaggedPhoto, Report, ReportStatusLog


class ReportStatusLogInline(admin.TabularInline):
    model = ReportStatusLog
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "to_status", "changed_by", "message", "created_at")


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "client", "status", "created_by", "created_at")
    list_filter = ("status",)
    search_fields = ("title", "site_address", "client__name")
    # Status moves only through the workflow service.
    readonly_fields = ("status", "created_by", "last_modified_by", "last_modified_at", "created_at", "updated_at")
    inlines = [ReportStatusLogInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(GeotaggedPhoto)
class GeotaggedPhotoAdmin(admin.ModelAdmin):
    list_display = ("id", "report", "latitude", "longitude", "accuracy", "uploaded_at")
    readonly_fields = ("latitude", "longitude", "altitude", "accuracy", "captured_at")


@admin.register(Attachment)
class AttachmentAdmin(admin.ModelAdmin):
    list_display = ("file_name", "report", "file_type", "file_size", "uploaded_at")
