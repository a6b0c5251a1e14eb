from django.apps import AppConfig


class ReportsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reports"
    verbose_name = "Site-Inspection Reports"

    def ready(self):
        from .events import report_transitioned
        from .notifications import notify_report_transition

        report_transitioned.connect(
            notify_report_transition,
            dispatch_uid="reports.notify_report_transition",
        )
