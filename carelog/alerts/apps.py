from django.apps import AppConfig


class AlertsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "carelog.alerts"
    verbose_name = "Audit notifications"
