from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "carelog.iam"
    verbose_name = "Identity"

    def ready(self) -> None:
        # registers the OpenAPI auth extension
        from carelog.iam import openapi  # noqa: F401
