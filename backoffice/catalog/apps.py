from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backoffice.catalog'

    def ready(self):
        """Register the category and product services"""
        import backoffice.catalog.services  # noqa: F401
