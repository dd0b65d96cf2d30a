from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backoffice.orders'

    def ready(self):
        import backoffice.orders.services  # noqa: F401
