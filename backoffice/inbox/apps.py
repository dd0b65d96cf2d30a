from django.apps import AppConfig


class InboxConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backoffice.inbox'
    verbose_name = 'Customer messages'

    def ready(self):
        import backoffice.inbox.services  # noqa: F401
