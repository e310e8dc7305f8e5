from django.apps import AppConfig


class TenantsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tenants'
    verbose_name = 'Академии (Multi-Tenant)'

    def ready(self):
        # Подключаем signals для автоинвалидации кеша middleware
        import tenants.signals  # noqa: F401
