from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

JWT_SECRET_MIN_LENGTH = 32


class AccountsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'accounts'
    verbose_name = 'ログイン / レポート API'

    def ready(self):
        secret = getattr(settings, 'JWT_SECRET', '') or ''
        if len(secret) < JWT_SECRET_MIN_LENGTH:
            raise ImproperlyConfigured(
                f"JWT_SECRET must be at least {JWT_SECRET_MIN_LENGTH} characters"
            )
