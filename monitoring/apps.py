import time

from django.apps import AppConfig


class MonitoringConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'monitoring'
    verbose_name = 'ディレクトリ監視'

    # /health/ の uptime_seconds 起点
    started_at = time.monotonic()
