from django.apps import AppConfig


class DirectoryConfigApp(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'directory'
    verbose_name = 'ディレクトリ認証'

    def ready(self):
        # 設定不足/不正なら起動を止める (ImproperlyConfigured)
        from .config import DirectoryConfig
        DirectoryConfig.load_or_raise()
