from django.apps import AppConfig
from django.db.backends.signals import connection_created


def _setup_sqlite_pragmas(sender, connection, **kwargs):
    if connection.vendor == 'sqlite':
        cursor = connection.cursor()
        cursor.execute('PRAGMA journal_mode=WAL;')
        cursor.execute('PRAGMA busy_timeout=15000;')


class AdsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'ads'
    verbose_name = 'DeTransport Ads'

    def ready(self):
        from ads.services.sessions import SessionStore

        connection_created.connect(_setup_sqlite_pragmas)
        # In-flight dialogues for this process (webhook request threads and polling lanes share it)
        self.session_store = SessionStore()
