"""
Конфигурация приложения translatable.
"""

from django.apps import AppConfig
from django.core.signals import request_finished
from django.utils.translation import gettext_lazy as _


class TranslatableConfig(AppConfig):
    """
    Конфигурация приложения translatable.

    Особенности:
    - Переводы моделей в отдельных таблицах
    - Очистка буфера несохраненных переводов в конце запроса
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'translatable'
    verbose_name = _('Translatable Models')

    def ready(self):
        """Подключает очистку буфера переводов к окончанию запроса."""
        from .signals import flush_pending_translations

        request_finished.connect(
            flush_pending_translations,
            dispatch_uid='translatable.flush_pending_translations',
        )
