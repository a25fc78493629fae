"""
Обработчики сигналов для переводимых моделей.

Обработчики pre_save/post_save подключаются явно для каждой модели
в translatable.translator.register().
"""

import logging

from .conf import translatable_settings
from .services import TranslationSavingService

logger = logging.getLogger(__name__)

saving_service = TranslationSavingService()


def remember_translation(sender, instance, raw=False, **kwargs):
    """Запоминает переводимые значения перед записью основной строки."""
    if raw or not translatable_settings.use_saving_service:
        return
    saving_service.remember_translation_for_model(instance)


def store_translation(sender, instance, created=False, raw=False, **kwargs):
    """Сохраняет запомненный перевод после записи основной строки."""
    if raw or not translatable_settings.use_saving_service:
        return
    saving_service.store_translation_on_model(instance)
    if created:
        logger.debug(f"Stored initial translation of {sender._meta.label} #{instance.pk}")


def flush_pending_translations(sender, **kwargs):
    """Очищает буфер переводов в конце запроса."""
    saving_service.flush()
