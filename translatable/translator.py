"""
Регистрация переводимых моделей.

Пример:
    from translatable.translator import register

    @register
    class Article(TranslatableModel):
        translatable = ['title', 'body']
"""

import logging

from django.core.exceptions import ImproperlyConfigured
from django.db.models.signals import post_save, pre_save

from .models import TranslatableModel, TranslatedAttribute
from .query import TranslationBaseManager
from .signals import remember_translation, store_translation

logger = logging.getLogger(__name__)

_registry = {}

BASE_MANAGER_NAME = '_translated_base_manager'


def register(model):
    """
    Регистрирует переводимую модель.

    Что делает:
    - Проверяет, что модель объявила translatable
    - Добавляет дескрипторы для атрибутов из таблицы переводов
    - Назначает базовый менеджер с соединением переводов
    - Подключает обработчики pre_save/post_save для модели

    Args:
        model: Класс модели, наследующий TranslatableModel

    Returns:
        Тот же класс модели

    Raises:
        ImproperlyConfigured: Если модель не наследует TranslatableModel
        MissingTranslationsException: Если модель не объявила translatable
    """
    if not issubclass(model, TranslatableModel) or model._meta.abstract:
        raise ImproperlyConfigured(
            f'Model "{model.__name__}" must be a concrete subclass of TranslatableModel'
        )

    translated = model.get_translated_columns()
    for name in translated:
        setattr(model, name, TranslatedAttribute(name))

    _install_base_manager(model)

    label = model._meta.label_lower
    pre_save.connect(
        remember_translation, sender=model, dispatch_uid=f'translatable.remember.{label}'
    )
    post_save.connect(
        store_translation, sender=model, dispatch_uid=f'translatable.store.{label}'
    )

    _registry[label] = model
    logger.debug(f"Registered translatable model {model._meta.label}: {', '.join(translated)}")
    return model


def is_registered(model):
    """Проверяет, зарегистрирована ли модель."""
    return _registry.get(model._meta.label_lower) is model


def get_registered_models():
    """Возвращает список зарегистрированных моделей."""
    return list(_registry.values())


def _install_base_manager(model):
    """
    Назначает модели базовый менеджер, присоединяющий перевод.

    Базовый менеджер, выбранный в Meta.base_manager_name, не заменяется.
    """
    options = model._meta
    if options.base_manager_name:
        return

    # Новый менеджер без имени по умолчанию стал бы менеджером по умолчанию
    if not options.default_manager_name:
        options.default_manager_name = options.default_manager.name

    model.add_to_class(BASE_MANAGER_NAME, TranslationBaseManager())
    options.base_manager_name = BASE_MANAGER_NAME
