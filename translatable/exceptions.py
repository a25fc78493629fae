"""
Исключения приложения translatable.
"""

from django.core.exceptions import ImproperlyConfigured


class TranslatableError(Exception):
    """Базовое исключение приложения."""


class MissingTranslationsException(TranslatableError, ImproperlyConfigured):
    """
    Модель не объявила список переводимых атрибутов.

    Пустой список по умолчанию не подставляется: иначе переводимые
    значения незаметно писались бы в основную таблицу.
    """


class UnrememberedTranslationError(TranslatableError, RuntimeError):
    """
    Запрошен буфер перевода, который не был запомнен.

    Ошибка программиста: remember/store всегда идут парой в рамках
    одного цикла сохранения.
    """
