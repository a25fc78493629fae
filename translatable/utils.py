"""
Вспомогательные функции приложения translatable.
"""

from django.conf import settings
from django.utils.translation import get_language


def get_current_locale():
    """
    Возвращает текущую локаль приложения.

    Если переводы деактивированы, используется LANGUAGE_CODE.

    Returns:
        str: Код локали
    """
    return get_language() or settings.LANGUAGE_CODE
