"""
Настройки приложения translatable.

Значения читаются из словаря settings.TRANSLATABLE при каждом обращении,
поэтому override_settings в тестах работает без перезагрузки модулей.
Значения по умолчанию можно задать через переменные окружения.
"""

from decouple import config
from django.conf import settings


DEFAULTS = {
    # Перехват сохранения: переводимые атрибуты уходят в таблицу переводов
    'use_saving_service': config('TRANSLATABLE_USE_SAVING_SERVICE', default=True, cast=bool),
    # Имя колонки с кодом локали в таблице переводов
    'locale_key_name': config('TRANSLATABLE_LOCALE_KEY_NAME', default='locale'),
}


class TranslatableSettings:
    """
    Доступ к настройкам приложения.

    Пример:
        TRANSLATABLE = {
            'use_saving_service': True,
            'locale_key_name': 'locale',
        }
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid translatable setting: '{name}'")
        user_settings = getattr(settings, 'TRANSLATABLE', None) or {}
        return user_settings.get(name, DEFAULTS[name])


translatable_settings = TranslatableSettings()
