"""
Сервисы для работы с переводами моделей.

Этот модуль содержит сервисы для:
1. Чтения и сохранения строк переводов (TranslationRepository)
2. Перехвата сохранения основной модели (TranslationSavingService)
"""

import itertools
import logging
from typing import Any, Dict, Hashable, Optional

from django.db import models

from .exceptions import UnrememberedTranslationError

logger = logging.getLogger(__name__)


class TranslationRepository:
    """
    Операции со строками переводов одного объекта.

    Особенности:
    - Одна строка перевода на пару (объект, локаль)
    - store() работает как upsert: сначала чтение, затем запись
    - Запись не атомарна: уникальный индекс (fk, locale) должен быть в БД
    """

    def relation_of(self, instance: models.Model) -> models.QuerySet:
        """
        Возвращает QuerySet строк переводов объекта.

        Args:
            instance: Объект переводимой модели

        Returns:
            QuerySet: Строки переводов, связанные по внешнему ключу
        """
        translation_model = instance.get_translation_model()
        return translation_model._default_manager.filter(
            **{instance.get_translation_foreign_key(): instance}
        )

    def exists(self, instance: models.Model, locale: str) -> bool:
        """Проверяет, существует ли перевод для локали."""
        return self._for_locale(instance, locale).exists()

    def get(self, instance: models.Model, locale: str) -> Optional[models.Model]:
        """
        Возвращает перевод для локали.

        Returns:
            Model | None: Строка перевода или None, если перевода еще нет
        """
        return self._for_locale(instance, locale).first()

    def store(self, instance: models.Model, locale: str, attributes: Dict[str, Any]) -> models.Model:
        """
        Сохраняет перевод для локали.

        Если строка для локали существует, обновляются только переданные
        атрибуты. Иначе создается новая строка с локалью и внешним ключом.

        Args:
            instance: Объект переводимой модели
            locale: Код локали
            attributes: Значения переводимых атрибутов

        Returns:
            Model: Сохраненная строка перевода
        """
        translation = self.get(instance, locale)

        if translation is not None:
            for name, value in attributes.items():
                self._set_attribute(translation, name, value)
            if attributes:
                translation.save(update_fields=list(attributes))
            logger.debug(
                f"Updated '{locale}' translation of {instance._meta.label} #{instance.pk}"
            )
            return translation

        translation = instance.get_translation_model()()
        for name, value in attributes.items():
            self._set_attribute(translation, name, value)
        setattr(translation, instance.get_locale_key_name(), locale)
        setattr(translation, instance.get_translation_foreign_key(), instance)
        translation.save()

        logger.info(
            f"Created '{locale}' translation of {instance._meta.label} #{instance.pk}"
        )
        return translation

    def store_many(self, instance: models.Model, translations: Dict[str, Dict[str, Any]]) -> models.Model:
        """
        Сохраняет переводы для нескольких локалей в порядке ключей словаря.

        Args:
            instance: Объект переводимой модели
            translations: {локаль: {атрибут: значение}}

        Returns:
            Model: Тот же объект для цепочки вызовов
        """
        for locale, attributes in translations.items():
            self.store(instance, locale, attributes)
        return instance

    def _for_locale(self, instance, locale):
        return self.relation_of(instance).filter(
            **{instance.get_locale_key_name(): locale}
        )

    @staticmethod
    def _set_attribute(translation, name, value):
        # FieldDoesNotExist для неизвестных атрибутов
        translation._meta.get_field(name)
        setattr(translation, name, value)


class TranslationSavingService:
    """
    Синглтон-сервис буферизации переводов на время сохранения модели.

    Перед записью основной строки переводимые значения снимаются с объекта
    и запоминаются под токеном этого цикла сохранения. После записи
    значения извлекаются из буфера и сохраняются как строка перевода
    для активной локали объекта.

    Токен выдается из монотонного счетчика и хранится на самом объекте,
    поэтому два разных объекта (в том числе еще без первичного ключа)
    никогда не делят запись буфера.

    Если сохранение ограничено update_fields, в буфер попадают только
    названные переводимые атрибуты.
    """

    _instance = None
    _token_attribute = '_translation_token'
    update_fields_attribute = '_translation_update_fields'

    def __new__(cls):
        """Реализация паттерна синглтон."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Инициализация сервиса."""
        if not hasattr(self, '_initialized'):
            self._initialized = True
            self._translations = {}
            self._tokens = itertools.count(1)
            self.repository = TranslationRepository()

    def remember_translation_for_model(self, instance: models.Model) -> None:
        """
        Запоминает переводимые значения объекта и снимает их с объекта.

        Args:
            instance: Объект переводимой модели перед записью
        """
        attributes = instance.get_translatable_attributes()
        named = self._named_update_fields(instance)
        if named is not None:
            attributes = {name: value for name, value in attributes.items() if name in named}

        key = next(self._tokens)
        setattr(instance, self._token_attribute, key)

        self.remember_translation(key, attributes)

        for name in attributes:
            instance.unset_attribute(name)

    def store_translation_on_model(self, instance: models.Model) -> None:
        """
        Сохраняет запомненный перевод объекта для его активной локали.

        Строка перевода для активной локали создается даже без значений.
        Таблицу переводов не трогает сохранение с update_fields без
        переводимых атрибутов, а также сохранение модели, у которой все
        переводимые атрибуты хранятся в основной таблице.

        После сохранения объект перечитывает переводимые атрибуты.
        При ошибке записи значения возвращаются на объект.

        Args:
            instance: Объект переводимой модели после записи

        Raises:
            UnrememberedTranslationError: Если перевод не был запомнен
        """
        key = vars(instance).pop(self._token_attribute, None)
        attributes = self.pull_remembered_translation(key)

        full_save = self._named_update_fields(instance) is None
        if attributes or (full_save and instance.get_translated_columns()):
            try:
                self.repository.store(instance, instance.get_locale(), attributes)
            except Exception:
                self._restore(instance, attributes)
                raise

        instance.refresh_translation()

    def forget_translation_for_model(self, instance: models.Model) -> None:
        """
        Отбрасывает запомненный перевод после неудачной записи.

        Запомненные значения возвращаются на объект.
        """
        key = vars(instance).pop(self._token_attribute, None)
        if key is None:
            return

        attributes = self._translations.pop(key, None)
        if attributes:
            self._restore(instance, attributes)
        logger.debug(f"Forgot remembered translation of {instance._meta.label}")

    def remember_translation(self, key: Hashable, attributes: Dict[str, Any]) -> 'TranslationSavingService':
        """Запоминает значения под ключом."""
        self._translations[key] = dict(attributes)
        return self

    def pull_remembered_translation(self, key: Hashable) -> Dict[str, Any]:
        """
        Извлекает и удаляет значения, запомненные под ключом.

        Raises:
            UnrememberedTranslationError: Если под ключом ничего не запомнено
        """
        try:
            return self._translations.pop(key)
        except KeyError:
            raise UnrememberedTranslationError(
                f"No translation was remembered under key {key!r}"
            ) from None

    def pending_count(self) -> int:
        """Количество запомненных, но еще не сохраненных переводов."""
        return len(self._translations)

    def flush(self) -> int:
        """
        Очищает буфер.

        Непустой буфер в конце запроса означает незавершенный цикл
        сохранения, поэтому такие записи логируются.

        Returns:
            int: Количество отброшенных записей
        """
        leftover = len(self._translations)
        if leftover:
            logger.warning(
                f"Discarding {leftover} remembered translation(s) without a completed save"
            )
        self._translations.clear()
        return leftover

    def _named_update_fields(self, instance):
        # None для сохранения без update_fields
        return vars(instance).get(self.update_fields_attribute)

    @staticmethod
    def _restore(instance, attributes):
        for name, value in attributes.items():
            setattr(instance, name, value)
