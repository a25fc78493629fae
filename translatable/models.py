"""
Базовая модель для переводимых моделей.

Этот модуль содержит:
1. TranslatedAttribute - дескриптор переводимого атрибута
2. TranslatableModel - абстрактную модель с переводами в отдельной таблице

Пример:
    @register
    class Article(TranslatableModel):
        slug = models.SlugField(unique=True)

        translatable = ['title', 'body']


    class ArticleTranslation(models.Model):
        article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name='translations')
        locale = models.CharField(max_length=10)
        title = models.CharField(max_length=200, null=True)
        body = models.TextField(null=True)
"""

from typing import Any, Dict, List, Optional

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from django.db import models, router, transaction
from django.db.models.signals import post_save, pre_save

from .conf import translatable_settings
from .exceptions import MissingTranslationsException
from .query import TranslatableManager, translated_queryset
from .services import TranslationRepository, TranslationSavingService
from .utils import get_current_locale

translation_repository = TranslationRepository()
saving_service = TranslationSavingService()


class TranslatedAttribute:
    """
    Дескриптор переводимого атрибута, которого нет в основной таблице.

    Значение хранится в __dict__ объекта; не заданный атрибут читается как None.
    """

    def __init__(self, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self.name)


class TranslatableModel(models.Model):
    """
    Абстрактная модель с переводами.

    Атрибуты класса:
    - translatable: список переводимых атрибутов (обязателен)
    - translation_model: модель переводов или 'app_label.ModelName'
    - translation_foreign_key: имя внешнего ключа в модели переводов
    - locale_key_name: имя колонки локали в модели переводов
    - default_prefetch: связи, предзагружаемые в каждом запросе
    - default_counts: связи, для которых считается <связь>_count

    Особенности:
    - Запросы содержат перевод активной локали (LEFT JOIN)
    - При сохранении переводимые значения пишутся в таблицу переводов
    - translate() переключает локаль объекта без повторной загрузки
    """
    translation_model_suffix = 'Translation'
    default_prefetch = ()
    default_counts = ()

    _current_locale = None
    _translation_original = None

    objects = TranslatableManager()

    class Meta:
        abstract = True

    def __init__(self, *args, **kwargs):
        translated = {
            name: kwargs.pop(name)
            for name in self.get_translated_columns()
            if name in kwargs
        }
        super().__init__(*args, **kwargs)
        for name, value in translated.items():
            setattr(self, name, value)

    # Описание переводов

    @classmethod
    def get_translatable(cls) -> List[str]:
        """
        Возвращает список переводимых атрибутов.

        Raises:
            MissingTranslationsException: Если модель не объявила translatable
        """
        translatable = getattr(cls, 'translatable', None)
        if translatable is None:
            raise MissingTranslationsException(
                f'Model "{cls._meta.label}" is missing translations'
            )
        return list(translatable)

    @classmethod
    def get_translated_columns(cls) -> List[str]:
        """
        Возвращает переводимые атрибуты, которых нет в основной таблице.

        В режиме без перехвата сохранения переводимые атрибуты являются
        обычными полями модели и в этот список не попадают.
        """
        fields = {field.name for field in cls._meta.concrete_fields}
        return [name for name in cls.get_translatable() if name not in fields]

    @classmethod
    def get_translation_model(cls):
        """
        Возвращает модель переводов.

        По умолчанию это <ИмяМодели>Translation в том же приложении.
        """
        translation_model = getattr(cls, 'translation_model', None)
        if translation_model is None:
            return apps.get_model(
                cls._meta.app_label, f'{cls.__name__}{cls.translation_model_suffix}'
            )
        if isinstance(translation_model, str):
            return apps.get_model(translation_model)
        return translation_model

    @classmethod
    def get_translation_table(cls) -> str:
        """Возвращает имя таблицы переводов."""
        return cls.get_translation_model()._meta.db_table

    @classmethod
    def get_translation_foreign_key(cls) -> str:
        """Возвращает имя внешнего ключа модели переводов на эту модель."""
        return getattr(cls, 'translation_foreign_key', None) or cls._meta.model_name

    @classmethod
    def get_locale_key_name(cls) -> str:
        """Возвращает имя колонки локали в модели переводов."""
        return getattr(cls, 'locale_key_name', None) or translatable_settings.locale_key_name

    @classmethod
    def get_translation_relation_name(cls) -> str:
        """Возвращает имя обратной связи для запросов (related_query_name)."""
        foreign_key = cls.get_translation_model()._meta.get_field(
            cls.get_translation_foreign_key()
        )
        return foreign_key.related_query_name()

    # Состояние объекта

    def get_translatable_attributes(self) -> Dict[str, Any]:
        """
        Возвращает заданные на объекте значения переводимых атрибутов.

        Returns:
            dict: {атрибут: значение} для атрибутов из таблицы переводов
        """
        return {
            name: self.__dict__[name]
            for name in self.get_translated_columns()
            if name in self.__dict__
        }

    def unset_attribute(self, name: str) -> None:
        """Снимает значение атрибута с объекта."""
        self.__dict__.pop(name, None)

    def is_translation_dirty(self, name: Optional[str] = None) -> bool:
        """
        Проверяет, изменены ли переводимые атрибуты с последнего обновления.

        Args:
            name (str, optional): Проверить только этот атрибут
        """
        original = self._translation_original or {}
        names = [name] if name else self.get_translated_columns()
        return any(self.__dict__.get(key) != original.get(key) for key in names)

    def get_locale(self) -> str:
        """Возвращает активную локаль объекта."""
        return self._current_locale or get_current_locale()

    # Переводы

    def get_translations(self) -> models.QuerySet:
        """Возвращает QuerySet всех строк переводов объекта."""
        return translation_repository.relation_of(self)

    def translation_exists(self, locale: str) -> bool:
        """Проверяет, существует ли перевод для локали."""
        return translation_repository.exists(self, locale)

    def get_translation(self, locale: str) -> Optional[models.Model]:
        """
        Возвращает строку перевода для локали.

        Returns:
            Model | None: Строка перевода или None
        """
        return translation_repository.get(self, locale)

    def store_translation(self, locale: str, attributes: Optional[Dict[str, Any]] = None) -> models.Model:
        """
        Создает или обновляет перевод для локали.

        Args:
            locale (str): Код локали
            attributes (dict): Значения переводимых атрибутов

        Returns:
            Model: Сохраненная строка перевода
        """
        return translation_repository.store(self, locale, attributes or {})

    def store_translations(self, translations: Dict[str, Dict[str, Any]]) -> 'TranslatableModel':
        """
        Сохраняет переводы для нескольких локалей.

        Args:
            translations (dict): {локаль: {атрибут: значение}}

        Returns:
            TranslatableModel: self
        """
        return translation_repository.store_many(self, translations)

    def refresh_translation(self) -> Optional['TranslatableModel']:
        """
        Перечитывает переводимые атрибуты для активной локали.

        Значения читаются тем же запросом с соединением, что и обычные
        запросы модели. Нужен первичный ключ, поэтому для несохраненного
        объекта возвращается None.

        Raises:
            ImproperlyConfigured: Если перехват сохранения отключен, а часть
                переводимых атрибутов хранится только в таблице переводов
        """
        if not translatable_settings.use_saving_service and self.get_translated_columns():
            raise ImproperlyConfigured(
                f'Model "{self._meta.label}" keeps {", ".join(self.get_translated_columns())} '
                f'in its translation table; set TRANSLATABLE["use_saving_service"] = True '
                f'or declare them as model fields'
            )
        if self._state.adding or self.pk is None:
            return None

        attributes = (
            translated_queryset(type(self), self.get_locale(), using=self._state.db)
            .filter(pk=self.pk)
            .values(*self.get_translatable())
            .get()
        )
        for name, value in attributes.items():
            setattr(self, name, value)

        self._translation_original = dict(attributes)
        return self

    def translate(self, locale: str) -> Optional['TranslatableModel']:
        """
        Переключает объект на указанную локаль.

        Returns:
            TranslatableModel | None: self или None для несохраненного объекта
        """
        if self._state.adding or self.pk is None:
            return None

        self._current_locale = locale
        return self.refresh_translation()

    # Жизненный цикл

    def save(self, *args, **kwargs):
        """
        Сохраняет объект.

        Переводимые атрибуты из update_fields сохраняются в таблицу переводов,
        остальные переводимые значения объекта при этом не записываются.
        """
        update_fields = kwargs.get('update_fields')
        if update_fields is None or not translatable_settings.use_saving_service:
            self._save_primary(*args, **kwargs)
            return

        translated = set(self.get_translated_columns())
        named = [name for name in update_fields if name in translated]
        kwargs['update_fields'] = [name for name in update_fields if name not in translated]

        self.__dict__[saving_service.update_fields_attribute] = frozenset(named)
        try:
            if named and not kwargs['update_fields']:
                self._save_translation_only(named, using=kwargs.get('using'))
            else:
                self._save_primary(*args, **kwargs)
        finally:
            self.__dict__.pop(saving_service.update_fields_attribute, None)

    def _save_primary(self, *args, **kwargs):
        try:
            super().save(*args, **kwargs)
        except Exception:
            saving_service.forget_translation_for_model(self)
            raise

    def _save_translation_only(self, named, using=None):
        """
        Сохраняет только переводимые атрибуты, основная строка не пишется.

        Django пропускает сохранение с пустым update_fields вместе с сигналами,
        поэтому pre_save/post_save отправляются здесь так же, как их
        отправляет Model.save_base().
        """
        if self._state.adding or self.pk is None:
            raise ValueError('Cannot force an update in save() with no primary key.')

        origin = self.__class__
        using = using or router.db_for_write(origin, instance=self)
        update_fields = frozenset(named)

        with transaction.mark_for_rollback_on_error(using=using):
            try:
                pre_save.send(
                    sender=origin, instance=self, raw=False, using=using,
                    update_fields=update_fields,
                )
                post_save.send(
                    sender=origin, instance=self, created=False, update_fields=update_fields,
                    raw=False, using=using,
                )
            except Exception:
                saving_service.forget_translation_for_model(self)
                raise

    def refresh_from_db(self, using=None, fields=None, **kwargs):
        translated = set(self.get_translated_columns())

        if fields is None:
            super().refresh_from_db(using=using, fields=fields, **kwargs)
            if translated:
                self.refresh_translation()
            return

        fields = list(fields)
        model_fields = [name for name in fields if name not in translated]
        if model_fields:
            super().refresh_from_db(using=using, fields=model_fields, **kwargs)
        if len(model_fields) != len(fields):
            self.refresh_translation()
