"""
Чтение переводимых моделей.

Этот модуль содержит:
1. TranslationJoin - построение LEFT JOIN таблицы переводов по локали
2. TranslatableQuerySet - QuerySet, который помнит локаль соединения
3. TranslatableManager - менеджер, всегда присоединяющий перевод
4. TranslationBaseManager - базовый менеджер для загрузки по связям

Соединение является структурной частью запроса, а не отключаемым фильтром:
даже unscoped() и загрузка по внешнему ключу присоединяют таблицу переводов.
"""

import copy

from django.db import models
from django.db.models import Count, F, FilteredRelation, Q
from django.db.models.query import ModelIterable

from .conf import translatable_settings
from .utils import get_current_locale


class TranslationJoin:
    """
    Строит соединение с таблицей переводов для модели.

    Эквивалент SQL:
        LEFT OUTER JOIN <translation_table> current_translation
            ON current_translation.<fk> = <table>.<pk>
           AND current_translation.<locale_key> = %s

    Каждый переводимый атрибут аннотируется значением из этой строки.
    Если перевода для локали нет, атрибуты равны None.
    """
    alias = 'current_translation'

    def __init__(self, model):
        self.model = model

    def condition(self, locale):
        relation = self.model.get_translation_relation_name()
        locale_key = self.model.get_locale_key_name()
        return Q(**{f'{relation}__{locale_key}': locale})

    def apply(self, queryset, locale):
        """
        Присоединяет перевод для локали к QuerySet.

        Args:
            queryset: QuerySet переводимой модели
            locale (str): Код локали

        Returns:
            QuerySet: QuerySet с аннотациями переводимых атрибутов
        """
        columns = self.model.get_translated_columns()
        if not columns:
            return queryset

        relation = self.model.get_translation_relation_name()
        queryset = queryset.annotate(**{
            self.alias: FilteredRelation(relation, condition=self.condition(locale)),
        })
        return queryset.annotate(**{
            name: F(f'{self.alias}__{name}') for name in columns
        })


class TranslatedModelIterable(ModelIterable):
    """Проставляет объектам локаль, для которой они были загружены."""

    def __iter__(self):
        locale = self.queryset.translation_locale
        for obj in super().__iter__():
            obj._current_locale = locale
            yield obj


class TranslatableQuerySet(models.QuerySet):
    """
    QuerySet переводимой модели.

    Помнит, присоединен ли перевод и для какой явно заданной локали.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.translation_locale = None
        self.translation_joined = False

    def _clone(self):
        clone = super()._clone()
        clone.translation_locale = self.translation_locale
        clone.translation_joined = self.translation_joined
        return clone

    def join_translation(self, locale=None):
        """
        Присоединяет таблицу переводов.

        Args:
            locale (str, optional): Код локали. По умолчанию текущая локаль.

        Returns:
            TranslatableQuerySet: Новый QuerySet с соединением

        Raises:
            ValueError: Если соединение уже присоединено
        """
        if self.translation_joined:
            raise ValueError('Translation join is already attached to this queryset.')

        clone = TranslationJoin(self.model).apply(
            self._chain(), locale or get_current_locale()
        )
        clone.translation_joined = True
        if locale is not None:
            clone.translation_locale = locale
            if clone._iterable_class is ModelIterable:
                clone._iterable_class = TranslatedModelIterable
        return clone


def translated_queryset(model, locale=None, using=None, hints=None):
    """
    Возвращает QuerySet модели с присоединенным переводом.

    Если перехват сохранения отключен, переводимые атрибуты хранятся
    в основной таблице и соединение не нужно.
    """
    queryset = TranslatableQuerySet(model=model, using=using, hints=hints)
    if not translatable_settings.use_saving_service:
        return queryset
    return queryset.join_translation(locale)


def with_default_eager_loading(queryset):
    """
    Применяет к QuerySet предзагрузку связей и подсчеты, объявленные на модели.

    Атрибуты модели:
        default_prefetch: связи для prefetch_related
        default_counts: связи, для которых добавляется аннотация <связь>_count
    """
    model = queryset.model
    prefetch = getattr(model, 'default_prefetch', ())
    counts = getattr(model, 'default_counts', ())
    if prefetch:
        queryset = queryset.prefetch_related(*prefetch)
    if counts:
        queryset = queryset.annotate(**{
            f'{relation}_count': Count(relation, distinct=True) for relation in counts
        })
    return queryset


class TranslatableManager(models.Manager):
    """
    Менеджер переводимых моделей.

    Особенности:
    - Каждый QuerySet содержит перевод активной локали
    - Наследники могут добавлять свои фильтры в get_queryset()
    - unscoped() обходит фильтры наследников, но не соединение с переводами
    """
    _queryset_class = TranslatableQuerySet
    _translation_locale = None

    def get_queryset(self):
        return with_default_eager_loading(self.with_translation(self._translation_locale))

    def in_locale(self, locale):
        """
        Возвращает QuerySet менеджера для указанной локали.

        Фильтры наследников менеджера сохраняются.
        """
        manager = copy.copy(self)
        manager._translation_locale = locale
        return manager.get_queryset()

    def unscoped(self, locale=None):
        """
        Возвращает QuerySet без фильтров по умолчанию.

        Соединение с переводами и предзагрузка связей модели сохраняются.
        """
        return with_default_eager_loading(self.with_translation(locale))

    def with_translation(self, locale=None):
        """Возвращает QuerySet только с соединением переводов."""
        return translated_queryset(self.model, locale, using=self._db, hints=self._hints)


class TranslationBaseManager(TranslatableManager):
    """
    Базовый менеджер (_base_manager) переводимой модели.

    Через него Django загружает объекты по внешним ключам, в prefetch_related
    и в refresh_from_db(). Присоединяет перевод, но не применяет фильтры
    и предзагрузку менеджеров модели.
    """

    def get_queryset(self):
        return self.with_translation(self._translation_locale)
