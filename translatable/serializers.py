"""
Сериализаторы для переводимых моделей.
"""

from rest_framework import serializers
from rest_framework.serializers import ALL_FIELDS
from django.utils.translation import gettext_lazy as _


class TranslationsField(serializers.Field):
    """
    Поле со всеми переводами объекта.

    Формат: {"en": {"title": "Hi"}, "fr": {"title": "Salut"}}
    """
    default_error_messages = {
        'not_a_dict': _('Expected a dictionary but got type "{input_type}".'),
        'unknown_attribute': _('"{attribute}" is not a translatable attribute.'),
    }

    def __init__(self, **kwargs):
        kwargs['source'] = '*'
        super().__init__(**kwargs)

    def to_representation(self, instance):
        locale_key = instance.get_locale_key_name()
        names = instance.get_translated_columns()
        return {
            getattr(row, locale_key): {name: getattr(row, name) for name in names}
            for row in instance.get_translations()
        }

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            self.fail('not_a_dict', input_type=type(data).__name__)

        allowed = set(self.parent.Meta.model.get_translated_columns())
        for attributes in data.values():
            if not isinstance(attributes, dict):
                self.fail('not_a_dict', input_type=type(attributes).__name__)
            for name in attributes:
                if name not in allowed:
                    self.fail('unknown_attribute', attribute=name)

        return {'translations': data}


class TranslatableModelSerializer(serializers.ModelSerializer):
    """
    Сериализатор переводимой модели.

    Особенности:
    - Переводимые атрибуты активной локали доступны как обычные поля
    - Поле translations принимает и отдает переводы всех локалей
    """
    translations = TranslationsField(required=False)

    def get_fields(self):
        fields = super().get_fields()
        declared = getattr(self.Meta, 'fields', None)
        excluded = getattr(self.Meta, 'exclude', None) or ()

        for name in self.Meta.model.get_translated_columns():
            # Без явного объявления ModelSerializer строит для дескриптора ReadOnlyField
            if name in self._declared_fields or name in excluded:
                continue
            if declared is not None and declared != ALL_FIELDS and name not in declared:
                continue
            fields[name] = serializers.CharField(
                required=False, allow_blank=True, allow_null=True
            )
        return fields

    def create(self, validated_data):
        translations = validated_data.pop('translations', None)
        instance = super().create(validated_data)
        return self._store_translations(instance, translations)

    def update(self, instance, validated_data):
        translations = validated_data.pop('translations', None)
        instance = super().update(instance, validated_data)
        return self._store_translations(instance, translations)

    @staticmethod
    def _store_translations(instance, translations):
        if translations:
            instance.store_translations(translations)
            instance.refresh_translation()
        return instance
