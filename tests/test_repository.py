"""
Тесты операций со строками переводов.

Этот модуль содержит тесты для:
1. Проверки существования и чтения перевода
2. Создания и обновления перевода (upsert)
3. Сохранения переводов для нескольких локалей
4. Сценария со статьей на английском и французском
"""

from django.core.exceptions import FieldDoesNotExist
from django.test import TestCase

from translatable.services import TranslationRepository

from .articles.models import Article, ArticleTranslation, Product, ProductText


class TranslationRepositoryTest(TestCase):
    """
    Тесты TranslationRepository.

    Тестирует:
    - relation_of/exists/get
    - store как upsert
    - store_many в порядке ключей
    """

    def setUp(self):
        """Подготовка тестовых данных."""
        self.repository = TranslationRepository()
        self.article = Article.objects.create(slug='article')

    def test_relation_of_filters_by_foreign_key(self):
        other = Article.objects.create(slug='other')
        self.repository.store(self.article, 'en', {'title': 'Hi'})
        self.repository.store(other, 'en', {'title': 'Other'})

        rows = self.repository.relation_of(self.article)
        self.assertEqual([row.title for row in rows], ['Hi'])

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.repository.get(self.article, 'de'))
        self.assertFalse(self.repository.exists(self.article, 'de'))

    def test_store_creates_row(self):
        translation = self.repository.store(self.article, 'fr', {'title': 'Salut'})

        self.assertIsNotNone(translation.pk)
        self.assertEqual(translation.locale, 'fr')
        self.assertEqual(translation.article, self.article)
        self.assertEqual(translation.title, 'Salut')
        self.assertTrue(self.repository.exists(self.article, 'fr'))

    def test_store_updates_existing_row(self):
        first = self.repository.store(self.article, 'fr', {'title': 'Salut', 'body': 'Bonjour'})
        second = self.repository.store(self.article, 'fr', {'title': 'Coucou'})

        self.assertEqual(first.pk, second.pk)
        row = ArticleTranslation.objects.get(pk=first.pk)
        self.assertEqual(row.title, 'Coucou')
        # Непереданные атрибуты сохраняют прежние значения
        self.assertEqual(row.body, 'Bonjour')

    def test_store_twice_keeps_single_row(self):
        attributes = {'title': 'Hallo', 'body': 'Guten Tag'}
        self.repository.store(self.article, 'de', attributes)
        self.repository.store(self.article, 'de', attributes)

        rows = ArticleTranslation.objects.filter(article=self.article, locale='de')
        self.assertEqual(rows.count(), 1)
        self.assertEqual(rows.get().title, 'Hallo')
        self.assertEqual(rows.get().body, 'Guten Tag')

    def test_store_unknown_attribute_raises(self):
        with self.assertRaises(FieldDoesNotExist):
            self.repository.store(self.article, 'fr', {'subtitle': 'x'})
        self.assertFalse(self.repository.exists(self.article, 'fr'))

    def test_store_many_returns_instance(self):
        result = self.repository.store_many(self.article, {
            'en': {'title': 'Hi'},
            'fr': {'title': 'Salut'},
        })

        self.assertIs(result, self.article)
        locales = list(
            ArticleTranslation.objects.filter(article=self.article)
            .order_by('pk').values_list('locale', flat=True)
        )
        self.assertEqual(locales, ['en', 'fr'])

    def test_overridden_names(self):
        product = Product.objects.create(sku='P-1')
        translation = self.repository.store(product, 'fr', {'name': 'Chaise'})

        self.assertIsInstance(translation, ProductText)
        self.assertEqual(translation.language, 'fr')
        self.assertEqual(translation.owner, product)
        self.assertTrue(self.repository.exists(product, 'fr'))


class ArticleScenarioTest(TestCase):
    """Статья с переводами на английский и французский."""

    def setUp(self):
        """Подготовка тестовых данных."""
        created = Article.objects.create(slug='greeting')
        created.store_translation('en', {'title': 'Hi', 'body': 'Hello'})
        created.store_translation('fr', {'title': 'Salut', 'body': 'Bonjour'})
        self.article = Article.objects.get(pk=created.pk)

    def test_translate_between_locales(self):
        self.article.translate('fr')
        self.assertEqual(self.article.title, 'Salut')
        self.assertEqual(self.article.body, 'Bonjour')
        self.assertEqual(self.article.get_locale(), 'fr')

        self.article.translate('en')
        self.assertEqual(self.article.title, 'Hi')
        self.assertEqual(self.article.body, 'Hello')

    def test_translation_exists(self):
        self.assertTrue(self.article.translation_exists('en'))
        self.assertTrue(self.article.translation_exists('fr'))
        self.assertFalse(self.article.translation_exists('de'))

    def test_get_translation(self):
        self.assertEqual(self.article.get_translation('fr').title, 'Salut')
        self.assertIsNone(self.article.get_translation('de'))

    def test_get_translations(self):
        locales = sorted(self.article.get_translations().values_list('locale', flat=True))
        self.assertEqual(locales, ['en', 'fr'])

    def test_translate_to_missing_locale(self):
        self.article.translate('de')
        self.assertIsNone(self.article.title)
        self.assertIsNone(self.article.body)

    def test_store_translations_then_translate(self):
        result = self.article.store_translations({'de': {'title': 'Hallo'}})

        self.assertIs(result, self.article)
        self.article.translate('de')
        self.assertEqual(self.article.title, 'Hallo')
        # Атрибуты, не переданные для локали, остаются пустыми
        self.assertIsNone(self.article.body)

    def test_partial_update_keeps_other_attributes(self):
        self.article.store_translation('fr', {'title': 'Coucou'})
        self.article.translate('fr')
        self.assertEqual(self.article.title, 'Coucou')
        self.assertEqual(self.article.body, 'Bonjour')
