"""
Тестовое приложение со статьями.
"""

from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tests.articles'
    label = 'articles'
