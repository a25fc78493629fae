"""
Переводимые модели для Django ORM.

Приложение позволяет хранить значения переводимых атрибутов модели
в отдельной таблице переводов (одна строка на пару «объект, локаль»)
и прозрачно подмешивать перевод активной локали в результаты запросов.
"""
