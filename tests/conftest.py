import pytest

from translatable.services import TranslationSavingService


@pytest.fixture(autouse=True)
def empty_translation_buffer():
    """Буфер переводов пуст до и после каждого теста."""
    service = TranslationSavingService()
    service.flush()
    yield
    service.flush()
