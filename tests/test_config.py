"""Тесты для настроек приложения."""

from shumilog_tags.core.config import Settings


def test_tag_engine_defaults():
    """Test: лимиты движка тегов по умолчанию."""
    config = Settings()

    assert config.TAG_NAME_MAX_LENGTH == 100
    assert config.SEARCH_MIN_INDEX_QUERY_LENGTH == 3
    assert config.SEARCH_DEFAULT_LIMIT == 20
    assert config.SEARCH_MAX_LIMIT == 100
    assert config.SUGGESTION_DEFAULT_LIMIT == 5


def test_only_used_settings_are_declared():
    assert set(Settings.model_fields) == {
        "DATABASE_URL",
        "DATABASE_ECHO",
        "APP_NAME",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "TAG_NAME_MAX_LENGTH",
        "SEARCH_MIN_INDEX_QUERY_LENGTH",
        "SEARCH_DEFAULT_LIMIT",
        "SEARCH_MAX_LIMIT",
        "SUGGESTION_DEFAULT_LIMIT",
        "POPULAR_TAGS_DEFAULT_LIMIT",
        "RECENT_TAGS_DEFAULT_LIMIT",
        "RECENT_LOGS_LIMIT",
        "REFERRING_TAGS_DEFAULT_LIMIT",
    }
