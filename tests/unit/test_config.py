"""
Unit tests for configuration management.
"""

import pytest
from unittest.mock import patch
import os

from pydantic import ValidationError


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'ERRORCAPTURE_APPLICATION_NAME': 'checkout',
        'ERRORCAPTURE_MACHINE_NAME': 'web-01',
        'ERRORCAPTURE_ROLLUP_PER_SERVER': 'true',
        'ERRORCAPTURE_FORM_FILTERS': '{"password": "[redacted]", "card_number": null}',
        'ERRORCAPTURE_COOKIE_FILTERS': '{"session": "[session]"}',
        'ERRORCAPTURE_DATA_INCLUDE_PATTERN': 'SQL.*|Redis-.*',
        'ERRORCAPTURE_BUILTIN_EXCEPTION_MODULES': '["builtins", "asyncio.exceptions"]',
        'ERRORCAPTURE_LOG_LEVEL': 'DEBUG',
    }):
        from errorcapture.config import Settings
        settings = Settings(_env_file=None)

        assert settings.application_name == 'checkout'
        assert settings.machine_name == 'web-01'
        assert settings.rollup_per_server is True
        assert settings.form_filters == {'password': '[redacted]', 'card_number': None}
        assert settings.cookie_filters == {'session': '[session]'}
        assert settings.data_include_pattern == 'SQL.*|Redis-.*'
        assert settings.builtin_exception_modules == ['builtins', 'asyncio.exceptions']
        assert settings.log_level == 'DEBUG'


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        from errorcapture.config import Settings
        settings = Settings(_env_file=None)

        assert settings.application_name == 'Application'
        assert settings.machine_name is None
        assert settings.rollup_per_server is False
        assert settings.form_filters == {}
        assert settings.cookie_filters == {}
        assert settings.data_include_pattern is None
        assert settings.builtin_exception_modules == ['builtins']
        assert settings.log_level == 'INFO'


def test_empty_pattern_is_none():
    """Test that an empty include pattern disables inclusion."""
    from errorcapture.config import Settings
    settings = Settings(_env_file=None, data_include_pattern='')

    assert settings.data_include_pattern is None


def test_invalid_pattern_is_rejected():
    """Test that an invalid include pattern fails validation."""
    from errorcapture.config import Settings

    with pytest.raises(ValidationError):
        Settings(_env_file=None, data_include_pattern='(unclosed')


def test_get_settings_is_cached():
    """Test that get_settings returns a single instance."""
    from errorcapture.config import get_settings
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
