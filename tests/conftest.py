# Test configuration

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture(autouse=True)
def clear_cached_settings():
    """Drop cached settings and adapters so env overrides take effect."""
    from objectfs.config.settings import get_settings
    from objectfs.storage.factory import reset_storage_adapter

    get_settings.cache_clear()
    reset_storage_adapter()
    yield
    get_settings.cache_clear()
    reset_storage_adapter()


@pytest.fixture
def test_settings(tmp_path):
    """Override settings for testing"""
    from objectfs.config.settings import Settings
    return Settings(
        storage_path=str(tmp_path / "store"),
        strict_paths=False,
        log_json=False,
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the handler installed by setup_logging and restore the root level."""
    import logging
    from objectfs.common.logging_config import HANDLER_NAME

    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)
