"""
Unit tests for configuration management.
"""

from unittest.mock import patch

import pytest

from tagallery.config import (
    DEFAULT_DATABASE_PATH,
    Config,
    get_config,
    get_database_path,
    get_debug_mode,
    get_file_size_limits,
    get_gcs_bucket,
    get_project_id,
)


class TestConfig:
    """Test cases for Config."""

    def test_reads_environment(self):
        with patch.dict("os.environ", {"SOME_KEY": "value"}):
            assert Config().get("SOME_KEY") == "value"

    def test_default_when_missing(self):
        assert Config().get("MISSING_KEY_FOR_TEST", "fallback") == "fallback"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("1", True), ("YES", True), ("on", True), ("false", False), ("0", False)],
    )
    def test_bool_cast(self, raw, expected):
        with patch.dict("os.environ", {"FLAG": raw}):
            assert Config().get("FLAG", cast_type=bool) is expected

    def test_int_cast(self):
        with patch.dict("os.environ", {"NUMBER": "42"}):
            assert Config().get("NUMBER", cast_type=int) == 42

    def test_failed_cast_returns_default(self):
        with patch.dict("os.environ", {"NUMBER": "many"}):
            assert Config().get("NUMBER", 7, cast_type=int) == 7

    def test_values_are_cached(self):
        config = Config()
        with patch.dict("os.environ", {"CACHED": "first"}):
            config.get("CACHED")
        with patch.dict("os.environ", {"CACHED": "second"}):
            assert config.get("CACHED") == "first"
            config.clear_cache()
            assert config.get("CACHED") == "second"

    def test_get_required(self):
        with pytest.raises(ValueError, match="MISSING_REQUIRED"):
            Config().get_required("MISSING_REQUIRED")

    @pytest.mark.parametrize(
        ("environment", "development", "production"),
        [("development", True, False), ("test", True, False), ("production", False, True), ("staging", False, False)],
    )
    def test_environment_modes(self, environment, development, production):
        with patch.dict("os.environ", {"ENVIRONMENT": environment}):
            config = Config()
            assert config.is_development() is development
            assert config.is_production() is production


class TestConfigHelpers:
    """Test cases for module-level helpers."""

    def test_get_config_is_shared(self):
        assert get_config() is get_config()

    def test_gcs_settings(self):
        assert get_gcs_bucket() == "test-tagallery-bucket"
        assert get_project_id() == "test-project"

    def test_database_path_default(self):
        assert get_database_path() == DEFAULT_DATABASE_PATH

    def test_file_size_limits(self, monkeypatch):
        assert get_file_size_limits() == (1, 10 * 1024 * 1024)

        monkeypatch.setenv("MIN_FILE_SIZE", "100")
        monkeypatch.setenv("MAX_FILE_SIZE", "2000")
        get_config().clear_cache()

        assert get_file_size_limits() == (100, 2000)

    def test_debug_mode_in_test_environment(self):
        assert get_debug_mode() is True
