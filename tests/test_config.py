"""
Tests for configuration system
"""

import pytest
import os
import tempfile
from pathlib import Path
from config import app_config
from config.app_config import (
    AppConfig, APIConfig, LLMConfig, MoodConfig, RecommenderConfig,
    SessionConfig, UIConfig, get_config, reload_config
)
from config.environments.development import DevelopmentConfig
from config.environments.production import ProductionConfig


class TestAPIConfig:
    """Test API configuration"""

    def test_from_secrets_fallback_to_env(self, monkeypatch):
        """Test fallback to environment variables when secrets unavailable"""
        monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")

        config = APIConfig.from_secrets()

        assert config.openai_api_key == "test-openai-key"


class TestLLMConfig:
    """Test LLM configuration"""

    def test_default_values(self):
        """Test default configuration values"""
        config = LLMConfig()

        assert config.model_name == "gpt-3.5-turbo-0125"
        assert config.temperature == 0.7
        assert config.max_tokens == 1000


class TestDomainConfigs:
    """Test mood, recommender, session and UI defaults"""

    def test_mood_defaults(self):
        config = MoodConfig()

        assert config.default_genre == "pop"
        assert config.default_weather_mood == "clear sky"
        assert config.refresh_on_neutral is True

    def test_recommender_defaults(self):
        config = RecommenderConfig()

        assert config.api_base == "https://api.spotify.com/v1"
        assert config.limit == 50
        assert config.max_attempts == 2

    def test_session_and_ui_defaults(self):
        assert SessionConfig().retention_days == 7
        ui = UIConfig()
        assert ui.welcome_message.startswith("Hi! I'm your music mood assistant")
        assert ui.fallback_genres == ["pop", "dance"]


class TestAppConfig:
    """Test main application configuration"""

    def test_load_applies_runtime_settings(self, monkeypatch):
        """Test the base configuration picks up the API key from the environment"""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-runtime")
        monkeypatch.setenv("APP_ENV", "staging")

        config = AppConfig.load()

        assert config.environment == "staging"
        assert config.api.openai_api_key == "sk-runtime"

    @pytest.mark.parametrize("value,expected", [("false", False), ("TRUE", True)])
    def test_refresh_on_neutral_override(self, monkeypatch, value, expected):
        """Test the neutral-turn policy can be set from the environment"""
        monkeypatch.setenv("MOODMIX_REFRESH_ON_NEUTRAL", value)

        assert AppConfig.load().mood.refresh_on_neutral is expected

    def test_validate_reports_errors(self):
        """Test validation of required and numeric settings"""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = AppConfig()
            config.sessions.db_path = str(Path(temp_dir) / "nested" / "sessions.db")
            config.recommender.max_attempts = 0
            config.sessions.retention_days = 0

            errors = config.validate()

            assert "OpenAI API key is required" in errors
            assert "Recommender max_attempts must be at least 1" in errors
            assert "Session retention_days must be at least 1" in errors
            assert (Path(temp_dir) / "nested").exists()

    def test_validate_valid_config(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            config = AppConfig()
            config.api.openai_api_key = "sk-test"
            config.sessions.db_path = os.path.join(temp_dir, "sessions.db")

            assert config.validate() == []


class TestGlobalConfig:
    """Test the global configuration instance"""

    @pytest.fixture(autouse=True)
    def isolated_global(self, monkeypatch, tmp_path):
        # Relative db/log paths land in tmp_path; the cached config is restored afterwards
        self.temp_dir = str(tmp_path)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(app_config, "_config", None)

    def test_get_config_is_cached(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-cached")

        first = reload_config()

        assert get_config() is first
        assert first.api.openai_api_key == "sk-cached"

    def test_production_environment_is_used(self, monkeypatch):
        """Test APP_ENV selects the production overrides for the global config"""
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-prod")

        config = reload_config()

        assert isinstance(config, ProductionConfig)
        assert config.sessions.retention_days == 14
        assert config.llm.temperature == 0.5
        assert config.api.openai_api_key == "sk-prod"

    def test_development_environment_is_used(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "development")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-dev")

        config = reload_config()

        assert isinstance(config, DevelopmentConfig)
        assert config.sessions.db_path == "data/dev_chat_sessions.db"
        assert config.api.openai_api_key == "sk-dev"
        assert os.path.isdir(os.path.join(self.temp_dir, "data"))
