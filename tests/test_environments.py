"""
Test environment-specific configurations
"""

import os
import pytest
from config.environments import get_environment_config
from config.environments.development import get_development_config
from config.environments.production import get_production_config


class TestEnvironmentConfigs:
    """Test environment-specific configuration loading"""

    def test_development_config(self):
        """Test development configuration"""
        config = get_development_config()

        assert config.environment == "development"
        assert config.debug == True
        assert config.logging.level == "DEBUG"
        assert config.logging.log_file == "logs/dev-app.log"
        assert config.sessions.db_path == "data/dev_chat_sessions.db"
        assert config.retry.max_retries == 1

    def test_production_config(self):
        """Test production configuration"""
        config = get_production_config()

        assert config.environment == "production"
        assert config.debug == False
        assert config.logging.level == "INFO"
        assert config.llm.temperature == 0.5
        assert config.sessions.retention_days == 14

    @pytest.mark.parametrize("factory", [get_development_config, get_production_config])
    def test_environment_configs_load_runtime_settings(self, monkeypatch, factory):
        """Test environment configs read the API key and neutral-turn policy"""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("MOODMIX_REFRESH_ON_NEUTRAL", "false")

        config = factory()

        assert config.api.openai_api_key == "sk-env"
        assert config.mood.refresh_on_neutral is False

    def test_environment_selection_development(self, monkeypatch):
        """Test environment selection for development"""
        monkeypatch.setenv("APP_ENV", "development")

        config = get_environment_config()

        assert config.environment == "development"
        assert config.debug == True

    def test_environment_selection_production(self, monkeypatch):
        """Test environment selection for production"""
        monkeypatch.setenv("APP_ENV", "production")

        config = get_environment_config()

        assert config.environment == "production"
        assert config.debug == False

    def test_environment_selection_default(self, monkeypatch):
        """Test unknown environments use the base configuration"""
        monkeypatch.setenv("APP_ENV", "staging")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-staging")

        config = get_environment_config()

        assert config.environment == "staging"
        assert config.sessions.db_path == "data/chat_sessions.db"
        assert config.api.openai_api_key == "sk-staging"
