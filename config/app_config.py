"""
Unified Configuration System for MoodMix

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Optional, List
import streamlit as st
import os
from pathlib import Path


@dataclass
class APIConfig:
    """API configuration settings"""
    openai_api_key: str = ""

    @classmethod
    def _from_env(cls) -> 'APIConfig':
        return cls(openai_api_key=os.getenv("OPENAI_API_KEY", ""))

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        # In test environment, prefer environment variables
        if os.getenv("PYTEST_CURRENT_TEST") is not None:
            return cls._from_env()

        try:
            return cls(openai_api_key=st.secrets.get("OPENAI_API_KEY", ""))
        except Exception:
            # No secrets.toml available
            return cls._from_env()


@dataclass
class LLMConfig:
    """Language model configuration for the mood oracle"""
    model_name: str = "gpt-3.5-turbo-0125"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout: float = 30.0


@dataclass
class MoodConfig:
    """Mood analysis defaults and intent policy"""
    default_genre: str = "pop"
    default_weather_mood: str = "clear sky"
    # Neutral follow-ups on an existing playlist trigger a new recommendation
    refresh_on_neutral: bool = True


@dataclass
class RecommenderConfig:
    """Spotify recommendation provider configuration"""
    api_base: str = "https://api.spotify.com/v1"
    limit: int = 50
    max_attempts: int = 2
    timeout: float = 10.0


@dataclass
class RetryConfig:
    """Retry and circuit breaker settings for the oracle transport"""
    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 20.0
    failure_threshold: int = 5
    recovery_timeout: int = 60


@dataclass
class SessionConfig:
    """Chat session persistence configuration"""
    db_path: str = "data/chat_sessions.db"
    retention_days: int = 7


@dataclass
class UIConfig:
    """User-facing text configuration"""
    welcome_message: str = (
        "Hi! I'm your music mood assistant. Tell me how you're feeling, "
        "what you're doing, or what kind of music you're in the mood for!"
    )
    refresh_offer: str = (
        "Would you like me to refresh the playlist with different songs in this style? "
        "Just ask me to refresh or try something new!"
    )
    fallback_genres: List[str] = field(default_factory=lambda: ["pop", "dance"])


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = False
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    mood: MoodConfig = field(default_factory=MoodConfig)
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load the base configuration with runtime settings applied"""
        config = cls()
        config.load_runtime_settings()
        return config

    def load_runtime_settings(self) -> None:
        """Apply settings that come from secrets and the process environment"""
        self.api = APIConfig.from_secrets()

        refresh_flag = os.getenv("MOODMIX_REFRESH_ON_NEUTRAL")
        if refresh_flag is not None:
            self.mood.refresh_on_neutral = refresh_flag.lower() == "true"

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        # Check required API keys
        if not self.api.openai_api_key:
            errors.append("OpenAI API key is required")

        if self.recommender.max_attempts < 1:
            errors.append("Recommender max_attempts must be at least 1")

        if self.sessions.retention_days < 1:
            errors.append("Session retention_days must be at least 1")

        # Check file paths exist
        db_dir = Path(self.sessions.db_path).parent
        if not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance for the environment named by APP_ENV"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()
