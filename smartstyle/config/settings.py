"""
Settings Module (v1.2.0)
Centralized configuration from environment variables.
"""
import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings from environment variables."""
    
    # API Keys
    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    openweather_api_key: Optional[str] = None
    
    # Firebase
    firebase_credentials: Optional[str] = None
    firebase_project_id: Optional[str] = None
    bypass_auth: bool = False
    
    # LLM Configuration
    llm_enabled: bool = True
    llm_timeout_seconds: float = 15.0
    
    # Weather
    weather_timeout_seconds: float = 10.0
    default_latitude: float = 17.385044
    default_longitude: float = 78.486671
    
    # Rate Limiting
    rate_limit_per_hour: int = 20
    
    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            # API Keys
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            groq_api_key=os.getenv("GROQ_API_KEY"),
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            openweather_api_key=os.getenv("OPENWEATHER_API_KEY"),
            
            # Firebase
            firebase_credentials=os.getenv("FIREBASE_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID"),
            bypass_auth=os.getenv("SMARTSTYLE_BYPASS_AUTH", "false").lower() == "true",
            
            # LLM Configuration
            llm_enabled=os.getenv("SMARTSTYLE_LLM_ENABLED", "true").lower() == "true",
            llm_timeout_seconds=float(os.getenv("SMARTSTYLE_LLM_TIMEOUT", "15")),
            
            # Weather
            weather_timeout_seconds=float(os.getenv("SMARTSTYLE_WEATHER_TIMEOUT", "10")),
            default_latitude=float(os.getenv("SMARTSTYLE_DEFAULT_LAT", "17.385044")),
            default_longitude=float(os.getenv("SMARTSTYLE_DEFAULT_LON", "78.486671")),
            
            # Rate Limiting
            rate_limit_per_hour=int(os.getenv("SMARTSTYLE_RATE_LIMIT_PER_HOUR", "20")),
        )
    
    def has_openai(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.openai_api_key)
    
    def has_groq(self) -> bool:
        """Check if Groq API key is configured."""
        return bool(self.groq_api_key)
    
    def has_gemini(self) -> bool:
        """Check if Gemini API key is configured."""
        return bool(self.gemini_api_key)
    
    def has_weather(self) -> bool:
        return bool(self.openweather_api_key)
    
    def to_dict(self) -> dict:
        """Export settings as dict (without sensitive keys)."""
        return {
            "llm_enabled": self.llm_enabled,
            "llm_timeout_seconds": self.llm_timeout_seconds,
            "openai_configured": self.has_openai(),
            "groq_configured": self.has_groq(),
            "gemini_configured": self.has_gemini(),
            "weather_configured": self.has_weather(),
            "firebase_configured": bool(self.firebase_credentials or self.firebase_project_id),
            "bypass_auth": self.bypass_auth,
            "rate_limit_per_hour": self.rate_limit_per_hour,
        }


def get_settings() -> Settings:
    """Get application settings (cached singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info(f"Settings loaded: {_settings.to_dict()}")
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings.from_env()
    logger.info(f"Settings reloaded: {_settings.to_dict()}")
    return _settings


# Singleton instance
_settings: Optional[Settings] = None
