"""
LLM Configuration Layer (v1.1.0)
Model-agnostic config for the wardrobe stylist.

Environment Variables:
    - SMARTSTYLE_LLM_PROVIDER: "groq" | "openai" | "gemini" (default: groq)
    - SMARTSTYLE_LLM_MODEL: Override default model (optional)
    - SMARTSTYLE_LLM_FALLBACK_MODEL: Override fallback model (optional)
    - SMARTSTYLE_LLM_TEMPERATURE / SMARTSTYLE_LLM_MAX_TOKENS
"""
import os
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any

from smartstyle.config.settings import get_settings

logger = logging.getLogger(__name__)


# ==================== ENUMS ====================

class LLMProvider(Enum):
    """Supported LLM providers."""
    GROQ = "groq"
    OPENAI = "openai"
    GEMINI = "gemini"


# Groq serves an OpenAI-compatible chat completions API
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


# ==================== PROVIDER DEFAULTS ====================

@dataclass
class ProviderDefaults:
    """Default model pair for a provider."""
    default_model: str
    fallback_model: str
    temperature: float = 0.8
    max_tokens: int = 1500


PROVIDER_DEFAULTS: Dict[LLMProvider, ProviderDefaults] = {
    LLMProvider.GROQ: ProviderDefaults("llama-3.3-70b-versatile", "llama-3.1-8b-instant"),
    LLMProvider.OPENAI: ProviderDefaults("gpt-4o-mini", "gpt-4o-mini"),
    LLMProvider.GEMINI: ProviderDefaults("gemini-1.5-flash", "gemini-1.5-flash-8b"),
}


# ==================== ACTIVE CONFIG ====================

@dataclass
class ActiveLLMConfig:
    """Active LLM configuration."""
    provider: LLMProvider
    model: str
    fallback_model: str
    temperature: float
    max_tokens: int
    
    @classmethod
    def from_env(cls) -> "ActiveLLMConfig":
        """Resolve configuration from environment variables."""
        provider_str = os.getenv("SMARTSTYLE_LLM_PROVIDER", "groq").lower()
        
        try:
            provider = LLMProvider(provider_str)
        except ValueError:
            logger.warning(f"Unknown LLM provider '{provider_str}', using groq")
            provider = LLMProvider.GROQ
        
        defaults = PROVIDER_DEFAULTS[provider]
        
        config = cls(
            provider=provider,
            model=os.getenv("SMARTSTYLE_LLM_MODEL", defaults.default_model),
            fallback_model=os.getenv("SMARTSTYLE_LLM_FALLBACK_MODEL", defaults.fallback_model),
            temperature=float(os.getenv("SMARTSTYLE_LLM_TEMPERATURE", str(defaults.temperature))),
            max_tokens=int(os.getenv("SMARTSTYLE_LLM_MAX_TOKENS", str(defaults.max_tokens))),
        )
        
        logger.info(f"LLM Config: provider={provider.value}, model={config.model}")
        return config
    
    def resolve_model(self, use_fallback: bool = False) -> str:
        return self.fallback_model if use_fallback else self.model
    
    def is_openai_compatible(self) -> bool:
        return self.provider in (LLMProvider.OPENAI, LLMProvider.GROQ)
    
    def is_gemini(self) -> bool:
        return self.provider == LLMProvider.GEMINI
    
    def to_dict(self) -> dict:
        return {
            "provider": self.provider.value,
            "model": self.model,
            "fallback_model": self.fallback_model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }


_llm_config: Optional[ActiveLLMConfig] = None


def get_llm_config() -> ActiveLLMConfig:
    """Get active LLM configuration (singleton)."""
    global _llm_config
    if _llm_config is None:
        _llm_config = ActiveLLMConfig.from_env()
    return _llm_config


def reset_llm_config():
    """Reset config (for testing)."""
    global _llm_config
    _llm_config = None


def get_provider_availability() -> Dict[str, bool]:
    """Get availability status for each provider."""
    settings = get_settings()
    return {
        "groq": settings.has_groq(),
        "openai": settings.has_openai(),
        "gemini": settings.has_gemini(),
    }


def get_provider_status() -> Dict[str, Any]:
    """Get complete provider status for health endpoint."""
    settings = get_settings()
    config = get_llm_config()
    availability = get_provider_availability()
    
    return {
        "enabled": settings.llm_enabled,
        "active_provider": config.provider.value if availability.get(config.provider.value) else None,
        "availability": availability,
        "config": config.to_dict(),
    }
