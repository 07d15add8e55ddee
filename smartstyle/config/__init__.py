# Config module
from smartstyle.config.settings import get_settings, reload_settings, Settings
from smartstyle.config.llm_config import (
    LLMProvider,
    ActiveLLMConfig,
    get_llm_config,
    reset_llm_config,
    get_provider_availability,
    get_provider_status,
)
