"""
LLM Initialization Adapter (v3.0.0)
Unified LLM client for Groq, OpenAI and Gemini with automatic fallback.

Groq is reached through the OpenAI SDK (OpenAI-compatible endpoint).
"""
import json
import logging
from typing import Optional, Any, Dict

from smartstyle.config import get_settings
from smartstyle.config.llm_config import (
    get_llm_config, LLMProvider, ActiveLLMConfig, GROQ_BASE_URL
)

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Unified LLM client interface for any provider/model.
    
    Usage:
        client = LLMClient()
        client.initialize()
        data = await client.generate_json(system, user)
    """
    
    def __init__(self, config: Optional[ActiveLLMConfig] = None):
        self.config = config or get_llm_config()
        self._openai_client = None
        self._gemini_model = None
        self._current_model = None
        self._fallback_used = False
        self._initialized = False
    
    def initialize(self, use_fallback: bool = False):
        """Initialize the LLM client based on configuration."""
        model = self.config.resolve_model(use_fallback)
        self._fallback_used = use_fallback
        self._current_model = model
        
        if self.config.is_openai_compatible():
            self._init_openai(model)
        elif self.config.is_gemini():
            self._init_gemini(model)
        
        self._initialized = True
    
    def _init_openai(self, model: str):
        """Initialize OpenAI SDK client (OpenAI or Groq)."""
        from openai import AsyncOpenAI
        
        settings = get_settings()
        
        if self.config.provider == LLMProvider.GROQ:
            if not settings.groq_api_key:
                raise ValueError("GROQ_API_KEY not set")
            self._openai_client = AsyncOpenAI(api_key=settings.groq_api_key, base_url=GROQ_BASE_URL)
        else:
            if not settings.openai_api_key:
                raise ValueError("OPENAI_API_KEY not set")
            self._openai_client = AsyncOpenAI(api_key=settings.openai_api_key)
        
        logger.info(f"{self.config.provider.value}: model={model}, fallback={self._fallback_used}")
    
    def _init_gemini(self, model: str):
        """Initialize Gemini client."""
        import google.generativeai as genai
        
        api_key = get_settings().gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not set")
        
        genai.configure(api_key=api_key)
        self._gemini_model = genai.GenerativeModel(model)
        logger.info(f"Gemini: model={model}, fallback={self._fallback_used}")
    
    async def generate_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        """Generate JSON response with robust parsing."""
        if not self._initialized:
            self.initialize()
        
        try:
            text = await self._generate_impl(system_prompt, user_prompt, json_mode=True)
            return self._parse_json(text)
        except Exception as e:
            if not self._fallback_used:
                logger.warning(f"Primary model failed ({e}), trying fallback...")
                self.initialize(use_fallback=True)
                text = await self._generate_impl(system_prompt, user_prompt, json_mode=True)
                return self._parse_json(text)
            raise
    
    def _parse_json(self, text: str) -> Dict[str, Any]:
        """Parse JSON from text, handling markdown code blocks."""
        text = (text or "").strip()
        
        # Remove markdown code blocks
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0]
        elif "```" in text:
            text = text.split("```")[1].split("```")[0]
        
        return json.loads(text.strip())
    
    async def _generate_impl(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        """Internal generation implementation."""
        if self.config.is_openai_compatible():
            return await self._generate_openai(system_prompt, user_prompt, json_mode)
        elif self.config.is_gemini():
            return await self._generate_gemini(system_prompt, user_prompt, json_mode)
        else:
            raise ValueError(f"Unsupported provider: {self.config.provider}")
    
    async def _generate_openai(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        """Generate using an OpenAI-compatible chat completions API."""
        kwargs = {
            "model": self._current_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens
        }
        
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        
        response = await self._openai_client.chat.completions.create(**kwargs)
        return response.choices[0].message.content
    
    async def _generate_gemini(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        """Generate using Gemini."""
        combined = f"{system_prompt}\n\n{user_prompt}"
        
        if json_mode:
            combined += "\n\nRespond with valid JSON only, no markdown code blocks."
        
        response = await self._gemini_model.generate_content_async(combined)
        return response.text
    
    @property
    def provider_name(self) -> str:
        return self.config.provider.value
    
    def get_status(self) -> dict:
        """Get current client status."""
        return {
            "provider": self.config.provider.value,
            "model": self._current_model,
            "fallback_used": self._fallback_used,
            "initialized": self._initialized
        }


# ==================== SINGLETON INSTANCE ====================

_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the shared, initialized LLM client."""
    global _llm_client
    
    if _llm_client is None:
        client = LLMClient()
        client.initialize()
        _llm_client = client
    return _llm_client


def reset_llm_clients():
    """Reset the shared client (for testing)."""
    global _llm_client
    _llm_client = None
