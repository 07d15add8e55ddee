# LLM module (v3.0.0)
from smartstyle.llm.llm_adapter import LLMClient, get_llm_client, reset_llm_clients
