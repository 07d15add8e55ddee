"""
Request Logger (v1.1.0)
Structured logging for request tracking and observability.
"""
import os
import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

# Ensure logs directory exists
LOGS_DIR = Path(os.getenv("SMARTSTYLE_LOG_DIR", Path(__file__).parent.parent.parent / "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

REQUEST_LOG_FILE = LOGS_DIR / "requests.log"

# Configure request logger
request_logger = logging.getLogger("smartstyle.requests")
request_logger.setLevel(logging.INFO)

# File handler for requests
file_handler = logging.FileHandler(REQUEST_LOG_FILE, encoding="utf-8")
file_handler.setFormatter(logging.Formatter("%(message)s"))
request_logger.addHandler(file_handler)

# Prevent propagation to root logger
request_logger.propagate = False


def is_logging_enabled() -> bool:
    """Check if request logging is enabled."""
    return os.getenv("SMARTSTYLE_LOGGING_ENABLED", "true").lower() == "true"


def log_request(
    endpoint: str,
    user_id: Optional[str],
    status_code: int,
    latency_ms: int,
    cache_hit: bool = False,
    provider_used: Optional[str] = None,
    error: Optional[str] = None
):
    """
    Log a structured request entry.
    
    Args:
        endpoint: Request path
        user_id: Authenticated user (if any)
        status_code: HTTP status returned
        latency_ms: Request latency in milliseconds
        cache_hit: Whether response was served from cache
        provider_used: LLM provider that produced the result
        error: Error message if failed
    """
    if not is_logging_enabled():
        return
    
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoint": endpoint,
        "user_id": user_id,
        "status_code": status_code,
        "latency_ms": latency_ms,
        "cache_hit": cache_hit,
        "provider": provider_used,
    }
    
    if error:
        entry["error"] = error
    
    request_logger.info(json.dumps(entry))
