"""
SmartStyle Service v1.0.0
Wardrobe outfit recommendations, liked outfits and color analysis.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smartstyle.app.routes import router, VERSION
from smartstyle.config import get_settings, get_provider_status
from smartstyle.cache import cache_manager
from smartstyle.core.rate_limit import rate_limiter
from smartstyle.db import mongo
from smartstyle.observability import is_logging_enabled

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    
    logger.info("=" * 50)
    logger.info(f"SmartStyle Service v{VERSION} Starting...")
    logger.info("=" * 50)
    
    mongo_connected = mongo.connect()
    logger.info(f"MongoDB: {'connected' if mongo_connected else 'disconnected'}")
    
    provider_status = get_provider_status()
    logger.info(f"Active LLM: {provider_status.get('active_provider') or 'none'}")
    
    cache_status = cache_manager.get_status()
    logger.info(f"Cache: {'enabled' if cache_status['enabled'] else 'disabled'}")
    
    logger.info(f"Weather: {'enabled' if settings.has_weather() else 'disabled'}")
    logger.info(f"Rate limit: {rate_limiter.max_requests} requests/hour per user")
    logger.info(f"Logging: {'enabled' if is_logging_enabled() else 'disabled'}")
    
    if settings.bypass_auth:
        logger.warning("Auth bypass enabled - DEV MODE")
    
    logger.info("✓ Service ready! http://localhost:8000")
    logger.info("✓ Metrics available at /metrics")
    logger.info("=" * 50)
    
    yield
    
    logger.info("Service shutting down...")
    rate_limiter.purge_expired()
    mongo.close()


app = FastAPI(
    title="SmartStyle Service",
    description="Wardrobe outfit recommendations and style analysis",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(router)
