"""
Shared fixtures for SmartStyle tests.
"""
import os
import io
import sys
from pathlib import Path
from unittest.mock import patch, MagicMock, AsyncMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ["SMARTSTYLE_LOGGING_ENABLED"] = "false"
os.environ.pop("SMARTSTYLE_BYPASS_AUTH", None)


@pytest.fixture(autouse=True)
def isolated_state():
    """No real MongoDB, fresh limiter/cache/metrics for every test."""
    from smartstyle.cache import cache_manager
    from smartstyle.core.rate_limit import rate_limiter
    from smartstyle.observability import reset_metrics
    
    rate_limiter.reset()
    cache_manager.clear()
    reset_metrics()
    
    with patch("smartstyle.db.mongo.connect", return_value=False), \
         patch("smartstyle.db.mongo.get_collection", return_value=None):
        yield
    
    rate_limiter.reset()
    cache_manager.clear()


@pytest.fixture
def client():
    """Create test client."""
    from fastapi.testclient import TestClient
    from smartstyle.app.main import app
    return TestClient(app)


@pytest.fixture
def mock_user():
    """Mock authenticated user."""
    from smartstyle.core.auth import User
    return User(user_id="test_user", email="test@example.com", name="Test User")


@pytest.fixture
def auth_as(mock_user):
    """Accept any bearer token as `mock_user`."""
    with patch("smartstyle.core.auth.verify_id_token", return_value=mock_user) as verify:
        yield verify


@pytest.fixture
def wardrobe_items():
    """Request-shaped wardrobe (camelCase, as sent by the app)."""
    return [
        {"id": "top1", "itemType": "top", "description": "White cotton shirt",
         "dominantColors": ["white"], "brand": "Uniqlo", "wornCount": 3, "isActive": True},
        {"id": "bottom1", "itemType": "bottom", "description": "Navy chino trousers",
         "dominantColors": ["navy"], "wornCount": 0, "isActive": True},
        {"id": "shoes1", "itemType": "shoes", "description": "Brown leather loafers",
         "dominantColors": ["brown"], "wornCount": 1, "isActive": True},
        {"id": "top2", "itemType": "top", "description": "Black knit sweater",
         "dominantColors": ["black"], "wornCount": 0, "isActive": True},
    ]


@pytest.fixture
def llm_response():
    """A well-formed LLM answer referencing wardrobe_items."""
    return {
        "outfits": [
            {
                "name": "Smart Casual",
                "items": [
                    {"itemId": "top1", "description": "White cotton shirt", "type": "top"},
                    {"itemId": "bottom1", "description": "Navy chino trousers", "type": "bottom"},
                    {"itemId": "shoes1", "description": "Brown leather loafers", "type": "shoes"},
                ],
                "reasoning": "Crisp white and navy with warm brown accents.",
                "confidence": 92,
            }
        ],
        "missingPieces": ["navy blazer"],
    }


@pytest.fixture
def mock_llm(llm_response):
    """Patch the LLM client used by the outfit generator."""
    llm = MagicMock()
    llm.generate_json = AsyncMock(return_value=llm_response)
    with patch("smartstyle.services.outfit_generator.get_llm_client", return_value=llm):
        yield llm


@pytest.fixture
def test_image():
    """Create a valid test image."""
    from PIL import Image
    
    img = Image.new("RGB", (100, 100), color="blue")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    buffer.seek(0)
    return buffer
