"""
Recommendation History Module (v1.0.0)
Keeps a record of generated outfit recommendations.
"""
import logging
from typing import Optional, Dict, Any
from datetime import date, datetime

from smartstyle.db import mongo

logger = logging.getLogger(__name__)


def save_recommendation(
    user_id: str,
    occasion: str,
    result: Dict[str, Any],
    target_date: Optional[date] = None,
    weather: Optional[Dict[str, Any]] = None
) -> bool:
    """Store a generated recommendation. Returns False when the DB is unavailable."""
    try:
        collection = mongo.get_collection(mongo.RECOMMENDATIONS)
        if collection is None:
            return False
        
        collection.insert_one({
            "user_id": user_id,
            "occasion": occasion,
            "date": target_date.isoformat() if target_date else None,
            "result": result,
            "weather": weather,
            "created_at": datetime.utcnow().isoformat(),
        })
        return True
        
    except Exception as e:
        logger.error(f"Failed to save recommendation for {user_id}: {e}")
        return False
