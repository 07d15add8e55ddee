"""
Preferences Module (v1.0.0)
Per-user style preferences used to personalize recommendations.
"""
import logging
from typing import Optional, Dict, Any
from datetime import datetime

from smartstyle.db import mongo

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = ("favorite_colors", "preferred_styles", "preferred_occasions")


def default_preferences(user_id: str) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "favorite_colors": [],
        "preferred_styles": [],
        "preferred_occasions": [],
        "updated_at": None,
    }


def get_preferences(user_id: str) -> Optional[Dict[str, Any]]:
    """Get a user's preferences; defaults if none were saved, None if DB is down."""
    try:
        collection = mongo.get_collection(mongo.PREFERENCES)
        if collection is None:
            return None
        
        doc = collection.find_one({"user_id": user_id}, {"_id": 0})
        return doc or default_preferences(user_id)
        
    except Exception as e:
        logger.error(f"Failed to get preferences for {user_id}: {e}")
        return None


def save_preferences(user_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Upsert a user's preferences.
    
    Only list-valued preference fields are stored; anything else is ignored.
    
    Returns:
        Stored preferences or None
    """
    try:
        collection = mongo.get_collection(mongo.PREFERENCES)
        if collection is None:
            return None
        
        update = {
            field: [str(v) for v in data[field]]
            for field in PREFERENCE_FIELDS
            if isinstance(data.get(field), list)
        }
        update["updated_at"] = datetime.utcnow().isoformat()
        
        collection.update_one(
            {"user_id": user_id},
            {"$set": update},
            upsert=True
        )
        logger.info(f"Preferences saved for {user_id}")
        
        preferences = default_preferences(user_id)
        preferences.update(collection.find_one({"user_id": user_id}, {"_id": 0}) or update)
        return preferences
        
    except Exception as e:
        logger.error(f"Failed to save preferences for {user_id}: {e}")
        return None
