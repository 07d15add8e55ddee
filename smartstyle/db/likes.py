"""
Liked Outfits Module (v1.1.0)
Stores the outfits a user has liked, with duplicate prevention.
"""
import logging
import secrets
from typing import Optional, List, Dict, Any
from datetime import datetime

from smartstyle.db import mongo
from smartstyle.services.shopping import resolve_shopping_links

logger = logging.getLogger(__name__)

# Data URIs share long headers; comparing this many characters is enough
# to tell two liked images apart.
IMAGE_URL_PREFIX_LENGTH = 200


def is_valid_user_id(user_id: Optional[str]) -> bool:
    """Reject empty and anonymous user ids."""
    return bool(user_id and user_id.strip() and user_id != "anonymous")


def _result(success: bool, message: str, is_duplicate: bool = False, **extra) -> Dict[str, Any]:
    result = {"success": success, "message": message, "is_duplicate": is_duplicate}
    result.update(extra)
    return result


def save_liked_outfit(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Save a liked outfit.
    
    Args:
        user_id: Owner user ID
        data: Outfit fields (title, image_url, description, items, ...)
    
    Returns:
        {success, message, is_duplicate[, outfit_id]}
    """
    if not is_valid_user_id(user_id):
        return _result(False, "Please sign in to save outfits to your favorites")
    
    title = data.get("title")
    image_url = data.get("image_url")
    
    if not title or not image_url:
        return _result(False, "Outfit title and image are required")
    
    if not isinstance(title, str) or not isinstance(image_url, str):
        return _result(False, "Outfit title and image must be text")
    
    if not image_url.startswith("http") and not image_url.startswith("data:"):
        return _result(False, "Invalid image URL format")
    
    try:
        collection = mongo.get_collection(mongo.LIKED_OUTFITS)
        if collection is None:
            return _result(False, "Database not available")
        
        prefix = image_url[:IMAGE_URL_PREFIX_LENGTH]
        for existing in collection.find({"user_id": user_id, "title": title}, {"image_url": 1}):
            if (existing.get("image_url") or "")[:IMAGE_URL_PREFIX_LENGTH] == prefix:
                logger.info(f"Duplicate like ignored for {user_id}: {title}")
                return _result(True, "This outfit is already in your likes", is_duplicate=True)
        
        links = data.get("shopping_links") or {}
        items = data.get("items") or []
        shopping_item = items[0] if items and isinstance(items[0], str) else title
        outfit_id = secrets.token_hex(8)
        
        outfit = {
            "outfit_id": outfit_id,
            "user_id": user_id,
            "image_url": image_url,
            "title": title,
            "description": data.get("description") or "",
            "items": items,
            "color_palette": data.get("color_palette") or [],
            "style_type": data.get("style_type") or "",
            "occasion": data.get("occasion") or "",
            "shopping_links": resolve_shopping_links(links, shopping_item, data.get("gender")),
            "liked_at": datetime.utcnow().isoformat(),
            "recommendation_id": data.get("recommendation_id") or "",
        }
        
        collection.insert_one(outfit)
        logger.info(f"Liked outfit saved: {outfit_id} for {user_id}")
        
        return _result(True, "Outfit saved to your likes", outfit_id=outfit_id)
        
    except Exception as e:
        logger.error(f"Failed to save liked outfit: {e}")
        return _result(False, "Failed to save outfit")


def get_liked_outfits(
    user_id: str,
    limit: int = 50,
    offset: int = 0
) -> List[Dict[str, Any]]:
    """Get user's liked outfits, newest first."""
    if not is_valid_user_id(user_id):
        return []
    
    try:
        collection = mongo.get_collection(mongo.LIKED_OUTFITS)
        if collection is None:
            return []
        
        cursor = collection.find(
            {"user_id": user_id},
            {"_id": 0}
        ).sort("liked_at", -1).skip(offset).limit(limit)
        
        return list(cursor)
        
    except Exception as e:
        logger.error(f"Failed to get liked outfits for {user_id}: {e}")
        return []


def remove_liked_outfit(user_id: str, outfit_id: str) -> bool:
    """
    Remove a liked outfit.
    
    Returns:
        True if removed, False otherwise
    """
    try:
        collection = mongo.get_collection(mongo.LIKED_OUTFITS)
        if collection is None:
            return False
        
        result = collection.delete_one({"user_id": user_id, "outfit_id": outfit_id})
        
        if result.deleted_count > 0:
            logger.info(f"Liked outfit removed: {outfit_id}")
            return True
        return False
        
    except Exception as e:
        logger.error(f"Failed to remove liked outfit: {e}")
        return False
