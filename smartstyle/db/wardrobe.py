"""
Wardrobe Module (v3.0.0)
User wardrobe item management and wear tracking.
"""
import logging
import secrets
from typing import Optional, List, Dict, Any
from datetime import datetime

from smartstyle.db import mongo

logger = logging.getLogger(__name__)

ITEM_TYPES = ("top", "bottom", "dress", "shoes", "accessory", "outerwear")
LEAST_WORN_LIMIT = 5


def validate_item_data(data: Dict[str, Any]) -> Optional[str]:
    """
    Check the fields a new wardrobe item needs.
    
    Returns:
        Error message, or None when the data is usable
    """
    if not data.get("image_url") or not data.get("item_type") or not data.get("description"):
        return "Image, item type, and description are required"
    
    if data["item_type"] not in ITEM_TYPES:
        return f"item_type must be one of: {', '.join(ITEM_TYPES)}"
    
    return None


# ==================== WARDROBE ITEMS ====================

def add_wardrobe_item(owner_user_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Create a new wardrobe item.
    
    Args:
        owner_user_id: Owner's user ID
        data: Validated item fields (see validate_item_data)
    
    Returns:
        Created item document or None
    """
    try:
        collection = mongo.get_collection(mongo.WARDROBE_ITEMS)
        if collection is None:
            return None
        
        item_id = secrets.token_hex(8)
        
        item = {
            "item_id": item_id,
            "owner_user_id": owner_user_id,
            "image_url": data["image_url"],
            "item_type": data["item_type"],
            "category": data.get("category") or "",
            "brand": data.get("brand") or "",
            "description": data["description"],
            "dominant_colors": data.get("dominant_colors") or [],
            "season": data.get("season") or [],
            "occasions": data.get("occasions") or [],
            "added_at": datetime.utcnow().isoformat(),
            "worn_count": 0,
            "last_worn_at": None,
            "tags": data.get("tags") or [],
            "notes": data.get("notes") or "",
            "active": True
        }
        
        collection.insert_one(item)
        logger.info(f"Wardrobe item created: {item_id} ({item['item_type']})")
        
        item.pop("_id", None)
        return item
        
    except Exception as e:
        logger.error(f"Failed to create wardrobe item: {e}")
        return None


def get_wardrobe_items(
    user_id: str,
    item_type: Optional[str] = None,
    season: Optional[str] = None,
    occasion: Optional[str] = None,
    limit: int = 200,
    offset: int = 0
) -> List[Dict[str, Any]]:
    """
    Get user's active wardrobe items with optional filters.
    
    Args:
        user_id: Owner's user ID
        item_type: Filter by type (top, bottom, etc.)
        season: Only items tagged with this season
        occasion: Only items tagged with this occasion
        limit: Max results
        offset: Skip for pagination
    
    Returns:
        List of wardrobe items, newest first
    """
    try:
        collection = mongo.get_collection(mongo.WARDROBE_ITEMS)
        if collection is None:
            return []
        
        query = {"owner_user_id": user_id, "active": True}
        
        if item_type:
            query["item_type"] = item_type
        if season:
            query["season"] = season
        if occasion:
            query["occasions"] = occasion
        
        cursor = collection.find(
            query,
            {"_id": 0}
        ).sort("added_at", -1).skip(offset).limit(limit)
        
        return list(cursor)
        
    except Exception as e:
        logger.error(f"Failed to get wardrobe items: {e}")
        return []


def mark_item_worn(user_id: str, item_id: str) -> bool:
    """
    Increment an item's wear count and stamp the wear time.
    
    Returns:
        True if updated, False otherwise
    """
    try:
        collection = mongo.get_collection(mongo.WARDROBE_ITEMS)
        if collection is None:
            return False
        
        result = collection.update_one(
            {"item_id": item_id, "owner_user_id": user_id, "active": True},
            {
                "$inc": {"worn_count": 1},
                "$set": {"last_worn_at": datetime.utcnow().isoformat()}
            }
        )
        
        return result.modified_count > 0
        
    except Exception as e:
        logger.error(f"Failed to mark item worn: {e}")
        return False


def delete_wardrobe_item(user_id: str, item_id: str) -> bool:
    """
    Soft delete a wardrobe item.
    
    Returns:
        True if deleted, False otherwise
    """
    try:
        collection = mongo.get_collection(mongo.WARDROBE_ITEMS)
        if collection is None:
            return False
        
        result = collection.update_one(
            {"item_id": item_id, "owner_user_id": user_id},
            {"$set": {"active": False}}
        )
        
        return result.modified_count > 0
        
    except Exception as e:
        logger.error(f"Failed to delete wardrobe item: {e}")
        return False


# ==================== STATS ====================

def get_wardrobe_stats(user_id: str) -> Dict[str, Any]:
    """
    Summarize a user's wardrobe.
    
    Returns:
        Dict with total_items, items_by_type, most_worn_item and up to
        five never-worn items
    """
    items = get_wardrobe_items(user_id, limit=1000)
    
    items_by_type: Dict[str, int] = {}
    most_worn = None
    
    for item in items:
        item_type = item.get("item_type", "")
        items_by_type[item_type] = items_by_type.get(item_type, 0) + 1
        
        if most_worn is None or item.get("worn_count", 0) > most_worn.get("worn_count", 0):
            most_worn = item
    
    least_worn = [item for item in items if item.get("worn_count", 0) == 0][:LEAST_WORN_LIMIT]
    
    return {
        "total_items": len(items),
        "items_by_type": items_by_type,
        "most_worn_item": most_worn,
        "least_worn_items": least_worn,
    }
