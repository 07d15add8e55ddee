# Database module
from smartstyle.db.mongo import (
    connect,
    close,
    get_collection,
    health_check,
)
from smartstyle.db.likes import (
    save_liked_outfit,
    get_liked_outfits,
    remove_liked_outfit,
)
from smartstyle.db.wardrobe import (
    validate_item_data,
    add_wardrobe_item,
    get_wardrobe_items,
    mark_item_worn,
    delete_wardrobe_item,
    get_wardrobe_stats,
)
from smartstyle.db.preferences import get_preferences, save_preferences
from smartstyle.db.recommendations import save_recommendation
