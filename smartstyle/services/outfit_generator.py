"""
Wardrobe Outfit Generator (v2.0.0)
Builds outfit combinations from a user's own wardrobe with an LLM, then
validates every suggested piece against the wardrobe.
"""
import logging
from typing import Optional, List, Dict, Any

from smartstyle.config import get_settings
from smartstyle.core.timeouts import with_timeout, OperationTimeoutError
from smartstyle.llm import get_llm_client
from smartstyle.services.shopping import fallback_links
from smartstyle.services.weather import WeatherInfo

logger = logging.getLogger(__name__)

ITEM_TYPES = ("top", "bottom", "dress", "shoes", "accessory", "outerwear")
MIN_ITEMS = 3
SPARSE_WARDROBE = 5
MIN_OUTFIT_ITEMS = 2
MAX_OUTFITS = 3
DEFAULT_CONFIDENCE = 85

SYSTEM_PROMPT = (
    "You are a professional personal stylist. You help users create outfit "
    "combinations from their existing wardrobe. You provide practical, stylish "
    "suggestions that match their preferences and the occasion. "
    "Always respond in valid JSON format."
)


# ==================== ERRORS ====================

class OutfitGenerationError(Exception):
    """Raised when no usable outfit could be generated."""
    status_code = 500
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class EmptyWardrobeError(OutfitGenerationError):
    status_code = 400


class InsufficientItemsError(OutfitGenerationError):
    status_code = 400


class LLMDisabledError(OutfitGenerationError):
    status_code = 503


# ==================== PROMPT ====================

def group_by_type(items: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    by_type = {item_type: [] for item_type in ITEM_TYPES}
    for item in items:
        item_type = item.get("itemType")
        if item_type in by_type:
            by_type[item_type].append(item)
    return by_type


def weather_guidance(weather: WeatherInfo) -> str:
    """Temperature and condition hints for the prompt."""
    temp = weather.temp
    if temp < 10:
        lines = ["COLD WEATHER: Prioritize warm layers, outerwear, scarves. Avoid lightweight fabrics."]
    elif temp < 15:
        lines = ["COOL WEATHER: Light jacket or cardigan recommended. Consider layering options."]
    elif temp < 25:
        lines = ["MODERATE WEATHER: Versatile layering. Comfortable fabrics work well."]
    elif temp < 30:
        lines = ["WARM WEATHER: Light, breathable fabrics. Short sleeves appropriate."]
    else:
        lines = ["HOT WEATHER: Minimal, breathable clothing essential. Light colors preferred."]
    
    condition = (weather.condition or "").lower()
    if "rain" in condition:
        lines.append("RAINY CONDITIONS: Waterproof outerwear essential. Avoid delicate fabrics and suede.")
    elif "snow" in condition:
        lines.append("SNOWY CONDITIONS: Waterproof boots and insulated outerwear required.")
    elif "wind" in condition:
        lines.append("WINDY CONDITIONS: Wind-resistant jacket recommended. Secure accessories.")
    
    return "\n".join(lines)


def _describe_item(index: int, item: Dict[str, Any]) -> str:
    colors = ", ".join((item.get("dominantColors") or [])[:3]) or "unspecified colors"
    brand = f" by {item['brand']}" if item.get("brand") else ""
    worn_count = item.get("wornCount") or 0
    worn = f" (worn {worn_count}x)" if worn_count > 0 else " (never worn)"
    return f"{index}. {item.get('description', '')}{brand} - {colors}{worn} [ID: {item.get('id')}]"


def _preference_list(preferences: Dict[str, Any], field: str, limit: int) -> str:
    values = preferences.get(field) or []
    return ", ".join(str(v) for v in values[:limit]) or "None"


def build_outfit_prompt(
    items_by_type: Dict[str, List[Dict[str, Any]]],
    occasion: str,
    weather: Optional[WeatherInfo] = None,
    preferences: Optional[Dict[str, Any]] = None
) -> str:
    """Build the user prompt for outfit generation."""
    sections = [
        "You are helping a user create outfit combinations from their existing wardrobe.",
        f"OCCASION: {occasion}",
    ]
    
    if weather:
        sections.append(f"WEATHER FORECAST:\n{weather.to_prompt_context()}")
        sections.append(weather_guidance(weather))
    
    if preferences:
        sections.append(
            "USER PREFERENCES:\n"
            f"- Favorite Colors: {_preference_list(preferences, 'favorite_colors', 5)}\n"
            f"- Preferred Styles: {_preference_list(preferences, 'preferred_styles', 3)}\n"
            f"- Frequent Occasions: {_preference_list(preferences, 'preferred_occasions', 3)}"
        )
    
    wardrobe_lines = ["USER'S WARDROBE:"]
    for item_type, items in items_by_type.items():
        if not items:
            continue
        wardrobe_lines.append(f"\n{item_type.upper()}S ({len(items)} items):")
        wardrobe_lines.extend(_describe_item(i, item) for i, item in enumerate(items, 1))
    sections.append("\n".join(wardrobe_lines))
    
    weather_rule = (
        f"Be WEATHER-APPROPRIATE for {weather.temp}°C and {weather.condition} conditions"
        if weather else "Consider typical weather for this occasion"
    )
    
    sections.append(f"""TASK:
Create up to {MAX_OUTFITS} DIFFERENT outfit combinations using ONLY items from the wardrobe above.

IMPORTANT RULES:
1. Work with WHATEVER item types are available
2. DO NOT suggest items that don't exist in the wardrobe
3. Reference every item by its exact ID
4. If certain item types are missing, ignore them and focus on the available items

Each outfit must:
1. Be appropriate for the occasion: {occasion}
2. {weather_rule}
3. Include colors that work well together
4. Consider the user's preferences and wear history

For each outfit, specify:
- name: A creative name for the outfit
- items: Array of items to wear (exact item IDs from the wardrobe)
- reasoning: Why this combination works (2-3 sentences)
- confidence: How confident you are in this suggestion (0-100)

Also suggest up to 3 "missingPieces" that would enhance the wardrobe for this occasion.

Respond in JSON format:
{{
  "outfits": [
    {{
      "name": "Classic Professional",
      "items": [
        {{"itemId": "item_id_here", "description": "item description", "type": "top"}},
        {{"itemId": "item_id_here", "description": "item description", "type": "bottom"}}
      ],
      "reasoning": "Explanation here",
      "confidence": 90
    }}
  ],
  "missingPieces": ["Suggestion 1", "Suggestion 2"]
}}""")
    
    return "\n\n".join(sections)


# ==================== VALIDATION ====================

def match_wardrobe_item(
    ref: Dict[str, Any],
    items: List[Dict[str, Any]]
) -> Optional[Dict[str, Any]]:
    """
    Find the wardrobe item an AI suggestion refers to.
    
    Tries, in order: exact id, description terms (at least
    min(2, number of terms) terms longer than two characters), then item
    type plus the first word of the description.
    """
    item_id = ref.get("itemId")
    if item_id:
        for item in items:
            if item.get("id") == item_id:
                return item
    
    description = str(ref.get("description") or "").lower()
    terms = description.split()
    
    if terms:
        needed = min(2, len(terms))
        for item in items:
            item_desc = str(item.get("description") or "").lower()
            matches = sum(1 for term in terms if len(term) > 2 and term in item_desc)
            if matches >= needed:
                return item
    
    item_type = ref.get("type")
    if item_type:
        first_word = terms[0] if terms else ""
        for item in items:
            if item.get("itemType") != item_type:
                continue
            if not first_word or first_word in str(item.get("description") or "").lower():
                return item
    
    return None


def _clamp_confidence(value: Any) -> int:
    try:
        confidence = int(float(value)) if value not in (None, "", 0) else DEFAULT_CONFIDENCE
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE
    return min(100, max(0, confidence))


def validate_outfits(
    ai_outfits: List[Dict[str, Any]],
    items: List[Dict[str, Any]],
    occasion: str
) -> List[Dict[str, Any]]:
    """Keep outfits whose pieces exist in the wardrobe (at least two each)."""
    validated = []
    
    for outfit in ai_outfits:
        if not isinstance(outfit, dict):
            continue
        
        matched = []
        for ref in outfit.get("items") or []:
            if not isinstance(ref, dict):
                continue
            
            item = match_wardrobe_item(ref, items)
            if item is None:
                logger.warning(f"Could not match AI-suggested item: {ref}")
                continue
            
            if any(m["itemId"] == item.get("id") for m in matched):
                continue
            
            matched.append({
                "itemId": item.get("id"),
                "description": item.get("description", ""),
                "type": item.get("itemType", ""),
            })
        
        if len(matched) < MIN_OUTFIT_ITEMS:
            logger.warning(f"Skipping outfit with insufficient valid items: {outfit.get('name')}")
            continue
        
        validated.append({
            "name": outfit.get("name") or "Outfit",
            "items": matched,
            "reasoning": outfit.get("reasoning") or "This combination works well together.",
            "confidence": _clamp_confidence(outfit.get("confidence")),
            "occasion": occasion,
        })
    
    return validated


# ==================== GENERATION ====================

async def generate_wardrobe_outfits(
    items: List[Dict[str, Any]],
    user_id: str,
    occasion: str,
    weather: Optional[WeatherInfo] = None,
    preferences: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Generate outfit combinations from wardrobe items.
    
    Returns:
        {outfits, wardrobeStats, missingPieces, missingPieceLinks}
    
    Raises:
        EmptyWardrobeError: No active items
        InsufficientItemsError: Fewer than three active items
        LLMDisabledError: LLM switched off (SMARTSTYLE_LLM_ENABLED=false)
        OutfitGenerationError: LLM failure or no valid outfit
    """
    active_items = [item for item in items if item.get("isActive") is not False]
    
    if not active_items:
        raise EmptyWardrobeError("No wardrobe items found. Please add items to your wardrobe first.")
    
    if len(active_items) < MIN_ITEMS:
        raise InsufficientItemsError(
            f"Not enough items in wardrobe. Please add at least {MIN_ITEMS} items to generate outfit suggestions."
        )
    
    if len(active_items) < SPARSE_WARDROBE:
        logger.info(f"Sparse wardrobe for {user_id}: {len(active_items)} items")
    
    items_by_type = group_by_type(active_items)
    wardrobe_stats = {
        "totalItems": len(active_items),
        "itemsByType": {t: len(v) for t, v in items_by_type.items()},
    }
    
    settings = get_settings()
    if not settings.llm_enabled:
        raise LLMDisabledError("Outfit suggestions are temporarily unavailable")
    
    prompt = build_outfit_prompt(items_by_type, occasion, weather, preferences)
    
    try:
        client = get_llm_client()
        response = await with_timeout(
            client.generate_json(SYSTEM_PROMPT, prompt),
            settings.llm_timeout_seconds,
            "Outfit generation timed out"
        )
    except OperationTimeoutError as e:
        raise OutfitGenerationError(e.message)
    except Exception as e:
        logger.error(f"LLM outfit generation failed for {user_id}: {e}")
        raise OutfitGenerationError("Failed to generate outfit suggestions. Please try again.")
    
    ai_outfits = response.get("outfits") if isinstance(response, dict) else None
    if not isinstance(ai_outfits, list):
        raise OutfitGenerationError("Invalid response from AI - no outfits generated")
    
    outfits = validate_outfits(ai_outfits, active_items, occasion)[:MAX_OUTFITS]
    
    if not outfits:
        raise OutfitGenerationError(
            "Could not generate valid outfit combinations. Try adding more items to your wardrobe."
        )
    
    missing_pieces = [str(p) for p in (response.get("missingPieces") or []) if p][:3]
    
    logger.info(f"Generated {len(outfits)} outfits for {user_id} ({occasion})")
    
    return {
        "outfits": outfits,
        "wardrobeStats": wardrobe_stats,
        "missingPieces": missing_pieces,
        "missingPieceLinks": {piece: fallback_links(piece) for piece in missing_pieces},
    }
