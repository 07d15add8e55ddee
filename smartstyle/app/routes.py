"""
API Routes for SmartStyle v1.0.0
Wardrobe outfit recommendations, likes, wardrobe and color extraction.
"""
import time
import asyncio
import logging
from typing import Optional, Dict, Any
from fastapi import APIRouter, UploadFile, File, HTTPException, Depends, Request, Query, Body
from fastapi.responses import JSONResponse

from smartstyle.core.validation import (
    ValidationError,
    validate_recommend_request,
    validate_image_upload,
    sanitize_error_message,
)
from smartstyle.core.auth import User, get_current_user, check_user_ownership
from smartstyle.core.rate_limit import check_rate_limit, rate_limiter
from smartstyle.core.timeouts import with_timeout
from smartstyle.config import get_provider_status, get_settings, get_llm_config
from smartstyle.cache import cache_manager, generate_request_hash, generate_wardrobe_hash, get_season
from smartstyle.db import mongo
from smartstyle.db.likes import save_liked_outfit, get_liked_outfits, remove_liked_outfit
from smartstyle.db.wardrobe import (
    validate_item_data,
    add_wardrobe_item,
    get_wardrobe_items,
    mark_item_worn,
    delete_wardrobe_item,
    get_wardrobe_stats,
)
from smartstyle.db.preferences import PREFERENCE_FIELDS, get_preferences, save_preferences
from smartstyle.db.recommendations import save_recommendation
from smartstyle.services.outfit_generator import generate_wardrobe_outfits, OutfitGenerationError
from smartstyle.services.weather import (
    fetch_weather_forecast,
    get_weather_clothing_suggestions,
    is_configured as weather_configured,
)
from smartstyle.vision.colors import extract_colors
from smartstyle.observability import (
    get_metrics,
    is_logging_enabled,
    log_request,
    increment_request,
    increment_rate_limited,
    increment_weather_failure,
)

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "1.0.0"
DB_UNAVAILABLE = "Database not available"


def _latency_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


async def _fetch_weather(target_date) -> Optional[Dict[str, Any]]:
    """Weather for the occasion date; any failure just means no weather."""
    if not weather_configured():
        return None
    
    try:
        weather = await with_timeout(
            fetch_weather_forecast(target_date),
            get_settings().weather_timeout_seconds,
            "Weather fetch timed out"
        )
    except Exception as e:
        logger.warning(f"Continuing without weather: {e}")
        weather = None
    
    if weather is None:
        increment_weather_failure()
    return weather


# ==================== PUBLIC ENDPOINTS ====================

@router.get("/health")
async def health_check():
    """Health check with observability info."""
    settings = get_settings()
    metrics = get_metrics()
    
    return {
        "status": "ok",
        "version": VERSION,
        "llm": get_provider_status(),
        "cache": cache_manager.get_status(),
        "mongo": mongo.health_check(),
        "weather": {"enabled": weather_configured()},
        "auth": {"bypass": settings.bypass_auth},
        "rate_limit": {
            "max_requests": rate_limiter.max_requests,
            "window_seconds": rate_limiter.window_seconds,
        },
        "observability": {
            "logging_enabled": is_logging_enabled(),
            "total_requests": metrics["total_requests"],
            "cache_hit_ratio": metrics["cache_hit_ratio"],
        },
    }


@router.get("/metrics")
async def get_metrics_endpoint():
    """Get detailed metrics for monitoring."""
    return JSONResponse(content=get_metrics())


# ==================== RECOMMENDATIONS ====================

@router.post("/api/recommend")
async def recommend_outfits(
    request: Request,
    user: User = Depends(get_current_user)
):
    """
    POST /api/recommend
    
    Generate outfit combinations from the caller's wardrobe.
    
    Headers:
        Authorization: Bearer <Firebase ID token>
    
    Body:
        { "userId", "occasion", "date"?, "wardrobeItems": [...] }
    """
    start = time.time()
    endpoint = "/api/recommend"
    provider = get_llm_config().provider.value
    
    try:
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON in request body")
        
        try:
            validated = validate_recommend_request(body)
        except ValidationError as ve:
            raise HTTPException(status_code=ve.status_code, detail=ve.message)
        
        user_id = validated["user_id"]
        
        if not check_user_ownership(user, user_id):
            logger.warning(f"Forbidden recommend: token={user.user_id}, body={user_id}")
            raise HTTPException(
                status_code=403,
                detail="Forbidden - You can only access your own wardrobe"
            )
        
        try:
            limit = check_rate_limit(user_id)
        except HTTPException:
            increment_rate_limited()
            raise
        headers = limit.to_headers()
        
        weather = None
        if validated["date"]:
            weather = await _fetch_weather(validated["date"])
        weather_dict = None
        if weather:
            weather_dict = {**weather.to_dict(), "suggestions": get_weather_clothing_suggestions(weather)}
        
        preferences = get_preferences(user_id)
        preference_key = {field: (preferences or {}).get(field) or [] for field in PREFERENCE_FIELDS}
        
        wardrobe_items = validated["wardrobe_items"]
        wardrobe_hash = generate_wardrobe_hash(wardrobe_items)
        request_hash = generate_request_hash(
            user_id=user_id,
            occasion=validated["occasion"],
            item_ids=[item.get("id") or "" for item in wardrobe_items],
            season=get_season(validated["date"]),
            preferences=preference_key,
        )
        
        cached = cache_manager.get(request_hash, wardrobe_hash)
        if cached is not None:
            increment_request(provider=provider, cache_hit=True)
            log_request(endpoint, user_id, 200, _latency_ms(start), cache_hit=True, provider_used=provider)
            return JSONResponse(
                content={**cached, "weather": weather_dict, "cached": True},
                headers=headers
            )
        
        try:
            result = await generate_wardrobe_outfits(
                wardrobe_items,
                user_id,
                validated["occasion"],
                weather=weather,
                preferences=preferences
            )
        except OutfitGenerationError as oge:
            message = oge.message if oge.status_code < 500 else sanitize_error_message(oge.message)
            raise HTTPException(status_code=oge.status_code, detail=message)
        
        cache_manager.set(request_hash, wardrobe_hash, result, user_id=user_id)
        save_recommendation(user_id, validated["occasion"], result, validated["date"], weather_dict)
        
        increment_request(provider=provider)
        log_request(endpoint, user_id, 200, _latency_ms(start), provider_used=provider)
        
        return JSONResponse(
            content={**result, "weather": weather_dict, "cached": False},
            headers=headers
        )
    
    except HTTPException as he:
        if he.status_code >= 500:
            increment_request(provider=provider, error=True)
        log_request(endpoint, user.user_id, he.status_code, _latency_ms(start), error=str(he.detail))
        raise
    except Exception as e:
        logger.error(f"Recommend failed: {e}")
        increment_request(provider=provider, error=True)
        log_request(endpoint, user.user_id, 500, _latency_ms(start), error=sanitize_error_message(str(e)))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/recommend")
async def get_saved_recommendations(user: User = Depends(get_current_user)):
    """Saved outfit combinations (not available yet)."""
    return JSONResponse(content={
        "savedOutfits": [],
        "message": "Saved outfits feature coming soon"
    })


# ==================== LIKED OUTFITS ====================

@router.post("/api/likes")
async def like_outfit(
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user)
):
    """
    Save an outfit to the user's likes.
    
    Liking the same outfit twice succeeds without storing a second copy.
    """
    result = save_liked_outfit(user.user_id, payload)
    
    if not result["success"]:
        status_code = 503 if result["message"] == DB_UNAVAILABLE else 400
        raise HTTPException(status_code=status_code, detail=result["message"])
    
    return JSONResponse(content=result, status_code=200 if result["is_duplicate"] else 201)


@router.get("/api/likes")
async def list_liked_outfits(
    limit: int = Query(50, ge=1, le=100, description="Max results"),
    offset: int = Query(0, ge=0, description="Skip for pagination"),
    user: User = Depends(get_current_user)
):
    """Get user's liked outfits."""
    outfits = get_liked_outfits(user.user_id, limit=limit, offset=offset)
    
    return JSONResponse(content={
        "liked_outfits": outfits,
        "count": len(outfits),
        "limit": limit,
        "offset": offset
    })


@router.delete("/api/likes/{outfit_id}")
async def unlike_outfit(
    outfit_id: str,
    user: User = Depends(get_current_user)
):
    """Remove an outfit from the user's likes."""
    if not remove_liked_outfit(user.user_id, outfit_id):
        raise HTTPException(status_code=404, detail="Liked outfit not found")
    
    return JSONResponse(content={"message": "Outfit removed from likes"})


# ==================== WARDROBE ====================

@router.post("/api/wardrobe/items")
async def create_wardrobe_item(
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user)
):
    """
    Add an item to the user's wardrobe.
    
    Requires image_url, item_type and description.
    """
    error = validate_item_data(payload)
    if error:
        raise HTTPException(status_code=400, detail=error)
    
    item = add_wardrobe_item(user.user_id, payload)
    if item is None:
        raise HTTPException(status_code=503, detail=DB_UNAVAILABLE)
    
    cache_manager.invalidate_user(user.user_id)
    return JSONResponse(content=item, status_code=201)


@router.get("/api/wardrobe/items")
async def list_wardrobe_items(
    item_type: Optional[str] = Query(None, description="Filter by item type"),
    season: Optional[str] = Query(None, description="Filter by season"),
    occasion: Optional[str] = Query(None, description="Filter by occasion"),
    limit: int = Query(200, ge=1, le=500, description="Max results"),
    offset: int = Query(0, ge=0, description="Skip for pagination"),
    user: User = Depends(get_current_user)
):
    """Get user's active wardrobe items."""
    items = get_wardrobe_items(
        user.user_id,
        item_type=item_type,
        season=season,
        occasion=occasion,
        limit=limit,
        offset=offset
    )
    
    return JSONResponse(content={
        "items": items,
        "count": len(items),
        "limit": limit,
        "offset": offset
    })


@router.delete("/api/wardrobe/items/{item_id}")
async def remove_wardrobe_item(
    item_id: str,
    user: User = Depends(get_current_user)
):
    """Soft delete a wardrobe item."""
    if not delete_wardrobe_item(user.user_id, item_id):
        raise HTTPException(status_code=404, detail="Item not found")
    
    cache_manager.invalidate_user(user.user_id)
    return JSONResponse(content={"message": "Item deleted"})


@router.post("/api/wardrobe/items/{item_id}/worn")
async def wear_wardrobe_item(
    item_id: str,
    user: User = Depends(get_current_user)
):
    """Record that an item was worn."""
    if not mark_item_worn(user.user_id, item_id):
        raise HTTPException(status_code=404, detail="Item not found")
    
    cache_manager.invalidate_user(user.user_id)
    return JSONResponse(content={"message": "Item marked as worn"})


@router.get("/api/wardrobe/stats")
async def wardrobe_stats(user: User = Depends(get_current_user)):
    """Item counts by type plus most and least worn items."""
    return JSONResponse(content=get_wardrobe_stats(user.user_id))


# ==================== PREFERENCES ====================

@router.get("/api/preferences")
async def read_preferences(user: User = Depends(get_current_user)):
    preferences = get_preferences(user.user_id)
    if preferences is None:
        raise HTTPException(status_code=503, detail=DB_UNAVAILABLE)
    return JSONResponse(content=preferences)


@router.put("/api/preferences")
async def update_preferences(
    payload: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user)
):
    """Replace favorite colors, preferred styles and preferred occasions."""
    preferences = save_preferences(user.user_id, payload)
    if preferences is None:
        raise HTTPException(status_code=503, detail=DB_UNAVAILABLE)
    
    cache_manager.invalidate_user(user.user_id)
    return JSONResponse(content=preferences)


# ==================== COLOR EXTRACTION ====================

@router.post("/api/colors/extract")
async def extract_image_colors(
    image: UploadFile = File(..., description="Outfit photo (JPEG, PNG or WebP)"),
    user: User = Depends(get_current_user)
):
    """
    Detect the skin tone and dominant clothing colors of a photo.
    """
    start = time.time()
    
    try:
        try:
            _, pil_image = await validate_image_upload(image, image.content_type)
        except ValidationError as ve:
            raise HTTPException(status_code=ve.status_code, detail=ve.message)
        
        # numpy work off the event loop
        result = await asyncio.to_thread(extract_colors, pil_image)
        
        log_request("/api/colors/extract", user.user_id, 200, _latency_ms(start))
        return JSONResponse(content=result.to_dict())
    
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Color extraction failed: {e}")
        raise HTTPException(status_code=500, detail=sanitize_error_message(str(e)))
