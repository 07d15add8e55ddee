"""
Input Validation Module (v1.2.0)
Validates request bodies and uploaded images before processing.
"""
import io
import html
import logging
from datetime import date, datetime
from typing import Tuple, Optional, Any, Dict
from PIL import Image, ExifTags

logger = logging.getLogger(__name__)

# Configuration
MAX_FILE_SIZE_MB = 10
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}

MAX_OCCASION_LENGTH = 50
MAX_WARDROBE_ITEMS = 200
MAX_ERROR_MESSAGE_LENGTH = 200


class ValidationError(Exception):
    """Custom exception for validation errors."""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ==================== RECOMMEND REQUEST ====================

def parse_target_date(value: Any) -> Optional[date]:
    """
    Parse the optional `date` field of a recommend request.
    
    Accepts ISO-8601 dates ("2026-10-20") and datetimes, including a
    trailing "Z".
    
    Raises:
        ValidationError: If the value is not an ISO-8601 string
    """
    if value is None or value == "":
        return None
    
    if not isinstance(value, str):
        raise ValidationError("date must be an ISO-8601 string")
    
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"date must be an ISO-8601 date, got '{value}'")


def validate_recommend_request(body: Any) -> Dict[str, Any]:
    """
    Validate the JSON body of POST /api/recommend.
    
    Expected shape:
        { userId, occasion, date?, wardrobeItems[] }
    
    Returns:
        Dict with user_id, occasion, date (datetime.date or None), wardrobe_items
    
    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    
    user_id = body.get("userId")
    occasion = body.get("occasion")
    
    if not user_id or not occasion:
        raise ValidationError("Missing required fields: userId and occasion are required")
    
    if not isinstance(user_id, str) or not isinstance(occasion, str):
        raise ValidationError("userId and occasion must be strings")
    
    occasion = occasion.strip()
    if not occasion:
        raise ValidationError("Missing required fields: userId and occasion are required")
    if len(occasion) > MAX_OCCASION_LENGTH:
        raise ValidationError(f"occasion must be at most {MAX_OCCASION_LENGTH} characters")
    
    wardrobe_items = body.get("wardrobeItems")
    if not wardrobe_items or not isinstance(wardrobe_items, list):
        raise ValidationError("Missing required field: wardrobeItems array is required")
    
    if len(wardrobe_items) > MAX_WARDROBE_ITEMS:
        raise ValidationError(f"wardrobeItems may contain at most {MAX_WARDROBE_ITEMS} items")
    
    for index, item in enumerate(wardrobe_items):
        if not isinstance(item, dict):
            raise ValidationError(f"wardrobeItems[{index}] must be an object")
    
    return {
        "user_id": user_id,
        "occasion": occasion,
        "date": parse_target_date(body.get("date")),
        "wardrobe_items": wardrobe_items,
    }


def sanitize_error_message(message: Optional[str]) -> str:
    """Escape and truncate an error message before returning it to clients."""
    if not message or not isinstance(message, str):
        return "An error occurred"
    
    escaped = html.escape(message, quote=True).replace("/", "&#x2F;")
    return escaped[:MAX_ERROR_MESSAGE_LENGTH]


# ==================== IMAGE UPLOADS ====================

def validate_file_size(content: bytes) -> None:
    """
    Check if file size is within limits.
    
    Raises:
        ValidationError: If file exceeds MAX_FILE_SIZE_MB
    """
    size_mb = len(content) / (1024 * 1024)
    if len(content) > MAX_FILE_SIZE_BYTES:
        raise ValidationError(
            f"File too large: {size_mb:.1f}MB (max {MAX_FILE_SIZE_MB}MB)",
            status_code=413
        )
    if not content:
        raise ValidationError("Empty file", status_code=400)
    logger.debug(f"File size OK: {size_mb:.2f}MB")


def validate_mime_type(content_type: Optional[str]) -> None:
    """
    Check if MIME type is allowed.
    
    Raises:
        ValidationError: If MIME type is not in ALLOWED_MIME_TYPES
    """
    if content_type is None:
        raise ValidationError("Missing Content-Type header", status_code=415)
    
    # Normalize content type (remove charset etc.)
    mime = content_type.split(";")[0].strip().lower()
    
    if mime not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Unsupported file type: {mime}. Allowed: {', '.join(sorted(ALLOWED_MIME_TYPES))}",
            status_code=415
        )
    logger.debug(f"MIME type OK: {mime}")


def decode_image(content: bytes) -> Image.Image:
    """
    Decode image bytes to PIL Image.
    
    Raises:
        ValidationError: If image cannot be decoded
    """
    try:
        image = Image.open(io.BytesIO(content))
        image.load()  # Force load to catch truncated images
        return image
    except Exception as e:
        raise ValidationError(
            f"Cannot decode image: {str(e)}",
            status_code=400
        )


# EXIF orientation -> operations that restore an upright image
_ORIENTATION_OPS = {
    2: (Image.Transpose.FLIP_LEFT_RIGHT,),
    3: (Image.Transpose.ROTATE_180,),
    4: (Image.Transpose.FLIP_TOP_BOTTOM,),
    5: (Image.Transpose.TRANSPOSE,),
    6: (Image.Transpose.ROTATE_270,),
    7: (Image.Transpose.TRANSVERSE,),
    8: (Image.Transpose.ROTATE_90,),
}


def fix_exif_orientation(image: Image.Image) -> Image.Image:
    """
    Fix image orientation based on EXIF data.
    
    Returns:
        Properly oriented PIL Image
    """
    try:
        exif = image.getexif()
        if not exif:
            return image
        
        orientation = exif.get(ExifTags.Base.Orientation)
        ops = _ORIENTATION_OPS.get(orientation)
        if not ops:
            return image
        
        for op in ops:
            image = image.transpose(op)
        
        logger.debug(f"Fixed EXIF orientation: {orientation}")
        return image
        
    except Exception as e:
        logger.warning(f"Could not fix EXIF orientation: {e}")
        return image


async def validate_image_upload(file, content_type: Optional[str]) -> Tuple[bytes, Image.Image]:
    """
    Complete validation pipeline for uploaded images.
    
    Args:
        file: UploadFile (async read/seek)
        content_type: MIME type from request
    
    Returns:
        Tuple of (validated bytes, PIL Image)
    
    Raises:
        ValidationError: If any validation fails
    """
    content = await file.read()
    await file.seek(0)
    
    validate_file_size(content)
    validate_mime_type(content_type)
    
    image = decode_image(content)
    image = fix_exif_orientation(image)
    
    logger.info(f"Image validated: {image.size[0]}x{image.size[1]}, {image.mode}")
    
    return content, image
