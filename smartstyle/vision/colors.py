"""
Color Extraction (v1.0.0)
Dominant clothing colors and skin tone from a photo.

Pipeline:
    1. Coarse skin scan locates the person
    2. A body box around the person is sampled into an HSV histogram,
       rejecting skin, background and flat wall-like pixels
    3. Heaviest bins are named; skin luminance gives the tone
"""
import math
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

SKIN_SAMPLE_STEP = 12
CLOTHING_SAMPLE_STEP = 10
MIN_SKIN_FOR_CENTER = 20
MIN_SKIN_FOR_TONE = 30
PERSON_RADIUS_RATIO = 0.35
TEXTURE_EDGE_THRESHOLD = 30
SIGNIFICANT_WEIGHT_RATIO = 0.05
MAX_CANDIDATES = 5
MAX_COLORS = 4
NEUTRAL_FALLBACK = "neutral tones"

# (lower bound, label); first match wins
SKIN_TONE_LADDER = (
    (200, "very fair"),
    (170, "fair"),
    (140, "light"),
    (110, "tan"),
    (80, "brown"),
)


@dataclass
class ColorExtraction:
    """Result of a color extraction."""
    skin_tone: str
    dress_colors: str
    colors: List[str] = field(default_factory=list)
    skin_pixels: int = 0
    person_center: Tuple[int, int] = (0, 0)
    candidates: int = 0
    
    def to_dict(self) -> dict:
        return {
            "skin_tone": self.skin_tone,
            "dress_colors": self.dress_colors,
            "colors": self.colors,
            "skin_pixels": self.skin_pixels,
            "person_center": list(self.person_center),
            "candidates": self.candidates,
        }


# ==================== COLOR MATH ====================

def _hsv(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized RGB (0-255) -> HSV with h in [0, 360), s and v in [0, 100]."""
    r = r / 255.0
    g = g / 255.0
    b = b / 255.0
    
    mx = np.maximum(np.maximum(r, g), b)
    mn = np.minimum(np.minimum(r, g), b)
    diff = mx - mn
    safe = np.where(diff == 0, 1.0, diff)
    
    h = np.where(
        mx == r, ((g - b) / safe + np.where(g < b, 6.0, 0.0)),
        np.where(mx == g, (b - r) / safe + 2.0, (r - g) / safe + 4.0)
    )
    h = np.where(diff == 0, 0.0, h) * 60.0
    s = np.where(mx == 0, 0.0, diff / np.where(mx == 0, 1.0, mx)) * 100.0
    v = mx * 100.0
    return h, s, v


def _luminance(r, g, b):
    return 0.299 * r + 0.587 * g + 0.114 * b


def _skin_mask(r: np.ndarray, g: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Skin when at least two of the RGB, YCbCr and HSV rules agree."""
    mx = np.maximum(np.maximum(r, g), b)
    mn = np.minimum(np.minimum(r, g), b)
    rgb_rule = (
        (r > 95) & (g > 40) & (b > 20) & (r > g) & (r > b)
        & (mx - mn > 15) & (np.abs(r - g) > 15)
    )
    
    cb = 128 - 0.168736 * r - 0.331264 * g + 0.5 * b
    cr = 128 + 0.5 * r - 0.418688 * g - 0.081312 * b
    ycbcr_rule = (cr >= 133) & (cr <= 173) & (cb >= 77) & (cb <= 127)
    
    h, s, _ = _hsv(r, g, b)
    hsv_rule = (h >= 0) & (h <= 50) & (s >= 23) & (s <= 68)
    
    votes = rgb_rule.astype(np.int8) + ycbcr_rule.astype(np.int8) + hsv_rule.astype(np.int8)
    return votes >= 2


def rgb_to_hsv(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """RGB (0-255) to (hue degrees, saturation %, value %)."""
    h, s, v = _hsv(np.array([r], dtype=np.float64), np.array([g], dtype=np.float64), np.array([b], dtype=np.float64))
    return float(h[0]), float(s[0]), float(v[0])


def is_skin_color(r: float, g: float, b: float) -> bool:
    return bool(_skin_mask(np.array([r], dtype=np.float64), np.array([g], dtype=np.float64), np.array([b], dtype=np.float64))[0])


def hue_bucket(hue: float, dark: bool = False) -> str:
    """Base color name for a hue in degrees."""
    if 0 <= hue < 15:
        return "red"
    if hue < 45:
        return "brown" if dark else "orange"
    if hue < 75:
        return "yellow"
    if hue < 150:
        return "green"
    if hue < 200:
        return "cyan"
    if hue < 260:
        return "blue"
    if hue < 300:
        return "purple"
    if hue < 330:
        return "magenta"
    return "red"


def get_color_name(r: float, g: float, b: float) -> str:
    """Human readable color name, e.g. "dark blue" or "light green"."""
    h, s, v = rgb_to_hsv(r, g, b)
    luminance = _luminance(r, g, b)
    
    if s < 10:
        if luminance < 50:
            return "black"
        if luminance > 200:
            return "white"
        return "gray"
    
    dark = v < 40
    base = hue_bucket(h, dark=dark)
    
    if s < 30:
        return f"light {base}"
    if dark:
        return f"dark {base}"
    if v > 75 and s > 60:
        return f"bright {base}"
    return base


def skin_tone_from_luminance(luminance: float) -> str:
    for lower, label in SKIN_TONE_LADDER:
        if luminance > lower:
            return label
    return "dark"


# ==================== EXTRACTION ====================

def _to_array(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    """PIL image or HxWx3|4 array -> HxWx3|4 array in its own dtype."""
    if isinstance(image, Image.Image):
        has_alpha = image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info)
        image = np.asarray(image.convert("RGBA" if has_alpha else "RGB"))
    
    pixels = np.asarray(image)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected an HxWx3 or HxWx4 image, got shape {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ValueError("Image is empty")
    return pixels


def edge_strength(red: np.ndarray, yy: np.ndarray, xx: np.ndarray) -> np.ndarray:
    """
    Central-difference edge strength of the red channel at (yy, xx), capped at 255.
    
    Border rows and columns have no central difference and score 0.
    """
    height, width = red.shape
    left = red[yy, np.clip(xx - 1, 0, width - 1)].astype(np.int32)
    right = red[yy, np.clip(xx + 1, 0, width - 1)].astype(np.int32)
    up = red[np.clip(yy - 1, 0, height - 1), xx].astype(np.int32)
    down = red[np.clip(yy + 1, 0, height - 1), xx].astype(np.int32)
    
    gx = np.where((xx >= 1) & (xx <= width - 2), np.abs(right - left), 0)
    gy = np.where((yy >= 1) & (yy <= height - 2), np.abs(down - up), 0)
    return np.minimum(255, gx + gy)


def _background_mask(h, s, v, dist):
    return (
        ((v > 90) & (s < 15))
        | (v < 8)
        | ((s < 8) & (dist > 0.7))
        | ((h >= 0) & (h <= 35) & (s > 55) & (v > 50) & (dist > 0.6))
        | ((h >= 35) & (h <= 65) & (s > 40) & (v > 65) & (dist > 0.6))
        | ((h >= 200) & (h <= 230) & (s > 30) & (s < 60) & (v > 65))
        | ((h >= 100) & (h <= 140) & (s > 35) & (s < 70) & (v > 50) & (dist > 0.6))
    )


def _clothing_mask(s, v, dist):
    return (
        ((s >= 5) & (s <= 95) & (v >= 12) & (v <= 88))
        | ((s >= 1) & (s <= 15) & (v >= 15) & (v <= 75) & (dist < 0.8))
    )


def _round_half_up(values: np.ndarray, step: int) -> np.ndarray:
    return (np.floor(values / step + 0.5) * step).astype(np.int64)


def extract_colors(image: Union[Image.Image, np.ndarray]) -> ColorExtraction:
    """
    Extract skin tone and dominant clothing colors.
    
    Args:
        image: PIL image or HxWx3|4 uint8 array
    
    Returns:
        ColorExtraction
    
    Raises:
        ValueError: If the image has an unsupported shape or no pixels
    """
    pixels = _to_array(image)
    height, width = pixels.shape[:2]
    
    # Stage 1: coarse skin scan
    grid = pixels[::SKIN_SAMPLE_STEP, ::SKIN_SAMPLE_STEP, :3].astype(np.float64)
    gr, gg, gb = grid[..., 0], grid[..., 1], grid[..., 2]
    skin = _skin_mask(gr, gg, gb)
    skin_count = int(skin.sum())
    
    center_x = width / 2
    center_y = height / 2
    if skin_count > MIN_SKIN_FOR_CENTER:
        ys, xs = np.nonzero(skin)
        center_x = float((xs * SKIN_SAMPLE_STEP).mean())
        center_y = float((ys * SKIN_SAMPLE_STEP).mean())
    
    # Stage 2: body box
    radius = min(width, height) * PERSON_RADIUS_RATIO
    y0 = int(max(0.0, center_y - radius * 0.5))
    y1 = min(float(height), center_y + radius * 1.2)
    x0 = int(max(0.0, center_x - radius * 0.8))
    x1 = min(float(width), center_x + radius * 0.8)
    
    rows = np.arange(y0, int(math.ceil(y1)), CLOTHING_SAMPLE_STEP)
    cols = np.arange(x0, int(math.ceil(x1)), CLOTHING_SAMPLE_STEP)
    rows = rows[rows < y1]
    cols = cols[cols < x1]
    
    # Stage 3: histogram of the body box
    bins: Dict[Tuple[int, int, int], List[float]] = {}
    if rows.size and cols.size:
        yy, xx = np.meshgrid(rows, cols, indexing="ij")
        sample = pixels[yy, xx].astype(np.float64)
        r, g, b = sample[..., 0], sample[..., 1], sample[..., 2]
        a = sample[..., 3] if sample.shape[-1] == 4 else np.full(r.shape, 255.0)
        h, s, v = _hsv(r, g, b)
        dist = np.hypot(xx - center_x, yy - center_y) / radius if radius > 0 else np.zeros(xx.shape)
        texture = edge_strength(pixels[..., 0], yy, xx) > TEXTURE_EDGE_THRESHOLD
        
        keep = (
            (a >= 128)
            & ~_skin_mask(r, g, b)
            & (dist <= 1.2)
            & ~_background_mask(h, s, v, dist)
            & _clothing_mask(s, v, dist)
            & (texture | (dist <= 0.7))
        )
        
        weights = np.maximum(1, np.floor(8 * (1 - dist))) * np.where(texture, 2, 1)
        keys = np.stack([
            _round_half_up(h, 12),
            _round_half_up(s, 15),
            _round_half_up(v, 15),
        ], axis=-1)
        
        for key, weight, red, green, blue in zip(
            map(tuple, keys[keep]), weights[keep], r[keep], g[keep], b[keep]
        ):
            acc = bins.setdefault(key, [0.0, 0.0, 0.0, 0.0])
            acc[0] += weight
            acc[1] += red * weight
            acc[2] += green * weight
            acc[3] += blue * weight
    
    # Stage 4: skin tone
    if skin_count > MIN_SKIN_FOR_TONE:
        tone_luminance = _luminance(gr[skin].mean(), gg[skin].mean(), gb[skin].mean())
    else:
        tone_luminance = _luminance(gr.mean(), gg.mean(), gb.mean())
    skin_tone = skin_tone_from_luminance(float(tone_luminance))
    
    # Stage 5: dominant colors
    total_weight = sum(acc[0] for acc in bins.values())
    threshold = total_weight * SIGNIFICANT_WEIGHT_RATIO
    significant = sorted(
        (acc for acc in bins.values() if acc[0] >= threshold),
        key=lambda acc: acc[0],
        reverse=True
    )[:MAX_CANDIDATES]
    
    names = []
    for weight, red, green, blue in significant:
        name = get_color_name(round(red / weight), round(green / weight), round(blue / weight))
        if name not in names and name != "neutral":
            names.append(name)
    names = names[:MAX_COLORS]
    
    result = ColorExtraction(
        skin_tone=skin_tone,
        dress_colors=", ".join(names) or NEUTRAL_FALLBACK,
        colors=names,
        skin_pixels=skin_count,
        person_center=(int(round(center_x)), int(round(center_y))),
        candidates=len(bins),
    )
    
    logger.debug(
        f"Colors: {result.dress_colors} | skin={skin_tone} ({skin_count} px) | "
        f"candidates={len(bins)} significant={len(significant)}"
    )
    return result
