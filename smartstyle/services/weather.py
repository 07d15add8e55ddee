"""
Weather Service (v3.0.0)
OpenWeatherMap integration for date-aware outfit recommendations.
"""
import logging
from typing import Optional, List
from dataclasses import dataclass
from datetime import date, datetime, timezone
import httpx

from smartstyle.config import get_settings

logger = logging.getLogger(__name__)

# Configuration
OPENWEATHER_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
DEFAULT_UNITS = "metric"  # Celsius
FORECAST_HORIZON_DAYS = 5


@dataclass
class WeatherInfo:
    """Weather information for outfit recommendations."""
    temp: int  # °C, rounded
    condition: str  # e.g., "Clear", "Rain", "Snow"
    description: str  # e.g., "light rain"
    location: Optional[str] = None
    
    def to_dict(self) -> dict:
        return {
            "temp": self.temp,
            "condition": self.condition,
            "description": self.description,
            "location": self.location
        }
    
    def to_prompt_context(self) -> str:
        """Generate context string for LLM prompt."""
        lines = [
            f"- Temperature: {self.temp}°C",
            f"- Conditions: {self.condition} ({self.description})",
        ]
        if self.location:
            lines.append(f"- Location: {self.location}")
        return "\n".join(lines)


def is_configured() -> bool:
    """Check if weather service is configured."""
    return get_settings().has_weather()


def _from_payload(entry: dict, location: Optional[str]) -> WeatherInfo:
    weather = (entry.get("weather") or [{}])[0]
    return WeatherInfo(
        temp=round(entry.get("main", {}).get("temp", 20)),
        condition=weather.get("main", "Clear"),
        description=weather.get("description", "clear sky"),
        location=location
    )


def closest_to_noon(entries: List[dict], target: date) -> Optional[dict]:
    """Pick the 3-hourly forecast entry nearest 12:00 UTC on `target`."""
    if not entries:
        return None
    
    noon = datetime(target.year, target.month, target.day, 12, tzinfo=timezone.utc).timestamp()
    return min(entries, key=lambda entry: abs(entry.get("dt", 0) - noon))


async def fetch_weather_forecast(
    target: date,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    today: Optional[date] = None
) -> Optional[WeatherInfo]:
    """
    Fetch weather for a target date.
    
    Today or earlier uses current weather; up to five days ahead uses the
    5-day forecast; further out returns a generic placeholder.
    
    Args:
        target: Date of the occasion
        lat, lon: Coordinates (default location when omitted)
        today: Reference date (defaults to the current UTC date)
    
    Returns:
        WeatherInfo or None if failed
    """
    settings = get_settings()
    
    if not settings.openweather_api_key:
        logger.warning("OPENWEATHER_API_KEY not set - weather disabled")
        return None
    
    lat = lat if lat is not None else settings.default_latitude
    lon = lon if lon is not None else settings.default_longitude
    today = today or datetime.now(timezone.utc).date()
    days_from_now = (target - today).days
    
    if days_from_now > FORECAST_HORIZON_DAYS:
        logger.info(f"Weather forecast not available for {days_from_now} days ahead")
        return WeatherInfo(
            temp=25,
            condition="Clear",
            description="Weather forecast not available for dates beyond 5 days",
            location="Unknown"
        )
    
    params = {
        "lat": lat,
        "lon": lon,
        "appid": settings.openweather_api_key,
        "units": DEFAULT_UNITS
    }
    
    try:
        async with httpx.AsyncClient(timeout=settings.weather_timeout_seconds) as client:
            if days_from_now <= 0:
                response = await client.get(OPENWEATHER_CURRENT_URL, params=params)
                response.raise_for_status()
                data = response.json()
                weather_info = _from_payload(data, data.get("name"))
            else:
                response = await client.get(OPENWEATHER_FORECAST_URL, params=params)
                response.raise_for_status()
                data = response.json()
                entry = closest_to_noon(data.get("list", []), target)
                if entry is None:
                    logger.warning("Weather forecast response had no entries")
                    return None
                weather_info = _from_payload(entry, data.get("city", {}).get("name"))
            
            logger.info(f"Weather for {target}: {weather_info.temp}°C, {weather_info.condition}")
            return weather_info
            
    except httpx.TimeoutException:
        logger.warning(f"Weather API timeout for {target}")
        return None
    except Exception as e:
        logger.error(f"Weather API error for {target}: {e}")
        return None


def get_weather_clothing_suggestions(weather: WeatherInfo) -> List[str]:
    """Map temperature and conditions to clothing suggestions."""
    suggestions = []
    temp = weather.temp
    condition = (weather.condition or "").lower()
    
    if temp < 10:
        suggestions += [
            "Heavy coat or winter jacket",
            "Warm layers (sweaters, thermals)",
            "Scarf, gloves, and winter accessories",
            "Closed-toe shoes or boots",
        ]
    elif temp < 15:
        suggestions += [
            "Light jacket or cardigan",
            "Long sleeves recommended",
            "Consider layering",
        ]
    elif temp < 25:
        suggestions += [
            "Comfortable layering options",
            "Light fabrics",
            "Versatile pieces that can be layered",
        ]
    elif temp < 30:
        suggestions += [
            "Light, breathable fabrics",
            "Short sleeves or sleeveless options",
            "Light colors to reflect heat",
        ]
    else:
        suggestions += [
            "Minimal, breathable clothing",
            "Light colors essential",
            "Sun protection (hat, sunglasses)",
            "Moisture-wicking fabrics",
        ]
    
    if "rain" in condition:
        suggestions += [
            "Waterproof jacket or raincoat",
            "Water-resistant footwear",
            "Avoid delicate fabrics",
            "Consider bringing an umbrella",
        ]
    elif "snow" in condition:
        suggestions += [
            "Waterproof winter boots",
            "Insulated outerwear",
            "Moisture-resistant materials",
        ]
    elif "wind" in condition:
        suggestions += [
            "Windbreaker or wind-resistant jacket",
            "Secure accessories (avoid loose scarves)",
        ]
    
    return suggestions
