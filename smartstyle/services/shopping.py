"""
Shopping Links (v1.0.0)
Store search URLs used when an AI-provided shopping link is missing.
"""
import logging
from typing import Optional, Dict
from urllib.parse import quote, quote_plus

logger = logging.getLogger(__name__)

STORES = ("amazon", "myntra", "tatacliq")


WOMEN_GENDERS = {"female", "women", "woman"}
MEN_GENDERS = {"male", "men", "man"}


def _gender_term(gender: Optional[str]) -> Optional[str]:
    """Search term for a gender; unisex or unknown values add none."""
    if not gender or not isinstance(gender, str):
        return None
    
    value = gender.strip().lower()
    if value in WOMEN_GENDERS:
        return "women"
    if value in MEN_GENDERS:
        return "men"
    return None


def build_fallback_search_url(store: str, item: str, gender: Optional[str] = None) -> str:
    """
    Build a plain search URL for `item` on `store`.
    
    Raises:
        ValueError: If the store is unknown
    """
    item = (item or "").strip() or "clothing"
    term = _gender_term(gender)
    query = f"{term} {item}" if term else item
    
    if store == "amazon":
        return f"https://www.amazon.in/s?k={quote_plus(query)}"
    if store == "myntra":
        slug = "-".join(query.lower().split())
        return f"https://www.myntra.com/{quote(slug)}"
    if store == "tatacliq":
        return f"https://www.tatacliq.com/search/?text={quote(query)}"
    
    raise ValueError(f"Unknown store: {store}")


def fallback_links(item: str, gender: Optional[str] = None) -> Dict[str, str]:
    """Search URLs for `item` on every supported store."""
    return {store: build_fallback_search_url(store, item, gender) for store in STORES}


def resolve_shopping_link(
    link: Optional[str],
    item: str,
    store: str,
    gender: Optional[str] = None
) -> str:
    """Keep a usable http(s) link, otherwise fall back to a store search URL."""
    if isinstance(link, str) and link.strip().lower().startswith(("http://", "https://")):
        return link.strip()
    
    logger.debug(f"No usable {store} link for '{item}', using search fallback")
    return build_fallback_search_url(store, item, gender)


def resolve_shopping_links(
    links: Optional[Dict[str, Optional[str]]],
    item: str,
    gender: Optional[str] = None
) -> Dict[str, str]:
    """Resolve the link for every store, filling gaps with search URLs."""
    links = links or {}
    return {
        store: resolve_shopping_link(links.get(store), item, store, gender)
        for store in STORES
    }
