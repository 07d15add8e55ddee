"""
Tests for wardrobe outfit generation and validation.
"""
import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from smartstyle.services.outfit_generator import (
    generate_wardrobe_outfits,
    build_outfit_prompt,
    group_by_type,
    match_wardrobe_item,
    validate_outfits,
    weather_guidance,
    EmptyWardrobeError,
    InsufficientItemsError,
    LLMDisabledError,
    OutfitGenerationError,
)
from smartstyle.config import Settings
from smartstyle.services.weather import WeatherInfo


class TestItemMatching:
    """AI item references resolved against the wardrobe."""
    
    def test_exact_id(self, wardrobe_items):
        assert match_wardrobe_item({"itemId": "bottom1"}, wardrobe_items)["id"] == "bottom1"
    
    def test_description_terms(self, wardrobe_items):
        ref = {"itemId": "wrong", "description": "black sweater"}
        assert match_wardrobe_item(ref, wardrobe_items)["id"] == "top2"
    
    def test_single_term_description(self, wardrobe_items):
        assert match_wardrobe_item({"description": "loafers"}, wardrobe_items)["id"] == "shoes1"
    
    def test_type_and_first_word(self, wardrobe_items):
        ref = {"description": "navy pleated", "type": "bottom"}
        assert match_wardrobe_item(ref, wardrobe_items)["id"] == "bottom1"
    
    def test_no_match(self, wardrobe_items):
        assert match_wardrobe_item({"itemId": "x", "description": "red dress", "type": "dress"}, wardrobe_items) is None


class TestValidateOutfits:
    
    def test_drops_unmatched_items_and_duplicates(self, wardrobe_items):
        outfits = validate_outfits([{
            "name": "Look",
            "items": [
                {"itemId": "top1"},
                {"itemId": "top1"},
                {"itemId": "ghost", "description": "zzz qqq"},
                {"itemId": "bottom1"},
            ],
            "confidence": 150,
        }], wardrobe_items, "office")
        
        assert len(outfits) == 1
        assert [i["itemId"] for i in outfits[0]["items"]] == ["top1", "bottom1"]
        assert outfits[0]["confidence"] == 100
        assert outfits[0]["occasion"] == "office"
    
    def test_drops_outfits_with_one_item(self, wardrobe_items):
        outfits = validate_outfits([
            {"name": "Solo", "items": [{"itemId": "top1"}]},
            {"name": "Pair", "items": [{"itemId": "top2"}, {"itemId": "bottom1"}]},
        ], wardrobe_items, "office")
        
        assert [o["name"] for o in outfits] == ["Pair"]
    
    def test_defaults(self, wardrobe_items):
        outfits = validate_outfits([{"items": [{"itemId": "top1"}, {"itemId": "shoes1"}]}], wardrobe_items, "x")
        
        assert outfits[0]["name"] == "Outfit"
        assert outfits[0]["confidence"] == 85
        assert outfits[0]["reasoning"]
    
    def test_negative_confidence_clamped(self, wardrobe_items):
        outfits = validate_outfits(
            [{"items": [{"itemId": "top1"}, {"itemId": "shoes1"}], "confidence": -5}],
            wardrobe_items, "x"
        )
        assert outfits[0]["confidence"] == 0


class TestPrompt:
    
    def test_lists_items_with_ids(self, wardrobe_items):
        prompt = build_outfit_prompt(group_by_type(wardrobe_items), "wedding")
        
        assert "OCCASION: wedding" in prompt
        assert "White cotton shirt by Uniqlo - white (worn 3x) [ID: top1]" in prompt
        assert "Navy chino trousers - navy (never worn) [ID: bottom1]" in prompt
        assert "TOPS (2 items)" in prompt
        assert "WEATHER" not in prompt
    
    def test_includes_preferences(self, wardrobe_items):
        prefs = {"favorite_colors": ["green", "navy"], "preferred_styles": [], "preferred_occasions": ["office"]}
        prompt = build_outfit_prompt(group_by_type(wardrobe_items), "office", preferences=prefs)
        
        assert "Favorite Colors: green, navy" in prompt
        assert "Preferred Styles: None" in prompt
    
    @pytest.mark.parametrize("temp,condition,expected", [
        (5, "Clear", "COLD WEATHER"),
        (12, "Clouds", "COOL WEATHER"),
        (20, "Clear", "MODERATE WEATHER"),
        (27, "Clear", "WARM WEATHER"),
        (35, "Clear", "HOT WEATHER"),
        (20, "Snow", "SNOWY CONDITIONS"),
        (20, "Windy", "WINDY CONDITIONS"),
    ])
    def test_weather_guidance(self, temp, condition, expected):
        assert expected in weather_guidance(WeatherInfo(temp=temp, condition=condition, description=""))


class TestGenerate:
    
    @pytest.mark.asyncio
    async def test_empty_wardrobe(self, mock_llm, wardrobe_items):
        for item in wardrobe_items:
            item["isActive"] = False
        
        with pytest.raises(EmptyWardrobeError) as exc_info:
            await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert exc_info.value.status_code == 400
    
    @pytest.mark.asyncio
    async def test_insufficient_items(self, mock_llm, wardrobe_items):
        with pytest.raises(InsufficientItemsError) as exc_info:
            await generate_wardrobe_outfits(wardrobe_items[:2], "u", "office")
        
        assert exc_info.value.status_code == 400
    
    @pytest.mark.asyncio
    async def test_success(self, mock_llm, wardrobe_items):
        result = await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert len(result["outfits"]) == 1
        assert result["wardrobeStats"]["itemsByType"]["top"] == 2
        assert result["wardrobeStats"]["itemsByType"]["dress"] == 0
        assert result["missingPieceLinks"]["navy blazer"]["myntra"].startswith("https://www.myntra.com/")
    
    @pytest.mark.asyncio
    async def test_inactive_items_never_suggested(self, mock_llm, wardrobe_items):
        wardrobe_items[2]["isActive"] = False
        
        result = await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        ids = [i["itemId"] for i in result["outfits"][0]["items"]]
        assert "shoes1" not in ids
        assert result["wardrobeStats"]["totalItems"] == 3
    
    @pytest.mark.asyncio
    async def test_response_without_outfits(self, mock_llm, wardrobe_items):
        mock_llm.generate_json.return_value = {"missingPieces": []}
        
        with pytest.raises(OutfitGenerationError) as exc_info:
            await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert exc_info.value.status_code == 500
    
    @pytest.mark.asyncio
    async def test_llm_not_configured(self, wardrobe_items):
        with patch(
            "smartstyle.services.outfit_generator.get_llm_client",
            side_effect=ValueError("GROQ_API_KEY not set")
        ):
            with pytest.raises(OutfitGenerationError):
                await generate_wardrobe_outfits(wardrobe_items, "u", "office")
    
    @pytest.mark.asyncio
    async def test_llm_timeout(self, wardrobe_items):
        import asyncio
        
        async def slow(*args):
            await asyncio.sleep(5)
        
        llm = MagicMock()
        llm.generate_json = slow
        settings = MagicMock(llm_timeout_seconds=0.01)
        
        with patch("smartstyle.services.outfit_generator.get_llm_client", return_value=llm), \
             patch("smartstyle.services.outfit_generator.get_settings", return_value=settings):
            with pytest.raises(OutfitGenerationError) as exc_info:
                await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert "timed out" in exc_info.value.message
    
    @pytest.mark.asyncio
    async def test_llm_disabled(self, mock_llm, wardrobe_items):
        with patch("smartstyle.services.outfit_generator.get_settings", return_value=Settings(llm_enabled=False)):
            with pytest.raises(LLMDisabledError) as exc_info:
                await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert exc_info.value.status_code == 503
        mock_llm.generate_json.assert_not_awaited()
    
    @pytest.mark.asyncio
    async def test_valid_outfit_after_invalid_ones_is_kept(self, mock_llm, wardrobe_items, llm_response):
        ghost = {"name": "Ghost", "items": [{"itemId": "ghost", "description": "zzz qqq"}]}
        mock_llm.generate_json.return_value = {
            "outfits": [ghost, ghost, ghost] + llm_response["outfits"],
            "missingPieces": [],
        }
        
        result = await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert [o["name"] for o in result["outfits"]] == ["Smart Casual"]
    
    @pytest.mark.asyncio
    async def test_at_most_three_outfits(self, mock_llm, wardrobe_items, llm_response):
        mock_llm.generate_json.return_value = {"outfits": llm_response["outfits"] * 5}
        
        result = await generate_wardrobe_outfits(wardrobe_items, "u", "office")
        
        assert len(result["outfits"]) == 3
