"""
Tests for dominant color and skin tone extraction.
"""
import tracemalloc

import pytest
import numpy as np
from PIL import Image

from smartstyle.vision.colors import (
    extract_colors,
    get_color_name,
    rgb_to_hsv,
    is_skin_color,
    hue_bucket,
    edge_strength,
    skin_tone_from_luminance,
)

SKIN = (224, 172, 138)
RED = (180, 40, 40)


class TestColorMath:
    """HSV conversion, skin rules and naming."""
    
    def test_rgb_to_hsv_primary(self):
        assert rgb_to_hsv(255, 0, 0) == pytest.approx((0.0, 100.0, 100.0))
        assert rgb_to_hsv(0, 0, 255) == pytest.approx((240.0, 100.0, 100.0))
    
    def test_rgb_to_hsv_gray_has_no_hue(self):
        h, s, v = rgb_to_hsv(128, 128, 128)
        assert h == 0
        assert s == 0
    
    def test_skin_detection(self):
        assert is_skin_color(*SKIN)
        assert not is_skin_color(0, 0, 255)
        assert not is_skin_color(*RED)
    
    def test_achromatic_names(self):
        assert get_color_name(0, 0, 0) == "black"
        assert get_color_name(255, 255, 255) == "white"
        assert get_color_name(128, 128, 128) == "gray"
    
    def test_modifiers(self):
        assert get_color_name(0, 0, 200) == "bright blue"
        assert get_color_name(20, 20, 80) == "dark blue"
        assert get_color_name(150, 200, 150) == "light green"
        assert get_color_name(100, 60, 20) == "dark brown"
        assert get_color_name(*RED) == "red"
    
    def test_hue_buckets(self):
        assert hue_bucket(5) == "red"
        assert hue_bucket(30) == "orange"
        assert hue_bucket(30, dark=True) == "brown"
        assert hue_bucket(120) == "green"
        assert hue_bucket(280) == "purple"
        assert hue_bucket(345) == "red"
    
    def test_skin_tone_ladder(self):
        assert skin_tone_from_luminance(230) == "very fair"
        assert skin_tone_from_luminance(180) == "fair"
        assert skin_tone_from_luminance(150) == "light"
        assert skin_tone_from_luminance(120) == "tan"
        assert skin_tone_from_luminance(90) == "brown"
        assert skin_tone_from_luminance(40) == "dark"


class TestEdgeStrength:
    
    def test_vertical_edge(self):
        red = np.zeros((5, 6), dtype=np.uint8)
        red[:, 3:] = 200
        yy, xx = np.indices(red.shape)
        
        edges = edge_strength(red, yy, xx)
        
        assert edges[2, 2] == 200
        assert edges[2, 3] == 200
        assert edges[2, 1] == 0
        assert edges[:, 0].sum() == 0
    
    def test_capped_at_255(self):
        red = np.zeros((3, 3), dtype=np.uint8)
        red[0, 1] = 255
        red[1, 2] = 255
        
        assert edge_strength(red, np.array([1]), np.array([1]))[0] == 255
    
    def test_only_sampled_points(self):
        red = np.zeros((5, 6), dtype=np.uint8)
        red[:, 3:] = 200
        
        edges = edge_strength(red, np.array([2, 2, 0]), np.array([2, 4, 0]))
        
        assert edges.tolist() == [200, 0, 0]


class TestExtractColors:
    """End-to-end extraction on synthetic photos."""
    
    def test_all_white_image(self):
        image = Image.new("RGB", (200, 200), color=(255, 255, 255))
        
        result = extract_colors(image)
        
        assert result.skin_tone in ("very fair", "fair")
        assert result.dress_colors == "neutral tones"
        assert result.colors == []
    
    def test_red_garment_dominates(self):
        image = Image.new("RGB", (200, 200), color=(255, 255, 255))
        image.paste(RED, (20, 20, 180, 180))
        
        result = extract_colors(image)
        
        assert result.colors[0] == "red"
        assert result.dress_colors.startswith("red")
    
    def test_accepts_numpy_array(self):
        pixels = np.zeros((120, 120, 3), dtype=np.uint8)
        pixels[:, :] = RED
        
        result = extract_colors(pixels)
        
        assert "red" in result.colors
    
    def test_transparent_pixels_ignored(self):
        pixels = np.zeros((100, 100, 4), dtype=np.uint8)
        pixels[:, :] = RED + (0,)
        
        assert extract_colors(pixels).dress_colors == "neutral tones"
    
    def test_skin_locates_person(self):
        image = Image.new("RGB", (240, 240), color=(255, 255, 255))
        image.paste(SKIN, (0, 0, 96, 96))
        
        result = extract_colors(image)
        
        assert result.skin_pixels == 64
        assert result.person_center == (42, 42)
        assert result.skin_tone == "fair"
    
    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            extract_colors(np.zeros((10, 10), dtype=np.uint8))
    
    def test_large_frame_is_not_copied_to_float(self):
        pixels = np.full((3000, 3000, 3), 255, dtype=np.uint8)
        pixels[1000:2000, 1000:2000] = RED
        
        tracemalloc.start()
        try:
            result = extract_colors(pixels)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        
        assert result.colors[0] == "red"
        # A float64 copy of the frame alone would be over 200 MB
        assert peak < 20 * 1024 * 1024
    
    def test_to_dict(self):
        result = extract_colors(Image.new("RGB", (50, 50), color=(255, 255, 255)))
        data = result.to_dict()
        
        assert set(data) >= {"skin_tone", "dress_colors", "colors", "person_center"}


class TestColorsEndpoint:
    """POST /api/colors/extract."""
    
    def test_extracts_from_upload(self, client, auth_as, test_image):
        response = client.post(
            "/api/colors/extract",
            files={"image": ("photo.jpg", test_image, "image/jpeg")},
            headers={"Authorization": "Bearer t"}
        )
        
        assert response.status_code == 200
        assert "skin_tone" in response.json()
    
    def test_rejects_unsupported_type(self, client, auth_as):
        response = client.post(
            "/api/colors/extract",
            files={"image": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
            headers={"Authorization": "Bearer t"}
        )
        
        assert response.status_code == 415
    
    def test_rejects_undecodable(self, client, auth_as):
        response = client.post(
            "/api/colors/extract",
            files={"image": ("x.png", b"not an image", "image/png")},
            headers={"Authorization": "Bearer t"}
        )
        
        assert response.status_code == 400
        assert "cannot decode" in response.json()["detail"].lower()
    
    def test_requires_auth(self, client, test_image):
        response = client.post(
            "/api/colors/extract",
            files={"image": ("photo.jpg", test_image, "image/jpeg")}
        )
        assert response.status_code == 401
