"""Tests for the color scale and Lab darkening."""

from __future__ import annotations

import math
import re

import pytest

from choromap.colors import NODATA_COLOR, ColorScale, darken, lab_to_hex, rgb_to_lab

HEX_RE = re.compile(r"^#[0-9a-f]{6}$")


class TestColorScale:
    def test_endpoints_match_viridis_anchors(self, scale):
        assert scale.color_for(0) == "#440154"
        assert scale.color_for(100) == "#fee825"

    def test_midpoint_hits_center_anchor(self, scale):
        assert scale.color_for(50) == "#26838f"

    def test_endpoints_differ(self, scale):
        assert scale.color_for(0) != scale.color_for(100)

    def test_deterministic_and_valid_across_domain(self, scale):
        other = ColorScale.from_palette("viridis")
        for v in range(0, 101):
            color = scale.color_for(v)
            assert HEX_RE.match(color)
            assert color == scale.color_for(v) == other.color_for(v)

    def test_nan_maps_to_sentinel(self, scale):
        assert scale.color_for(math.nan) == NODATA_COLOR == "#cccccc"
        assert scale.color_for(None) == NODATA_COLOR

    def test_nan_sentinel_independent_of_domain(self):
        wide = ColorScale.from_palette("viridis", domain=(-1000.0, 1000.0))
        assert wide.color_for(math.nan) == "#cccccc"

    def test_out_of_domain_values_are_clamped(self, scale):
        assert scale.color_for(-25) == scale.color_for(0)
        assert scale.color_for(250) == scale.color_for(100)
        assert scale.color_for(math.inf) == scale.color_for(100)

    def test_custom_domain_rescales(self):
        shifted = ColorScale.from_palette("viridis", domain=(10.0, 20.0))
        assert shifted.color_for(10) == "#440154"
        assert shifted.color_for(15) == "#26838f"
        assert shifted.color_for(20) == "#fee825"

    def test_invalid_domain_rejected(self):
        with pytest.raises(ValueError):
            ColorScale.from_palette("viridis", domain=(5.0, 5.0))
        with pytest.raises(ValueError):
            ColorScale.from_palette("viridis", domain=(10.0, 0.0))

    def test_unknown_palette_rejected(self):
        with pytest.raises(ValueError, match="Unknown palette"):
            ColorScale.from_palette("rainbow")

    def test_sample_covers_domain(self, scale):
        samples = scale.sample(100)
        assert len(samples) == 101
        assert samples[0] == (0.0, scale.color_for(0))
        assert samples[50] == (0.5, scale.color_for(50))
        assert samples[-1] == (1.0, scale.color_for(100))

    def test_position_is_clamped(self, scale):
        assert scale.position(-10) == 0.0
        assert scale.position(25) == 0.25
        assert scale.position(400) == 1.0

    def test_callable_alias(self, scale):
        assert scale(42) == scale.color_for(42)


class TestDarken:
    def test_stroke_always_differs_from_fill(self, scale):
        for v in range(0, 101):
            fill = scale.color_for(v)
            assert darken(fill, 1.5) != fill

    def test_darken_lowers_lightness(self):
        base = "#26838f"
        assert rgb_to_lab(darken(base, 1.0))[0] < rgb_to_lab(base)[0]

    def test_darken_is_deterministic(self):
        assert darken("#b6de2b", 1.5) == darken("#b6de2b", 1.5)

    def test_very_dark_colors_clip_to_black(self):
        assert darken("#440154", 3.0) == "#000000"

    def test_white_lab_lightness(self):
        l_star, a_star, b_star = rgb_to_lab("#ffffff")
        assert l_star == pytest.approx(100.0, abs=0.01)
        assert a_star == pytest.approx(0.0, abs=0.05)
        assert b_star == pytest.approx(0.0, abs=0.05)

    def test_lab_conversion_recovers_color(self):
        assert lab_to_hex(rgb_to_lab("#31678e")) == "#31678e"
