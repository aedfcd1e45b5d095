"""Tests for per-feature style and popup text."""

from __future__ import annotations

from choromap.colors import NODATA_COLOR, darken
from choromap.models import Feature
from choromap.styling import FILL_OPACITY, STROKE_WEIGHT, FeatureStyler, PopupLabels


def _feature(**props) -> Feature:
    return Feature.from_mapping({"type": "Feature", "geometry": None, "properties": props})


class TestStyleFor:
    def test_style_uses_scale_color(self, styler, scale):
        style = styler.style_for(_feature(country="Test", value="57.3"))
        assert style.fill_color == scale.color_for(57.3)
        assert style.stroke_color == darken(style.fill_color, 1.5)
        assert style.stroke_weight == STROKE_WEIGHT == 0.5
        assert style.fill_opacity == FILL_OPACITY == 0.7

    def test_missing_value_gets_sentinel(self, styler):
        style = styler.style_for(_feature(country="Test"))
        assert style.fill_color == NODATA_COLOR

    def test_non_numeric_value_gets_sentinel(self, styler):
        style = styler.style_for(_feature(country="Test", value="n/a"))
        assert style.fill_color == NODATA_COLOR

    def test_stroke_differs_from_fill(self, styler):
        style = styler.style_for(_feature(value="0"))
        assert style.stroke_color != style.fill_color

    def test_same_feature_same_style(self, styler):
        feature = _feature(country="A", value="33")
        assert styler.style_for(feature) == styler.style_for(feature)


class TestBindInteraction:
    def test_value_without_region_has_two_lines(self, styler):
        popup = styler.bind_interaction(_feature(country="Test", value="57.3"))
        lines = popup.split("<br>")
        assert lines == ["<strong>Test</strong>", "<strong>Valor:</strong> 57,30"]

    def test_region_line_when_present(self, styler):
        popup = styler.bind_interaction(_feature(country="Test", region="Zulia", value="1"))
        assert popup.split("<br>") == [
            "<strong>Test</strong>",
            "<strong>Región:</strong> Zulia",
            "<strong>Valor:</strong> 1,00",
        ]

    def test_no_region_placeholder_is_hidden(self, styler):
        popup = styler.bind_interaction(_feature(country="Test", region="No region", value="1"))
        assert "Región" not in popup
        assert len(popup.split("<br>")) == 2

    def test_missing_value_reads_no_data(self, styler):
        popup = styler.bind_interaction(_feature(country="Test"))
        assert popup.split("<br>")[-1] == "<strong>Valor:</strong> sin datos"

    def test_missing_country_uses_unknown(self, styler):
        popup = styler.bind_interaction(_feature(value="5"))
        assert popup.startswith("<strong>Unknown</strong>")

    def test_text_is_escaped(self, styler):
        popup = styler.bind_interaction(_feature(country="A<b>", region="x&y", value="2"))
        assert "<strong>A&lt;b&gt;</strong>" in popup
        assert "x&amp;y" in popup

    def test_custom_labels(self, scale, formatter):
        styler = FeatureStyler(
            scale,
            formatter,
            labels=PopupLabels(region="Region:", value="Value:", no_data="no data"),
        )
        popup = styler.bind_interaction(_feature(country="Test", region="R"))
        assert popup.split("<br>") == [
            "<strong>Test</strong>",
            "<strong>Region:</strong> R",
            "<strong>Value:</strong> no data",
        ]


class TestInDomain:
    def test_in_and_out_of_domain(self, styler):
        assert styler.in_domain(_feature(value="50"))
        assert styler.in_domain(_feature(value="100"))
        assert not styler.in_domain(_feature(value="150"))
        assert not styler.in_domain(_feature(value="-1"))

    def test_missing_value_is_not_flagged(self, styler):
        assert styler.in_domain(_feature())
