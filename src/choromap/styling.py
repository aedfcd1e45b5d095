"""Per-feature paint style and popup text."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from .colors import ColorScale, darken
from .config import LabelsConfig
from .formatting import NumberFormatter
from .models import Feature, Style


STROKE_WEIGHT = 0.5
FILL_OPACITY = 0.7
POPUP_LINE_BREAK = "<br>"


@dataclass(frozen=True, slots=True)
class PopupLabels:
    unknown_country: str = "Unknown"
    no_region: str = "No region"
    region: str = "Región:"
    value: str = "Valor:"
    no_data: str = "sin datos"

    @classmethod
    def from_config(cls, cfg: LabelsConfig) -> PopupLabels:
        return cls(
            unknown_country=cfg.unknown_country,
            no_region=cfg.no_region,
            region=cfg.region,
            value=cfg.value,
            no_data=cfg.no_data,
        )


class FeatureStyler:
    """Produce fill/stroke style and popup text for features.

    Both `style_for` and `bind_interaction` depend only on the feature and
    the injected scale/formatter, so the same scale instance can drive the
    legend without hidden shared state.
    """

    def __init__(
        self,
        scale: ColorScale,
        formatter: NumberFormatter,
        *,
        labels: PopupLabels | None = None,
        stroke_darken: float = 1.5,
    ) -> None:
        self.scale = scale
        self.formatter = formatter
        self.labels = labels or PopupLabels()
        self.stroke_darken = stroke_darken

    def style_for(self, feature: Feature) -> Style:
        fill_color = self.scale.color_for(feature.value)
        return Style(
            fill_color=fill_color,
            stroke_color=darken(fill_color, self.stroke_darken),
            stroke_weight=STROKE_WEIGHT,
            fill_opacity=FILL_OPACITY,
        )

    def popup_lines(self, feature: Feature) -> list[str]:
        labels = self.labels
        country = feature.country or labels.unknown_country
        lines = [f"<strong>{escape(country)}</strong>"]

        region = feature.region or labels.no_region
        if region != labels.no_region:
            lines.append(f"<strong>{escape(labels.region)}</strong> {escape(region)}")

        if feature.has_value:
            shown = self.formatter.format(feature.value)
        else:
            shown = labels.no_data
        lines.append(f"<strong>{escape(labels.value)}</strong> {escape(shown)}")
        return lines

    def bind_interaction(self, feature: Feature) -> str:
        return POPUP_LINE_BREAK.join(self.popup_lines(feature))

    def in_domain(self, feature: Feature) -> bool:
        """False for readable values the scale has to clamp."""
        if not feature.has_value:
            return True
        lo, hi = self.scale.domain
        return lo <= feature.value <= hi
