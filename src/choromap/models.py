"""Domain models shared across pipeline modules."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping


# Leading-number grammar: "57.3", " -1e3", ".5", "12abc" -> 12.
_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INFINITY_RE = re.compile(r"^\s*([+-]?)Infinity")


def parse_value(raw: Any) -> float:
    """Parse a numeric attribute the way browsers parse `parseFloat` input.

    Returns NaN when no leading number can be read. Never raises.
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)
    if not isinstance(raw, str):
        return math.nan
    match = _LEADING_NUMBER_RE.match(raw)
    if match is not None:
        return float(match.group(1))
    match = _INFINITY_RE.match(raw)
    if match is not None:
        return -math.inf if match.group(1) == "-" else math.inf
    return math.nan


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    return str(value)


@dataclass(frozen=True, slots=True)
class Feature:
    """One region of the dataset with its parsed attributes."""

    geometry: Mapping[str, Any] | None
    country: str | None
    region: str | None
    raw_value: Any
    value: float

    @property
    def has_value(self) -> bool:
        """True when the source carried a readable numeric value."""
        if self.raw_value is None or self.raw_value == "":
            return False
        return not math.isnan(self.value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Feature:
        props_raw = data.get("properties")
        props: Mapping[str, Any] = props_raw if isinstance(props_raw, Mapping) else {}
        geometry_raw = data.get("geometry")
        geometry = geometry_raw if isinstance(geometry_raw, Mapping) else None
        raw_value = props.get("value")
        return cls(
            geometry=geometry,
            country=_optional_text(props.get("country")),
            region=_optional_text(props.get("region")),
            raw_value=raw_value,
            value=parse_value(raw_value),
        )

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": dict(self.geometry) if self.geometry is not None else None,
            "properties": {
                "country": self.country,
                "region": self.region,
                "value": self.raw_value,
            },
        }


@dataclass(frozen=True, slots=True)
class FeatureCollection:
    """Validated, ordered set of features from one dataset load."""

    features: tuple[Feature, ...]

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self):
        return iter(self.features)

    @classmethod
    def from_geojson(cls, payload: Any) -> FeatureCollection:
        """Build a collection, raising ValueError when the structure is unusable."""
        if not isinstance(payload, Mapping):
            raise ValueError("Invalid GeoJSON data: expected a JSON object")
        raw_features = payload.get("features")
        if not isinstance(raw_features, list):
            raise ValueError("Invalid GeoJSON data: missing 'features' list")
        features: list[Feature] = []
        for idx, item in enumerate(raw_features):
            if not isinstance(item, Mapping):
                raise ValueError(f"Invalid GeoJSON data: expected mapping at features[{idx}]")
            features.append(Feature.from_mapping(item))
        return cls(features=tuple(features))


@dataclass(frozen=True, slots=True)
class Style:
    """Paint settings for one feature."""

    fill_color: str
    stroke_color: str
    stroke_weight: float
    fill_opacity: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "fill_color": self.fill_color,
            "stroke_color": self.stroke_color,
            "stroke_weight": self.stroke_weight,
            "fill_opacity": self.fill_opacity,
        }
