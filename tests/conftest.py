"""Shared fixtures: fake HTTP session, recording canvas and map surface."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import matplotlib

matplotlib.use("Agg")

import pytest
import yaml

from choromap.canvas import LinearGradient
from choromap.colors import ColorScale
from choromap.config import AppConfig, load_config
from choromap.formatting import NumberFormatter
from choromap.legend import LegendRenderer
from choromap.styling import FeatureStyler
from choromap.surface import FeatureLayer, MapControl


# ── Fakes ─────────────────────────────────────────────────────────────────

class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, *, bad_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json
        self.closed = False

    def json(self) -> Any:
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, exc: Exception | None = None):
        self.response = response
        self.exc = exc
        self.calls: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        assert self.response is not None
        return self.response


class RecordingCanvas:
    def __init__(self, width: int = 50, height: int = 140):
        self.width = width
        self.height = height
        self.fill_style: Any = "#000000"
        self.font = "10px sans-serif"
        self.text_align = "start"
        self.text_baseline = "alphabetic"
        self.gradients: list[LinearGradient] = []
        self.rects: list[tuple[float, float, float, float, Any]] = []
        self.texts: list[tuple[str, float, float, str, str, str]] = []

    def create_linear_gradient(self, x0, y0, x1, y1) -> LinearGradient:
        gradient = LinearGradient(x0, y0, x1, y1)
        self.gradients.append(gradient)
        return gradient

    def fill_rect(self, x, y, width, height) -> None:
        self.rects.append((x, y, width, height, self.fill_style))

    def fill_text(self, text, x, y) -> None:
        self.texts.append((text, x, y, self.font, self.text_align, self.text_baseline))


class FakeSurface:
    def __init__(self):
        self.calls: list[str] = []
        self.tile_sources: list[Any] = []
        self.layers: list[FeatureLayer] = []
        self.controls: list[MapControl] = []
        self.removed: list[MapControl] = []
        self.error_notices: list[str] = []

    def add_tile_layer(self, source) -> None:
        self.calls.append("add_tile_layer")
        self.tile_sources.append(source)

    def add_feature_layer(self, collection, style_fn, bind_fn) -> FeatureLayer:
        self.calls.append("add_feature_layer")
        features = tuple(collection)
        layer = FeatureLayer(
            features=features,
            styles=tuple(style_fn(f) for f in features),
            popups=tuple(bind_fn(f) for f in features),
        )
        self.layers.append(layer)
        return layer

    def fit_bounds(self, layer) -> None:
        self.calls.append("fit_bounds")

    def add_control(self, position, width, height) -> MapControl:
        self.calls.append("add_control")
        control = MapControl(position, width, height, RecordingCanvas(width, height))
        self.controls.append(control)
        return control

    def remove_control(self, control) -> None:
        self.calls.append("remove_control")
        self.controls.remove(control)
        self.removed.append(control)

    def show_error(self, message) -> None:
        self.calls.append("show_error")
        self.error_notices.append(message)


# ── Fixtures ──────────────────────────────────────────────────────────────

def _square(lon: float, lat: float, size: float = 1.0) -> dict[str, Any]:
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [lon, lat],
                [lon + size, lat],
                [lon + size, lat + size],
                [lon, lat + size],
                [lon, lat],
            ]
        ],
    }


@pytest.fixture
def sample_geojson() -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": _square(-70.0, 10.0),
                "properties": {"country": "Venezuela", "region": "Zulia", "value": "57.3"},
            },
            {
                "type": "Feature",
                "geometry": _square(-75.0, 4.0),
                "properties": {"country": "Colombia", "value": "12"},
            },
            {
                "type": "Feature",
                "geometry": _square(-80.0, -2.0),
                "properties": {"country": "Ecuador", "region": "No region"},
            },
        ],
    }


@pytest.fixture
def scale() -> ColorScale:
    return ColorScale.from_palette("viridis")


@pytest.fixture
def formatter() -> NumberFormatter:
    return NumberFormatter("es", 2)


@pytest.fixture
def styler(scale, formatter) -> FeatureStyler:
    return FeatureStyler(scale, formatter)


@pytest.fixture
def legend(scale) -> LegendRenderer:
    return LegendRenderer(scale)


@pytest.fixture
def fake_surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    raw = {
        "dataset": {"url": "https://example.org/data/G9b.geojson", "request_timeout_s": 5},
        "map": {"basemap": "white", "width_px": 400, "height_px": 300, "dpi": 100},
        "output": {
            "map_png": "out/map.png",
            "legend_png": "out/legend.png",
            "popups_json": "out/popups.json",
            "details_html": "out/index.html",
            "logs_dir": "out/logs",
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw, allow_unicode=True), encoding="utf-8")
    return path


@pytest.fixture
def app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)
