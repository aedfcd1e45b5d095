"""Map rendering surface: tile backdrop, feature layer, overlay controls."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Protocol

from .canvas import DrawingSurface, MatplotlibCanvas
from .config import MapConfig
from .legend import LEGEND_HEIGHT, LEGEND_WIDTH, LegendRenderer
from .models import Feature, FeatureCollection, Style


BASEMAP_WHITE = "white"
BASEMAP_CARTODB_LIGHT_NOLABELS = "cartodb_light_nolabels"

CONTROL_MARGIN_PX = 10
ERROR_NOTICE_BACKGROUND = "#ff6b6b"
ERROR_NOTICE_COLOR = "white"

# Web Mercator ground resolution at zoom 0 for 256 px tiles, in metres per pixel.
_ZOOM0_RESOLUTION_M = 156543.03392804097
_MAX_MERCATOR_LAT = 85.0511

_LOGGER = logging.getLogger("choromap.surface")

StyleFn = Callable[[Feature], Style]
BindFn = Callable[[Feature], str]


@dataclass(slots=True)
class MapControl:
    """A positioned overlay holding its own drawing surface."""

    position: str
    width: int
    height: int
    canvas: DrawingSurface
    handle: Any = None


@dataclass(slots=True)
class FeatureLayer:
    features: tuple[Feature, ...]
    styles: tuple[Style, ...]
    popups: tuple[str, ...]
    frame: Any = None
    bounds: tuple[float, float, float, float] | None = None


class MapSurface(Protocol):
    def add_tile_layer(self, source: Any) -> None:
        ...

    def add_feature_layer(
        self,
        collection: FeatureCollection,
        style_fn: StyleFn,
        bind_fn: BindFn,
    ) -> FeatureLayer:
        ...

    def fit_bounds(self, layer: FeatureLayer) -> None:
        ...

    def add_control(self, position: str, width: int, height: int) -> MapControl:
        ...

    def remove_control(self, control: MapControl) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...


@dataclass(slots=True)
class _SurfaceState:
    layers: list[FeatureLayer] = field(default_factory=list)
    controls: list[MapControl] = field(default_factory=list)
    error_notices: list[str] = field(default_factory=list)


class MatplotlibMapSurface:
    """Static map surface writing one image.

    Geometry is projected to Web Mercator (EPSG:3857) with geopandas, tiles
    come from contextily, and overlay controls are extra axes laid out in
    figure pixels.
    """

    def __init__(self, cfg: MapConfig) -> None:
        plt = _require_matplotlib()
        self.cfg = cfg
        self._state = _SurfaceState()
        self._basemap_source: Any = None
        self._basemap_failure: str | None = None
        self.fig, self.ax = plt.subplots(
            figsize=(cfg.width_px / cfg.dpi, cfg.height_px / cfg.dpi),
            dpi=cfg.dpi,
        )
        self.fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
        self.ax.set_axis_off()
        self.fig.patch.set_facecolor("white")
        x0, x1, y0, y1 = initial_extent(cfg)
        self.ax.set_xlim(x0, x1)
        self.ax.set_ylim(y0, y1)

    def __enter__(self) -> MatplotlibMapSurface:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def layers(self) -> tuple[FeatureLayer, ...]:
        return tuple(self._state.layers)

    @property
    def controls(self) -> tuple[MapControl, ...]:
        return tuple(self._state.controls)

    @property
    def error_notices(self) -> tuple[str, ...]:
        return tuple(self._state.error_notices)

    @property
    def popups(self) -> list[str]:
        return [popup for layer in self._state.layers for popup in layer.popups]

    @property
    def basemap_warning(self) -> str | None:
        return self._basemap_failure

    @property
    def extent(self) -> tuple[float, float, float, float]:
        x0, x1 = self.ax.get_xlim()
        y0, y1 = self.ax.get_ylim()
        return (float(x0), float(x1), float(y0), float(y1))

    def add_tile_layer(self, source: Any) -> None:
        self._basemap_source = source

    def add_feature_layer(
        self,
        collection: FeatureCollection,
        style_fn: StyleFn,
        bind_fn: BindFn,
    ) -> FeatureLayer:
        features = tuple(collection)
        styles = tuple(style_fn(feature) for feature in features)
        popups = tuple(bind_fn(feature) for feature in features)
        layer = FeatureLayer(features=features, styles=styles, popups=popups)

        drawable = [idx for idx, feature in enumerate(features) if feature.geometry is not None]
        if drawable:
            gpd = _require_geopandas()
            frame = gpd.GeoDataFrame.from_features(
                [features[idx].to_geojson() for idx in drawable],
                crs="EPSG:4326",
            ).to_crs(epsg=3857)
            frame["style_index"] = drawable
            keep = frame.geometry.notna() & ~frame.geometry.is_empty
            frame = frame[keep]
            layer.frame = frame
            if not frame.empty:
                self._paint(frame, [styles[idx] for idx in frame["style_index"]])
                minx, miny, maxx, maxy = (float(v) for v in frame.total_bounds)
                if all(math.isfinite(v) for v in (minx, miny, maxx, maxy)):
                    layer.bounds = (minx, miny, maxx, maxy)

        self._state.layers.append(layer)
        _LOGGER.debug("Feature layer added: %d features, %d drawable", len(features), len(drawable))
        return layer

    def fit_bounds(self, layer: FeatureLayer) -> None:
        if layer.bounds is None:
            _LOGGER.warning("Feature layer has no valid bounds; keeping initial view.")
            return
        minx, miny, maxx, maxy = layer.bounds
        x0, x1, y0, y1 = fit_extent_aspect(
            x0=minx,
            x1=maxx,
            y0=miny,
            y1=maxy,
            target_ratio=self.cfg.width_px / self.cfg.height_px,
        )
        self.ax.set_xlim(x0, x1)
        self.ax.set_ylim(y0, y1)

    def add_control(self, position: str, width: int, height: int) -> MapControl:
        rect = control_rect(
            position,
            width,
            height,
            fig_width=self.cfg.width_px,
            fig_height=self.cfg.height_px,
        )
        control_ax = self.fig.add_axes(rect)
        control_ax.set_zorder(5)
        canvas = MatplotlibCanvas(control_ax, width, height, dpi=self.cfg.dpi)
        control = MapControl(
            position=position,
            width=width,
            height=height,
            canvas=canvas,
            handle=control_ax,
        )
        self._state.controls.append(control)
        return control

    def remove_control(self, control: MapControl) -> None:
        if control not in self._state.controls:
            return
        self._state.controls.remove(control)
        if control.handle is not None:
            control.handle.remove()

    def show_error(self, message: str) -> None:
        self._state.error_notices.append(message)
        self.fig.text(
            0.5,
            1.0 - CONTROL_MARGIN_PX / self.cfg.height_px,
            message,
            ha="center",
            va="top",
            color=ERROR_NOTICE_COLOR,
            fontsize=11,
            zorder=10,
            bbox={
                "boxstyle": "round,pad=0.6",
                "facecolor": ERROR_NOTICE_BACKGROUND,
                "edgecolor": "none",
            },
        )

    def save(self, path: Path) -> Path:
        self._draw_basemap()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.fig.savefig(path, dpi=self.cfg.dpi)
        return path

    def close(self) -> None:
        plt = _require_matplotlib()
        plt.close(self.fig)

    def _paint(self, frame: Any, styles: list[Style]) -> None:
        from matplotlib.colors import to_rgba

        frame.geometry.plot(
            ax=self.ax,
            color=[to_rgba(style.fill_color, style.fill_opacity) for style in styles],
            edgecolor=[style.stroke_color for style in styles],
            linewidth=[style.stroke_weight for style in styles],
            zorder=2,
        )

    def _draw_basemap(self) -> None:
        if self._basemap_source is None or self._basemap_failure is not None:
            return
        contextily = _require_contextily()
        x0, x1, y0, y1 = self.extent
        try:
            image, extent = contextily.bounds2img(
                x0,
                y0,
                x1,
                y1,
                zoom="auto",
                source=self._basemap_source,
                ll=False,
                use_cache=True,
                max_retries=1,
            )
            self.ax.imshow(image, extent=extent, interpolation="bilinear", zorder=-8)
            self.ax.set_xlim(x0, x1)
            self.ax.set_ylim(y0, y1)
        except Exception as exc:
            self._basemap_failure = f"Basemap loading failed and was skipped: {exc}"
            _LOGGER.warning(self._basemap_failure)


def resolve_basemap_source(mode: str) -> Any | None:
    chosen = mode.casefold()
    if chosen == BASEMAP_WHITE:
        return None
    if chosen == BASEMAP_CARTODB_LIGHT_NOLABELS:
        providers = _require_xyzservices_providers()
        return providers.CartoDB.PositronNoLabels
    raise ValueError(f"Unknown basemap mode: {mode}")


def initial_extent(cfg: MapConfig) -> tuple[float, float, float, float]:
    """Mercator extent showing `cfg.center` at `cfg.zoom` in the figure size."""
    lat, lon = cfg.center
    lat = min(max(lat, -_MAX_MERCATOR_LAT), _MAX_MERCATOR_LAT)
    x, y = _require_pyproj_transformer().transform(float(lon), float(lat))
    resolution = _ZOOM0_RESOLUTION_M / (2.0**cfg.zoom)
    half_w = cfg.width_px / 2.0 * resolution
    half_h = cfg.height_px / 2.0 * resolution
    return (x - half_w, x + half_w, y - half_h, y + half_h)


def fit_extent_aspect(
    *,
    x0: float,
    x1: float,
    y0: float,
    y1: float,
    target_ratio: float,
) -> tuple[float, float, float, float]:
    width = max(x1 - x0, 1e-6)
    height = max(y1 - y0, 1e-6)
    current_ratio = width / height

    if current_ratio < target_ratio:
        needed_width = target_ratio * height
        expand = max((needed_width - width) / 2.0, 0.0)
        return (x0 - expand, x1 + expand, y0, y1)

    needed_height = width / target_ratio
    expand = max((needed_height - height) / 2.0, 0.0)
    return (x0, x1, y0 - expand, y1 + expand)


def control_rect(
    position: str,
    width: int,
    height: int,
    *,
    fig_width: int,
    fig_height: int,
    margin: int = CONTROL_MARGIN_PX,
) -> tuple[float, float, float, float]:
    """Figure-fraction rect [left, bottom, width, height] for a corner control."""
    chosen = position.casefold()
    if chosen not in {"topleft", "topright", "bottomleft", "bottomright"}:
        raise ValueError(f"Unknown control position: {position}")
    left_px = margin if chosen.endswith("left") else fig_width - margin - width
    bottom_px = margin if chosen.startswith("bottom") else fig_height - margin - height
    return (
        left_px / fig_width,
        bottom_px / fig_height,
        width / fig_width,
        height / fig_height,
    )


def _require_matplotlib() -> Any:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for map rendering") from exc
    return plt


@lru_cache(maxsize=1)
def _require_geopandas() -> Any:
    try:
        import geopandas as gpd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("geopandas is required for feature layers") from exc
    return gpd


@lru_cache(maxsize=1)
def _require_contextily() -> Any:
    try:
        import contextily as ctx
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("contextily is required for real basemap rendering") from exc
    return ctx


@lru_cache(maxsize=1)
def _require_xyzservices_providers() -> Any:
    try:
        from xyzservices import providers
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("xyzservices is required for basemap source definitions") from exc
    return providers


@lru_cache(maxsize=1)
def _require_pyproj_transformer() -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for Web Mercator projection") from exc
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


def render_legend_image(legend: LegendRenderer, path: Path, *, dpi: int) -> Path:
    """Write the legend alone as an image at its native pixel size."""
    plt = _require_matplotlib()
    fig = plt.figure(figsize=(LEGEND_WIDTH / dpi, LEGEND_HEIGHT / dpi), dpi=dpi)
    try:
        ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
        legend.draw(MatplotlibCanvas(ax, LEGEND_WIDTH, LEGEND_HEIGHT, dpi=dpi))
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=dpi, transparent=True)
    finally:
        plt.close(fig)
    return path
