"""Choropleth render pipeline: config -> components -> map artifacts."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .colors import ColorScale
from .config import AppConfig
from .details import write_details_page
from .formatting import NumberFormatter
from .legend import LegendRenderer
from .loader import DatasetLoader, LoadResult
from .styling import FeatureStyler, PopupLabels
from .surface import MatplotlibMapSurface, render_legend_image, resolve_basemap_source
from .util import format_report_lines, write_json


_LOGGER = logging.getLogger("choromap.render")


@dataclass(slots=True)
class RenderMapReport:
    url: str | None = None
    output_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


@dataclass(frozen=True, slots=True)
class Components:
    scale: ColorScale
    styler: FeatureStyler
    legend: LegendRenderer


def build_components(cfg: AppConfig) -> Components:
    """Build the shared scale once and hand the same instance to styler and legend."""
    scale = ColorScale.from_palette(
        cfg.scale.palette,
        domain=cfg.scale.domain,
        nodata_color=cfg.scale.nodata_color,
    )
    styler = FeatureStyler(
        scale,
        NumberFormatter(cfg.format.locale, cfg.format.decimal_places),
        labels=PopupLabels.from_config(cfg.labels),
        stroke_darken=cfg.scale.stroke_darken,
    )
    legend = LegendRenderer(scale, ticks=cfg.legend.ticks, position=cfg.legend.position)
    return Components(scale=scale, styler=styler, legend=legend)


def run_render_map(
    cfg: AppConfig,
    *,
    url: str | None = None,
    output_path: Path | None = None,
    session: Any | None = None,
) -> RenderMapReport:
    """Load the dataset, paint it, and write the map image and details artifacts."""
    dataset_url = url or cfg.dataset.url
    map_png = output_path or cfg.output.map_png
    report = RenderMapReport(url=dataset_url, output_path=map_png)
    components = build_components(cfg)
    t0 = time.perf_counter()

    with MatplotlibMapSurface(cfg.map) as surface:
        surface.add_tile_layer(resolve_basemap_source(cfg.map.basemap))
        loader = DatasetLoader(
            surface=surface,
            styler=components.styler,
            legend=components.legend,
            session=session,
            timeout_s=cfg.dataset.request_timeout_s,
            user_agent=cfg.dataset.user_agent,
            error_notice=cfg.labels.load_error,
        )
        result = loader.load(dataset_url)
        if result.ok:
            _summarize(report, result, components.styler)
        else:
            report.add_error(f"Dataset load failed for {dataset_url}: {result.error}")

        surface.save(map_png)
        report.add_info(f"Map image written to {map_png}")
        if surface.basemap_warning is not None:
            report.add_warning(surface.basemap_warning)

        if result.ok and result.layer is not None:
            layer = result.layer
            write_json(
                cfg.output.popups_json,
                [
                    {
                        "country": feature.country,
                        "region": feature.region,
                        "value": feature.raw_value,
                        "style": style.to_dict(),
                        "popup": popup,
                    }
                    for feature, style, popup in zip(layer.features, layer.styles, layer.popups)
                ],
            )
            report.add_info(f"Popups written to {cfg.output.popups_json}")
            write_details_page(
                popups=layer.popups,
                styles=layer.styles,
                map_png=map_png,
                output_html=cfg.output.details_html,
                title=dataset_url.rsplit("/", 1)[-1] or "choromap",
            )
            report.add_info(f"Details page written to {cfg.output.details_html}")

    _LOGGER.info("Render finished in %.2fs", time.perf_counter() - t0)
    return report


def run_render_legend(cfg: AppConfig, *, output_path: Path | None = None) -> Path:
    """Render only the legend, at its native pixel size."""
    components = build_components(cfg)
    target = output_path or cfg.output.legend_png
    return render_legend_image(components.legend, target, dpi=cfg.map.dpi)


def _summarize(report: RenderMapReport, result: LoadResult, styler: FeatureStyler) -> None:
    collection = result.collection
    if collection is None:
        return
    features = tuple(collection)
    without_data = sum(1 for feature in features if not feature.has_value)
    out_of_domain = sum(1 for feature in features if not styler.in_domain(feature))
    unknown_country = sum(1 for feature in features if feature.country is None)
    without_geometry = sum(1 for feature in features if feature.geometry is None)
    report.summary = {
        "features_total": len(features),
        "features_without_data": without_data,
        "features_out_of_domain": out_of_domain,
        "features_unknown_country": unknown_country,
        "features_without_geometry": without_geometry,
    }
    report.add_info(
        "Render summary: "
        f"features_total={len(features)}, "
        f"without_data={without_data}, "
        f"out_of_domain={out_of_domain}, "
        f"unknown_country={unknown_country}"
    )
    if out_of_domain:
        lo, hi = styler.scale.domain
        report.add_warning(
            f"{out_of_domain} features have values outside [{lo:g}, {hi:g}]; "
            "their colors are clamped to the scale ends."
        )
    if without_geometry:
        report.add_warning(f"{without_geometry} features have no geometry and were not drawn.")
    if not features:
        report.add_warning("Dataset has no features; the map shows only the legend.")


def format_render_lines(report: RenderMapReport) -> Sequence[str]:
    lines = format_report_lines(report.infos, report.warnings, report.errors)
    if report.ok:
        lines.append("[OK] Map rendered with no errors.")
    return lines
