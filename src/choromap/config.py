"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _optional_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    return _mapping(value, field_name)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _float_pair(value: Any, field_name: str) -> tuple[float, float]:
    if not isinstance(value, list) or len(value) != 2:
        raise ValueError(f"Expected two-item list for '{field_name}'")
    return (_float(value[0], f"{field_name}[0]"), _float(value[1], f"{field_name}[1]"))


def _float_list(value: Any, field_name: str) -> tuple[float, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"Expected non-empty list for '{field_name}'")
    return tuple(_float(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


_BASEMAP_MODES = {"white", "cartodb_light_nolabels"}
_LEGEND_POSITIONS = {"topleft", "topright", "bottomleft", "bottomright"}


@dataclass(frozen=True, slots=True)
class DatasetConfig:
    url: str
    request_timeout_s: float
    user_agent: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> DatasetConfig:
        timeout = _float(raw.get("request_timeout_s", 30), "dataset.request_timeout_s")
        if timeout <= 0:
            raise ValueError("dataset.request_timeout_s must be > 0")
        return cls(
            url=_str(raw.get("url"), "dataset.url"),
            request_timeout_s=timeout,
            user_agent=_str(raw.get("user_agent", "choromap/0.1"), "dataset.user_agent"),
        )


@dataclass(frozen=True, slots=True)
class ScaleConfig:
    palette: str
    domain: tuple[float, float]
    nodata_color: str
    stroke_darken: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ScaleConfig:
        domain = _float_pair(raw.get("domain", [0, 100]), "scale.domain")
        if domain[1] <= domain[0]:
            raise ValueError("scale.domain must be increasing")
        return cls(
            palette=_str(raw.get("palette", "viridis"), "scale.palette").casefold(),
            domain=domain,
            nodata_color=_str(raw.get("nodata_color", "#cccccc"), "scale.nodata_color"),
            stroke_darken=_float(raw.get("stroke_darken", 1.5), "scale.stroke_darken"),
        )


@dataclass(frozen=True, slots=True)
class FormatConfig:
    locale: str
    decimal_places: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> FormatConfig:
        decimal_places = _int(raw.get("decimal_places", 2), "format.decimal_places")
        if decimal_places < 0:
            raise ValueError("format.decimal_places must be >= 0")
        return cls(
            locale=_str(raw.get("locale", "es"), "format.locale"),
            decimal_places=decimal_places,
        )


@dataclass(frozen=True, slots=True)
class LabelsConfig:
    unknown_country: str
    no_region: str
    region: str
    value: str
    no_data: str
    load_error: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LabelsConfig:
        return cls(
            unknown_country=_str(raw.get("unknown_country", "Unknown"), "labels.unknown_country"),
            no_region=_str(raw.get("no_region", "No region"), "labels.no_region"),
            region=_str(raw.get("region", "Región:"), "labels.region"),
            value=_str(raw.get("value", "Valor:"), "labels.value"),
            no_data=_str(raw.get("no_data", "sin datos"), "labels.no_data"),
            load_error=_str(
                raw.get("load_error", "Error al cargar los datos del mapa"),
                "labels.load_error",
            ),
        )


@dataclass(frozen=True, slots=True)
class MapConfig:
    center: tuple[float, float]
    zoom: float
    basemap: str
    width_px: int
    height_px: int
    dpi: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MapConfig:
        basemap = _str(raw.get("basemap", "cartodb_light_nolabels"), "map.basemap").casefold()
        if basemap not in _BASEMAP_MODES:
            raise ValueError("map.basemap must be one of: " + ", ".join(sorted(_BASEMAP_MODES)))
        center = _float_pair(raw.get("center", [10, -70]), "map.center")
        if not -90.0 <= center[0] <= 90.0:
            raise ValueError("map.center latitude must be between -90 and 90")
        width_px = _int(raw.get("width_px", 1200), "map.width_px")
        height_px = _int(raw.get("height_px", 900), "map.height_px")
        dpi = _int(raw.get("dpi", 100), "map.dpi")
        if width_px <= 0 or height_px <= 0 or dpi <= 0:
            raise ValueError("map.width_px, map.height_px and map.dpi must be > 0")
        return cls(
            center=center,
            zoom=_float(raw.get("zoom", 4), "map.zoom"),
            basemap=basemap,
            width_px=width_px,
            height_px=height_px,
            dpi=dpi,
        )


@dataclass(frozen=True, slots=True)
class LegendConfig:
    ticks: tuple[float, ...]
    position: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LegendConfig:
        position = _str(raw.get("position", "bottomright"), "legend.position").casefold()
        if position not in _LEGEND_POSITIONS:
            raise ValueError(
                "legend.position must be one of: " + ", ".join(sorted(_LEGEND_POSITIONS))
            )
        return cls(
            ticks=_float_list(raw.get("ticks", [0, 25, 50, 75, 100]), "legend.ticks"),
            position=position,
        )


@dataclass(frozen=True, slots=True)
class OutputConfig:
    map_png: Path
    legend_png: Path
    popups_json: Path
    details_html: Path
    logs_dir: Path

    @property
    def directories(self) -> tuple[Path, ...]:
        return (
            self.map_png.parent,
            self.legend_png.parent,
            self.popups_json.parent,
            self.details_html.parent,
            self.logs_dir,
        )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> OutputConfig:
        return cls(
            map_png=_path_from_cfg(raw.get("map_png", "build/map.png"), "output.map_png", root_dir),
            legend_png=_path_from_cfg(
                raw.get("legend_png", "build/legend.png"), "output.legend_png", root_dir
            ),
            popups_json=_path_from_cfg(
                raw.get("popups_json", "build/popups.json"), "output.popups_json", root_dir
            ),
            details_html=_path_from_cfg(
                raw.get("details_html", "build/index.html"), "output.details_html", root_dir
            ),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "build/logs"), "output.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    dataset: DatasetConfig
    scale: ScaleConfig
    format: FormatConfig
    labels: LabelsConfig
    map: MapConfig
    legend: LegendConfig
    output: OutputConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            dataset=DatasetConfig.from_mapping(_mapping(raw.get("dataset"), "dataset")),
            scale=ScaleConfig.from_mapping(_optional_mapping(raw.get("scale"), "scale")),
            format=FormatConfig.from_mapping(_optional_mapping(raw.get("format"), "format")),
            labels=LabelsConfig.from_mapping(_optional_mapping(raw.get("labels"), "labels")),
            map=MapConfig.from_mapping(_optional_mapping(raw.get("map"), "map")),
            legend=LegendConfig.from_mapping(_optional_mapping(raw.get("legend"), "legend")),
            output=OutputConfig.from_mapping(
                _optional_mapping(raw.get("output"), "output"), root_dir
            ),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
