"""Value-to-color mapping shared by feature painting and the legend."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from matplotlib.colors import to_hex, to_rgb


NODATA_COLOR = "#cccccc"

# Evenly spaced anchors of the viridis ramp, dark to light.
PALETTES: dict[str, tuple[str, ...]] = {
    "viridis": (
        "#440154",
        "#482777",
        "#3f4a8a",
        "#31678e",
        "#26838f",
        "#1f9d8a",
        "#6cce5a",
        "#b6de2b",
        "#fee825",
    ),
}

# CIE Lab, D65 white point.
_XN, _YN, _ZN = 0.950470, 1.0, 1.088830
_LAB_KN = 18.0
_T0 = 4.0 / 29.0
_T1 = 6.0 / 29.0
_T2 = 3.0 * _T1**2
_T3 = _T1**3

_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ]
)
_XYZ_TO_RGB = np.linalg.inv(_RGB_TO_XYZ)


class ColorScale:
    """Linear color ramp over a fixed closed domain.

    Values outside the domain are clamped; NaN maps to the no-data color.
    Instances are immutable and safe to share between the feature styler
    and the legend.
    """

    __slots__ = ("_domain", "_anchors", "_stops", "_nodata_color")

    def __init__(
        self,
        anchors: Sequence[str] = PALETTES["viridis"],
        domain: tuple[float, float] = (0.0, 100.0),
        nodata_color: str = NODATA_COLOR,
    ) -> None:
        lo, hi = float(domain[0]), float(domain[1])
        if not (math.isfinite(lo) and math.isfinite(hi)) or hi <= lo:
            raise ValueError(f"Invalid color scale domain: {domain!r}")
        if len(anchors) < 2:
            raise ValueError("A color scale needs at least two anchor colors")
        self._domain = (lo, hi)
        self._anchors = np.array([to_rgb(color) for color in anchors], dtype=float)
        self._stops = np.linspace(0.0, 1.0, len(anchors))
        self._nodata_color = to_hex(nodata_color)

    @classmethod
    def from_palette(
        cls,
        name: str,
        domain: tuple[float, float] = (0.0, 100.0),
        nodata_color: str = NODATA_COLOR,
    ) -> ColorScale:
        anchors = PALETTES.get(name.casefold())
        if anchors is None:
            raise ValueError(
                f"Unknown palette '{name}'. Available: " + ", ".join(sorted(PALETTES))
            )
        return cls(anchors, domain=domain, nodata_color=nodata_color)

    @property
    def domain(self) -> tuple[float, float]:
        return self._domain

    @property
    def nodata_color(self) -> str:
        return self._nodata_color

    def position(self, value: float) -> float:
        """Normalized, clamped position of `value` inside the domain."""
        lo, hi = self._domain
        t = (float(value) - lo) / (hi - lo)
        return min(max(t, 0.0), 1.0)

    def value_at(self, fraction: float) -> float:
        lo, hi = self._domain
        return lo + fraction * (hi - lo)

    def color_for(self, value: float | None) -> str:
        if value is None or math.isnan(value):
            return self._nodata_color
        t = self.position(value)
        rgb = [float(np.interp(t, self._stops, self._anchors[:, ch])) for ch in range(3)]
        return to_hex(rgb)

    __call__ = color_for

    def sample(self, steps: int = 100) -> list[tuple[float, str]]:
        """Colors at `steps + 1` evenly spaced domain positions as (fraction, color)."""
        if steps < 1:
            raise ValueError("steps must be >= 1")
        return [(i / steps, self.color_for(self.value_at(i / steps))) for i in range(steps + 1)]


def _srgb_to_linear(c: np.ndarray) -> np.ndarray:
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)


def _linear_to_srgb(c: np.ndarray) -> np.ndarray:
    c = np.clip(c, 0.0, 1.0)
    return np.where(c <= 0.0031308, 12.92 * c, 1.055 * np.power(c, 1.0 / 2.4) - 0.055)


def _xyz_to_lab_f(t: np.ndarray) -> np.ndarray:
    return np.where(t > _T3, np.cbrt(t), t / _T2 + _T0)


def _lab_to_xyz_f(t: np.ndarray) -> np.ndarray:
    return np.where(t > _T1, t**3, _T2 * (t - _T0))


def rgb_to_lab(color: str) -> tuple[float, float, float]:
    linear = _srgb_to_linear(np.array(to_rgb(color), dtype=float))
    x, y, z = _RGB_TO_XYZ @ linear
    fx, fy, fz = _xyz_to_lab_f(np.array([x / _XN, y / _YN, z / _ZN]))
    return (float(116.0 * fy - 16.0), float(500.0 * (fx - fy)), float(200.0 * (fy - fz)))


def lab_to_hex(lab: Sequence[float]) -> str:
    l_star, a_star, b_star = (float(v) for v in lab)
    fy = (l_star + 16.0) / 116.0
    fx = fy + a_star / 500.0
    fz = fy - b_star / 200.0
    xyz = _lab_to_xyz_f(np.array([fx, fy, fz])) * np.array([_XN, _YN, _ZN])
    rgb = _linear_to_srgb(_XYZ_TO_RGB @ xyz)
    return to_hex(np.clip(rgb, 0.0, 1.0))


def darken(color: str, amount: float = 1.0) -> str:
    """Lower the Lab lightness of `color` by 18 units per `amount`."""
    l_star, a_star, b_star = rgb_to_lab(color)
    return lab_to_hex((l_star - _LAB_KN * amount, a_star, b_star))
