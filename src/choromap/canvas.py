"""Canvas-like 2D drawing surfaces used by overlay controls."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

import numpy as np
from matplotlib.colors import to_hex, to_rgb


_FONT_RE = re.compile(r"^\s*(?:(bold|normal)\s+)?(\d+(?:\.\d+)?)px\s+(.+?)\s*$")

# Canvas text baseline -> matplotlib verticalalignment.
_BASELINES = {
    "top": "top",
    "hanging": "top",
    "middle": "center",
    "alphabetic": "baseline",
    "ideographic": "baseline",
    "bottom": "bottom",
}
_ALIGNMENTS = {"left": "left", "start": "left", "center": "center", "right": "right", "end": "right"}


@dataclass(slots=True)
class LinearGradient:
    """Gradient between two points with color stops at offsets in [0, 1]."""

    x0: float
    y0: float
    x1: float
    y1: float
    stops: list[tuple[float, str]] = field(default_factory=list)

    def add_color_stop(self, offset: float, color: str) -> None:
        if not 0.0 <= offset <= 1.0:
            raise ValueError(f"Gradient stop offset out of range: {offset}")
        # Stops sharing an offset keep insertion order, as canvas gradients do.
        offsets = [item[0] for item in self.stops]
        idx = bisect.bisect_right(offsets, offset)
        self.stops.insert(idx, (float(offset), to_hex(color)))

    def stop_at(self, offset: float) -> str | None:
        for stop_offset, color in self.stops:
            if stop_offset == offset:
                return color
        return None

    def color_at(self, offset: float) -> str:
        """Interpolated color at a gradient offset (clamped to the end stops)."""
        return to_hex(self.rgb_at(np.array([offset], dtype=float))[0])

    def rgb_at(self, offsets: np.ndarray) -> np.ndarray:
        if not self.stops:
            raise ValueError("Gradient has no color stops")
        stop_offsets = np.array([item[0] for item in self.stops])
        stop_rgb = np.array([to_rgb(item[1]) for item in self.stops])
        t = np.clip(offsets, 0.0, 1.0)
        return np.stack([np.interp(t, stop_offsets, stop_rgb[:, ch]) for ch in range(3)], axis=-1)

    def offset_of(self, x: Any, y: Any) -> Any:
        """Project point(s) onto the gradient axis; scalars or numpy arrays."""
        dx = self.x1 - self.x0
        dy = self.y1 - self.y0
        length_sq = dx * dx + dy * dy
        if length_sq == 0:
            return np.zeros_like(np.asarray(x, dtype=float))
        return ((x - self.x0) * dx + (y - self.y0) * dy) / length_sq


FillStyle = Union[str, LinearGradient]


class DrawingSurface(Protocol):
    width: int
    height: int
    fill_style: FillStyle
    font: str
    text_align: str
    text_baseline: str

    def create_linear_gradient(self, x0: float, y0: float, x1: float, y1: float) -> LinearGradient:
        ...

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        ...

    def fill_text(self, text: str, x: float, y: float) -> None:
        ...


def parse_font(font: str) -> tuple[float, str, str]:
    """Split a CSS font shorthand like '10px Arial' into (size_px, family, weight)."""
    match = _FONT_RE.match(font)
    if match is None:
        raise ValueError(f"Unsupported font specification: '{font}'")
    weight = match.group(1) or "normal"
    return (float(match.group(2)), match.group(3).strip("'\""), weight)


class MatplotlibCanvas:
    """Canvas API over a matplotlib Axes in pixel units, y axis pointing down."""

    def __init__(self, ax: Any, width: int, height: int, *, dpi: float) -> None:
        self.ax = ax
        self.width = width
        self.height = height
        self.dpi = dpi
        self.fill_style: FillStyle = "#000000"
        self.font = "10px sans-serif"
        self.text_align = "start"
        self.text_baseline = "alphabetic"
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_axis_off()
        ax.patch.set_alpha(0.0)

    def create_linear_gradient(self, x0: float, y0: float, x1: float, y1: float) -> LinearGradient:
        return LinearGradient(x0, y0, x1, y1)

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        from matplotlib.patches import Rectangle

        if isinstance(self.fill_style, LinearGradient):
            self._fill_rect_gradient(self.fill_style, x, y, width, height)
            return
        self.ax.add_patch(
            Rectangle((x, y), width, height, facecolor=self.fill_style, edgecolor="none", linewidth=0)
        )

    def fill_text(self, text: str, x: float, y: float) -> None:
        size_px, family, weight = parse_font(self.font)
        color = self.fill_style if isinstance(self.fill_style, str) else "#000000"
        self.ax.text(
            x,
            y,
            str(text),
            color=color,
            fontsize=size_px * 72.0 / self.dpi,
            fontfamily=family,
            fontweight=weight,
            ha=_ALIGNMENTS.get(self.text_align, "left"),
            va=_BASELINES.get(self.text_baseline, "baseline"),
            clip_on=False,
        )

    def _fill_rect_gradient(
        self,
        gradient: LinearGradient,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        cols = max(int(round(width)), 1)
        rows = max(int(round(height)), 1)
        xs = x + np.arange(cols) + 0.5
        ys = y + np.arange(rows) + 0.5
        grid_x, grid_y = np.meshgrid(xs, ys)
        image = gradient.rgb_at(gradient.offset_of(grid_x, grid_y))
        self.ax.imshow(
            image,
            extent=(x, x + width, y + height, y),
            interpolation="nearest",
            aspect="auto",
        )
        # imshow resets the limits; restore the canvas frame.
        self.ax.set_xlim(0, self.width)
        self.ax.set_ylim(self.height, 0)
