"""Vertical gradient legend drawn from the shared color scale."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from .canvas import DrawingSurface, LinearGradient
from .colors import ColorScale

if TYPE_CHECKING:
    from .surface import MapControl, MapSurface


LEGEND_WIDTH = 50
LEGEND_HEIGHT = 140
BAR_X = 10
BAR_TOP = 10
BAR_WIDTH = 15
BAR_HEIGHT = 120
BAR_BOTTOM = BAR_TOP + BAR_HEIGHT
TICK_X = BAR_X + BAR_WIDTH
TICK_LENGTH = 4
TICK_THICKNESS = 1
LABEL_X = 32
GRADIENT_STEPS = 100
DEFAULT_TICKS = (0.0, 25.0, 50.0, 75.0, 100.0)

_LOGGER = logging.getLogger("choromap.legend")


def tick_label(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


class LegendRenderer:
    """Draw the color bar and ticks for one scale.

    Holds at most one live control: rendering again replaces the previous
    legend instead of stacking a second one.
    """

    def __init__(
        self,
        scale: ColorScale,
        *,
        ticks: Sequence[float] = DEFAULT_TICKS,
        position: str = "bottomright",
    ) -> None:
        self.scale = scale
        self.ticks = tuple(float(v) for v in ticks)
        self.position = position
        self._control: MapControl | None = None

    @property
    def control(self) -> MapControl | None:
        return self._control

    def render(self, surface: MapSurface) -> MapControl:
        if self._control is not None:
            _LOGGER.debug("Replacing existing legend control")
            surface.remove_control(self._control)
            self._control = None
        control = surface.add_control(self.position, LEGEND_WIDTH, LEGEND_HEIGHT)
        self.draw(control.canvas)
        self._control = control
        return control

    def draw(self, canvas: DrawingSurface) -> LinearGradient:
        gradient = canvas.create_linear_gradient(0, BAR_TOP, 0, BAR_BOTTOM)
        for fraction, color in self.scale.sample(GRADIENT_STEPS):
            # Lowest value at the bottom of the bar.
            gradient.add_color_stop(1 - fraction, color)

        canvas.fill_style = gradient
        canvas.fill_rect(BAR_X, BAR_TOP, BAR_WIDTH, BAR_HEIGHT)

        canvas.fill_style = "#000"
        canvas.font = "10px Arial"
        canvas.text_align = "left"
        canvas.text_baseline = "middle"
        for value in self.ticks:
            y = self.tick_y(value)
            canvas.fill_rect(TICK_X, y, TICK_LENGTH, TICK_THICKNESS)
            canvas.fill_text(tick_label(value), LABEL_X, y)
        return gradient

    def tick_y(self, value: float) -> float:
        return BAR_BOTTOM - self.scale.position(value) * BAR_HEIGHT
