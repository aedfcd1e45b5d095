"""HTML details page: the rendered map plus one card per region popup."""

from __future__ import annotations

import os
from html import escape
from pathlib import Path
from typing import Sequence

from .models import Style


def write_details_page(
    *,
    popups: Sequence[str],
    styles: Sequence[Style],
    map_png: Path,
    output_html: Path,
    title: str,
) -> Path:
    """Generate an HTML page listing each region's popup next to its fill color.

    Popup strings are already escaped HTML fragments and are inserted as-is.
    """
    if len(popups) != len(styles):
        raise ValueError("popups and styles must have the same length")

    cards: list[str] = []
    for popup, style in zip(popups, styles):
        cards.append(
            "\n".join(
                [
                    "<div class='card'>",
                    f"  <span class='swatch' style='background: {escape(style.fill_color)}; "
                    f"border-color: {escape(style.stroke_color)}'></span>",
                    f"  <p>{popup}</p>",
                    "</div>",
                ]
            )
        )

    map_src = Path(os.path.relpath(map_png, output_html.parent)).as_posix()
    html = "\n".join(
        [
            "<!doctype html>",
            "<html lang='es'>",
            "<head>",
            "  <meta charset='utf-8'>",
            "  <meta name='viewport' content='width=device-width, initial-scale=1'>",
            f"  <title>{escape(title)}</title>",
            "  <style>",
            "    body { font-family: Arial, sans-serif; margin: 16px; }",
            "    .map { display: block; max-width: 100%; margin-bottom: 16px; }",
            "    .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); "
            "gap: 12px; }",
            "    .card { display: flex; gap: 10px; align-items: flex-start; "
            "border: 1px solid #ddd; border-radius: 8px; padding: 10px; }",
            "    .card p { margin: 0; font-size: 13px; line-height: 1.4; }",
            "    .swatch { flex: 0 0 18px; height: 18px; border: 1px solid; border-radius: 3px; }",
            "  </style>",
            "</head>",
            "<body>",
            f"  <h1>{escape(title)}</h1>",
            f"  <img class='map' src='{escape(map_src)}' alt='{escape(title)}'>",
            "  <div class='grid'>",
            *cards,
            "  </div>",
            "</body>",
            "</html>",
            "",
        ]
    )
    output_html.parent.mkdir(parents=True, exist_ok=True)
    output_html.write_text(html, encoding="utf-8")
    return output_html
