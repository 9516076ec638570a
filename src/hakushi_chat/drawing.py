"""
Freehand drawing to SVG.

Strokes are scaled uniformly to fit the canvas and centred, one ``<path>``
per stroke.
"""

from typing import Sequence

from pydantic import BaseModel

SVG_NS = "http://www.w3.org/2000/svg"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


class StrokePoint(BaseModel):
    x: float
    y: float
    pressure: float = 1.0


Stroke = Sequence[StrokePoint]


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def _svg_open(width: int, height: int) -> str:
    return f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" xmlns="{SVG_NS}">'


def export_svg(strokes: Sequence[Stroke], width: float, height: float) -> str:
    w, h = int(width), int(height)
    points = [p for stroke in strokes for p in stroke]
    if not points:
        return f"{XML_HEADER}\n{_svg_open(w, h)}</svg>"

    min_x = min(p.x for p in points)
    min_y = min(p.y for p in points)
    content_w = max(max(p.x for p in points) - min_x, 1.0)
    content_h = max(max(p.y for p in points) - min_y, 1.0)

    scale = min(width / content_w, height / content_h)
    offset_x = (width - content_w * scale) / 2.0 - min_x * scale
    offset_y = (height - content_h * scale) / 2.0 - min_y * scale
    stroke_width = _fmt(max(1.0, 2.0 * scale))

    lines = [XML_HEADER, _svg_open(w, h)]
    for stroke in strokes:
        if not stroke:
            continue
        d = "".join(
            f"{'M' if i == 0 else 'L'}{_fmt(p.x * scale + offset_x)} {_fmt(p.y * scale + offset_y)}"
            for i, p in enumerate(stroke)
        )
        lines.append(
            f'  <path d="{d}" stroke="black" stroke-width="{stroke_width}" fill="none" '
            'stroke-linecap="round" stroke-linejoin="round"/>'
        )
    lines.append("</svg>")
    return "\n".join(lines)
