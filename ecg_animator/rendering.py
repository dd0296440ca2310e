# ecg_animator/rendering.py
from typing import Any, Dict, Optional, Sequence

from .constants import POINTER_RADIUS
from .sweep import Point, SweepFrame


def points_to_svg_path(points: Sequence[Optional[Point]]) -> str:
    """
    Build an SVG path `d` attribute from a display buffer.

    Empty slots are skipped. The first live point starts with a move command
    and every later one is joined with a line, so a gap in the buffer is
    bridged rather than broken.
    """
    path = ""
    for point in points:
        if point is None:
            continue
        path += (" L" if path else "M") + f" {point.x:g} {point.y:g}"
    return path


def render_frame(frame: SweepFrame, pointer_radius: float = POINTER_RADIUS) -> Dict[str, Any]:
    marker = None
    if frame.marker is not None:
        marker = {"cx": frame.marker.x, "cy": frame.marker.y, "r": pointer_radius}
    return {
        "path": points_to_svg_path(frame.points),
        "marker": marker,
        "pointer_x": frame.pointer_x,
        "phase": frame.phase,
        "drawn_points": sum(1 for p in frame.points if p is not None),
        "error": frame.error,
    }
