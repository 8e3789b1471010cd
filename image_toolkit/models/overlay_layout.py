from __future__ import annotations
from dataclasses import dataclass
from typing import List


@dataclass
class OverlayLayout:
    """
    Resolved geometry for one overlay box, in pixel units of the target canvas.
    Produced by AnnotationService.compute_layout, consumed by the renderer.
    """
    lines: List[str]
    font_size: int
    padding: float        # 0.6 x font size, also the margin from the anchor corner
    line_height: float    # 1.4 x font size
    text_width: float     # widest measured line
    x: float              # box origin (top-left)
    y: float
    box_width: float
    box_height: float
    corner_radius: float  # 0.3 x font size

    def line_origin(self, i: int):
        """Top-left position of the i-th text line."""
        return self.x + self.padding, self.y + self.padding + i * self.line_height
