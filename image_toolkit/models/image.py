from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple
import numpy as np

from ..errors import DegenerateImage

Color3 = Tuple[int, int, int]


@dataclass
class Image:
    """
    Simple data object: RGBA pixels (+ optional source path for bookkeeping).
    Every transform in the toolkit consumes and produces one of these.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order, row-major.
    path: Path | None = None  # Source of the image.

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA pixels, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        if self.pixels.shape[0] < 1 or self.pixels.shape[1] < 1:
            raise DegenerateImage(f"Zero-area surface: {self.pixels.shape[1]}x{self.pixels.shape[0]}")

    # ── Geometry ────────────────────────────────────────────────────
    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def long_side(self) -> int:
        return max(self.width, self.height)

    # ── Neighbour access (row-major pixel index) ────────────────────
    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def coords(self, index: int) -> Tuple[int, int]:
        y, x = divmod(index, self.width)
        return x, y

    def neighbors(self, index: int) -> Iterator[int]:
        """Yield the 4-connected neighbours of *index* that lie inside the image."""
        w = self.width
        x = index % w
        if x > 0:
            yield index - 1
        if x < w - 1:
            yield index + 1
        if index >= w:
            yield index - w
        if index < w * (self.height - 1):
            yield index + w

    def rgb_at(self, x: int, y: int) -> Color3:
        r, g, b = self.pixels[y, x, :3]
        return int(r), int(g), int(b)

    def copy(self) -> "Image":
        return Image(pixels=self.pixels.copy(), path=self.path)
