import logging

import cv2
import numpy as np

from ..models.image import Color3, Image

logger = logging.getLogger(__name__)


class BackgroundService:
    """
    Business‑level helper for background removal.

    • Estimates the background colour from the four corners.
    • Flood-fills from the image border, so only background *reachable from
      the edge* turns transparent; enclosed pockets of the same colour stay.
    • Returns a **new** Image (RGB preserved, alpha punched out).
    """

    DEFAULT_TOLERANCE = 30

    @staticmethod
    def estimate_background_color(img: Image) -> Color3:
        """Per-channel mean of the four corner pixels, rounded half up."""
        w, h = img.width, img.height
        corners = [(0, 0), (w - 1, 0), (0, h - 1), (w - 1, h - 1)]
        totals = [0, 0, 0]
        for x, y in corners:
            for c, value in enumerate(img.rgb_at(x, y)):
                totals[c] += value
        r, g, b = ((t + 2) // 4 for t in totals)  # round(t / 4), halves up
        return r, g, b

    @staticmethod
    def _match_mask(img: Image, bg: Color3, tolerance: int) -> np.ndarray:
        """(H, W) boolean mask: pixel within *tolerance* of *bg* on every channel."""
        diff = np.abs(img.pixels[:, :, :3].astype(np.int16) - np.array(bg, dtype=np.int16))
        return (diff <= tolerance).all(axis=2)

    @staticmethod
    def _border_labels(labels: np.ndarray) -> np.ndarray:
        """Component labels present on row 0, row h-1, column 0 or column w-1."""
        border = np.concatenate((labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]))
        found = np.unique(border)
        return found[found != 0]  # 0 = non-matching pixels

    def remove_background(self, img: Image, tolerance: int = DEFAULT_TOLERANCE) -> Image:
        """
        Border-seeded flood fill over 4-connected pixels.

        The matching pixels are labelled into 4-connected regions; a region
        is cleared only if it touches the image edge. Non-matching pixels act
        as walls. Linear in the pixel count and deterministic for a given
        input and tolerance.
        """
        if not 0 <= tolerance <= 255:
            raise ValueError(f"tolerance must be within [0, 255], got {tolerance}")

        bg = self.estimate_background_color(img)
        mask = self._match_mask(img, bg, tolerance).astype(np.uint8)

        # label grid is dense and per call
        _, labels = cv2.connectedComponents(mask, connectivity=4)
        transparent = np.isin(labels, self._border_labels(labels))

        out = img.copy()
        out.pixels[:, :, 3][transparent] = 0
        logger.info(f"Background {bg} (tolerance {tolerance}): "
                    f"{int(transparent.sum())}/{transparent.size} pixels cleared")
        return out
