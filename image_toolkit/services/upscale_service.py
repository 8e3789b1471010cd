from __future__ import annotations
import logging
import math

import cv2

from ..errors import InvalidScale
from ..models.image import Image

logger = logging.getLogger(__name__)


class UpscaleService:
    """
    Progressive magnification.

    One big resize looks noticeably softer than a chain of ≤2x high-quality
    resizes, so the factor is applied in steps of at most MAX_STEP.
    *   Works only with Image objects, never touches the input pixels.
    """

    MAX_STEP = 2.0
    EPSILON = 1e-9
    INTERPOLATION = cv2.INTER_CUBIC

    @staticmethod
    def _step_size(original: int, cumulative: float) -> int:
        # Each step target comes from the original size, so rounding never compounds.
        return int(math.floor(original * cumulative + 0.5))

    def plan_steps(self, width: int, height: int, factor: float):
        """
        Return the list of (width, height) targets a progressive upscale visits.
        Empty for factor == 1.
        """
        if not math.isfinite(factor) or factor < 1:
            raise InvalidScale(f"Scale factor must be >= 1, got {factor}")

        steps = []
        remaining = factor
        cumulative = 1.0
        while remaining > 1 + self.EPSILON:
            step = min(remaining, self.MAX_STEP)
            cumulative *= step
            remaining /= step
            new_w = self._step_size(width, cumulative)
            new_h = self._step_size(height, cumulative)
            if new_w < 1 or new_h < 1:
                raise InvalidScale(f"Scaling {width}x{height} by {factor} gives {new_w}x{new_h}")
            steps.append((new_w, new_h))
        return steps

    def upscale(self, image: Image, factor: float) -> Image:
        """
        Magnify *image* by *factor* (≥ 1) and return a **new** Image.
        factor == 1 returns a pixel-identical copy.
        """
        steps = self.plan_steps(image.width, image.height, factor)

        pixels = image.pixels
        for new_w, new_h in steps:
            logger.debug(f"Upscale step {pixels.shape[1]}x{pixels.shape[0]} → {new_w}x{new_h}")
            pixels = cv2.resize(pixels, (new_w, new_h), interpolation=self.INTERPOLATION)

        if not steps:
            pixels = pixels.copy()

        logger.info(f"Upscaled {image.width}x{image.height} by {factor:g} → "
                    f"{pixels.shape[1]}x{pixels.shape[0]} in {len(steps)} step(s)")
        return Image(pixels=pixels, path=image.path)
