from __future__ import annotations
import logging

import cv2
import numpy as np

from ..models.image import Image

logger = logging.getLogger(__name__)


class SharpenService:
    """
    3x3 Gaussian unsharp mask.

    out = clamp(orig + amount * (orig - blurred), 0, 255) on the RGB channels
    of interior pixels. The 1px border and the alpha channel are left as-is.
    """

    KERNEL = np.array([[1, 2, 1],
                       [2, 4, 2],
                       [1, 2, 1]], dtype=np.float64) / 16.0

    def blur(self, rgb: np.ndarray) -> np.ndarray:
        """Gaussian-blurred float64 copy of an (H, W, 3) array; only the interior is meaningful."""
        return cv2.filter2D(rgb, cv2.CV_64F, self.KERNEL, borderType=cv2.BORDER_REPLICATE)

    def unsharp_mask(self, image: Image, amount: float = 0.6) -> Image:
        """
        Sharpen *image* in place and return it.

        Args:
            image: Surface to sharpen (mutated).
            amount: Strength in [0, 1]; 0 leaves every byte unchanged.
        """
        if not 0.0 <= amount <= 1.0:
            raise ValueError(f"amount must be within [0, 1], got {amount}")
        if amount == 0 or image.width < 3 or image.height < 3:
            return image

        # Read-only copy: the kernel must see original neighbours, not sharpened ones.
        original = image.pixels[:, :, :3].astype(np.float64)
        blurred = self.blur(original)

        inner = original[1:-1, 1:-1]
        sharpened = inner + amount * (inner - blurred[1:-1, 1:-1])
        # round half up, then clamp to byte range
        sharpened = np.clip(np.floor(sharpened + 0.5), 0, 255).astype(np.uint8)

        image.pixels[1:-1, 1:-1, :3] = sharpened
        logger.debug(f"Unsharp mask amount={amount} on {image.width}x{image.height}")
        return image
