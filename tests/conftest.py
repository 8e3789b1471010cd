"""Shared fixtures for the image toolkit tests."""

import numpy as np
import pytest

from image_toolkit.models.image import Image
from image_toolkit.services.image_service import ImageService


def solid_pixels(width, height, rgb=(255, 255, 255), alpha=255):
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = alpha
    return pixels


@pytest.fixture
def make_image():
    """Factory for solid-colour opaque images."""
    def _make(width, height, rgb=(255, 255, 255), alpha=255):
        return Image(pixels=solid_pixels(width, height, rgb, alpha))
    return _make


@pytest.fixture
def noisy_image():
    rng = np.random.default_rng(1234)
    return Image(pixels=rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8))


@pytest.fixture
def white_image(make_image):
    return make_image(100, 100, (255, 255, 255))


@pytest.fixture
def image_service():
    return ImageService()


@pytest.fixture
def png_bytes(image_service, make_image):
    """Encode any Image (default: 10x10 white) as PNG bytes."""
    def _encode(image=None):
        return image_service.encode(image or make_image(10, 10), "png")
    return _encode
