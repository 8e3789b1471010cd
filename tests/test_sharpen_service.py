"""Unit tests for the 3x3 unsharp mask."""

import numpy as np
import pytest

from image_toolkit.models.image import Image
from image_toolkit.services.sharpen_service import SharpenService
from tests.conftest import solid_pixels


@pytest.fixture
def service():
    return SharpenService()


def _spot(center, surround):
    """3x3 image with a grey centre pixel on a grey surround (R, G and B equal)."""
    pixels = solid_pixels(3, 3, (surround,) * 3)
    pixels[1, 1, :3] = center
    return Image(pixels=pixels)


def test_zero_amount_is_strict_noop(service, noisy_image):
    before = noisy_image.pixels.copy()
    result = service.unsharp_mask(noisy_image, 0.0)
    assert result is noisy_image
    assert np.array_equal(noisy_image.pixels, before)


def test_border_and_alpha_untouched(service, noisy_image):
    before = noisy_image.pixels.copy()
    service.unsharp_mask(noisy_image, 1.0)
    after = noisy_image.pixels
    assert np.array_equal(after[0], before[0])
    assert np.array_equal(after[-1], before[-1])
    assert np.array_equal(after[:, 0], before[:, 0])
    assert np.array_equal(after[:, -1], before[:, -1])
    assert np.array_equal(after[:, :, 3], before[:, :, 3])
    assert not np.array_equal(after, before)


def test_uniform_image_unchanged(service, make_image):
    img = make_image(6, 6, (90, 120, 200))
    before = img.pixels.copy()
    service.unsharp_mask(img, 1.0)
    assert np.array_equal(img.pixels, before)


def test_bright_spot_is_amplified(service):
    # blurred centre = 160 * 4 / 16 = 40 → 160 + 0.5 * 120 = 220
    img = service.unsharp_mask(_spot(160, 0), 0.5)
    assert tuple(img.pixels[1, 1, :3]) == (220, 220, 220)


def test_result_is_clamped(service):
    assert tuple(service.unsharp_mask(_spot(160, 0), 1.0).pixels[1, 1, :3]) == (255, 255, 255)
    # blurred centre = 100 * 12 / 16 = 75 → 0 - 75 clamps to 0
    assert tuple(service.unsharp_mask(_spot(0, 100), 1.0).pixels[1, 1, :3]) == (0, 0, 0)


def test_uses_original_neighbours(service):
    # A 1x3 interior strip: if the left pixel were sharpened first, the middle
    # one would see the modified value.
    pixels = solid_pixels(5, 3, (0, 0, 0))
    pixels[1, 1:4, :3] = [[200] * 3, [100] * 3, [200] * 3]
    img = service.unsharp_mask(Image(pixels=pixels), 1.0)
    # middle: blurred = (200*2 + 100*4 + 200*2) / 16 = 75 → 100 + 25 = 125
    assert img.pixels[1, 2, 0] == 125


def test_too_small_images_are_unchanged(service, noisy_image):
    thin = Image(pixels=noisy_image.pixels[:2].copy())
    before = thin.pixels.copy()
    service.unsharp_mask(thin, 1.0)
    assert np.array_equal(thin.pixels, before)


@pytest.mark.parametrize("amount", [-0.1, 1.5])
def test_amount_out_of_range(service, noisy_image, amount):
    with pytest.raises(ValueError):
        service.unsharp_mask(noisy_image, amount)
