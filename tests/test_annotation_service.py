"""Unit tests for overlay line selection, layout and compositing."""

import numpy as np
import pytest

from image_toolkit.models.annotation_config import AnnotationConfig
from image_toolkit.services.annotation_service import AnnotationService


@pytest.fixture(scope="module")
def service():
    return AnnotationService()


def linear(text, size):
    return len(text) * size * 0.5


URL = "https://ja.wikipedia.org/wiki/Tokyo_Tower_History"

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "kwargs",
    [
        {"anchor": "center"},
        {"display_mode": "none"},
        {"font_scale": 2.5},
        {"font_scale": 0.4},
        {"bg_opacity": 1.1},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ValueError):
        AnnotationConfig(**kwargs)


# ---------------------------------------------------------------------------
# Line selection
# ---------------------------------------------------------------------------


def test_select_lines_follows_display_mode(service):
    both = AnnotationConfig(title="Tokyo Tower", url=URL, display_mode="both")
    assert service.select_lines(both) == ["Tokyo Tower", "ja.wikipedia.org/wiki/Tokyo_Tower_Histo…"]

    title_only = AnnotationConfig(title="Tokyo Tower", url=URL, display_mode="title")
    assert service.select_lines(title_only) == ["Tokyo Tower"]

    url_only = AnnotationConfig(title="Tokyo Tower", url=URL, display_mode="url")
    assert service.select_lines(url_only) == ["ja.wikipedia.org/wiki/Tokyo_Tower_Histo…"]

    assert service.select_lines(AnnotationConfig(title="", url=URL, display_mode="title")) == []


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def test_layout_bottom_right(service):
    layout = service.compute_layout(1000, 500, ["abc"], AnnotationConfig(title="abc"), measure=linear)
    # base font = max(round(500 * 0.06), 20) = 30; text width 45 fits in 500
    assert layout.font_size == 30
    assert layout.padding == pytest.approx(18)
    assert layout.line_height == pytest.approx(42)
    assert layout.box_width == pytest.approx(81)
    assert layout.box_height == pytest.approx(78)
    assert (layout.x, layout.y) == (pytest.approx(901), pytest.approx(404))
    assert layout.corner_radius == pytest.approx(9)


@pytest.mark.parametrize(
    "anchor,expected",
    [
        ("top-left", (18, 18)),
        ("top-right", (901, 18)),
        ("bottom-left", (18, 404)),
    ],
)
def test_layout_anchors(service, anchor, expected):
    config = AnnotationConfig(title="abc", anchor=anchor)
    layout = service.compute_layout(1000, 500, ["abc"], config, measure=linear)
    assert (layout.x, layout.y) == (pytest.approx(expected[0]), pytest.approx(expected[1]))


def test_layout_stacks_lines_and_shrinks_font(service):
    lines = ["x" * 60, "short"]
    layout = service.compute_layout(1000, 500, lines, AnnotationConfig(title="t"), measure=linear)
    # 900 px at 30 → 17 (510 px, still too wide) → 16 (480 px)
    assert layout.font_size == 16
    assert layout.text_width == pytest.approx(480)
    assert layout.box_height == pytest.approx(2 * 16 * 1.4 + 2 * 16 * 0.6)
    x0, y0 = layout.line_origin(0)
    x1, y1 = layout.line_origin(1)
    assert x0 == x1 == pytest.approx(layout.x + layout.padding)
    assert y1 - y0 == pytest.approx(layout.line_height)


# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------


def test_empty_text_leaves_surface_untouched(service, noisy_image):
    before = noisy_image.pixels.copy()
    config = AnnotationConfig(title="", url="", display_mode="url")
    assert service.composite_overlay(noisy_image, config) is noisy_image
    assert np.array_equal(noisy_image.pixels, before)

    # title is set but the mode hides it
    service.composite_overlay(noisy_image, AnnotationConfig(title="Hidden", display_mode="url"))
    assert np.array_equal(noisy_image.pixels, before)


def test_overlay_draws_box_and_text(service, make_image):
    img = make_image(400, 300, (0, 128, 0))
    config = AnnotationConfig(title="Hello", bg_color="#FF0000", bg_opacity=1.0)
    layout = service.compute_layout(img.width, img.height, ["Hello"], config)

    result = service.composite_overlay(img, config)
    assert result is img

    # left padding strip, vertically centred: box colour only
    px = int(layout.x + layout.padding / 2)
    py = int(layout.y + layout.box_height / 2)
    assert tuple(img.pixels[py, px]) == (255, 0, 0, 255)

    # bottom-right anchor: the opposite corner is untouched
    assert tuple(img.pixels[0, 0]) == (0, 128, 0, 255)

    # white text somewhere inside the text area
    top = int(layout.y + layout.padding)
    left = int(layout.x + layout.padding)
    text_area = img.pixels[top:top + int(layout.line_height), left:left + int(layout.text_width) + 1]
    assert text_area[:, :, 1].max() > 200


def test_overlay_box_respects_opacity(service, make_image):
    img = make_image(400, 300, (0, 200, 0))
    config = AnnotationConfig(title="Hi", anchor="top-left", bg_color=(0, 0, 0), bg_opacity=0.5)
    layout = service.compute_layout(img.width, img.height, ["Hi"], config)
    service.composite_overlay(img, config)

    px = int(layout.x + layout.padding / 2)
    py = int(layout.y + layout.box_height / 2)
    r, g, b, a = (int(v) for v in img.pixels[py, px])
    assert abs(g - 100) <= 2
    assert (r, b, a) == (0, 0, 255)


def test_overlay_box_covers_exactly_its_layout_height(service, make_image):
    img = make_image(300, 200, (0, 200, 0))
    config = AnnotationConfig(title="Hi", anchor="top-left", bg_color="#FF0000", bg_opacity=1.0)
    layout = service.compute_layout(img.width, img.height, ["Hi"], config)
    assert (layout.y, layout.box_height) == (pytest.approx(12), pytest.approx(52))
    service.composite_overlay(img, config)

    column = img.pixels[:, int(layout.x + layout.padding / 2), :3]
    red = np.all(column == (255, 0, 0), axis=1)
    assert not red[11] and not red[64]
    assert np.all(red[12:64])


# ---------------------------------------------------------------------------
# Working resolution
# ---------------------------------------------------------------------------


def test_large_images_are_used_as_is(service, make_image):
    img = make_image(2000, 40)
    assert service.prepare_for_annotation(img) is img


def test_small_images_are_upscaled_to_1920(service, make_image):
    img = make_image(192, 108, (40, 80, 120))
    prepared = service.prepare_for_annotation(img)
    assert (prepared.width, prepared.height) == (1920, 1080)
    assert (img.width, img.height) == (192, 108)
