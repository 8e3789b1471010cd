from __future__ import annotations
from typing import Dict, List, Tuple
import logging

from PIL import Image as PILImage
from PIL import ImageColor, ImageDraw, ImageFont

from ..models.annotation_config import AnnotationConfig, ColorSpec
from ..models.image import Image
from ..models.overlay_layout import OverlayLayout
from .image_service import ImageService
from .sharpen_service import SharpenService
from .text_budget import (
    Measure,
    base_font_size,
    fit_font_size,
    max_text_width,
    truncate_url_for_display,
)
from .upscale_service import UpscaleService

logger = logging.getLogger(__name__)


def _to_rgb(color: ColorSpec) -> Tuple[int, int, int]:
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    r, g, b = color
    return int(r), int(g), int(b)


class AnnotationService:
    """
    Source-attribution overlay: a rounded, semi-transparent box in one
    corner holding the page title and/or a shortened URL.

    *   Layout (compute_layout) is pure geometry; rendering is Pillow.
    *   composite_overlay mutates the Image it is given and returns it.
    """

    ANNOTATE_MIN_LONG_SIDE = 1920
    SHARPEN_AMOUNT = 0.6
    DEFAULT_FONT = "DejaVuSans.ttf"

    def __init__(self, font_path: str = None):
        self.font_path = font_path or self.DEFAULT_FONT
        self.image_service = ImageService()
        self.upscale_service = UpscaleService()
        self.sharpen_service = SharpenService()
        self._fonts: Dict[int, ImageFont.ImageFont] = {}

    # ─── Fonts ──────────────────────────────────────────────────────
    def font(self, size: int):
        if size not in self._fonts:
            try:
                self._fonts[size] = ImageFont.truetype(self.font_path, size)
            except OSError:
                logger.warning(f"Font {self.font_path} unavailable, using Pillow's default font")
                self._fonts[size] = ImageFont.load_default(size=size)
        return self._fonts[size]

    def measure(self, text: str, size: int) -> float:
        return self.font(size).getlength(text)

    # ─── Working resolution ─────────────────────────────────────────
    def prepare_for_annotation(self, img: Image) -> Image:
        """
        Small images are upscaled (with sharpening) until the long side is
        exactly 1920px so overlay text stays legible; large ones are returned as-is.
        """
        long_side = img.long_side
        if long_side >= self.ANNOTATE_MIN_LONG_SIDE:
            return img

        factor = self.ANNOTATE_MIN_LONG_SIDE / long_side
        upscaled = self.upscale_service.upscale(img, factor)
        return self.sharpen_service.unsharp_mask(upscaled, self.SHARPEN_AMOUNT)

    # ─── Layout ─────────────────────────────────────────────────────
    @staticmethod
    def select_lines(config: AnnotationConfig) -> List[str]:
        lines = []
        if config.shows_title and config.title:
            lines.append(config.title)
        if config.shows_url and config.url:
            lines.append(truncate_url_for_display(config.url))
        return lines

    def compute_layout(
        self,
        width: int,
        height: int,
        lines: List[str],
        config: AnnotationConfig,
        measure: Measure = None,
    ) -> OverlayLayout:
        measure = measure or self.measure

        font_size = base_font_size(width, height, config.font_scale)
        font_size, text_width = fit_font_size(
            lines, font_size, max_text_width(width, config.font_scale), measure)

        padding = font_size * 0.6
        line_height = font_size * 1.4
        box_width = text_width + padding * 2
        box_height = len(lines) * line_height + padding * 2

        margin = padding
        x = margin if config.anchor.endswith("left") else width - box_width - margin
        y = margin if config.anchor.startswith("top") else height - box_height - margin

        return OverlayLayout(
            lines=list(lines),
            font_size=font_size,
            padding=padding,
            line_height=line_height,
            text_width=text_width,
            x=x,
            y=y,
            box_width=box_width,
            box_height=box_height,
            corner_radius=font_size * 0.3,
        )

    # ─── Rendering ──────────────────────────────────────────────────
    def composite_overlay(self, img: Image, config: AnnotationConfig) -> Image:
        """
        Stamp the overlay onto *img* in place. Nothing is drawn, and the
        pixels stay byte-identical, when the config yields no lines.
        """
        lines = self.select_lines(config)
        if not lines:
            return img

        layout = self.compute_layout(img.width, img.height, lines, config)
        logger.debug(f"Overlay layout: {layout}")

        canvas = self.image_service.to_pil_image(img)

        box_layer = PILImage.new("RGBA", canvas.size, (0, 0, 0, 0))
        alpha = int(round(config.bg_opacity * 255))
        ImageDraw.Draw(box_layer).rounded_rectangle(
            # end point is inclusive in Pillow
            (layout.x, layout.y,
             layout.x + layout.box_width - 1, layout.y + layout.box_height - 1),
            radius=int(round(layout.corner_radius)),
            fill=_to_rgb(config.bg_color) + (alpha,),
        )
        canvas = PILImage.alpha_composite(canvas, box_layer)

        text_layer = PILImage.new("RGBA", canvas.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(text_layer)
        font = self.font(layout.font_size)
        fill = _to_rgb(config.text_color) + (255,)
        for i, line in enumerate(layout.lines):
            draw.text(layout.line_origin(i), line, font=font, fill=fill)
        canvas = PILImage.alpha_composite(canvas, text_layer)

        return self.image_service.write_back(img, canvas)
