"""
Annotation pipeline
Prepares a working canvas once per source image, then stamps the
source-attribution overlay onto copies of it for previews and exports.
"""
import logging
import os
from typing import Dict, Tuple

from dotenv import load_dotenv

from ..models.annotation_config import AnnotationConfig
from ..models.image import Image
from ..services.annotation_service import AnnotationService

# Load environment variables
load_dotenv()
OVERLAY_FONT_PATH = os.getenv("OVERLAY_FONT_PATH", AnnotationService.DEFAULT_FONT)

logger = logging.getLogger(__name__)


class AnnotationRenderer:
    """
    Caches the prepared (upscaled) canvas at the pipeline layer, keyed by
    source image identity, so changing the overlay settings never re-upscales.
    Each entry holds its source, so an id is never reused while cached.
    """

    def __init__(self, annotation_service: AnnotationService = None) -> None:
        self.annotation_service = annotation_service or AnnotationService(OVERLAY_FONT_PATH)
        self._prepared_cache: Dict[int, Tuple[Image, Image]] = {}

    def prepared_canvas(self, image: Image) -> Image:
        key = id(image)
        entry = self._prepared_cache.get(key)
        if entry is None or entry[0] is not image:
            prepared = self.annotation_service.prepare_for_annotation(image)
            # never hand out the caller's own surface as the cached canvas
            canvas = prepared.copy() if prepared is image else prepared
            entry = self._prepared_cache[key] = (image, canvas)
            logger.info(f"Prepared {image.width}x{image.height} source as "
                        f"{prepared.width}x{prepared.height} annotation canvas")
        return entry[1]

    def render_preview(self, image: Image, config: AnnotationConfig) -> Image:
        """Overlay drawn on a copy of the cached canvas; the cache stays clean."""
        canvas = self.prepared_canvas(image).copy()
        return self.annotation_service.composite_overlay(canvas, config)

    def forget(self, image: Image) -> None:
        entry = self._prepared_cache.get(id(image))
        if entry is not None and entry[0] is image:
            del self._prepared_cache[id(image)]


def render_annotated_image(
    image: Image,
    config: AnnotationConfig,
    *,
    annotation_service: AnnotationService = None,
) -> Image:
    """
    One-shot export: prepare the canvas and stamp the overlay.
    The source Image is never modified.
    """
    annotation_service = annotation_service or AnnotationService(OVERLAY_FONT_PATH)
    canvas = annotation_service.prepare_for_annotation(image)
    if canvas is image:
        canvas = image.copy()
    return annotation_service.composite_overlay(canvas, config)
