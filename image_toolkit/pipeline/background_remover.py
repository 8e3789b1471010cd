# pipeline/background_remover.py
import os
from typing import Iterable, List

from dotenv import load_dotenv

from ..models.image import Image
from ..services.background_service import BackgroundService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
BG_TOLERANCE = int(os.getenv("BG_TOLERANCE", "30"))


# ------------------------------------------------------------------
def remove_background(
    image: Image,
    tolerance: int = BG_TOLERANCE,
    *,
    background_service: BackgroundService = BackgroundService(),
) -> Image:
    return background_service.remove_background(image, tolerance)


def remove_backgrounds(
    gallery: Iterable[Image],
    tolerance: int = BG_TOLERANCE,
    *,
    background_service: BackgroundService = BackgroundService(),
) -> List[Image]:
    """
    For every Image in *gallery*:
        • estimate the background colour from the corners
        • flood-fill it to transparency from the border inwards
    Returns new Image objects; the inputs are not modified.
    """
    return [background_service.remove_background(img, tolerance) for img in gallery]
