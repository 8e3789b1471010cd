# pipeline/converter.py
import os

from dotenv import load_dotenv

from ..models.image import Image
from ..services.image_service import ImageService

load_dotenv()
OUTPUT_QUALITY = float(os.getenv("OUTPUT_QUALITY", "0.92"))


def convert_image_format(
    image: Image,
    fmt: str,
    quality: float = OUTPUT_QUALITY,
    *,
    image_service: ImageService = ImageService(),
) -> bytes:
    """Encode *image* as png / jpeg / webp; *quality* only applies to the lossy ones."""
    return image_service.encode(image, fmt, quality)
