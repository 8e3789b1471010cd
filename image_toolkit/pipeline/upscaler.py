# pipeline/upscaler.py
import logging
import os

from dotenv import load_dotenv

from ..errors import InvalidScale
from ..models.image import Image
from ..services.sharpen_service import SharpenService
from ..services.upscale_service import UpscaleService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
SHARPEN_AMOUNT = float(os.getenv("UPSCALE_SHARPEN_AMOUNT", "0.6"))
MAX_UPSCALE_FACTOR = float(os.getenv("MAX_UPSCALE_FACTOR", "8"))

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
def upscale_image(
    image: Image,
    scale: float,
    sharpen: bool = True,
    *,
    upscale_service: UpscaleService = UpscaleService(),
    sharpen_service: SharpenService = SharpenService(),
    amount: float = SHARPEN_AMOUNT,
    max_factor: float = MAX_UPSCALE_FACTOR,
) -> Image:
    """
    High-quality upscale: progressive ≤2x steps, then an unsharp mask.

    The input Image is left untouched; a new Image is returned.
    Scales above *max_factor* are refused to bound CPU and memory cost.
    """
    if scale > max_factor:
        raise InvalidScale(f"Scale factor {scale} exceeds the configured maximum of {max_factor}")

    upscaled = upscale_service.upscale(image, scale)
    if sharpen:
        logger.debug(f"Sharpening {upscaled.width}x{upscaled.height} result (amount {amount})")
        sharpen_service.unsharp_mask(upscaled, amount)
    return upscaled
