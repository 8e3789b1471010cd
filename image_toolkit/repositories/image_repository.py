from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Iterable, Iterator, List, Union
import logging
import os

import cv2
import numpy as np
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..errors import EncodeFailure
from ..models.image import Image

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# format name → Pillow format, lossy?
_FORMATS = {
    "png": ("PNG", False),
    "jpeg": ("JPEG", True),
    "jpg": ("JPEG", True),
    "webp": ("WEBP", True),
}


def normalize_format(fmt: str) -> str:
    """Accept 'png', '.png', 'image/png' … and return the bare lower-case name."""
    name = fmt.strip().lower()
    if name.startswith("image/"):
        name = name[len("image/"):]
    name = name.lstrip(".")
    if name not in _FORMATS:
        raise ValueError(f"Unsupported image format: {fmt!r}")
    return "jpeg" if name == "jpg" else name


class ImageRepository:
    """
    Handles byte/file I/O for Image entities (decoder + encoder).
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.webp,.bmp")
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        pixels = ImageRepository._to_rgba(pixels)
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    @staticmethod
    def _to_rgba(arr: np.ndarray) -> np.ndarray:
        """RGB / grey / RGBA array → contiguous uint8 RGBA."""
        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)
        if arr.ndim == 2:
            arr = cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        elif arr.shape[2] == 3:
            arr = cv2.cvtColor(arr, cv2.COLOR_RGB2RGBA)
        return np.ascontiguousarray(arr, dtype=np.uint8)

    @staticmethod
    def _from_cv2(arr: np.ndarray) -> np.ndarray:
        """OpenCV decode output (grey / BGR / BGRA, 8 or 16 bit) → RGBA uint8."""
        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)
        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        if arr.shape[2] == 3:
            return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)
        return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)

    # ─── Decoder ──────────────────────────────────────────────────────
    def decode(self, data: bytes, path: Union[str, Path] = None) -> Image:
        buf = np.frombuffer(data, dtype=np.uint8)
        arr = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED) if buf.size else None
        if arr is None:
            raise ValueError(f"Unreadable image data ({len(data)} bytes)")
        pixels = self._from_cv2(arr)
        return Image(pixels=pixels, path=Path(path) if path else None)

    def load(self, path: Union[str, Path]) -> Image:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")
        return self.decode(path.read_bytes(), path)

    # ─── Encoder ──────────────────────────────────────────────────────
    @staticmethod
    def encode(image: Image, fmt: str = "png", quality: float = 0.92) -> bytes:
        """
        Encode *image* as PNG / JPEG / WebP bytes.
        quality ∈ [0, 1] is only used by the lossy formats.
        """
        name = normalize_format(fmt)
        pil_format, lossy = _FORMATS[name]
        if lossy and not 0.0 <= quality <= 1.0:
            raise ValueError(f"quality must be within [0, 1], got {quality}")

        try:
            pil_img = PILImage.fromarray(np.ascontiguousarray(image.pixels))
            if pil_format == "JPEG":
                # no alpha in JPEG: flatten onto black
                backdrop = PILImage.new("RGBA", pil_img.size, (0, 0, 0, 255))
                pil_img = PILImage.alpha_composite(backdrop, pil_img).convert("RGB")

            buffer = BytesIO()
            if lossy:
                pil_img.save(buffer, format=pil_format, quality=int(round(quality * 100)))
            else:
                pil_img.save(buffer, format=pil_format)
        except (OSError, ValueError) as err:
            raise EncodeFailure(f"Failed to encode {image.width}x{image.height} image as {name}: {err}") from err

        data = buffer.getvalue()
        logger.debug(f"Encoded {image.width}x{image.height} image as {name} ({len(data)} bytes)")
        return data

    def save(self, image: Image, path: Union[str, Path] = None,
             fmt: str | None = None, quality: float = 0.92) -> Path:
        target = Path(path) if path is not None else image.path
        if target is None:
            raise ValueError("No output path given and image has no path")
        data = self.encode(image, fmt or target.suffix or "png", quality)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        image.path = target
        return target

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Image]:
        """
        Yield Image objects one at a time.  Nothing accumulates in memory.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed or not p.is_file():
                logger.debug(f"Skipping {p}")
                continue
            try:
                yield self.load(p)
            except ValueError as err:
                logger.warning(f"Skipping {p.name}: {err}")

    def load_dir(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[Image]:
        return list(self.iter_dir(folder, recursive=recursive, exts=exts))
