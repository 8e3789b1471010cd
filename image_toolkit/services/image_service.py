from pathlib import Path
from typing import Iterable, Iterator, Union
import numpy as np
from PIL import Image as PILImage

from ..models.image import Image
from ..repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No pixel-processing logic lives here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def load(self, path: Union[str, Path]) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path)

    def decode(self, data: bytes, path: Union[str, Path] = None) -> Image:
        return self.image_repository.decode(data, path)

    def encode(self, image: Image, fmt: str = "png", quality: float = 0.92) -> bytes:
        return self.image_repository.encode(image, fmt, quality)

    def save(self, image: Image, path: Union[str, Path] = None,
             fmt: str = None, quality: float = 0.92) -> Path:
        """
        Business-level method to save the image to a specific path.
        Falls back to image.path; the format follows the file suffix unless given.
        """
        return self.image_repository.save(image, path, fmt, quality)

    def stream_gallery(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] = None,
    ) -> Iterator[Image]:
        """
        Yield images lazily instead of returning a gigantic list.
        """
        return self.image_repository.iter_dir(folder,
                                              recursive=recursive,
                                              exts=exts)

    def to_pil_image(self, img: Image) -> PILImage.Image:
        """
        Convert Image.pixels → RGBA PIL Image object.
        Ensures the NumPy array is C-contiguous.
        """
        np_img = img.pixels
        if not np_img.flags['C_CONTIGUOUS']:
            np_img = np.ascontiguousarray(np_img)
        return PILImage.fromarray(np_img)

    @staticmethod
    def write_back(img: Image, pil_img: PILImage.Image) -> Image:
        """Copy an RGBA PIL image of the same size into img.pixels, in place."""
        img.pixels[...] = np.asarray(pil_img.convert("RGBA"), dtype=np.uint8)
        return img
