import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterator, List

from dotenv import load_dotenv
from tqdm import tqdm

# Load environment variables first
load_dotenv()

from ..errors import ImageToolkitError
from ..models.annotation_config import ANCHORS, DISPLAY_MODES, AnnotationConfig
from ..models.image import Image
from ..pipeline.annotator import render_annotated_image
from ..pipeline.background_remover import BG_TOLERANCE, remove_background
from ..pipeline.converter import OUTPUT_QUALITY, convert_image_format
from ..pipeline.upscaler import upscale_image
from ..repositories.image_repository import normalize_format
from ..services.image_service import ImageService

OUTPUT_EXT = os.getenv("OUTPUT_IMG_EXT", ".png")

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-toolkit",
        description="Upscale, cut out backgrounds, annotate or convert images in bulk.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("input", type=Path, help="image file or folder of images")
    common.add_argument("-o", "--output-dir", type=Path, default=Path("data/output"))
    common.add_argument("-r", "--recursive", action="store_true", help="descend into sub-folders")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("upscale", parents=[common], help="progressive high-quality upscale")
    p.add_argument("-s", "--scale", type=float, default=2.0)
    p.add_argument("--no-sharpen", dest="sharpen", action="store_false")

    p = sub.add_parser("remove-bg", parents=[common], help="flood-fill background removal")
    p.add_argument("-t", "--tolerance", type=int, default=BG_TOLERANCE)

    p = sub.add_parser("annotate", parents=[common], help="stamp a source-attribution overlay")
    p.add_argument("--title", default="")
    p.add_argument("--url", default="")
    p.add_argument("--anchor", choices=ANCHORS, default="bottom-right")
    p.add_argument("--mode", choices=DISPLAY_MODES, default="title")
    p.add_argument("--font-scale", type=float, default=1.0)
    p.add_argument("--bg-opacity", type=float, default=0.4)
    p.add_argument("--text-color", default="#FFFFFF")
    p.add_argument("--bg-color", default="#000000")

    p = sub.add_parser("convert", parents=[common], help="re-encode as png / jpeg / webp")
    p.add_argument("-f", "--format", default="png")
    p.add_argument("-q", "--quality", type=float, default=OUTPUT_QUALITY)

    return parser


def _iter_inputs(image_service: ImageService, source: Path, recursive: bool) -> Iterator[Image]:
    if source.is_dir():
        return image_service.stream_gallery(source, recursive=recursive)
    return iter([image_service.load(source)])


def _output_path(out_dir: Path, image: Image, command: str, ext: str) -> Path:
    stem = image.path.stem if image.path else "image"
    return out_dir / f"{stem}_{command}{ext}"


def run(args: argparse.Namespace, image_service: ImageService = None) -> List[Path]:
    """Execute one sub-command over every input image; returns the written paths."""
    image_service = image_service or ImageService()
    args.output_dir.mkdir(parents=True, exist_ok=True)

    config = None
    if args.command == "annotate":
        config = AnnotationConfig(
            title=args.title,
            url=args.url,
            anchor=args.anchor,
            display_mode=args.mode,
            font_scale=args.font_scale,
            bg_opacity=args.bg_opacity,
            text_color=args.text_color,
            bg_color=args.bg_color,
        )

    written: List[Path] = []
    images = _iter_inputs(image_service, args.input, args.recursive)
    for image in tqdm(images, desc=args.command, unit="img", ncols=70):
        if args.command == "convert":
            fmt = normalize_format(args.format)
            target = _output_path(args.output_dir, image, args.command, "." + fmt)
            target.write_bytes(convert_image_format(image, fmt, args.quality))
        else:
            if args.command == "upscale":
                result = upscale_image(image, args.scale, args.sharpen)
            elif args.command == "remove-bg":
                result = remove_background(image, args.tolerance)
            else:
                result = render_annotated_image(image, config)
            # transparency needs a format that keeps alpha
            ext = ".png" if args.command == "remove-bg" else OUTPUT_EXT
            target = image_service.save(result, _output_path(args.output_dir, image, args.command, ext),
                                        quality=OUTPUT_QUALITY)
        logger.debug(f"Wrote {target}")
        written.append(target)
    return written


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        written = run(args)
    except (ImageToolkitError, ValueError, OSError) as err:
        logger.error(f"{args.command} failed: {err}")
        return 1

    print(f"\n{args.command}: {len(written)} image(s) written to {args.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
