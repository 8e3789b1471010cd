#!/usr/bin/env python3
"""
Image Toolkit API Server
One endpoint per tool; images go in as multipart uploads and come back
as encoded bytes.
"""

import logging
import os
from io import BytesIO

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from .errors import EncodeFailure, ImageToolkitError
from .models.annotation_config import AnnotationConfig
from .pipeline.annotator import AnnotationRenderer
from .pipeline.background_remover import BG_TOLERANCE, remove_background
from .pipeline.converter import OUTPUT_QUALITY, convert_image_format
from .pipeline.upscaler import upscale_image
from .repositories.image_repository import normalize_format
from .services.image_service import ImageService
from .services.source_service import SourceService

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "25")) * 1024 * 1024

_MIMETYPES = {"png": "image/png", "jpeg": "image/jpeg", "webp": "image/webp"}


class RequestError(Exception):
    """Malformed request: missing upload or unparseable form field."""


def _form_float(name: str, default: float) -> float:
    raw = request.form.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RequestError(f"Field '{name}' must be a number, got {raw!r}")


def _form_bool(name: str, default: bool) -> bool:
    raw = request.form.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def create_app(image_service: ImageService = None) -> Flask:
    app = Flask(__name__)
    CORS(app)  # Enable CORS for frontend communication
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

    image_service = image_service or ImageService()
    renderer = AnnotationRenderer()

    def uploaded_image():
        file = request.files.get('image')
        if file is None or file.filename == '':
            raise RequestError("No image provided")
        return image_service.decode(file.read(), file.filename)

    def image_response(image, fmt: str = "png", quality: float = OUTPUT_QUALITY):
        fmt = normalize_format(fmt)
        data = convert_image_format(image, fmt, quality, image_service=image_service)
        return send_file(BytesIO(data), mimetype=_MIMETYPES[fmt],
                         download_name=f"result.{'jpg' if fmt == 'jpeg' else fmt}")

    @app.errorhandler(RequestError)
    def handle_bad_request(err):
        return jsonify({'success': False, 'message': str(err)}), 400

    @app.errorhandler(EncodeFailure)
    def handle_encode_failure(err):
        logger.error(f"Encoding error: {err}")
        return jsonify({'success': False, 'message': str(err)}), 500

    @app.errorhandler(ImageToolkitError)
    def handle_toolkit_error(err):
        return jsonify({'success': False, 'message': str(err)}), 400

    @app.errorhandler(ValueError)
    def handle_value_error(err):
        return jsonify({'success': False, 'message': str(err)}), 400

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/upscale', methods=['POST'])
    def upscale():
        image = uploaded_image()
        scale = _form_float('scale', 2.0)
        sharpen = _form_bool('sharpen', True)
        logger.info(f"Upscaling {image.width}x{image.height} by {scale} (sharpen={sharpen})")
        return image_response(upscale_image(image, scale, sharpen))

    @app.route('/api/remove-background', methods=['POST'])
    def remove_bg():
        image = uploaded_image()
        tolerance = int(_form_float('tolerance', BG_TOLERANCE))
        return image_response(remove_background(image, tolerance))

    @app.route('/api/annotate', methods=['POST'])
    def annotate():
        image = uploaded_image()
        config = AnnotationConfig(
            title=request.form.get('title', ''),
            url=request.form.get('url', ''),
            anchor=request.form.get('anchor', 'bottom-right'),
            display_mode=request.form.get('display_mode', 'title'),
            font_scale=_form_float('font_scale', 1.0),
            bg_opacity=_form_float('bg_opacity', 0.4),
            text_color=request.form.get('text_color', '#FFFFFF'),
            bg_color=request.form.get('bg_color', '#000000'),
        )
        try:
            return image_response(renderer.render_preview(image, config))
        finally:
            # uploads are one-shot; drop the cached canvas
            renderer.forget(image)

    @app.route('/api/convert', methods=['POST'])
    def convert():
        image = uploaded_image()
        fmt = request.form.get('format', 'png')
        quality = _form_float('quality', OUTPUT_QUALITY)
        return image_response(image, fmt, quality)

    @app.route('/api/extract-source', methods=['POST'])
    def extract_source():
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            raise RequestError("Expected a JSON object with an 'html' field")
        html = payload.get('html', '')
        info = SourceService.extract_from_html(html)
        if info is None:
            return jsonify({'success': False, 'message': 'No image source found in HTML'})
        return jsonify({'success': True, 'url': info.url, 'title': info.title})

    return app


def main():
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    app = create_app()
    app.run(host=os.getenv("API_HOST", "127.0.0.1"), port=int(os.getenv("API_PORT", "5000")))


if __name__ == '__main__':
    main()
