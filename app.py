# -*- coding: utf-8 -*-
"""Lithophane Tools - Image to lithophane panel / lamp base STL"""
import io
import logging
import os

import trimesh
from flask import Flask, jsonify, request, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from lithophane import (__version__, Dimensions, GenerationSettings, InvalidSettingsError, LithophaneError, ShapeType,
                        generate_combined_stl, generate_lithophane_geometry, load_image, stl_filename)
from lithophane.logging_config import setup_logging
from lithophane.pipeline import validate_inputs
from lithophane.settings import RESOLUTIONS
from lithophane.shapes import shape_catalogue
from lithophane.stl import create_binary_stl

logger = logging.getLogger('lithophane.app')

STATUS = {'invalid_settings': 400, 'image_decode': 422, 'serialization': 500}


# === CONFIG ===
def load_config():
    return {
        'FETCH_TIMEOUT': float(os.environ.get('LITHOPHANE_FETCH_TIMEOUT', 15)),
        'MAX_CONTENT_LENGTH': int(float(os.environ.get('LITHOPHANE_MAX_CONTENT_MB', 25)) * 1024 * 1024),
        'LOG_LEVEL': os.environ.get('LITHOPHANE_LOG_LEVEL', 'INFO'),
        'LOG_FILE': os.environ.get('LITHOPHANE_LOG_FILE'),
    }


# === REQUEST PARSING ===
def parse_request(d):
    """Image, dimensions, settings and shape from a request body, validated before any decoding."""
    if not isinstance(d, dict):
        raise InvalidSettingsError("Request body must be a JSON object")
    image = d.get('image')
    if not image:
        raise InvalidSettingsError("image is required")
    if not isinstance(image, str):
        raise InvalidSettingsError("image must be a data URL, base64 string or http(s) URL")
    shape = d.get('shapeType', d.get('shape_type', 'flat_square'))
    if not isinstance(shape, str):
        raise InvalidSettingsError("shapeType must be a string")
    dims = Dimensions.from_json(d.get('dimensions'))
    settings = GenerationSettings.from_json(d.get('settings'))
    validate_inputs(dims, settings)
    return image, dims, settings, ShapeType.parse(shape) or shape


def parse_flag(d, key):
    v = d.get(key, False)
    if not isinstance(v, bool):
        raise InvalidSettingsError(f"{key} must be true or false")
    return v


def error_response(e):
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, LithophaneError):
        status = STATUS.get(e.kind, 500)
        if status >= 500:
            logger.exception("Generation failed")
        else:
            logger.warning("Generation rejected (%s): %s", e.kind, e)
        return jsonify({'error': str(e), 'kind': e.kind}), status
    logger.exception("Unexpected error")
    return jsonify({'error': str(e), 'kind': 'internal'}), 500


# === APP ===
def create_app(config=None):
    app = Flask(__name__)
    app.config.update(load_config())
    if config:
        app.config.update(config)
    setup_logging(app.config['LOG_LEVEL'], app.config.get('LOG_FILE'))
    CORS(app)

    def decoded(image):
        return load_image(image, timeout=app.config['FETCH_TIMEOUT'])

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok', 'version': __version__, 'tools': ['lithophane', 'lithophane_base', 'preview']})

    @app.route('/api/lithophane/shapes')
    def api_shapes():
        return jsonify({
            'shapes': shape_catalogue(),
            'resolutions': {k: {'stepSize': s, 'label': l} for k, (s, l) in RESOLUTIONS.items()},
            'defaults': GenerationSettings().to_json(),
        })

    @app.route('/api/lithophane/stl', methods=['POST'])
    def api_lithophane_stl():
        try:
            d = request.get_json(silent=True)
            image, dims, settings, shape = parse_request(d)
            with_base = parse_flag(d, 'withBase')
            raster = decoded(image)
            if with_base:
                buf = generate_combined_stl(raster, dims, settings, shape)
            else:
                buf = create_binary_stl(generate_lithophane_geometry(raster, dims, settings, shape).triangles)
            name = stl_filename(shape, dims, with_base, d.get('orderId'))
            return send_file(io.BytesIO(buf), mimetype='application/octet-stream', as_attachment=True,
                             download_name=name)
        except Exception as e:
            return error_response(e)

    @app.route('/api/lithophane/preview', methods=['POST'])
    def api_lithophane_preview():
        try:
            image, dims, settings, shape = parse_request(request.get_json(silent=True))
            panel = generate_lithophane_geometry(decoded(image), dims, settings, shape)
            mesh = trimesh.Trimesh(**trimesh.triangles.to_kwargs(panel.triangles.vertices))
            return jsonify({
                'vertices': mesh.vertices.flatten().tolist(),
                'faces': mesh.faces.flatten().tolist(),
                'triangles': len(panel.triangles),
                'grid': [panel.grid_width, panel.grid_height],
                'bounds': mesh.bounds.tolist(),
            })
        except Exception as e:
            return error_response(e)

    return app


app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
