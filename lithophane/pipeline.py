"""
Lithophane generation pipeline.

image -> depth map -> smoothing -> panel mesh (shape transform) -> STL,
optionally combined with a matching base.
"""
import logging
import re
from dataclasses import dataclass

import numpy as np

from .base import generate_base_geometry
from .depth import create_depth_map, smooth_depth_map
from .errors import InvalidSettingsError
from .imaging import load_image
from .mesh import generate_geometry
from .settings import Dimensions, GenerationSettings, base_settings_for, grid_size
from .shapes import ShapeType
from .stl import combine_stl_buffers, create_binary_stl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PanelResult:
    triangles: object
    depth_map: np.ndarray
    grid_width: int
    grid_height: int


def validate_inputs(dimensions, settings):
    """Reject settings that cannot produce a panel; returns the grid size."""
    if not isinstance(dimensions, Dimensions):
        raise InvalidSettingsError("dimensions must be a Dimensions instance")
    if not isinstance(settings, GenerationSettings):
        raise InvalidSettingsError("settings must be a GenerationSettings instance")
    dimensions.validate()
    settings.validate()
    gw, gh = grid_size(dimensions, settings)
    if gw < 2 or gh < 2:
        raise InvalidSettingsError(
            f"{dimensions.width}x{dimensions.height}mm at {settings.resolution} resolution "
            f"gives a {gw}x{gh} grid; at least 2x2 is needed")
    return gw, gh


def generate_lithophane_geometry(image, dimensions, settings, shape_type, on_row=None):
    """Panel triangles plus the depth map they were built from."""
    gw, gh = validate_inputs(dimensions, settings)
    raster = load_image(image)
    depth_map = create_depth_map(raster, gw, gh, settings)
    if settings.smoothing > 0:
        depth_map = smooth_depth_map(depth_map, settings.smoothing)
    triangles = generate_geometry(depth_map, gw, gh, dimensions, settings, shape_type, on_row=on_row)
    logger.info("Lithophane %s %sx%smm (%s, %dx%d grid): %d triangles",
                shape_type.value if isinstance(shape_type, ShapeType) else shape_type,
                dimensions.width, dimensions.height, settings.resolution, gw, gh, len(triangles))
    return PanelResult(triangles, depth_map, gw, gh)


def generate_lithophane_stl(image, dimensions, settings, shape_type, on_row=None):
    """Binary STL of the panel alone."""
    return create_binary_stl(generate_lithophane_geometry(image, dimensions, settings, shape_type, on_row).triangles)


def generate_base_stl(dimensions, base_settings):
    """Binary STL of a base, independent of any panel."""
    dimensions.validate()
    base_settings.validate()
    return create_binary_stl(generate_base_geometry(dimensions, base_settings))


def generate_combined_stl(image, dimensions, settings, shape_type, on_row=None):
    """Panel and its base in one STL, joined record by record."""
    validate_inputs(dimensions, settings)
    base = base_settings_for(dimensions, settings).validate()
    panel = generate_lithophane_stl(image, dimensions, settings, shape_type, on_row)
    return combine_stl_buffers(panel, generate_base_stl(dimensions, base))


def _slug(value):
    return re.sub(r'[^A-Za-z0-9_-]+', '-', str(value)).strip('-') or 'x'


def _mm(v):
    return f'{v:g}'


def stl_filename(shape_type, dimensions, with_base=False, order_id=None):
    """Download name, e.g. lithophane_order_42_heart_100x80mm_with_base.stl."""
    shape = shape_type.value if isinstance(shape_type, ShapeType) else shape_type
    parts = ['lithophane']
    if order_id is not None:
        parts += ['order', _slug(order_id)]
    parts += [_slug(shape), f'{_mm(dimensions.width)}x{_mm(dimensions.height)}mm']
    if with_base:
        parts.append('with_base')
    return '_'.join(parts) + '.stl'
