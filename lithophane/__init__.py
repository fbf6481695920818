"""Lithophane panel and base STL generation."""
from .errors import ImageDecodeError, InvalidSettingsError, LithophaneError, SerializationError
from .geometry import Point3, Triangle, TriangleSet, create_triangle
from .imaging import RasterImage, load_image
from .depth import create_depth_map, smooth_depth_map
from .shapes import ShapeType, get_shape_function
from .mesh import generate_geometry
from .base import generate_base_geometry
from .settings import BaseSettings, Dimensions, GenerationSettings, base_settings_for, grid_size, resolution_params
from .stl import combine_stl_buffers, create_binary_stl, triangle_count
from .pipeline import (generate_base_stl, generate_combined_stl, generate_lithophane_geometry,
                       generate_lithophane_stl, stl_filename)

__version__ = '1.0.0'
