"""
Enclosure shape transforms.

Every lamp silhouette maps a flat panel point (x, y centred on the origin,
z = local thickness) onto its final 3D position. The preview renderer uses
the same math, so each formula here is part of the product's look and must
stay exact.
"""
import logging
from enum import Enum

import numpy as np

from .geometry import Point3

logger = logging.getLogger(__name__)

TAU = 2 * np.pi


class ShapeType(str, Enum):
    FLAT_SQUARE = 'flat_square'
    FLAT_RECTANGLE = 'flat_rectangle'
    CURVED_SOFT = 'curved_soft'
    CURVED_DEEP = 'curved_deep'
    ARCH = 'arch'
    HALF_CYLINDER = 'half_cylinder'
    CYLINDER_SMALL = 'cylinder_small'
    CYLINDER_MEDIUM = 'cylinder_medium'
    CYLINDER_LARGE = 'cylinder_large'
    HEXAGONAL = 'hexagonal'
    OCTAGONAL = 'octagonal'
    MOON = 'moon'
    SPHERE = 'sphere'
    WAVE = 'wave'
    HEART = 'heart'
    STAR = 'star'
    DIAMOND = 'diamond'
    CLOUD = 'cloud'
    GOTHIC = 'gothic'
    ORNAMENTAL = 'ornamental'
    FRAMED_SQUARE = 'framed_square'
    CIRCULAR = 'circular'
    OVAL = 'oval'
    FLAT_OVAL = 'flat_oval'

    @classmethod
    def parse(cls, value):
        """ShapeType for a tag, or None when the tag is not in the catalogue."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class ShapeFunction:
    """
    A pure point transform. Accepts a Point3 (returns a Point3) or an array
    whose last axis is x, y, z (returns an array of the same shape).
    """

    __slots__ = ('shape', 'name', '_fn')

    def __init__(self, shape, fn):
        self.shape = shape
        self.name = shape.value if shape is not None else 'identity'
        self._fn = fn

    def apply(self, points):
        p = np.asarray(points, dtype=np.float64)
        x, y, z = self._fn(p[..., 0], p[..., 1], p[..., 2])
        return np.stack(np.broadcast_arrays(x, y, z), axis=-1)

    def __call__(self, point):
        if isinstance(point, np.ndarray):
            return self.apply(point)
        return Point3(*(float(c) for c in self.apply(point)))

    @property
    def is_identity(self):
        return self._fn is _identity

    def __repr__(self):
        return f'ShapeFunction({self.name})'


_FACTORIES = {}


def _shape(*types):
    def register(factory):
        for t in types:
            _FACTORIES[t] = factory
        return factory
    return register


def _identity(x, y, z):
    return x, y, z


def _sweep(x, w, periods):
    """Position across the panel mapped to an angle of periods * pi."""
    return (x + w / 2) / w * np.pi * periods


# === FLAT ===
@_shape(ShapeType.FLAT_SQUARE, ShapeType.FLAT_RECTANGLE, ShapeType.OVAL, ShapeType.FLAT_OVAL)
def _flat(w, h, curve):
    return _identity


# === CURVED PANELS ===
def _bulge(coef):
    def factory(w, h, curve):
        return lambda x, y, z: (x, y, z + np.sin(_sweep(x, w, 1)) * w * coef)
    return factory


_shape(ShapeType.CURVED_SOFT)(_bulge(0.15))
_shape(ShapeType.CURVED_DEEP, ShapeType.ARCH)(_bulge(0.3))


@_shape(ShapeType.WAVE)
def _wave(w, h, curve):
    return lambda x, y, z: (x, y, z + np.sin(_sweep(x, w, 3)) * w * 0.08)


# === CYLINDRICAL WRAPS ===
def _wrap(periods, radius_div):
    def factory(w, h, curve):
        r = w / radius_div

        def fn(x, y, z):
            a = _sweep(x, w, periods)
            return np.cos(a) * (r + z), y, np.sin(a) * (r + z)
        return fn
    return factory


_shape(ShapeType.HALF_CYLINDER)(_wrap(1, np.pi))
_shape(ShapeType.CYLINDER_SMALL, ShapeType.CYLINDER_MEDIUM, ShapeType.CYLINDER_LARGE)(_wrap(2, TAU))


def _prism(segments):
    """Full wrap onto a regular prism: points sit on flat facets between corners."""
    def factory(w, h, curve):
        r = w / TAU
        seg = TAU / segments

        def fn(x, y, z):
            a = _sweep(x, w, 2)
            a0 = np.floor(a / seg) * seg
            t = (a - a0) / seg
            a1 = a0 + seg
            mid = a0 + seg / 2
            fx = r * ((1 - t) * np.cos(a0) + t * np.cos(a1))
            fz = r * ((1 - t) * np.sin(a0) + t * np.sin(a1))
            return fx + z * np.cos(mid), y, fz + z * np.sin(mid)
        return fn
    return factory


_shape(ShapeType.HEXAGONAL)(_prism(6))
_shape(ShapeType.OCTAGONAL)(_prism(8))


# === DOMES & BULGES ===
def _dome(coef):
    def factory(w, h, curve):
        rad = min(w, h) / 2

        def fn(x, y, z):
            dist = np.sqrt(x * x + y * y)
            cap = np.sqrt(np.maximum(0, rad * rad - dist * dist)) * coef
            return x, y, z + np.where(dist < rad, cap, 0.0)
        return fn
    return factory


_shape(ShapeType.MOON, ShapeType.SPHERE)(_dome(0.35))
_shape(ShapeType.CIRCULAR)(_dome(0.1))


@_shape(ShapeType.HEART)
def _heart(w, h, curve):
    hw, hh = w / 2, h / 2

    def fn(x, y, z):
        nx, ny = x / hw, y / hh
        return x, y, z + 0.1 * w * np.maximum(0, 1 - nx * nx - ny * ny)
    return fn


@_shape(ShapeType.STAR)
def _star(w, h, curve):
    max_dist = np.sqrt((w / 2) ** 2 + (h / 2) ** 2)

    def fn(x, y, z):
        dist = np.sqrt(x * x + y * y)
        return x, y, z + 0.05 * w * np.maximum(0, 1 - dist / max_dist)
    return fn


@_shape(ShapeType.DIAMOND)
def _diamond(w, h, curve):
    def fn(x, y, z):
        dx, dy = np.abs(x) / (w / 2), np.abs(y) / (h / 2)
        return x, y, z + 0.1 * w * np.maximum(0, 1 - np.maximum(dx, dy))
    return fn


@_shape(ShapeType.CLOUD)
def _cloud(w, h, curve):
    def fn(x, y, z):
        v = (y + h / 2) / h * np.pi
        bump1 = np.sin(_sweep(x, w, 2)) * np.sin(v)
        bump2 = np.sin(_sweep(x, w, 3)) * np.cos(v * 1.5)
        return x, y, z + (bump1 + bump2 * 0.5) * w * 0.06
    return fn


@_shape(ShapeType.GOTHIC)
def _gothic(w, h, curve):
    def fn(x, y, z):
        ny = (y + h / 2) / h
        arch = (ny - 0.5) * 2 * (1 - np.abs(x) / (w / 2)) * w * 0.15
        return x, y, z + np.where(ny > 0.5, arch, 0.0)
    return fn


@_shape(ShapeType.ORNAMENTAL, ShapeType.FRAMED_SQUARE)
def _framed(w, h, curve):
    max_edge = min(w, h) * 0.1

    def fn(x, y, z):
        edge = np.minimum(np.minimum(x + w / 2, w / 2 - x), np.minimum(y + h / 2, h / 2 - y))
        return x, y, z + np.where(edge < max_edge, (max_edge - edge) * 0.05, 0.0)
    return fn


def get_shape_function(shape_type, width, height, curve_fraction=0.0):
    """
    Transform for a shape tag. Tags outside the catalogue fall back to the
    identity transform and are logged, so typos stay visible.
    """
    shape = ShapeType.parse(shape_type)
    if shape is None:
        logger.warning("Unknown shape type %r, using flat panel", shape_type)
        return ShapeFunction(None, _identity)
    return ShapeFunction(shape, _FACTORIES[shape](width, height, curve_fraction))


def shape_catalogue():
    return [s.value for s in ShapeType]
