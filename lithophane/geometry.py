"""Points, triangles and triangle sets shared by the panel and base builders."""
from typing import NamedTuple

import numpy as np


class Point3(NamedTuple):
    x: float
    y: float
    z: float


class Triangle(NamedTuple):
    v1: Point3
    v2: Point3
    v3: Point3
    normal: Point3


def face_normals(vertices):
    """Unit normals of (v2-v1) x (v3-v1); zero vector for degenerate faces."""
    v = np.asarray(vertices, dtype=np.float64).reshape(-1, 3, 3)
    n = np.cross(v[:, 1] - v[:, 0], v[:, 2] - v[:, 0])
    length = np.linalg.norm(n, axis=1, keepdims=True)
    out = np.zeros_like(n)
    np.divide(n, length, out=out, where=length > 0)
    return out


def create_triangle(v1, v2, v3):
    """Single triangle with its normal computed from the vertex order."""
    v1, v2, v3 = Point3(*map(float, v1)), Point3(*map(float, v2)), Point3(*map(float, v3))
    n = face_normals([[v1, v2, v3]])[0]
    return Triangle(v1, v2, v3, Point3(*n.tolist()))


class TriangleSet:
    """
    Immutable batch of triangles.

    vertices has shape (n, 3, 3) as [triangle][v1|v2|v3][x|y|z], normals has
    shape (n, 3). Normals are always derived from the vertices.
    """

    __slots__ = ('vertices', 'normals')

    def __init__(self, vertices):
        v = np.array(vertices, dtype=np.float64).reshape(-1, 3, 3)
        n = face_normals(v)
        v.setflags(write=False)
        n.setflags(write=False)
        self.vertices = v
        self.normals = n

    @classmethod
    def empty(cls):
        return cls(np.zeros((0, 3, 3)))

    @classmethod
    def concatenate(cls, parts):
        parts = [p.vertices for p in parts if len(p)]
        if not parts:
            return cls.empty()
        return cls(np.concatenate(parts, axis=0))

    def __len__(self):
        return self.vertices.shape[0]

    def __iter__(self):
        for v, n in zip(self.vertices.tolist(), self.normals.tolist()):
            yield Triangle(Point3(*v[0]), Point3(*v[1]), Point3(*v[2]), Point3(*n))

    def __getitem__(self, i):
        v, n = self.vertices[i].tolist(), self.normals[i].tolist()
        return Triangle(Point3(*v[0]), Point3(*v[1]), Point3(*v[2]), Point3(*n))

    def __add__(self, other):
        return TriangleSet.concatenate([self, other])

    def __repr__(self):
        return f'TriangleSet({len(self)} triangles)'


def _stack(*points, axis):
    return np.stack(np.broadcast_arrays(*(np.asarray(p, dtype=np.float64) for p in points)), axis=axis)


class TriangleBuffer:
    """Collects triangle vertex blocks before freezing them into a TriangleSet."""

    def __init__(self):
        self._blocks = []

    def add(self, v1, v2, v3):
        """Append one triangle, or a batch when the vertices are (..., 3) arrays."""
        self._blocks.append(_stack(v1, v2, v3, axis=-2).reshape(-1, 3, 3))

    def add_quad(self, v1, v2, v3, v4):
        """Planar quad as (v1,v2,v3) + (v1,v3,v4), kept adjacent per quad."""
        v1, v2, v3, v4 = np.broadcast_arrays(*(np.asarray(v, dtype=np.float64) for v in (v1, v2, v3, v4)))
        pair = np.stack([_stack(v1, v2, v3, axis=-2), _stack(v1, v3, v4, axis=-2)], axis=-3)
        self._blocks.append(pair.reshape(-1, 3, 3))

    def __len__(self):
        return sum(b.shape[0] for b in self._blocks)

    def build(self):
        if not self._blocks:
            return TriangleSet.empty()
        return TriangleSet(np.concatenate(self._blocks, axis=0))
