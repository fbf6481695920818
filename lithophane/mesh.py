"""Panel mesh: front relief, optional raised rim and the back plate."""
import logging

import numpy as np

from .errors import InvalidSettingsError
from .geometry import TriangleBuffer
from .shapes import ShapeFunction, get_shape_function

logger = logging.getLogger(__name__)


def _points(x, y, z):
    return np.stack(np.broadcast_arrays(
        np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64), np.asarray(z, dtype=np.float64)), axis=-1)


def _edge_ribbon(buf, x, y, z, outward, border, max_z, shape):
    """
    Rim along one panel edge. x, y, z are the relief samples on the edge in
    counter-clockwise order (seen from +z), outward is the unit offset
    direction. Each segment gets a slope from the relief up to the rim top at
    max_z, an outer wall down to z=0 and a floor back to the panel edge.
    """
    ox, oy = outward
    inner = shape.apply(_points(x, y, z))
    top = shape.apply(_points(x + ox * border, y + oy * border, max_z))
    bottom = shape.apply(_points(x + ox * border, y + oy * border, 0.0))
    foot = shape.apply(_points(x, y, 0.0))
    a, b = inner[:-1], inner[1:]
    A, B = top[:-1], top[1:]
    A0, B0 = bottom[:-1], bottom[1:]
    a0, b0 = foot[:-1], foot[1:]
    buf.add_quad(a, A, B, b)
    buf.add_quad(B, A, A0, B0)
    buf.add_quad(B0, A0, a0, b0)


def add_border(buf, depth_map, xs, ys, border, shape):
    d = depth_map
    max_z = float(d.max())
    edges = [
        (xs, np.full_like(xs, ys[0]), d[0, :], (0.0, -1.0)),               # bottom, left to right
        (np.full_like(ys, xs[-1]), ys, d[:, -1], (1.0, 0.0)),              # right, upwards
        (xs[::-1], np.full_like(xs, ys[-1]), d[-1, ::-1], (0.0, 1.0)),     # top, right to left
        (np.full_like(ys, xs[0]), ys[::-1], d[::-1, 0], (-1.0, 0.0)),      # left, downwards
    ]
    for i, (x, y, z, outward) in enumerate(edges):
        _edge_ribbon(buf, x, y, z, outward, border, max_z, shape)
        _corner(buf, (x[-1], y[-1], z[-1]), outward, edges[(i + 1) % 4][3], border, max_z, shape)


def _corner(buf, c, d1, d2, border, max_z, shape):
    """Square rim piece joining the ribbons of two edges that meet at c."""
    cx, cy, cz = c
    px, py = cx + d1[0] * border, cy + d1[1] * border
    qx, qy = cx + d2[0] * border, cy + d2[1] * border
    rx, ry = px + d2[0] * border, py + d2[1] * border
    xs, ys = [cx, px, rx, qx], [cy, py, ry, qy]
    c1, P, R, Q = shape.apply(_points(xs, ys, [cz, max_z, max_z, max_z]))
    c0, P0, R0, Q0 = shape.apply(_points(xs, ys, 0.0))
    buf.add_quad(c1, P, R, Q)
    buf.add_quad(R, P, P0, R0)
    buf.add_quad(Q, R, R0, Q0)
    buf.add_quad(c0, Q0, R0, P0)


def add_back_plate(buf, dimensions, thickness, shape):
    hw, hh = dimensions.width / 2, dimensions.height / 2
    v1, v2, v3, v4 = shape.apply(_points([-hw, hw, hw, -hw], [-hh, -hh, hh, hh], thickness))
    buf.add(v1, v3, v2)
    buf.add(v1, v4, v3)


def generate_geometry(depth_map, grid_width, grid_height, dimensions, settings, shape_type, on_row=None):
    """
    Build the panel triangles.

    Quads are emitted one grid row at a time as (v00, v10, v11) and
    (v00, v11, v01). on_row(row, total_rows) is called after each row; an
    exception raised from it aborts the build.
    """
    d = np.asarray(depth_map, dtype=np.float64)
    if d.shape != (grid_height, grid_width):
        raise InvalidSettingsError(
            f"Depth map is {d.shape[1]}x{d.shape[0]}, expected {grid_width}x{grid_height}")
    if grid_width < 2 or grid_height < 2:
        raise InvalidSettingsError(
            f"Panel needs at least 2x2 samples, got {grid_width}x{grid_height}; "
            "increase the size or the resolution")

    w, h = dimensions.width, dimensions.height
    if isinstance(shape_type, ShapeFunction):
        shape = shape_type
    else:
        shape = get_shape_function(shape_type, w, h, settings.curve_fraction)

    step_x = w / (grid_width - 1)
    step_y = h / (grid_height - 1)
    xs = np.arange(grid_width) * step_x - w / 2
    ys = np.arange(grid_height) * step_y - h / 2

    buf = TriangleBuffer()
    rows = grid_height - 1
    prev = shape.apply(_points(xs, ys[0], d[0]))
    for y in range(rows):
        nxt = shape.apply(_points(xs, ys[y + 1], d[y + 1]))
        buf.add_quad(prev[:-1], prev[1:], nxt[1:], nxt[:-1])
        prev = nxt
        if on_row is not None:
            on_row(y + 1, rows)

    if settings.border > 0:
        add_border(buf, d, xs, ys, settings.border, shape)
    add_back_plate(buf, dimensions, settings.max_thickness, shape)

    tris = buf.build()
    logger.debug("Panel mesh %s: %dx%d grid, %d triangles", shape.name, grid_width, grid_height, len(tris))
    return tris
