"""
Binary STL encoding.

Layout: 80-byte header, uint32 triangle count, then one 50-byte record per
triangle (normal, three vertices as little-endian float32, uint16 attribute
count). Records are written by trimesh; headers and counts are patched here.
"""
import io

import numpy as np
import trimesh

from .errors import SerializationError
from .geometry import TriangleSet

HEADER_SIZE = 80
COUNT_SIZE = 4
RECORD_SIZE = 50
MAX_TRIANGLES = 2 ** 32 - 1

PANEL_HEADER = 'Generated by Lithophane STL Creator'
COMBINED_HEADER = 'Combined Lithophane + Base'

# record layout, used when reading files back
RECORD = np.dtype([
    ('normal', '<f4', (3,)),
    ('vectors', '<f4', (3, 3)),
    ('attr', '<u2'),
])


def _header(text):
    raw = text.encode('ascii', 'replace')[:HEADER_SIZE] if isinstance(text, str) else bytes(text)[:HEADER_SIZE]
    return raw.ljust(HEADER_SIZE, b'\0')


def _count(n):
    if n > MAX_TRIANGLES:
        raise SerializationError(f"{n} triangles do not fit in a binary STL")
    return np.array([n], dtype='<u4').tobytes()


def _as_triangle_set(triangles):
    if isinstance(triangles, TriangleSet):
        return triangles
    return TriangleSet([[t[0], t[1], t[2]] for t in triangles])


def _to_mesh(triangles):
    n = len(triangles)
    mesh = trimesh.Trimesh(vertices=np.array(triangles.vertices).reshape(-1, 3),
                           faces=np.arange(3 * n).reshape(-1, 3), process=False)
    mesh.face_normals = np.array(triangles.normals)
    return mesh


def create_binary_stl(triangles, header=PANEL_HEADER):
    """
    Serialize triangles to binary STL bytes.

    triangles is a TriangleSet or any iterable of Triangle values (or plain
    (v1, v2, v3) vertex triples); normals are always recomputed from the
    vertex order.
    """
    triangles = _as_triangle_set(triangles)
    n = len(triangles)
    prefix = _header(header) + _count(n)
    if n == 0:
        return prefix
    try:
        buf = io.BytesIO()
        _to_mesh(triangles).export(buf, file_type='stl')
        return prefix + buf.getvalue()[HEADER_SIZE + COUNT_SIZE:]
    except MemoryError as e:
        raise SerializationError(f"Out of memory serializing {n} triangles") from e


def triangle_count(buffer):
    """Triangle count of a binary STL, checked against the buffer length."""
    if len(buffer) < HEADER_SIZE + COUNT_SIZE:
        raise SerializationError(f"STL buffer too short ({len(buffer)} bytes)")
    n = int(np.frombuffer(buffer, dtype='<u4', count=1, offset=HEADER_SIZE)[0])
    expected = HEADER_SIZE + COUNT_SIZE + n * RECORD_SIZE
    if len(buffer) != expected:
        raise SerializationError(
            f"STL buffer is {len(buffer)} bytes but declares {n} triangles ({expected} bytes)")
    return n


def triangle_records(buffer):
    """Raw bytes of all triangle records."""
    triangle_count(buffer)
    return bytes(buffer[HEADER_SIZE + COUNT_SIZE:])


def combine_stl_buffers(a, b, header=COMBINED_HEADER):
    """Concatenate two binary STLs: new header, summed count, a's records then b's."""
    n = triangle_count(a) + triangle_count(b)
    try:
        return b''.join([_header(header), _count(n), triangle_records(a), triangle_records(b)])
    except MemoryError as e:
        raise SerializationError(f"Out of memory combining {n} triangles") from e


def read_binary_stl(buffer):
    """Decode records into (normals [n,3], vertices [n,3,3]) float32 arrays."""
    n = triangle_count(buffer)
    if n == 0:
        return np.zeros((0, 3), dtype='<f4'), np.zeros((0, 3, 3), dtype='<f4')
    records = np.frombuffer(buffer, dtype=RECORD, count=n, offset=HEADER_SIZE + COUNT_SIZE)
    return records['normal'].copy(), records['vectors'].copy()
