"""Loading source images into RGBA pixel buffers."""
import base64
import binascii
import io
import logging
import os
from dataclasses import dataclass

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)

USER_AGENT = 'Lithophane-STL/1.0'
DEFAULT_TIMEOUT = 15


@dataclass(frozen=True)
class RasterImage:
    width: int
    height: int
    rgba: np.ndarray  # uint8 [height, width, 4]

    @classmethod
    def from_array(cls, arr):
        """Wrap an [h, w], [h, w, 3] or [h, w, 4] uint8 array."""
        a = np.asarray(arr)
        if a.ndim == 2:
            a = np.stack([a, a, a, np.full_like(a, 255)], axis=-1)
        elif a.ndim == 3 and a.shape[2] == 3:
            a = np.concatenate([a, np.full(a.shape[:2] + (1,), 255, dtype=a.dtype)], axis=-1)
        if a.ndim != 3 or a.shape[2] != 4 or a.shape[0] < 1 or a.shape[1] < 1:
            raise ImageDecodeError(f"Unsupported pixel buffer shape {a.shape}")
        a = np.ascontiguousarray(a, dtype=np.uint8)
        a.setflags(write=False)
        return cls(width=a.shape[1], height=a.shape[0], rgba=a)

    @classmethod
    def from_pil(cls, img):
        return cls.from_array(np.array(img.convert('RGBA')))


def _fetch(url, timeout):
    try:
        r = requests.get(url, headers={'User-Agent': USER_AGENT}, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise ImageDecodeError(f"Failed to load image from {url}: {e}") from e
    return r.content


def _read_file(path):
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise ImageDecodeError(f"Failed to read image file {path}: {e}") from e


def _source_bytes(source, timeout, allow_paths):
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, os.PathLike):
        return _read_file(os.fspath(source))
    if not isinstance(source, str) or not source.strip():
        raise ImageDecodeError("No image supplied")
    s = source.strip()
    if s.startswith(('http://', 'https://')):
        return _fetch(s, timeout)
    if s.startswith('data:'):
        if ',' not in s:
            raise ImageDecodeError("Malformed data URL")
        s = s.split(',', 1)[1]
    elif allow_paths and len(s) < 4096 and os.path.isfile(s):
        return _read_file(s)
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError("Image is neither a URL nor valid base64") from e


def load_image(source, timeout=DEFAULT_TIMEOUT, allow_paths=False):
    """
    Decode an image into a RasterImage.

    source may be raw bytes, a data URL or bare base64 string, an http(s) URL
    or an os.PathLike. Plain strings are read as file paths only when
    allow_paths is set. Any fetch or decode failure raises ImageDecodeError.
    """
    if isinstance(source, RasterImage):
        return source
    if isinstance(source, Image.Image):
        return RasterImage.from_pil(source)
    data = _source_bytes(source, timeout, allow_paths)
    if not data:
        raise ImageDecodeError("Image data is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            raster = RasterImage.from_pil(img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Failed to decode image: {e}") from e
    logger.debug("Decoded %dx%d image (%d bytes)", raster.width, raster.height, len(data))
    return raster
