"""
Shared fixtures: in-memory images and the settings used by the end-to-end
scenario (64x64 white image, 50x50mm panel, low resolution).
"""
import base64
import io

import numpy as np
import pytest
from PIL import Image

from lithophane import Dimensions, GenerationSettings, RasterImage


def png_bytes(img):
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def data_url(img):
    return 'data:image/png;base64,' + base64.b64encode(png_bytes(img)).decode('ascii')


@pytest.fixture
def white_image():
    return Image.new('RGB', (64, 64), (255, 255, 255))


@pytest.fixture
def gradient_image():
    """Horizontal black-to-white ramp with a dark square in the middle."""
    ramp = np.tile(np.linspace(0, 255, 80).astype(np.uint8), (60, 1))
    ramp[20:40, 30:50] = 10
    return Image.fromarray(ramp, mode='L').convert('RGB')


@pytest.fixture
def gradient_raster(gradient_image):
    return RasterImage.from_pil(gradient_image)


@pytest.fixture
def panel():
    return Dimensions(50.0, 50.0)


@pytest.fixture
def low_settings():
    return GenerationSettings(min_thickness=1.0, max_thickness=3.0, resolution='low',
                              border=0.0, curve=0.0, negative=False, smoothing=0.0)
