"""Depth mapping and smoothing."""
import numpy as np
from scipy.ndimage import uniform_filter

# Rec. 601 luma weights
LUMA = np.array([0.299, 0.587, 0.114])


def luminance(rgba):
    """Per-pixel luminance in [0, 1] from the RGB channels."""
    return (rgba[..., :3].astype(np.float64) @ LUMA) / 255.0


def create_depth_map(image, grid_width, grid_height, settings):
    """
    Sample the image on a grid_height x grid_width grid (nearest neighbour)
    and turn luminance into thickness. Bright pixels become thin unless
    settings.negative is set.
    """
    xs = np.floor(np.arange(grid_width) / grid_width * image.width).astype(np.intp)
    ys = np.floor(np.arange(grid_height) / grid_height * image.height).astype(np.intp)
    lum = luminance(image.rgba[np.ix_(ys, xs)])
    span = settings.max_thickness - settings.min_thickness
    weight = lum if settings.negative else 1 - lum
    return settings.min_thickness + weight * span


def smoothing_radius(smoothing):
    return max(1, int(np.floor(smoothing / 100 * 5)))


def smooth_depth_map(depth_map, smoothing):
    """
    Box-average every cell over a (2k+1)^2 window of in-bounds neighbours.

    smoothing is 0-100; k = max(1, floor(smoothing/100 * 5)). Near the edges
    only cells inside the grid are averaged. Returns a new array; the input is
    returned untouched when smoothing <= 0.
    """
    if smoothing <= 0:
        return depth_map
    d = np.asarray(depth_map, dtype=np.float64)
    size = 2 * smoothing_radius(smoothing) + 1
    # zero padding in both filters cancels out, leaving the in-bounds mean
    total = uniform_filter(d, size=size, mode='constant', cval=0.0)
    count = uniform_filter(np.ones_like(d), size=size, mode='constant', cval=0.0)
    out = total / count
    # keep results inside the neighbourhood hull despite float error
    return np.clip(out, d.min(), d.max())
