"""Generation settings, panel dimensions and base settings."""
import math
import numbers
from dataclasses import dataclass, asdict

from .errors import InvalidSettingsError

# resolution -> (grid step in mm, label)
RESOLUTIONS = {
    'low': (2.0, 'Low (fast)'),
    'medium': (1.0, 'Medium'),
    'high': (0.5, 'High'),
    'ultra': (0.25, 'Ultra (slow)'),
}

# base proportions used when a panel is exported together with its stand
BASE_WIDTH_FACTOR = 1.3
BASE_HEIGHT = 18.0
BASE_DEPTH = 28.0
SLOT_WIDTH_CLEARANCE = 1.0
SLOT_DEPTH_CLEARANCE = 0.5
LED_HOLE_DIAMETER = 16.0
LED_HOLE_DEPTH = 10.0


def resolution_params(resolution):
    """Step size (mm) and label for a resolution name."""
    try:
        return RESOLUTIONS[resolution]
    except (KeyError, TypeError):
        raise InvalidSettingsError(
            f"Unknown resolution {resolution!r}, expected one of {', '.join(RESOLUTIONS)}") from None


def _number(d, key, default):
    v = d.get(key, default)
    if isinstance(v, bool) or v is None:
        raise InvalidSettingsError(f"{key} must be a number")
    try:
        v = float(v)
    except (TypeError, ValueError):
        raise InvalidSettingsError(f"{key} must be a number, got {v!r}") from None
    if not math.isfinite(v):
        raise InvalidSettingsError(f"{key} must be finite")
    return v


def _finite(obj, *fields):
    for name in fields:
        v = getattr(obj, name)
        if isinstance(v, bool) or not isinstance(v, numbers.Real) or not math.isfinite(v):
            raise InvalidSettingsError(f"{name} must be a finite number, got {v!r}")


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float

    def validate(self):
        _finite(self, 'width', 'height')
        if not (self.width > 0 and self.height > 0):
            raise InvalidSettingsError(
                f"Dimensions must be positive, got {self.width}x{self.height}mm")
        return self

    @classmethod
    def from_json(cls, d):
        if not isinstance(d, dict):
            raise InvalidSettingsError("dimensions must be an object with width and height")
        if 'width' not in d or 'height' not in d:
            raise InvalidSettingsError("dimensions needs both width and height")
        return cls(_number(d, 'width', None), _number(d, 'height', None)).validate()


@dataclass(frozen=True)
class GenerationSettings:
    min_thickness: float = 0.6
    max_thickness: float = 3.5
    resolution: str = 'high'
    border: float = 2.0
    curve: float = 0.0
    negative: bool = False
    smoothing: float = 20.0

    @property
    def step_size(self):
        return resolution_params(self.resolution)[0]

    @property
    def curve_fraction(self):
        return self.curve / 100.0

    def validate(self):
        _finite(self, 'min_thickness', 'max_thickness', 'border', 'curve', 'smoothing')
        if self.min_thickness < 0:
            raise InvalidSettingsError(f"minThickness must be >= 0, got {self.min_thickness}")
        if self.min_thickness >= self.max_thickness:
            raise InvalidSettingsError(
                f"minThickness ({self.min_thickness}) must be less than maxThickness ({self.max_thickness})")
        resolution_params(self.resolution)
        if self.border < 0:
            raise InvalidSettingsError(f"border must be >= 0, got {self.border}")
        if not 0 <= self.curve <= 100:
            raise InvalidSettingsError(f"curve must be within 0-100, got {self.curve}")
        if not 0 <= self.smoothing <= 100:
            raise InvalidSettingsError(f"smoothing must be within 0-100, got {self.smoothing}")
        return self

    @classmethod
    def from_json(cls, d=None):
        """Build from the camelCase keys the web client sends; missing keys take defaults."""
        d = d or {}
        if not isinstance(d, dict):
            raise InvalidSettingsError("settings must be an object")
        negative = d.get('negative', cls.negative)
        if not isinstance(negative, bool):
            raise InvalidSettingsError("negative must be true or false")
        return cls(
            min_thickness=_number(d, 'minThickness', cls.min_thickness),
            max_thickness=_number(d, 'maxThickness', cls.max_thickness),
            resolution=d.get('resolution', cls.resolution),
            border=_number(d, 'border', cls.border),
            curve=_number(d, 'curve', cls.curve),
            negative=negative,
            smoothing=_number(d, 'smoothing', cls.smoothing),
        ).validate()

    def to_json(self):
        return {'minThickness': self.min_thickness, 'maxThickness': self.max_thickness,
                'resolution': self.resolution, 'border': self.border, 'curve': self.curve,
                'negative': self.negative, 'smoothing': self.smoothing}


@dataclass(frozen=True)
class BaseSettings:
    width: float
    height: float
    depth: float
    slot_width: float
    slot_depth: float
    led_hole_diameter: float
    led_hole_depth: float = LED_HOLE_DEPTH

    def validate(self):
        for k, v in asdict(self).items():
            if not (math.isfinite(v) and v > 0):
                raise InvalidSettingsError(f"base {k} must be positive, got {v}")
        if self.slot_width > self.width:
            raise InvalidSettingsError("base slot is wider than the base")
        if self.slot_depth > self.height:
            raise InvalidSettingsError("base slot is deeper than the base")
        return self


def base_settings_for(dimensions, settings):
    """Stand sized to hold a panel of the given dimensions and thickness."""
    return BaseSettings(
        width=dimensions.width * BASE_WIDTH_FACTOR,
        height=BASE_HEIGHT,
        depth=BASE_DEPTH,
        slot_width=dimensions.width + SLOT_WIDTH_CLEARANCE,
        slot_depth=settings.max_thickness + SLOT_DEPTH_CLEARANCE,
        led_hole_diameter=LED_HOLE_DIAMETER,
        led_hole_depth=LED_HOLE_DEPTH,
    )


def grid_size(dimensions, settings):
    """Samples per axis for the panel, floored and at least 1."""
    step = settings.step_size
    return max(1, int(math.floor(dimensions.width / step))), max(1, int(math.floor(dimensions.height / step)))
