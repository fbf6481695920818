"""Exceptions raised by the lithophane pipeline."""


class LithophaneError(Exception):
    """Base class for every failure surfaced by the generator."""
    kind = 'lithophane'


class ImageDecodeError(LithophaneError):
    """The source image could not be fetched or decoded."""
    kind = 'image_decode'


class InvalidSettingsError(LithophaneError, ValueError):
    """Dimensions or generation settings that cannot produce a valid mesh."""
    kind = 'invalid_settings'


class SerializationError(LithophaneError):
    """A triangle set could not be written to, or read from, binary STL."""
    kind = 'serialization'
