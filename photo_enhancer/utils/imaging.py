# Pixel buffer and shared imaging helpers
"""
The RGBA8 pixel buffer passed between the engine's components, plus the
small conversions every pipeline needs (luminance, float working copies).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import numpy as np

from ..config import settings

LUMA_R, LUMA_G, LUMA_B = settings.LUMINANCE_WEIGHTS


@dataclass(frozen=True)
class PixelBuffer:
    """An RGBA8 raster, row-major, 4 bytes per pixel.

    ``pixels`` is a ``(height, width, 4)`` uint8 array. The buffer is treated
    as immutable: the array is flagged read-only and every pipeline returns a
    new buffer.
    """

    pixels: np.ndarray

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise TypeError(f"pixels must be a numpy array, got {type(pixels).__name__}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"pixels must have shape (height, width, 4), got {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise TypeError(f"pixels must be uint8, got {pixels.dtype}")
        pixels = np.ascontiguousarray(pixels)
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, data) -> "PixelBuffer":
        """Build a buffer from raw RGBA8 bytes."""
        if width < 0 or height < 0:
            raise ValueError(f"Invalid dimensions {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}")
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(arr.copy())

    @classmethod
    def filled(cls, width: int, height: int, rgba) -> "PixelBuffer":
        """A uniform buffer, mostly useful for tests and placeholders."""
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(arr)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    def fingerprint(self) -> str:
        """SHA-256 of the dimensions and pixel bytes."""
        digest = hashlib.sha256()
        digest.update(f"{self.width}x{self.height}:".encode("ascii"))
        digest.update(self.pixels.tobytes())
        return digest.hexdigest()

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and np.array_equal(self.pixels, other.pixels)


def to_working(buffer: PixelBuffer) -> np.ndarray:
    """Float32 working copy of a buffer's pixels."""
    return buffer.pixels.astype(np.float32)


def from_working(image: np.ndarray) -> PixelBuffer:
    """Round and clamp a float working image back into a PixelBuffer."""
    return PixelBuffer(np.clip(np.rint(image), 0, 255).astype(np.uint8))


def luminance(image: np.ndarray) -> np.ndarray:
    """Per-pixel perceptual luminance (0.299R + 0.587G + 0.114B) as float64."""
    rgb = image[..., :3].astype(np.float64, copy=False)
    return LUMA_R * rgb[..., 0] + LUMA_G * rgb[..., 1] + LUMA_B * rgb[..., 2]


def channel_means(image: np.ndarray):
    """Mean of the R, G and B channels, as plain floats."""
    if image.size == 0:
        return 0.0, 0.0, 0.0
    rgb = image[..., :3].astype(np.float64, copy=False)
    means = rgb.reshape(-1, 3).mean(axis=0)
    return float(means[0]), float(means[1]), float(means[2])
