# Affine color matrices
"""
4x5 affine color matrices and their composition.

A matrix maps (R, G, B, A) to new channel values::

    new_c = M[c, 0]*R + M[c, 1]*G + M[c, 2]*B + M[c, 3]*A + M[c, 4]

with the bias column expressed in 0-255 units. The builders reproduce the
Filter Effects (CSS ``filter``) definitions so a chain such as
``sepia(0.5) contrast(1.2) brightness(0.95)`` collapses into a single matrix
applied in one pass.
"""

import math

import numpy as np

from ..utils.imaging import LUMA_R, LUMA_G, LUMA_B

IDENTITY = np.hstack([np.eye(4), np.zeros((4, 1))])


def from_sequence(values) -> np.ndarray:
    """Build a 4x5 matrix from 20 row-major coefficients."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size != 20:
        raise ValueError(f"A color matrix needs 20 coefficients, got {arr.size}")
    return arr.reshape(4, 5)


def is_identity(matrix) -> bool:
    return np.allclose(np.asarray(matrix, dtype=np.float64).reshape(4, 5), IDENTITY)


def _rgb_matrix(rows) -> np.ndarray:
    """Embed a 3x3 RGB transform in a 4x5 matrix (alpha passes through)."""
    m = IDENTITY.copy()
    m[:3, :3] = np.asarray(rows, dtype=np.float64)
    return m


def brightness(amount: float) -> np.ndarray:
    return _rgb_matrix(np.eye(3) * amount)


def contrast(amount: float, pivot: float = 127.5) -> np.ndarray:
    """Linear contrast around ``pivot`` (CSS uses the mid-point 127.5)."""
    m = _rgb_matrix(np.eye(3) * amount)
    m[:3, 4] = pivot * (1.0 - amount)
    return m


def saturate(amount: float) -> np.ndarray:
    s = amount
    return _rgb_matrix([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ])


def hue_rotate(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return _rgb_matrix([
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ])


def sepia(amount: float) -> np.ndarray:
    inv = 1.0 - min(1.0, max(0.0, amount))
    return _rgb_matrix([
        [0.393 + 0.607 * inv, 0.769 - 0.769 * inv, 0.189 - 0.189 * inv],
        [0.349 - 0.349 * inv, 0.686 + 0.314 * inv, 0.168 - 0.168 * inv],
        [0.272 - 0.272 * inv, 0.534 - 0.534 * inv, 0.131 + 0.869 * inv],
    ])


def grayscale() -> np.ndarray:
    """Luminance replicated to R, G and B."""
    row = [LUMA_R, LUMA_G, LUMA_B]
    return _rgb_matrix([row, row, row])


def channel_scale(r: float, g: float, b: float) -> np.ndarray:
    return _rgb_matrix(np.diag([r, g, b]))


def channel_mix(rows) -> np.ndarray:
    """Cross-channel mix from a 3x3 RGB weight table."""
    return _rgb_matrix(rows)


def compose(*matrices) -> np.ndarray:
    """Compose matrices applied left to right into a single 4x5 matrix."""
    result = np.eye(5)
    for matrix in matrices:
        augmented = np.vstack([np.asarray(matrix, dtype=np.float64).reshape(4, 5), [0, 0, 0, 0, 1]])
        result = augmented @ result
    return result[:4]


def apply_matrix(image: np.ndarray, matrix) -> np.ndarray:
    """Apply a 4x5 matrix to a float (H, W, 4) image, clamping to [0, 255]."""
    m = np.asarray(matrix, dtype=np.float32).reshape(4, 5)
    out = image.astype(np.float32, copy=False) @ m[:, :4].T + m[:, 4]
    return np.clip(out, 0.0, 255.0)
