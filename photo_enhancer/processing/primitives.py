# Primitive pixel operations
"""
Stateless per-pixel and per-neighborhood transforms.

Every operation takes a float32 ``(H, W, 4)`` working image with channels in
[0, 255], never mutates it, and returns a new array clamped to [0, 255].
Alpha is left untouched unless a color matrix explicitly maps it.
"""

import numpy as np
import cv2

from . import color_matrix as cm
from ..config import settings
from ..utils.errors import ComputeError
from ..utils.imaging import luminance, channel_means

_ENH = settings.ENHANCEMENT_DEFAULTS

# Rows processed at once by the 3x3 neighborhood operations
_DENOISE_CHUNK_ROWS = 256


def _with_rgb(image, rgb):
    """Copy of ``image`` with its RGB planes replaced by ``rgb`` (clamped)."""
    out = image.copy()
    out[..., :3] = np.clip(rgb, 0.0, 255.0)
    return out


def _grain_field(width: int, height: int) -> np.ndarray:
    """Deterministic ``height`` x ``width`` pseudo-random field in [0, 1)."""
    x = np.arange(width, dtype=np.float64)
    y = np.arange(height, dtype=np.float64)
    u = x / float(width - 1) if width > 1 else np.zeros_like(x)
    v = y / float(height - 1) if height > 1 else np.zeros_like(y)
    seed = u[None, :] * 12.9898 + v[:, None] * 78.233
    noise = np.sin(seed) * 43758.5453
    return (noise - np.floor(noise)).astype(np.float32)


# --- Per-pixel operations ---
class ColorOps:
    """Per-pixel color operations."""

    @staticmethod
    def adjust_brightness(image, factor):
        """Scale RGB by ``factor`` (1.0 is identity)."""
        if image.size == 0 or factor == 1.0: return image.copy()
        return _with_rgb(image, image[..., :3] * np.float32(factor))

    @staticmethod
    def adjust_contrast(image, factor, pivot=settings.FILTER_DEFAULTS["contrast_pivot"]):
        """Stretch (factor > 1) or compress (factor < 1) RGB around ``pivot``."""
        if image.size == 0 or factor == 1.0: return image.copy()
        pivot = np.float32(pivot)
        return _with_rgb(image, (image[..., :3] - pivot) * np.float32(factor) + pivot)

    @staticmethod
    def adjust_saturation(image, factor):
        """Push each channel away from (or toward) the pixel's luminance.

        ``lum + (c - lum) * factor``; gray pixels have no chroma and stay put.
        """
        if image.size == 0 or factor == 1.0: return image.copy()
        lum = luminance(image)[..., None].astype(np.float32)
        return _with_rgb(image, lum + (image[..., :3] - lum) * np.float32(factor))

    @staticmethod
    def boost_saturation_hsv(image, factor):
        """Scale saturation in HSV space (OpenCV float HSV, S in [0, 1])."""
        if image.size == 0 or factor == 1.0: return image.copy()
        rgb = np.ascontiguousarray(image[..., :3] / 255.0, dtype=np.float32)
        hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)
        hsv[..., 1] = np.clip(hsv[..., 1] * factor, 0.0, 1.0)
        return _with_rgb(image, cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB) * 255.0)

    @staticmethod
    def rotate_hue(image, degrees):
        """Hue rotation via the standard luminance-preserving rotation matrix."""
        if image.size == 0 or degrees % 360 == 0: return image.copy()
        return cm.apply_matrix(image, cm.hue_rotate(degrees))

    @staticmethod
    def apply_sepia(image, amount):
        """Blend toward a sepia tone; ``amount`` in [0, 1]."""
        if image.size == 0 or amount <= 0: return image.copy()
        return cm.apply_matrix(image, cm.sepia(amount))

    @staticmethod
    def to_grayscale(image):
        """Luminance replicated to R, G and B."""
        if image.size == 0: return image.copy()
        return cm.apply_matrix(image, cm.grayscale())

    @staticmethod
    def tint_channels(image, r=1.0, g=1.0, b=1.0):
        """Per-channel multipliers."""
        if image.size == 0 or (r == 1.0 and g == 1.0 and b == 1.0): return image.copy()
        return _with_rgb(image, image[..., :3] * np.array([r, g, b], dtype=np.float32))

    @staticmethod
    def apply_color_matrix(image, matrix):
        """Apply a 20-element row-major 4x5 affine color matrix to R, G, B, A.

        ``new_c = sum(in_j * coeff_cj) + bias_c`` with the bias in 0-255 units.
        """
        if image.size == 0: return image.copy()
        return cm.apply_matrix(image, cm.from_sequence(matrix))

    @staticmethod
    def correct_white_balance(image, max_factor=_ENH["wb_max_factor"]):
        """Gray-world white balance.

        Each channel is scaled by (grand mean / channel mean), the factor
        clamped to [1/max_factor, max_factor]. Channels whose mean is 0 are
        left alone.
        """
        if image.size == 0:
            raise ComputeError("Cannot white-balance an empty image", step="white_balance")
        means = channel_means(image)
        gray = sum(means) / 3.0
        factors = []
        for mean in means:
            if mean == 0:
                factors.append(1.0)
                continue
            factors.append(min(max_factor, max(1.0 / max_factor, gray / mean)))
        return ColorOps.tint_channels(image, *factors)

    @staticmethod
    def mix_channels(image, rows):
        """Cross-channel mix; ``rows`` is a 3x3 table of RGB weights."""
        if image.size == 0: return image.copy()
        return cm.apply_matrix(image, cm.channel_mix(rows))

    @staticmethod
    def pastel_push(image, lift=30.0, desaturation=0.5):
        """Blend ``desaturation`` of the way to luminance, then lift by ``lift``."""
        if image.size == 0: return image.copy()
        lum = luminance(image)[..., None].astype(np.float32)
        rgb = image[..., :3] * np.float32(1.0 - desaturation) + lum * np.float32(desaturation)
        return _with_rgb(image, rgb + np.float32(lift))

    @staticmethod
    def normalize_luminance(image, target=128.0, tolerance=(0.8, 1.2)):
        """Rescale toward ``target`` mean luminance when outside ``tolerance`` x target."""
        if image.size == 0: return image.copy()
        mean = float(luminance(image).mean())
        if mean == 0:
            raise ComputeError("Cannot normalize a black image", step="normalize_luminance")
        low, high = tolerance
        if low * target <= mean <= high * target:
            return image.copy()
        return ColorOps.adjust_brightness(image, target / mean)


# --- Neighborhood / positional operations ---
class SpatialOps:
    """Operations that depend on pixel position or neighborhood."""

    @staticmethod
    def apply_vignette(image, strength):
        """Radial darkening, ``1 - strength * (d / d_max)^2`` from the center.

        Darkness increases monotonically with the distance to the center.
        """
        if image.size == 0 or strength <= 0: return image.copy()
        height, width = image.shape[:2]
        cy, cx = (height - 1) / 2.0, (width - 1) / 2.0
        d_max = np.hypot(cx, cy)
        if d_max == 0:
            raise ComputeError("Vignette needs more than one pixel", step="vignette")
        yy, xx = np.ogrid[:height, :width]
        dist = np.hypot(xx - cx, yy - cy) / d_max
        factor = (1.0 - min(1.0, strength) * dist ** 2).astype(np.float32)
        return _with_rgb(image, image[..., :3] * factor[..., None])

    @staticmethod
    def add_grain(image, amount):
        """Deterministic monochrome film grain; ``amount`` in [0, 1]."""
        if image.size == 0 or amount <= 0: return image.copy()
        height, width = image.shape[:2]
        noise = (_grain_field(width, height) - 0.5) * np.float32(amount * 255.0)
        return _with_rgb(image, image[..., :3] + noise[..., None])

    @staticmethod
    def soft_blur(image, radius):
        """Gaussian blur with sigma = ``radius`` pixels (replicated border)."""
        if image.size == 0 or radius <= 0: return image.copy()
        rgb = np.ascontiguousarray(image[..., :3], dtype=np.float32)
        blurred = cv2.GaussianBlur(rgb, (0, 0), sigmaX=float(radius), borderType=cv2.BORDER_REPLICATE)
        return _with_rgb(image, blurred)

    @staticmethod
    def unsharp_mask(image, intensity, sigma=_ENH["unsharp_sigma"], kernel_size=_ENH["unsharp_kernel_size"]):
        """Unsharp mask: ``c + (c - blurred) * intensity``.

        The blurred copy uses an explicit Gaussian kernel (default sigma 1.0,
        5x5, replicated border) computed from the unmodified input.
        """
        if image.size == 0 or intensity == 0: return image.copy()
        rgb = np.ascontiguousarray(image[..., :3], dtype=np.float32)
        blurred = cv2.GaussianBlur(rgb, (kernel_size, kernel_size), sigmaX=float(sigma),
                                   borderType=cv2.BORDER_REPLICATE)
        return _with_rgb(image, rgb + (rgb - blurred) * np.float32(intensity))

    @staticmethod
    def denoise(image, intensity, variance_scale=_ENH["denoise_variance_scale"]):
        """Variance-triggered median blend on interior pixels.

        For each interior pixel the 3x3 luminance variance (mean squared
        deviation from the center luminance) is measured; above
        ``variance_scale * intensity`` the pixel is blended toward the
        per-channel 3x3 median by ``intensity``. Only the unmodified source is
        read.
        """
        if image.size == 0: return image.copy()
        height, width = image.shape[:2]
        if height < 3 or width < 3:
            raise ComputeError(f"Denoise needs at least 3x3 pixels, got {width}x{height}", step="denoise")

        threshold = variance_scale * intensity
        lum = luminance(image)
        out = image.copy()

        for top in range(1, height - 1, _DENOISE_CHUNK_ROWS):
            bottom = min(top + _DENOISE_CHUNK_ROWS, height - 1)

            center = lum[top:bottom, 1:width - 1]
            variance = np.zeros_like(center)
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    neighbor = lum[top + dy:bottom + dy, 1 + dx:width - 1 + dx]
                    variance += (neighbor - center) ** 2
            variance /= 9.0
            noisy = variance > threshold
            if not noisy.any():
                continue

            window = np.stack([
                image[top + dy:bottom + dy, 1 + dx:width - 1 + dx, :3]
                for dy in (-1, 0, 1) for dx in (-1, 0, 1)
            ])
            median = np.partition(window, 4, axis=0)[4]
            source = image[top:bottom, 1:width - 1, :3]
            blended = np.rint(source * (1.0 - intensity) + median * intensity)

            target = out[top:bottom, 1:width - 1, :3]
            target[noisy] = np.clip(blended[noisy], 0.0, 255.0)
        return out
