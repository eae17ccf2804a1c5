import pytest
import numpy as np

from photo_enhancer.utils.imaging import PixelBuffer


@pytest.fixture
def sample_image_uint8():
    """Returns a simple 100x100 uint8 RGBA image."""
    img = np.full((100, 100, 4), 255, dtype=np.uint8)
    img[:50, :50, :3] = [255, 0, 0]    # Red quadrant
    img[:50, 50:, :3] = [0, 255, 0]    # Green quadrant
    img[50:, :50, :3] = [0, 0, 255]    # Blue quadrant
    img[50:, 50:, :3] = [255, 255, 0]  # Yellow quadrant
    return img


@pytest.fixture
def sample_buffer(sample_image_uint8):
    return PixelBuffer(sample_image_uint8)


@pytest.fixture
def noisy_buffer():
    """Seeded random 64x48 RGBA buffer."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return PixelBuffer(pixels)


@pytest.fixture
def gray_buffer():
    """Uniform mid-gray 32x32 buffer."""
    return PixelBuffer.filled(32, 32, (128, 128, 128, 255))


@pytest.fixture
def dark_buffer():
    """Uniform 100x100 buffer with luminance 40."""
    return PixelBuffer.filled(100, 100, (40, 40, 40, 255))


@pytest.fixture
def bright_buffer():
    """Uniform 100x100 buffer with luminance 230."""
    return PixelBuffer.filled(100, 100, (230, 230, 230, 255))


@pytest.fixture
def white_buffer():
    return PixelBuffer.filled(21, 21, (255, 255, 255, 255))


@pytest.fixture
def empty_buffer():
    return PixelBuffer(np.zeros((0, 0, 4), dtype=np.uint8))


@pytest.fixture
def checkerboard_buffer():
    """Well exposed, contrasty, sharp and neutral 40x40 checkerboard."""
    pixels = np.full((40, 40, 4), 255, dtype=np.uint8)
    yy, xx = np.indices((40, 40))
    pixels[..., :3] = np.where(((yy + xx) % 2 == 0)[..., None], 60, 200)
    return PixelBuffer(pixels)
