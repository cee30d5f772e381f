"""
Pytest configuration and shared fixtures for Cartoon Avatar tests.

This module provides shared test images used across multiple test
modules.
"""

import pytest
from PIL import Image

from image_factories import make_dot, make_noise, make_solid


@pytest.fixture
def gray_image():
    """600x300 all mid-gray opaque image."""
    return make_solid(600, 300)


@pytest.fixture
def dot_image():
    """10x10 black image with one white pixel at (5, 5)."""
    return make_dot()


@pytest.fixture
def noise_image():
    """64x48 random noise image."""
    return make_noise(64, 48)


@pytest.fixture
def sample_png(tmp_path):
    """A small opaque PNG on disk."""
    path = tmp_path / "portrait.png"
    Image.new("RGBA", (40, 20), (200, 100, 50, 255)).save(path)
    return path
