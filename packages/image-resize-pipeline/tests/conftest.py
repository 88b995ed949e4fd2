import io

import numpy as np
import pytest
from PIL import Image


def _encode(image: Image.Image, pil_format: str, **options) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **options)
    return buffer.getvalue()


def _noise_image(width: int, height: int, mode: str = "RGB", seed: int = 7):
    rng = np.random.default_rng(seed)
    channels = {"RGB": 3, "RGBA": 4}.get(mode)
    shape = (height, width, channels) if channels else (height, width)
    return Image.fromarray(rng.integers(0, 256, shape, dtype=np.uint8))


@pytest.fixture
def encode():
    return _encode


@pytest.fixture
def noise_image():
    return _noise_image


@pytest.fixture
def make_image_bytes():
    def _make(
        width: int = 40,
        height: int = 30,
        pil_format: str = "PNG",
        mode: str = "RGB",
        color=(200, 40, 90),
    ) -> bytes:
        image = Image.new(mode, (width, height), color=color)
        return _encode(image, pil_format)

    return _make


@pytest.fixture
def noise_png_bytes():
    return _encode(_noise_image(64, 48), "PNG")
