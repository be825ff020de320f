from __future__ import annotations

import numpy as np
import pytest

from cutout.buffers import AlphaMask, ConfidenceBuffer, PixelBuffer
from cutout.errors import DimensionMismatch


def test_pixel_buffer_accepts_flat_and_image_shapes():
    rgba = np.arange(2 * 3 * 4, dtype=np.uint8).reshape(2, 3, 4)
    a = PixelBuffer.from_array(rgba)
    b = PixelBuffer(width=3, height=2, pixels=rgba.reshape(-1, 4))

    assert (a.width, a.height, a.pixel_count) == (3, 2, 6)
    assert a.pixels.tobytes() == b.pixels.tobytes()
    assert a.as_array().shape == (2, 3, 4)
    assert a.rgb().shape == (2, 3, 3)


def test_pixel_buffer_owns_a_frozen_copy():
    rgba = np.zeros((2, 2, 4), dtype=np.uint8)
    buf = PixelBuffer.from_array(rgba)
    rgba[0, 0, 0] = 99

    assert buf.pixels[0, 0] == 0
    with pytest.raises(ValueError):
        buf.pixels[0, 0] = 1


@pytest.mark.parametrize(
    "width,height,pixels",
    [
        (2, 2, np.zeros((3, 4))),
        (2, 2, np.zeros((5, 4))),
        (2, 2, np.zeros((4, 3))),
        (0, 2, np.zeros((0, 4))),
    ],
)
def test_pixel_buffer_rejects_bad_shapes(width, height, pixels):
    with pytest.raises(DimensionMismatch):
        PixelBuffer(width=width, height=height, pixels=pixels)


def test_confidence_buffer_is_float32_and_allows_truncation():
    conf = ConfidenceBuffer(width=2, height=2, values=[0.5, 0.25, 1.0])
    assert conf.values.dtype == np.float32
    assert conf.values.size == 3


def test_confidence_from_matte():
    conf = ConfidenceBuffer.from_matte(np.full((3, 5), 0.7, dtype=np.float64))
    assert (conf.width, conf.height) == (5, 3)
    assert conf.values.shape == (15,)
    with pytest.raises(DimensionMismatch):
        ConfidenceBuffer.from_matte(np.zeros((2, 2, 1)))


def test_alpha_mask_coverage():
    assert AlphaMask(width=2, height=2, opaque=[True, False, True, True]).coverage == 0.75
    assert AlphaMask(width=0, height=0, opaque=[]).coverage == 0.0


@pytest.mark.parametrize(
    "pixels",
    [
        np.array([[256, 0, 0, 255]], dtype=np.int64),
        np.array([[-1, 0, 0, 255]], dtype=np.int16),
        [(300, 0, 0, 255)],
    ],
)
def test_pixel_buffer_rejects_out_of_range_channels(pixels):
    with pytest.raises(DimensionMismatch):
        PixelBuffer(width=1, height=1, pixels=pixels)


def test_pixel_buffer_accepts_full_channel_range_from_wider_ints():
    buf = PixelBuffer(width=1, height=2, pixels=np.array([[0, 128, 255, 255], [255, 0, 1, 0]], dtype=np.int32))
    assert buf.pixels.dtype == np.uint8
    assert buf.pixels.tolist() == [[0, 128, 255, 255], [255, 0, 1, 0]]
