from __future__ import annotations

import numpy as np
from PIL import Image

from .buffers import AlphaMask, PixelBuffer
from .config import ALPHA_OPAQUE, ALPHA_TRANSPARENT
from .errors import DimensionMismatch


def composite(original: PixelBuffer, mask: AlphaMask) -> PixelBuffer:
    """
    Destination-in on alpha only: RGB is copied as-is, alpha becomes 255 where
    the mask is opaque and 0 where it is transparent. Edges stay hard-stepped.
    """
    if (original.width, original.height) != (mask.width, mask.height):
        raise DimensionMismatch(
            f"Mask {mask.width}x{mask.height} does not match image {original.width}x{original.height}"
        )
    if mask.opaque.size != original.pixel_count:
        raise DimensionMismatch(
            f"Mask length {mask.opaque.size} does not match pixel count {original.pixel_count}"
        )

    rgba = original.pixels.copy()
    rgba[:, 3] = np.where(mask.opaque, ALPHA_OPAQUE, ALPHA_TRANSPARENT).astype(np.uint8)
    return PixelBuffer(width=original.width, height=original.height, pixels=rgba)


def to_image(buf: PixelBuffer) -> Image.Image:
    """
    Lossless RGBA PIL image for display surfaces.
    """
    return Image.fromarray(buf.as_array().copy())
