from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import DimensionMismatch


def _owned_readonly(values, dtype) -> np.ndarray:
    arr = np.array(values, dtype=dtype, copy=True)
    arr.setflags(write=False)
    return arr


def _channels(values) -> np.ndarray:
    raw = np.asarray(values)
    if raw.dtype != np.uint8 and raw.size and (raw.min() < 0 or raw.max() > 255):
        raise DimensionMismatch(
            f"Channel values must be within [0, 255], got [{raw.min()}, {raw.max()}]"
        )
    return _owned_readonly(raw, np.uint8)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    width x height RGBA pixels, row-major, stored flat as uint8 (width*height, 4).

    The array is copied on construction and frozen, so a buffer never aliases
    another request's data.
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise DimensionMismatch(f"Invalid buffer size: {(self.width, self.height)}")
        px = _channels(self.pixels)
        if px.ndim == 3:
            px = px.reshape(-1, px.shape[-1])
        if px.ndim != 2 or px.shape[1] != 4:
            raise DimensionMismatch(f"Expected RGBA pixels (N,4), got shape={px.shape}")
        if px.shape[0] != self.width * self.height:
            raise DimensionMismatch(
                f"Pixel count {px.shape[0]} does not match {self.width}x{self.height}"
            )
        object.__setattr__(self, "pixels", px)

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "PixelBuffer":
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise DimensionMismatch(f"Expected RGBA image (H,W,4), got {rgba.shape}")
        h, w = rgba.shape[:2]
        return cls(width=int(w), height=int(h), pixels=rgba)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def as_array(self) -> np.ndarray:
        """(H, W, 4) read-only view."""
        return self.pixels.reshape(self.height, self.width, 4)

    def rgb(self) -> np.ndarray:
        return self.as_array()[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, 3]


@dataclass(frozen=True, eq=False)
class ConfidenceBuffer:
    """
    Per-pixel foreground confidence in [0, 1] as flat float32, row-major.

    The length is deliberately not checked here: a truncated model result must
    still be representable so the thresholder can reject it.
    """

    width: int
    height: int
    values: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _owned_readonly(self.values, np.float32).reshape(-1))

    @classmethod
    def from_matte(cls, matte: np.ndarray) -> "ConfidenceBuffer":
        if matte.ndim != 2:
            raise DimensionMismatch(f"Expected 2D matte, got shape={matte.shape}")
        h, w = matte.shape
        return cls(width=int(w), height=int(h), values=matte)


@dataclass(frozen=True, eq=False)
class AlphaMask:
    width: int
    height: int
    opaque: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "opaque", _owned_readonly(self.opaque, bool).reshape(-1))

    @property
    def coverage(self) -> float:
        """Fraction of opaque (foreground) pixels."""
        if self.opaque.size == 0:
            return 0.0
        return float(self.opaque.mean())
