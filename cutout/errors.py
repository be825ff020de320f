from __future__ import annotations


class CutoutError(RuntimeError):
    """Base class for failures that abort a single cutout request."""


class AssetDecodeFailure(CutoutError):
    """The source image could not be turned into a pixel buffer."""


class SegmentationFailure(CutoutError):
    """The segmentation model reported a failure for this request."""

    def __init__(self, cause: str):
        super().__init__(cause)
        self.cause = cause


class DimensionMismatch(CutoutError, ValueError):
    """Pixel, confidence or mask buffers disagree on their dimensions."""
