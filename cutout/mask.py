from __future__ import annotations

import numpy as np

from .buffers import AlphaMask, ConfidenceBuffer
from .config import DEFAULT_CUTOFF
from .errors import DimensionMismatch


def threshold(confidence: ConfidenceBuffer, cutoff: float = DEFAULT_CUTOFF) -> AlphaMask:
    """
    Binarize a confidence buffer: opaque where confidence > cutoff (strict).

    The comparison runs at float32 precision, the precision the model reports
    in, so a stored 0.4 with cutoff 0.4 stays background.
    """
    if not 0.0 <= float(cutoff) <= 1.0:
        raise ValueError(f"cutoff must be within [0, 1], got {cutoff}")
    w, h = confidence.width, confidence.height
    if w <= 0 or h <= 0:
        raise DimensionMismatch(f"Invalid confidence size: {(w, h)}")
    if confidence.values.size != w * h:
        raise DimensionMismatch(
            f"Confidence length {confidence.values.size} does not match {w}x{h}"
        )

    opaque = confidence.values > np.float32(cutoff)
    return AlphaMask(width=w, height=h, opaque=opaque)
