from __future__ import annotations

import cv2
import numpy as np

from .preprocess import PreprocessMeta


def restore_mask_to_original(mask_square: np.ndarray, meta: PreprocessMeta) -> np.ndarray:
    """
    Restore a model-space square mask back to original image resolution.

    Steps:
      1) remove padding using x/y offsets + resized sizes
      2) resize back to (orig_w, orig_h)
    """
    if mask_square.ndim != 2:
        raise ValueError(f"Expected 2D mask, got shape={mask_square.shape}")
    if mask_square.dtype != np.float32:
        mask_square = mask_square.astype(np.float32, copy=False)

    x0, y0 = meta.x_offset, meta.y_offset
    x1, y1 = x0 + meta.resized_w, y0 + meta.resized_h
    cropped = mask_square[y0:y1, x0:x1]
    if cropped.size == 0:
        raise ValueError("Mask crop is empty; check preprocessing meta.")

    restored = cv2.resize(np.ascontiguousarray(cropped), (meta.orig_w, meta.orig_h), interpolation=cv2.INTER_LINEAR)
    return np.clip(restored, 0.0, 1.0).astype(np.float32, copy=False)
