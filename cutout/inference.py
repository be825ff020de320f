from __future__ import annotations

import threading
from typing import Optional

import numpy as np
import torch

from .buffers import ConfidenceBuffer, PixelBuffer
from .config import BIREFNET_REPO, TARGET_SIZE
from .model import forward_model, get_device, load_birefnet_hf
from .postprocess import restore_mask_to_original
from .preprocess import normalize, resize_with_padding
from .segmentation import SegmentationProvider


def _extract_primary_output(y):
    """
    Matting models may return:
      - a single tensor
      - (tensor, ...) tuple/list (final stage is typically last)
      - dict / ModelOutput with tensor fields
    """
    if isinstance(y, torch.Tensor):
        return y
    if isinstance(y, (list, tuple)) and len(y) > 0:
        for item in reversed(y):
            if isinstance(item, torch.Tensor):
                return item
        return y[-1]
    if isinstance(y, dict):
        for k in ("logits", "pred", "alpha", "mask"):
            v = y.get(k, None)
            if isinstance(v, torch.Tensor):
                return v
        for v in y.values():
            if isinstance(v, torch.Tensor):
                return v
    return y


def predict_matte(model: torch.nn.Module, x: torch.Tensor, device: torch.device) -> np.ndarray:
    """
    Forward pass and convert logits -> probability matte.

    Output: float32 numpy array in [0,1] with the input's spatial size.
    """
    if x.ndim != 4 or x.shape[0] != 1:
        raise ValueError(f"Expected input tensor (1,3,H,W), got {tuple(x.shape)}")
    size = tuple(x.shape[-2:])

    y = _extract_primary_output(forward_model(model, x.float().to(device)))
    if not isinstance(y, torch.Tensor):
        raise RuntimeError(f"Model output is not a tensor: {type(y)}")

    # Expect either (1,1,H,W) or (1,H,W) or (H,W)
    if y.ndim == 4:
        y = y[0, 0]
    elif y.ndim == 3:
        y = y[0]
    elif y.ndim != 2:
        raise RuntimeError(f"Unexpected output tensor shape: {tuple(y.shape)}")

    if tuple(y.shape[-2:]) != size:
        y = torch.nn.functional.interpolate(
            y.unsqueeze(0).unsqueeze(0),
            size=size,
            mode="bilinear",
            align_corners=False,
        )[0, 0]

    p = torch.sigmoid(y.float())
    if torch.isnan(p).any():
        raise RuntimeError("NaNs detected in predicted matte.")

    matte = p.detach().to("cpu").numpy().astype(np.float32, copy=False)
    return np.clip(matte, 0.0, 1.0)


class BiRefNetSegmenter(SegmentationProvider):
    """
    Hugging Face matting model used as a foreground-confidence provider.

    The model is loaded on first use unless one is injected.
    """

    name = "birefnet"

    def __init__(
        self,
        hf_repo: str = BIREFNET_REPO,
        *,
        model: Optional[torch.nn.Module] = None,
        device: Optional[torch.device] = None,
        target_size: int = TARGET_SIZE,
    ):
        self.hf_repo = hf_repo
        self.target_size = target_size
        self._model = model
        self._device = device
        self._lock = threading.Lock()

    def _get_model(self):
        if self._device is None:
            self._device = get_device()
        if self._model is None:
            self._model = load_birefnet_hf(self.hf_repo, device=self._device)
        return self._model, self._device

    def predict(self, pixels: PixelBuffer) -> ConfidenceBuffer:
        padded, meta = resize_with_padding(pixels.rgb(), target_size=self.target_size)
        x = normalize(padded)
        with self._lock:
            model, device = self._get_model()
            matte_square = predict_matte(model, x, device)
        matte = restore_mask_to_original(matte_square, meta)
        return ConfidenceBuffer.from_matte(matte)

    def close(self) -> None:
        with self._lock:
            self._model = None
