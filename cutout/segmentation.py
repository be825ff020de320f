from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np

from .buffers import ConfidenceBuffer, PixelBuffer
from .config import BIREFNET_REPO, SELFIE_MODEL_SELECTION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentationSucceeded:
    confidence: ConfidenceBuffer
    ok: bool = True


@dataclass(frozen=True)
class SegmentationFailed:
    cause: str
    ok: bool = False


SegmentationResult = Union[SegmentationSucceeded, SegmentationFailed]


class SegmentationProvider(ABC):
    """
    Black-box foreground model.

    Subclasses implement the blocking `predict`; callers only ever await
    `request_segmentation`, which resolves exactly once with a tagged result.
    """

    name = "provider"

    @abstractmethod
    def predict(self, pixels: PixelBuffer) -> ConfidenceBuffer:
        """Return one float32 confidence per pixel, row-major."""

    async def request_segmentation(self, pixels: PixelBuffer) -> SegmentationResult:
        try:
            confidence = await asyncio.to_thread(self.predict, pixels)
        except Exception as e:  # noqa: BLE001 - model errors become a failed result
            cause = f"{type(e).__name__}: {e}"
            logger.warning("%s segmentation failed: %s", self.name, cause)
            return SegmentationFailed(cause=cause)
        return SegmentationSucceeded(confidence=confidence)

    def close(self) -> None:
        return None


class SelfieSegmenter(SegmentationProvider):
    """
    MediaPipe selfie segmentation, single-image use.

    The graph is created on first use and is not re-entrant, so concurrent
    requests take turns on it.
    """

    name = "mediapipe"

    def __init__(self, model_selection: int = SELFIE_MODEL_SELECTION):
        if model_selection not in (0, 1):
            raise ValueError(f"model_selection must be 0 or 1, got {model_selection}")
        self.model_selection = model_selection
        self._segmenter: Optional[Any] = None
        self._lock = threading.Lock()

    def _get_segmenter(self) -> Any:
        if self._segmenter is None:
            import mediapipe as mp

            if not hasattr(mp, "solutions"):
                raise RuntimeError(
                    f"mediapipe {getattr(mp, '__version__', '?')} has no selfie_segmentation solution. "
                    "Run: pip install 'mediapipe>=0.10.5,<0.10.30'"
                )
            self._segmenter = mp.solutions.selfie_segmentation.SelfieSegmentation(
                model_selection=self.model_selection
            )
        return self._segmenter

    def predict(self, pixels: PixelBuffer) -> ConfidenceBuffer:
        rgb = np.ascontiguousarray(pixels.rgb())
        with self._lock:
            res = self._get_segmenter().process(rgb)
        if res is None or res.segmentation_mask is None:
            raise RuntimeError("Model returned no segmentation mask.")
        matte = np.clip(np.asarray(res.segmentation_mask, dtype=np.float32), 0.0, 1.0)
        return ConfidenceBuffer.from_matte(matte)

    def close(self) -> None:
        with self._lock:
            if self._segmenter is not None:
                self._segmenter.close()
                self._segmenter = None


def make_provider(backend: str) -> SegmentationProvider:
    """
    Build a provider by name: "mediapipe", "birefnet" or "hf:<repo>".
    """
    if backend == "mediapipe":
        return SelfieSegmenter()
    if backend == "birefnet" or backend.startswith("hf:"):
        from .inference import BiRefNetSegmenter

        repo = backend[len("hf:") :] if backend.startswith("hf:") else BIREFNET_REPO
        return BiRefNetSegmenter(hf_repo=repo)
    raise ValueError(f"Unknown segmentation backend: {backend!r}")
