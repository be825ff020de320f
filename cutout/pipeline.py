from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .assets import AssetCatalog
from .buffers import AlphaMask, PixelBuffer
from .composite import composite
from .config import DEFAULT_CUTOFF
from .contracts import RequestReport
from .errors import CutoutError, DimensionMismatch, SegmentationFailure
from .mask import threshold
from .segmentation import SegmentationFailed, SegmentationProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageTimings:
    decode_s: float = 0.0
    segmentation_s: float = 0.0
    threshold_s: float = 0.0
    composite_s: float = 0.0
    total_s: float = 0.0


def _check_cutoff(cutoff: float) -> None:
    if not 0.0 <= float(cutoff) <= 1.0:
        raise ValueError(f"cutoff must be within [0, 1], got {cutoff}")


async def _cut_out(
    original: PixelBuffer,
    provider: SegmentationProvider,
    cutoff: float,
    stages: Dict[str, float],
) -> Tuple[PixelBuffer, AlphaMask]:
    t0 = time.perf_counter()
    outcome = await provider.request_segmentation(original)
    stages["segmentation_s"] = time.perf_counter() - t0
    if isinstance(outcome, SegmentationFailed):
        raise SegmentationFailure(outcome.cause)

    # Everything after the model call is synchronous pixel math.
    t1 = time.perf_counter()
    mask = threshold(outcome.confidence, cutoff)
    stages["threshold_s"] = time.perf_counter() - t1

    t2 = time.perf_counter()
    result = composite(original, mask)
    stages["composite_s"] = time.perf_counter() - t2
    return result, mask


async def remove_background(
    original: PixelBuffer,
    provider: SegmentationProvider,
    *,
    cutoff: float = DEFAULT_CUTOFF,
) -> PixelBuffer:
    """
    Segment -> threshold -> composite for one already-decoded buffer.

    Raises SegmentationFailure or DimensionMismatch; no partial result is returned.
    """
    _check_cutoff(cutoff)
    result, _mask = await _cut_out(original, provider, cutoff, {})
    return result


@dataclass
class CutoutRequest:
    """
    State of one user-triggered "process image" action.

    Each request owns its buffers; nothing here is shared between requests.
    """

    asset_id: str
    status: str = "idle"
    original: Optional[PixelBuffer] = None
    result: Optional[PixelBuffer] = None
    foreground_coverage: float = 0.0
    error_kind: Optional[str] = None
    cause: str = ""
    timings: StageTimings = field(default_factory=StageTimings)

    @property
    def busy(self) -> bool:
        return self.status == "busy"

    def _reset(self) -> None:
        self.original = None
        self.result = None
        self.foreground_coverage = 0.0
        self.error_kind = None
        self.cause = ""
        self.timings = StageTimings()

    def _fail(self, e: CutoutError) -> None:
        self.status = "failed"
        self.error_kind = type(e).__name__
        self.cause = e.cause if isinstance(e, SegmentationFailure) else str(e)

    async def run(
        self,
        catalog: AssetCatalog,
        provider: SegmentationProvider,
        *,
        cutoff: float = DEFAULT_CUTOFF,
    ) -> "CutoutRequest":
        """
        Decode, segment, threshold and composite this request's asset.

        Taxonomy failures are recorded on the request instead of raised. A
        cancelled request records "cancelled", drops any late model result and
        re-raises CancelledError. `busy` is cleared on every path.
        """
        _check_cutoff(cutoff)
        self._reset()
        self.status = "busy"
        logger.info("Processing %s with %s (cutoff=%.3f)", self.asset_id, provider.name, cutoff)

        stages: Dict[str, float] = {}
        t0 = time.perf_counter()
        try:
            t_dec0 = time.perf_counter()
            original = catalog.load(self.asset_id)
            stages["decode_s"] = time.perf_counter() - t_dec0
            self.original = original

            result, mask = await _cut_out(original, provider, cutoff, stages)
        except asyncio.CancelledError:
            self.status = "cancelled"
            self.cause = "cancelled"
            logger.info("Request for %s cancelled", self.asset_id)
            raise
        except DimensionMismatch as e:
            logger.exception("Buffer contract violated for %s", self.asset_id)
            self._fail(e)
        except CutoutError as e:
            logger.warning("Request for %s failed: %s", self.asset_id, e)
            self._fail(e)
        else:
            self.result = result
            self.foreground_coverage = mask.coverage
            self.status = "ready"
        finally:
            if self.status == "busy":
                self.status = "failed"
                self.error_kind = self.error_kind or "UnexpectedError"
            self.timings = StageTimings(total_s=time.perf_counter() - t0, **stages)

        if self.status == "ready":
            logger.info(
                "Processed %s in %.3fs (coverage=%.3f)",
                self.asset_id,
                self.timings.total_s,
                self.foreground_coverage,
            )
        return self

    def report(self) -> RequestReport:
        return RequestReport(
            asset_id=self.asset_id,
            status=self.status,
            error_kind=self.error_kind,
            cause=self.cause,
            width=self.original.width if self.original is not None else 0,
            height=self.original.height if self.original is not None else 0,
            foreground_coverage=self.foreground_coverage,
            timings=asdict(self.timings),
        )


async def process_asset(
    asset_id: str,
    catalog: AssetCatalog,
    provider: SegmentationProvider,
    *,
    cutoff: float = DEFAULT_CUTOFF,
) -> CutoutRequest:
    return await CutoutRequest(asset_id=asset_id).run(catalog, provider, cutoff=cutoff)


async def process_assets(
    asset_ids: Iterable[str],
    catalog: AssetCatalog,
    provider: SegmentationProvider,
    *,
    cutoff: float = DEFAULT_CUTOFF,
) -> List[CutoutRequest]:
    """Run independent requests concurrently; one failure never affects the others."""
    return list(
        await asyncio.gather(
            *(process_asset(a, catalog, provider, cutoff=cutoff) for a in asset_ids)
        )
    )
