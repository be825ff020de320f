from __future__ import annotations

import argparse
import asyncio
import logging
import time
from typing import List

from dotenv import load_dotenv
from tqdm.asyncio import tqdm

from cutout.assets import AssetCatalog
from cutout.config import DEFAULT_BACKEND, DEFAULT_CUTOFF
from cutout.logs import configure_logging
from cutout.pipeline import CutoutRequest, process_asset
from cutout.segmentation import SegmentationProvider, make_provider

logger = logging.getLogger("run")


async def _run_all(
    asset_ids: List[str],
    catalog: AssetCatalog,
    provider: SegmentationProvider,
    cutoff: float,
) -> List[CutoutRequest]:
    tasks = [asyncio.create_task(process_asset(a, catalog, provider, cutoff=cutoff)) for a in asset_ids]
    done: List[CutoutRequest] = []
    for fut in tqdm.as_completed(tasks, total=len(tasks), desc="Processing", unit="img"):
        request = await fut
        print(request.report().model_dump_json())
        done.append(request)
    return done


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Cut the subject out of the bundled sample images.")
    parser.add_argument(
        "--asset",
        action="append",
        dest="assets",
        default=None,
        help="Bundled asset id to process (repeatable). Default: all bundled assets.",
    )
    parser.add_argument(
        "--backend",
        default=DEFAULT_BACKEND,
        type=str,
        help="Segmentation backend: 'mediapipe' (default), 'birefnet' or 'hf:<repo>'.",
    )
    parser.add_argument("--cutoff", default=DEFAULT_CUTOFF, type=float, help="Foreground confidence cutoff in [0, 1].")
    parser.add_argument("--log-level", default="INFO", type=str, help="Python logging level.")
    args = parser.parse_args()

    configure_logging(args.log_level)
    if not 0.0 <= args.cutoff <= 1.0:
        parser.error(f"--cutoff must be within [0, 1], got {args.cutoff}")

    catalog = AssetCatalog()
    asset_ids = args.assets or catalog.asset_ids()
    if not asset_ids:
        print(f"No images found under {catalog.root}")
        return 0

    provider = make_provider(args.backend)
    t0 = time.perf_counter()
    try:
        requests = asyncio.run(_run_all(asset_ids, catalog, provider, args.cutoff))
    finally:
        provider.close()
    t1 = time.perf_counter()

    failed = [r for r in requests if r.status != "ready"]
    logger.info("Done. %d images in %.2fs (%d failed)", len(requests), t1 - t0, len(failed))
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
