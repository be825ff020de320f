from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffers import PixelBuffer
from .config import ASSET_DIR, ASSET_EXTENSIONS
from .errors import AssetDecodeFailure

logger = logging.getLogger(__name__)


def pixels_from_image(img: Image.Image) -> PixelBuffer:
    """
    Convert any PIL image (palette, grayscale, RGB, RGBA...) to an RGBA PixelBuffer.
    """
    w, h = img.size
    if w <= 0 or h <= 0:
        raise AssetDecodeFailure(f"Image has no intrinsic size: {(w, h)}")
    rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
    return PixelBuffer.from_array(rgba)


class AssetCatalog:
    """
    Bundled sample images addressed by a stable id (the file stem).
    """

    def __init__(self, root: Optional[Path | str] = None):
        self.root = Path(root) if root is not None else ASSET_DIR

    def _index(self) -> Dict[str, Path]:
        if not self.root.is_dir():
            return {}
        return {
            p.stem: p
            for p in sorted(self.root.iterdir())
            if p.is_file() and p.suffix.lower() in ASSET_EXTENSIONS
        }

    def asset_ids(self) -> List[str]:
        return list(self._index())

    def path_for(self, asset_id: str) -> Path:
        try:
            return self._index()[asset_id]
        except KeyError:
            raise AssetDecodeFailure(f"Unknown asset: {asset_id!r}") from None

    def load(self, asset_id: str) -> PixelBuffer:
        path = self.path_for(asset_id)
        try:
            with Image.open(path) as img:
                img.load()
                buf = pixels_from_image(img)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            raise AssetDecodeFailure(f"Could not decode {path.name}: {e}") from e
        logger.debug("Decoded %s (%dx%d)", asset_id, buf.width, buf.height)
        return buf
