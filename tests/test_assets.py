from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from cutout.assets import AssetCatalog, pixels_from_image
from cutout.errors import AssetDecodeFailure


def test_bundled_assets_decode_to_rgba():
    catalog = AssetCatalog()
    ids = catalog.asset_ids()
    assert {"passport", "portrait", "sample1", "sample2"} <= set(ids)

    buf = catalog.load("portrait")
    assert (buf.width, buf.height) == (48, 64)
    assert buf.pixels.shape == (48 * 64, 4)
    assert np.all(buf.alpha == 255)


def test_asset_ids_are_stable_stems(tmp_path: Path):
    Image.new("RGB", (4, 4), (1, 2, 3)).save(tmp_path / "b.png")
    Image.new("RGB", (4, 4), (1, 2, 3)).save(tmp_path / "a.jpg")
    (tmp_path / "notes.txt").write_text("not an image", encoding="utf-8")

    catalog = AssetCatalog(tmp_path)
    assert catalog.asset_ids() == ["a", "b"]
    assert catalog.path_for("b") == tmp_path / "b.png"


def test_unknown_asset(tmp_path: Path):
    with pytest.raises(AssetDecodeFailure):
        AssetCatalog(tmp_path).load("missing")


def test_missing_root_has_no_assets(tmp_path: Path):
    assert AssetCatalog(tmp_path / "nope").asset_ids() == []


def test_undecodable_asset(tmp_path: Path):
    (tmp_path / "broken.png").write_bytes(b"definitely not a png")
    with pytest.raises(AssetDecodeFailure):
        AssetCatalog(tmp_path).load("broken")


def test_grayscale_and_palette_convert_to_rgba(tmp_path: Path):
    Image.new("L", (3, 2), 90).save(tmp_path / "gray.png")
    buf = AssetCatalog(tmp_path).load("gray")
    assert (buf.width, buf.height) == (3, 2)
    assert buf.pixels.tolist() == [[90, 90, 90, 255]] * 6

    pal = Image.new("P", (2, 2), 0)
    pal.putpalette([10, 20, 30] + [0, 0, 0] * 255)
    assert pixels_from_image(pal).pixels.tolist() == [[10, 20, 30, 255]] * 4


def test_gallery_ships_four_decodable_samples():
    catalog = AssetCatalog()
    assert catalog.asset_ids() == ["passport", "portrait", "sample1", "sample2"]
    for asset_id in catalog.asset_ids():
        buf = catalog.load(asset_id)
        assert (buf.width, buf.height) == (48, 64)
