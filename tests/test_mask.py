import unittest

import numpy as np

from cutout.buffers import ConfidenceBuffer
from cutout.config import DEFAULT_CUTOFF
from cutout.errors import DimensionMismatch
from cutout.mask import threshold


class TestThreshold(unittest.TestCase):
    def _conf(self, values, w, h) -> ConfidenceBuffer:
        return ConfidenceBuffer(width=w, height=h, values=np.asarray(values, dtype=np.float32))

    def test_opaque_iff_strictly_greater(self):
        rng = np.random.default_rng(7)
        values = rng.random(40 * 30, dtype=np.float32)
        # sprinkle exact hits on the cutoffs we test below
        values[::17] = np.float32(0.25)
        values[::19] = np.float32(0.4)
        conf = self._conf(values, 40, 30)
        for cutoff in (0.0, 0.25, 0.4, 0.5, 0.999, 1.0):
            mask = threshold(conf, cutoff)
            expected = values > np.float32(cutoff)
            np.testing.assert_array_equal(mask.opaque, expected)

    def test_value_equal_to_cutoff_is_background(self):
        conf = self._conf([0.4, 0.41, 0.3999], 3, 1)
        mask = threshold(conf, 0.4)
        self.assertEqual(mask.opaque.tolist(), [False, True, False])

    def test_default_cutoff_is_point_four(self):
        self.assertEqual(DEFAULT_CUTOFF, 0.4)
        conf = self._conf([0.9, 0.1, 0.5, 0.39], 2, 2)
        self.assertEqual(threshold(conf).opaque.tolist(), [True, False, True, False])

    def test_extreme_cutoffs(self):
        conf = self._conf([0.0, 0.5, 1.0], 3, 1)
        self.assertEqual(threshold(conf, 0.0).opaque.tolist(), [False, True, True])
        self.assertEqual(threshold(conf, 1.0).opaque.tolist(), [False, False, False])

    def test_mask_keeps_dimensions(self):
        conf = self._conf(np.zeros(12), 4, 3)
        mask = threshold(conf)
        self.assertEqual((mask.width, mask.height), (4, 3))
        self.assertEqual(mask.opaque.shape, (12,))

    def test_truncated_confidence_raises(self):
        conf = self._conf([0.9, 0.9, 0.9], 2, 2)
        with self.assertRaises(DimensionMismatch):
            threshold(conf)

    def test_oversized_confidence_raises(self):
        conf = self._conf(np.ones(5), 2, 2)
        with self.assertRaises(DimensionMismatch):
            threshold(conf)

    def test_empty_dimensions_raise(self):
        with self.assertRaises(DimensionMismatch):
            threshold(self._conf([], 0, 0))

    def test_cutoff_out_of_range(self):
        conf = self._conf([0.5], 1, 1)
        for bad in (-0.01, 1.01, float("nan")):
            with self.assertRaises(ValueError):
                threshold(conf, bad)

    def test_pure_and_deterministic(self):
        values = np.linspace(0.0, 1.0, 16, dtype=np.float32)
        conf = self._conf(values, 4, 4)
        a = threshold(conf, 0.4)
        b = threshold(conf, 0.4)
        np.testing.assert_array_equal(a.opaque, b.opaque)
        np.testing.assert_array_equal(conf.values, values)


if __name__ == "__main__":
    unittest.main()
