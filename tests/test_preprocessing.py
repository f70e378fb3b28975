"""Tests for baseline removal, spline upsampling and edge suppression."""
from __future__ import annotations

import numpy as np
import pytest

from wavecat.config import CategorizationConfiguration
from wavecat.preprocessing import preprocess, subtract_baseline, suppress_edges, upsample


class TestSubtractBaseline:

    def test_mean_of_first_samples_removed_per_channel(self):
        w = np.array([[1.0, 10.0], [2.0, 10.0], [3.0, 10.0], [4.0, 11.0]])
        out = subtract_baseline(w, 3)
        np.testing.assert_allclose(out[:, 0], [-1.0, 0.0, 1.0, 2.0])
        np.testing.assert_allclose(out[:, 1], [0.0, 0.0, 0.0, 1.0])

    def test_window_clamped_to_signal_length(self):
        w = np.array([[1.0], [3.0]])
        np.testing.assert_allclose(subtract_baseline(w, 10)[:, 0], [-1.0, 1.0])

    def test_window_of_zero_uses_first_sample(self):
        w = np.array([[1.0], [3.0], [5.0]])
        np.testing.assert_allclose(subtract_baseline(w, 0)[:, 0], [0.0, 2.0, 4.0])

    def test_nan_in_baseline_propagates(self):
        w = np.array([[np.nan], [1.0], [2.0], [3.0]])
        assert np.all(np.isnan(subtract_baseline(w, 3)))


class TestUpsample:

    def test_output_shape(self):
        x = np.random.default_rng(0).normal(size=(20, 3))
        assert upsample(x, 4).shape == (80, 3)

    def test_original_samples_are_nodes(self):
        x = np.random.default_rng(1).normal(size=(20, 2))
        np.testing.assert_allclose(upsample(x, 4)[::4], x, atol=1e-12)

    def test_linear_signal_reproduced_exactly(self):
        x = np.arange(8, dtype=np.float64).reshape(-1, 1)
        out = upsample(x, 4)
        np.testing.assert_allclose(out[:, 0], np.arange(32) / 4.0, atol=1e-12)

    def test_channels_interpolated_independently(self):
        rng = np.random.default_rng(2)
        x = rng.normal(size=(16, 2))
        together = upsample(x, 4)
        alone = upsample(x[:, [1]], 4)
        np.testing.assert_allclose(together[:, 1], alone[:, 0])

    def test_channel_without_finite_samples_is_nan(self):
        x = np.ones((10, 2))
        x[:, 1] = np.nan
        x[3, 1] = 1.0
        out = upsample(x, 4)
        assert np.all(np.isfinite(out[:, 0]))
        assert np.all(np.isnan(out[:, 1]))

    def test_factor_one_is_identity(self):
        x = np.random.default_rng(3).normal(size=(12, 2))
        np.testing.assert_allclose(upsample(x, 1), x, atol=1e-12)


class TestSuppressEdges:

    def test_edges_blanked(self):
        x = np.ones((40, 2))
        out = suppress_edges(x, 4)
        assert np.all(np.isnan(out[:4]))
        assert np.all(np.isnan(out[-4:]))
        assert np.all(out[4:-4] == 1.0)

    def test_input_not_modified(self):
        x = np.ones((40, 1))
        suppress_edges(x, 4)
        assert np.all(x == 1.0)


class TestPreprocess:

    def test_sd_not_baseline_corrected(self):
        config = CategorizationConfiguration()
        w = np.full((16, 2), 7.0)
        s = np.full((16, 2), 2.0)
        w2, s2 = preprocess(w, s, config)

        assert w2.shape == s2.shape == (64, 2)
        finite = slice(4, -4)
        np.testing.assert_allclose(w2[finite], 0.0, atol=1e-12)
        np.testing.assert_allclose(s2[finite], 2.0, atol=1e-12)

    @pytest.mark.parametrize("factor", [1, 2, 4, 8])
    def test_edges_follow_upsampling_factor(self, factor: int):
        config = CategorizationConfiguration(upsampling_factor=factor)
        w = np.random.default_rng(4).normal(size=(16, 1))
        w2, s2 = preprocess(w, np.abs(w) + 1.0, config)
        assert w2.shape == (16 * factor, 1)
        assert np.all(np.isnan(w2[:factor])) and np.all(np.isnan(w2[-factor:]))
        assert np.all(np.isnan(s2[:factor])) and np.all(np.isnan(s2[-factor:]))
        assert np.all(np.isfinite(w2[factor:-factor]))
