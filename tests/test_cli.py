"""Tests for the command-line entry point and configuration handling."""
from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from wavecat.cli import create_config_from_args, main, parse_arguments
from wavecat.config import (
    DEFAULT_THRESHOLDS,
    CategorizationConfiguration,
    DataFormat,
    resolve_thresholds,
)
from wavecat.types import CategorizationResults
from tests.fixtures.waveform_generators import make_biphasic, make_peak_only, make_unit


@pytest.fixture
def npz_file(tmp_path):
    units = [
        make_unit([make_biphasic(3.0, -4.0), make_peak_only(2.0)]),
        make_unit([make_peak_only(5.0), make_peak_only(1.0)]),
    ]
    path = tmp_path / 'units.npz'
    np.savez(path, mean=np.stack([m for m, _ in units]), sd=np.stack([s for _, s in units]))
    return path


class TestResolveThresholds:

    def test_none_gives_defaults(self):
        assert resolve_thresholds(None) == DEFAULT_THRESHOLDS

    def test_valid_vector_kept(self):
        assert resolve_thresholds([1, -2, 3, -4]) == (1.0, -2.0, 3.0, -4.0)

    def test_matrix_of_four_values_kept(self):
        assert resolve_thresholds(np.array([[1.0, -2.0], [3.0, -4.0]])) == (1.0, -2.0, 3.0, -4.0)

    @pytest.mark.parametrize("thresholds", [[], [1.0], [1.0, 2.0, 3.0, 4.0, 5.0]])
    def test_wrong_length_gives_defaults(self, thresholds):
        assert resolve_thresholds(thresholds) == DEFAULT_THRESHOLDS

    def test_config_is_frozen(self):
        config = CategorizationConfiguration()
        with pytest.raises(AttributeError):
            config.upsampling_factor = 8


class TestArguments:

    def test_defaults(self, npz_file):
        args = parse_arguments(['--data', str(npz_file)])
        config = create_config_from_args(args)
        assert config.thresholds == DEFAULT_THRESHOLDS
        assert config.data_format == DataFormat.AUTO
        assert config.channels_first
        assert config.n_jobs == 1

    def test_thresholds_and_layout(self, npz_file):
        args = parse_arguments([
            '--data', str(npz_file), '--samples-first',
            '--thresholds', '1', '-1', '2', '-2', '--data-format', 'npz',
        ])
        config = create_config_from_args(args)
        assert config.thresholds == (1.0, -1.0, 2.0, -2.0)
        assert config.data_format == DataFormat.NPZ
        assert not config.channels_first

    def test_missing_data_file(self, tmp_path):
        with pytest.raises(SystemExit):
            parse_arguments(['--data', str(tmp_path / 'missing.npz')])


class TestMain:

    def test_pickle_output(self, npz_file, tmp_path, capsys):
        out = tmp_path / 'results.pkl'
        assert main(['--data', str(npz_file), '--samples-first', '--output', str(out)]) == 0

        results = CategorizationResults.load(str(out))
        assert results.summary()['bip'] == 1
        assert results.summary()['punit'] == 1
        assert "Total units: 2" in capsys.readouterr().out

    def test_csv_output(self, npz_file, tmp_path):
        out = tmp_path / 'results.csv'
        assert main(['--data', str(npz_file), '--samples-first', '--output', str(out)]) == 0
        df = pd.read_csv(out)
        assert len(df) == 4
        assert set(df.columns) >= {'unit', 'channel', 'polarity', 'extremum', 'bpi'}

    def test_mat_output(self, npz_file, tmp_path):
        out = tmp_path / 'results.mat'
        assert main(['--data', str(npz_file), '--samples-first', '--output', str(out)]) == 0
        assert out.exists()

    def test_bad_dataset_returns_error(self, tmp_path, caplog):
        path = tmp_path / 'units.npz'
        np.savez(path, mean=np.zeros((2, 3, 10)))
        with caplog.at_level(logging.ERROR, logger="wavecat"):
            assert main(['--data', str(path), '--output', str(tmp_path / 'r.pkl')]) == 1
        assert "Error during categorization" in caplog.text
