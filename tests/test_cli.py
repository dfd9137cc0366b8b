import logging
import re

import numpy as np
import pytest
from click.testing import CliRunner

from sps_fdmt.cli import run_fdmt


@pytest.fixture
def root_logging():
    level = logging.root.level
    handlers = list(logging.root.handlers)
    yield
    logging.root.setLevel(level)
    logging.root.handlers = handlers


def test_command_line_interface():
    """Check the output when only help is requested."""
    runner = CliRunner()
    result = runner.invoke(run_fdmt, ["--help"])
    assert result.exit_code == 0
    assert "Run the FDMT on a block of intensity data" in result.output
    assert re.match(
        r".*-h, --help\s+Show this message and exit.", result.output, re.DOTALL
    )


def test_run_fdmt(tmp_path, monkeypatch, root_logging):
    monkeypatch.chdir(tmp_path)
    data_file = tmp_path / "spectra.npy"
    output_file = tmp_path / "dmt.npz"
    np.save(data_file, np.ones((4, 8)))

    runner = CliRunner()
    result = runner.invoke(
        run_fdmt,
        [
            "--data-file",
            str(data_file),
            "--output-file",
            str(output_file),
            "--f-hi",
            "1500",
            "--f-lo",
            "1400",
            "--t-samp",
            "0.001",
            "--dm-min",
            "0",
            "--dm-max",
            "0",
            "--num-threads",
            "1",
        ],
    )
    assert result.exit_code == 0, result.output

    with np.load(output_file) as dmt:
        assert dmt["dedisp"].shape == (1, 8)
        assert np.all(dmt["dedisp"] == 4)
        assert dmt["y_min"] == 0
        assert dmt["y_max"] == 0
        assert dmt["dms"].tolist() == [0.0]


def test_run_fdmt_time_axis(tmp_path, monkeypatch, root_logging):
    monkeypatch.chdir(tmp_path)
    data = np.random.normal(size=(8, 32))
    np.save(tmp_path / "spectra.npy", data.T)

    runner = CliRunner()
    result = runner.invoke(
        run_fdmt,
        [
            "--data-file",
            str(tmp_path / "spectra.npy"),
            "--output-file",
            str(tmp_path / "dmt.npz"),
            "--config-options",
            '{"fdmt": {"f_hi": 1500.0, "f_lo": 1400.0, "t_samp": 0.001}}',
            "--time-axis",
            "0",
        ],
    )
    assert result.exit_code == 0, result.output

    with np.load(tmp_path / "dmt.npz") as dmt:
        assert dmt["dedisp"].shape[1] == 32
        assert dmt["y_min"] == 0
        assert dmt["dms"].max() >= 200.0


def test_run_fdmt_bad_band(tmp_path, monkeypatch, root_logging):
    monkeypatch.chdir(tmp_path)
    np.save(tmp_path / "spectra.npy", np.ones((4, 8)))
    runner = CliRunner()
    result = runner.invoke(
        run_fdmt,
        [
            "--data-file",
            str(tmp_path / "spectra.npy"),
            "--output-file",
            str(tmp_path / "dmt.npz"),
            "--f-hi",
            "1400",
            "--f-lo",
            "1500",
        ],
    )
    assert result.exit_code != 0
    assert not (tmp_path / "dmt.npz").exists()
