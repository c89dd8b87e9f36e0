import logging

import numpy as np
import pytest

from pywham import cli
from pywham.testsystems import HarmonicUmbrellaTestCase
from pywham.utils import ParameterError
from pywham.utils_for_testing import assert_allclose, write_umbrella_files


@pytest.fixture
def umbrella_files(tmp_path):
    test = HarmonicUmbrellaTestCase(centers=np.linspace(-1.0, 1.0, 9))
    x_kn = test.sample(n_samples=2000, seed=42)
    metadata = write_umbrella_files(tmp_path, x_kn, test.centers, test.Ku)
    yield {"test": test, "metadata": metadata, "output": tmp_path / "pmf.out"}
    # main() installs a handler on the package logger
    logger = logging.getLogger("pywham")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def test_parse_cli():
    config = cli.parse_cli(["-f", "meta.dat", "--min", "-180", "--max", "180", "--bins", "36",
                            "-T", "300", "-c", "-i", "500", "-t", "0.01"])
    assert config.metadata_file == "meta.dat"
    assert config.hist_min == [-180.0]
    assert config.hist_max == [180.0]
    assert config.num_bins == [36]
    assert config.dimens == 1
    assert config.temperature == 300.0
    assert config.cyclic
    assert not config.verbose
    assert config.max_iterations == 500
    assert config.tolerance == 0.01
    assert config.output == "wham.out"


def test_parse_cli_2d():
    config = cli.parse_cli(["-f", "meta.dat", "--min", "0", "0", "--max", "1", "2", "--bins", "10", "20",
                            "-T", "300", "-o", "out.dat", "-v"])
    assert config.dimens == 2
    assert config.num_bins == [10, 20]
    assert config.verbose
    assert config.output == "out.dat"
    assert "bins=[10, 20]" in str(config)


def test_parse_cli_missing_required():
    with pytest.raises(SystemExit):
        cli.parse_cli(["-f", "meta.dat"])


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(hist_max=[1.0, 2.0]),
        dict(hist_min=5.0),
        dict(num_bins=0),
        dict(temperature=0.0),
        dict(tolerance=-1.0),
        dict(max_iterations=0),
    ],
)
def test_config_validate(kwargs):
    options = dict(metadata_file="meta.dat", hist_min=0.0, hist_max=1.0, num_bins=10, temperature=300.0)
    options.update(kwargs)
    with pytest.raises(ParameterError):
        cli.Config(**options).validate()


def test_main(umbrella_files):
    test, output = umbrella_files["test"], umbrella_files["output"]
    status = cli.main(["-f", str(umbrella_files["metadata"]), "--min", "-1.5", "--max", "1.5",
                       "--bins", "30", "-T", "300", "-t", "1e-5", "-o", str(output)])
    assert status == 0
    lines = [line for line in output.read_text().splitlines()]
    assert lines[0] == "# PMF"
    pmf_end = lines.index("# Bias offsets")
    pmf = np.loadtxt(lines[1:pmf_end], ndmin=2)
    offsets = np.loadtxt(lines[pmf_end + 1 :], ndmin=2)
    assert pmf.shape == (30, 3)
    assert offsets.shape == (9, 3)
    assert np.min(pmf[:, 1]) == 0.0
    assert_allclose(np.sum(pmf[:, 2]), 1.0, rtol=1e-6)
    region = test.analytical_pmf(pmf[:, 0]) < 4.0
    error = pmf[region, 1] - test.analytical_pmf(pmf[region, 0])
    assert np.max(np.abs(error - np.mean(error))) < 0.5


def test_main_not_converged_still_writes(umbrella_files):
    output = umbrella_files["output"]
    status = cli.main(["-f", str(umbrella_files["metadata"]), "--min", "-1.5", "--max", "1.5",
                       "--bins", "30", "-T", "300", "-t", "0", "-i", "3", "-o", str(output)])
    assert status == 0
    assert output.exists()


def test_main_errors(umbrella_files, tmp_path):
    output = umbrella_files["output"]
    missing = cli.main(["-f", str(tmp_path / "missing.dat"), "--min", "-1.5", "--max", "1.5",
                        "--bins", "30", "-T", "300", "-o", str(output)])
    assert missing == 1
    bad_range = cli.main(["-f", str(umbrella_files["metadata"]), "--min", "1.5", "--max", "-1.5",
                          "--bins", "30", "-T", "300", "-o", str(output)])
    assert bad_range == 1
    outside = cli.main(["-f", str(umbrella_files["metadata"]), "--min", "10", "--max", "11",
                        "--bins", "30", "-T", "300", "-o", str(output)])
    assert outside == 1
    assert not output.exists()
