import numpy as np
import pytest

from pywham import io
from pywham.cli import Config
from pywham.constants import k_B
from pywham.testsystems import HarmonicUmbrellaTestCase
from pywham.utils import DataError
from pywham.utils_for_testing import assert_allclose, assert_equal, two_window_dataset, write_umbrella_files


def read_sections(filename):
    """Split a results file into its PMF and bias offset tables."""
    sections = {}
    name = None
    for line in open(filename):
        if line.startswith("# PMF"):
            name = "pmf"
            sections[name] = []
        elif line.startswith("# Bias offsets"):
            name = "offsets"
            sections[name] = []
        elif not line.startswith("#"):
            sections[name].append(line)
    return {key: np.loadtxt(lines, ndmin=2) for key, lines in sections.items()}


def test_read_metadata(tmp_path):
    metadata = tmp_path / "meta.dat"
    metadata.write_text(
        "# comment line\n"
        "\n"
        "w0.dat  -1.5  100.0\n"
        "/abs/w1.dat 0.0 200.0 10.0 300\n"
    )
    windows = io.read_metadata(metadata)
    assert len(windows) == 2
    assert windows[0].path == tmp_path / "w0.dat"
    assert str(windows[1].path) == "/abs/w1.dat"
    assert_equal(windows[0].center, [-1.5])
    assert_equal(windows[0].force_constant, [100.0])
    assert_equal(windows[1].force_constant, [200.0])


def test_read_metadata_2d(tmp_path):
    metadata = tmp_path / "meta.dat"
    metadata.write_text("w0.dat 1.0 2.0 10.0 20.0\n")
    (window,) = io.read_metadata(metadata, dimens=2)
    assert_equal(window.center, [1.0, 2.0])
    assert_equal(window.force_constant, [10.0, 20.0])


@pytest.mark.parametrize("content", ["w0.dat 1.0\n", "w0.dat one 10.0\n", "# nothing\n\n"])
def test_read_metadata_invalid(tmp_path, content):
    metadata = tmp_path / "meta.dat"
    metadata.write_text(content)
    with pytest.raises(DataError):
        io.read_metadata(metadata)


def test_read_timeseries(tmp_path):
    timeseries = tmp_path / "w0.dat"
    timeseries.write_text(
        "# time x y\n"
        "@ xmgrace style header\n"
        "0.0 1.5 2.5\n"
        "\n"
        "   # indented comment\n"
        "\t@ indented header\n"
        "1.0 1.75 3.0 99.0\n"
    )
    x_n = io.read_timeseries(timeseries)
    assert_equal(x_n, [[1.5], [1.75]])
    x_n = io.read_timeseries(timeseries, dimens=2)
    assert_equal(x_n, [[1.5, 2.5], [1.75, 3.0]])


def test_read_timeseries_invalid(tmp_path):
    timeseries = tmp_path / "w0.dat"
    timeseries.write_text("0.0 1.5\n1.0\n")
    with pytest.raises(DataError):
        io.read_timeseries(timeseries)


def test_read_timeseries_empty(tmp_path):
    timeseries = tmp_path / "w0.dat"
    timeseries.write_text("# no samples\n")
    assert io.read_timeseries(timeseries).shape == (0, 1)


def test_read_data(tmp_path):
    x_kn = [np.array([0.5, 1.5, 1.6, 9.0]), np.array([2.5, 2.5, 3.5])]
    metadata = write_umbrella_files(tmp_path, x_kn, [1.0, 3.0], [10.0, 20.0])
    config = Config(str(metadata), 0.0, 5.0, 5, 300.0)
    dataset = io.read_data(config)
    assert dataset.num_windows == 2
    assert_allclose(dataset.kT, 300.0 * k_B)
    assert_equal(dataset.num_points, [4.0, 3.0])
    assert_equal(dataset.histograms[0].bins, [1.0, 2.0, 0.0, 0.0, 0.0])
    assert_equal(dataset.histograms[1].bins, [0.0, 0.0, 2.0, 1.0, 0.0])
    assert_equal(dataset.center[:, 0], [1.0, 3.0])
    assert_equal(dataset.force_constant[:, 0], [10.0, 20.0])


def test_read_data_outside_boundaries(tmp_path):
    metadata = write_umbrella_files(tmp_path, [np.array([10.0, 11.0])], [10.0], [10.0])
    with pytest.raises(DataError, match="No datapoints"):
        io.read_data(Config(str(metadata), 0.0, 5.0, 5, 300.0))


def test_read_data_missing_file(tmp_path):
    metadata = tmp_path / "meta.dat"
    metadata.write_text("missing.dat 1.0 10.0\n")
    with pytest.raises(OSError):
        io.read_data(Config(str(metadata), 0.0, 5.0, 5, 300.0))


def test_write_results(tmp_path):
    dataset = two_window_dataset()
    P = np.array([0.0, 0.1, 0.2, 0.3, 0.4])
    free_energy = np.array([np.inf, 4.0, 3.0, 1.0, 0.0])
    F = np.array([1.0, 2.0])
    F_prev = np.array([1.0, 1.0])
    filename = tmp_path / "wham.out"
    io.write_results(filename, dataset, free_energy, P, F=F, F_prev=F_prev)

    tables = read_sections(filename)
    assert_allclose(tables["pmf"][:, 0], [0.5, 1.5, 2.5, 3.5, 4.5])
    assert_equal(tables["pmf"][:, 1], free_energy)
    assert_allclose(tables["pmf"][:, 2], P)
    assert_equal(tables["offsets"][:, 0], [0, 1])
    # F = exp(f / kT), so F = 2 is f = kT ln 2
    assert_allclose(tables["offsets"][:, 1], [0.0, dataset.kT * np.log(2.0)], atol=1e-7)
    assert_allclose(tables["offsets"][:, 2], [0.0, dataset.kT * np.log(2.0)], atol=1e-7)


def test_write_results_pmf_only(tmp_path):
    dataset = two_window_dataset()
    filename = tmp_path / "wham.out"
    io.write_results(filename, dataset, np.zeros(5), np.full(5, 0.2))
    text = filename.read_text()
    assert "# PMF" in text
    assert "# Bias offsets" not in text


def test_dump_state(caplog):
    dataset = two_window_dataset()
    with caplog.at_level("INFO", logger="pywham"):
        io.dump_state(dataset, np.ones(2), np.ones(2), np.full(5, 0.2), np.zeros(5))
    assert "# PMF" in caplog.text
    assert "# Bias offsets" in caplog.text


def test_read_data_harmonic_roundtrip(tmp_path):
    test = HarmonicUmbrellaTestCase(centers=[-0.5, 0.0, 0.5])
    x_kn = test.sample(n_samples=100, seed=7)
    metadata = write_umbrella_files(tmp_path, x_kn, test.centers, test.Ku)
    dataset = io.read_data(Config(str(metadata), -2.5, 2.5, 50, test.temperature))
    reference = test.dataset(n_samples=100, seed=7)
    for h, h_ref in zip(dataset.histograms, reference.histograms):
        assert h.num_points == h_ref.num_points
        assert_equal(h.bins, h_ref.bins)
