"""
Tests for the parameter sweep and its CSV output.
"""

import json
import os
import time
from pathlib import Path

import pytest

from facdiff_sim import sweep
from facdiff_sim.errors import InvariantViolation
from facdiff_sim.sweep import (
    CSV_HEADER,
    SweepConfig,
    load_sweep_config,
    manifest_path_for,
    run_sweep,
    write_manifest,
    write_results_csv,
)


def test_csv_grid_scenario(tmp_path):
    """{0, 10} x {1, 10} x 5 repetitions -> header plus 20 integer rows."""
    config = SweepConfig(
        sliding_len_grid=(0, 10),
        num_lines_grid=(1, 10),
        repetitions=5,
        base_seed=1,
        output=str(tmp_path / "results.csv"),
    )
    result = run_sweep(config)
    assert result.ok
    path = write_results_csv(config.output, result.rows)

    lines = path.read_text().splitlines()
    assert lines[0] == "avgSlidingLen,numLines,iterations1D,iterations3D"
    assert len(lines) == 21
    for line in lines[1:]:
        fields = line.split(",")
        assert len(fields) == 4
        values = [int(v) for v in fields]
        assert all(v >= 0 for v in values)
        if values[0] == 0:
            assert values[2] == 0

    configs = [tuple(int(v) for v in line.split(",")[:2]) for line in lines[1:]]
    assert configs == [(0, 1)] * 5 + [(0, 10)] * 5 + [(10, 1)] * 5 + [(10, 10)] * 5


def test_parallel_sweep_matches_serial():
    """Per-trial child seeds make the result independent of scheduling."""
    kwargs = dict(
        sliding_len_grid=(0, 4),
        num_lines_grid=(2, 5),
        repetitions=3,
        side_length=12,
        base_seed=123,
    )
    serial = run_sweep(SweepConfig(jobs=1, **kwargs))
    parallel = run_sweep(SweepConfig(jobs=2, **kwargs))
    assert serial.rows == parallel.rows
    assert serial.entropy == parallel.entropy == 123


def test_progress_callback_counts_every_trial():
    seen = []
    config = SweepConfig(
        sliding_len_grid=(0,), num_lines_grid=(3,), repetitions=4, side_length=8, base_seed=0
    )
    run_sweep(config, progress=lambda done, total: seen.append((done, total)))
    assert seen == [(1, 4), (2, 4), (3, 4), (4, 4)]


def test_iteration_cap_failures_are_not_written(tmp_path):
    config = SweepConfig(
        sliding_len_grid=(0,),
        num_lines_grid=(1,),
        repetitions=10,
        side_length=10,
        max_iterations=0,
        base_seed=5,
        output=str(tmp_path / "capped.csv"),
    )
    result = run_sweep(config)
    assert not result.ok
    assert len(result.rows) + len(result.failures) == 10
    assert all(row[2] == 0 and row[3] == 0 for row in result.rows)

    manifest = write_manifest(config, result)
    assert manifest == manifest_path_for(config.output)
    data = json.loads(manifest.read_text())
    assert data["results"]["failed"] == len(result.failures)
    assert data["results"]["total"] == 10
    assert data["config"]["num_lines_grid"] == [1]


def test_sweep_config_validation():
    with pytest.raises(ValueError):
        SweepConfig(num_lines_grid=(1, 101))
    with pytest.raises(ValueError):
        SweepConfig(sliding_len_grid=(-1,))
    with pytest.raises(ValueError):
        SweepConfig(repetitions=0)
    with pytest.raises(ValueError):
        SweepConfig(jobs=0)
    with pytest.raises(ValueError):
        SweepConfig(sliding_len_grid=())
    with pytest.raises(ValueError):
        SweepConfig.from_dict({"repetitions": 2, "colour": "blue"})


def test_default_grid_matches_reference_sweep():
    config = SweepConfig()
    assert len(config.configurations) == 18 * 6
    assert config.total_trials == 18 * 6 * 2048
    assert config.configurations[0] == (0, 1)
    assert config.configurations[-1] == (1300, 100)


def test_load_sweep_config_json_and_toml(tmp_path):
    json_path = tmp_path / "sweep.json"
    json_path.write_text(
        json.dumps({"sliding_len_grid": [0, 5], "num_lines_grid": [1], "repetitions": 3})
    )
    config = load_sweep_config(json_path)
    assert config.sliding_len_grid == (0, 5)
    assert config.repetitions == 3

    toml_path = tmp_path / "sweep.toml"
    toml_path.write_text(
        'sliding_len_grid = [10]\nnum_lines_grid = [10, 30]\nrepetitions = 7\njobs = 2\n'
    )
    config = load_sweep_config(toml_path)
    assert config.configurations == [(10, 10), (10, 30)]
    assert config.jobs == 2


def test_write_results_csv_creates_parent(tmp_path):
    path = write_results_csv(tmp_path / "nested" / "out.csv", [(0, 1, 0, 9)])
    assert path.read_text() == ",".join(CSV_HEADER) + "\n0,1,0,9\n"


def _failing_or_slow_trial(params, seed):
    """Stand-in worker: sliding-free trials break an invariant, the rest are slow."""
    if params.avg_sliding_len == 0:
        raise InvariantViolation("walk ended off a rail")
    marker_dir = Path(os.environ["FACDIFF_TEST_MARKERS"])
    time.sleep(1.0)
    (marker_dir / f"{os.getpid()}-{time.monotonic_ns()}").touch()
    raise AssertionError("queued trial should have been cancelled")


def test_parallel_sweep_aborts_on_invariant_violation(tmp_path, monkeypatch):
    """Queued trials are cancelled once a worker reports a broken invariant."""
    marker_dir = tmp_path / "markers"
    marker_dir.mkdir()
    monkeypatch.setenv("FACDIFF_TEST_MARKERS", str(marker_dir))
    monkeypatch.setattr(sweep, "run_single_trial", _failing_or_slow_trial)

    config = SweepConfig(
        sliding_len_grid=(0, 5),
        num_lines_grid=(1,),
        repetitions=8,
        side_length=10,
        jobs=2,
        base_seed=0,
    )
    start = time.monotonic()
    with pytest.raises(InvariantViolation):
        run_sweep(config)
    elapsed = time.monotonic() - start

    # draining the eight one-second trials on two workers takes at least 4 s
    assert elapsed < 3.0, f"sweep took {elapsed:.2f} s to abort"
    assert len(list(marker_dir.iterdir())) < 8
