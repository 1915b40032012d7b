"""
Tests for seeding and parameter-file helpers.
"""

import numpy as np
import pytest

from facdiff_sim import utils


def test_spawn_seeds_reproducible_and_independent():
    first = [utils.make_rng(s).integers(0, 1_000_000) for s in utils.spawn_seeds(42, 5)]
    second = [utils.make_rng(s).integers(0, 1_000_000) for s in utils.spawn_seeds(42, 5)]
    assert first == second
    assert len(set(first)) > 1


def test_spawn_seeds_accepts_seed_sequence():
    root = np.random.SeedSequence(7)
    children = utils.spawn_seeds(root, 3)
    assert len(children) == 3
    assert all(isinstance(c, np.random.SeedSequence) for c in children)
    with pytest.raises(ValueError):
        utils.spawn_seeds(7, -1)


def test_load_params_json_toml(tmp_path):
    json_path = tmp_path / "p.json"
    json_path.write_text('{"repetitions": 4}')
    assert utils.load_params(json_path) == {"repetitions": 4}

    toml_path = tmp_path / "p.toml"
    toml_path.write_text("repetitions = 4\n")
    assert utils.load_params(toml_path) == {"repetitions": 4}

    bad = tmp_path / "p.yaml"
    bad.write_text("repetitions: 4\n")
    with pytest.raises(ValueError):
        utils.load_params(bad)


def test_write_json_creates_parent(tmp_path):
    path = tmp_path / "a" / "b.json"
    utils.write_json(path, {"x": 1})
    assert utils.load_params(path) == {"x": 1}
