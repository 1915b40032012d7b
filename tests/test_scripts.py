"""
Smoke tests for the command-line scripts.
"""

from scripts import run_single, run_sweep, summarize_results


def test_run_single_prints_counts(capsys):
    code = run_single.main(
        ["--sliding-len", "3", "--num-lines", "4", "--side-length", "10", "--seed", "1"]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "iterations1D" in out
    assert "iterations3D" in out


def test_run_single_rejects_bad_params(capsys):
    code = run_single.main(["--sliding-len", "0", "--num-lines", "20", "--side-length", "10"])
    assert code == 2


def test_run_sweep_then_summarize(tmp_path, capsys):
    out_csv = tmp_path / "results.csv"
    code = run_sweep.main(
        [
            "--sliding-lens", "0", "5",
            "--num-lines", "2",
            "--repetitions", "3",
            "--side-length", "10",
            "--base-seed", "9",
            "--output", str(out_csv),
        ]
    )
    assert code == 0
    assert len(out_csv.read_text().splitlines()) == 1 + 6
    assert (tmp_path / "results.csv.manifest.json").exists()

    capsys.readouterr()
    assert summarize_results.main([str(out_csv)]) == 0
    out = capsys.readouterr().out
    assert "Loaded 6 trials" in out


def test_run_sweep_config_file_with_override(tmp_path):
    cfg = tmp_path / "sweep.toml"
    cfg.write_text(
        "sliding_len_grid = [0]\nnum_lines_grid = [1, 3]\nrepetitions = 2\nside_length = 6\n"
    )
    out_csv = tmp_path / "out.csv"
    code = run_sweep.main(
        ["--config", str(cfg), "--repetitions", "1", "--output", str(out_csv), "--base-seed", "0"]
    )
    assert code == 0
    assert len(out_csv.read_text().splitlines()) == 1 + 2


def test_run_sweep_rejects_bad_config(tmp_path):
    assert run_sweep.main(["--num-lines", "500", "--output", str(tmp_path / "x.csv")]) == 2


def test_summarize_missing_file(tmp_path):
    assert summarize_results.main([str(tmp_path / "nope.csv")]) == 1
