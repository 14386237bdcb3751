from __future__ import annotations

import json

import pytest

import config as config_module


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    for name in (
        "BEATLANE_CONFIG_PATH",
        "BEATLANE_CHART_SEED",
        "BEATLANE_CHART_DIFFICULTY_LEVEL",
        "BEATLANE_JUDGE_MANUAL_OFFSET_SECONDS",
        "BEATLANE_JUDGE_END_GRACE_SECONDS",
        "BEATLANE_ANALYSIS_PROGRESS_INTERVAL_FRAMES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_default_config_candidates", lambda: [tmp_path / "absent.json"])


def _write(tmp_path, payload):
    path = tmp_path / "beatlane_config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_missing_file_means_defaults():
    config, path = config_module.load_config()

    assert path is None
    assert config.analysis.fft_size == 1024
    assert config.analysis.hop_size == 512
    assert config.analysis.min_interval_seconds == {"bass": 0.12, "mid_low": 0.10, "mid_high": 0.10, "high": 0.08}
    assert config.chart.seed is None
    assert (config.judge.perfect_seconds, config.judge.great_seconds, config.judge.good_seconds) == (0.05, 0.10, 0.15)
    assert config.judge.manual_offset_seconds == 0.05
    assert config.judge.end_grace_seconds == 0.5


def test_file_values_are_loaded(tmp_path):
    path = _write(
        tmp_path,
        {"chart": {"seed": 99}, "analysis": {"min_interval_seconds": {"HIGH": 0.05}}},
    )

    config, resolved = config_module.load_config(path)

    assert resolved == path
    assert config.chart.seed == 99
    assert config.analysis.min_interval_seconds["high"] == 0.05
    assert config.analysis.min_interval_seconds["bass"] == 0.12


def test_config_path_environment_variable(monkeypatch, tmp_path):
    path = _write(tmp_path, {"judge": {"end_grace_seconds": 1.0}})
    monkeypatch.setenv("BEATLANE_CONFIG_PATH", str(path))

    config, resolved = config_module.load_config()

    assert resolved == path
    assert config.judge.end_grace_seconds == 1.0


def test_environment_overrides_win_over_the_file(monkeypatch, tmp_path):
    path = _write(tmp_path, {"chart": {"seed": 1}})
    monkeypatch.setenv("BEATLANE_CHART_SEED", "42")
    monkeypatch.setenv("BEATLANE_JUDGE_MANUAL_OFFSET_SECONDS", "0.0")
    monkeypatch.setenv("BEATLANE_ANALYSIS_PROGRESS_INTERVAL_FRAMES", "not-a-number")

    config, _ = config_module.load_config(path)

    assert config.chart.seed == 42
    assert config.judge.manual_offset_seconds == 0.0
    assert config.analysis.progress_interval_frames == 200


def test_window_order_is_validated(tmp_path):
    path = _write(tmp_path, {"judge": {"perfect_seconds": 0.2}})
    with pytest.raises(ValueError):
        config_module.load_config(path)


def test_fft_size_must_be_a_power_of_two(tmp_path):
    path = _write(tmp_path, {"analysis": {"fft_size": 1000}})
    with pytest.raises(ValueError):
        config_module.load_config(path)


def test_unknown_band_is_rejected(tmp_path):
    path = _write(tmp_path, {"analysis": {"min_interval_seconds": {"treble": 0.1}}})
    with pytest.raises(ValueError):
        config_module.load_config(path)


def test_invalid_json_is_reported(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        config_module.load_config(path)


def test_non_object_root_is_reported(tmp_path):
    path = _write(tmp_path, [1, 2, 3])
    with pytest.raises(ValueError):
        config_module.load_config(path)
