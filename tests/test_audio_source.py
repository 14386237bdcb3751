from __future__ import annotations

import numpy as np
import pytest
import soundfile

import audio_source


def test_stereo_file_is_mixed_to_mono(tmp_path):
    sample_rate = 22050
    left = np.full(1000, 0.5, dtype=np.float32)
    right = np.full(1000, -0.25, dtype=np.float32)
    path = tmp_path / "stereo.wav"
    soundfile.write(str(path), np.column_stack([left, right]), sample_rate, subtype="FLOAT")

    buffer = audio_source.load_sample_buffer(path)

    assert buffer.sample_rate == sample_rate
    assert len(buffer) == 1000
    assert buffer.samples.ndim == 1
    assert np.allclose(buffer.samples, 0.125)
    assert buffer.duration_seconds == pytest.approx(1000 / sample_rate)


def test_mono_file_loads_unchanged(tmp_path):
    samples = np.linspace(-1.0, 1.0, 512, dtype=np.float32)
    path = tmp_path / "mono.wav"
    soundfile.write(str(path), samples, 16000, subtype="FLOAT")

    buffer = audio_source.load_sample_buffer(str(path))

    assert np.allclose(buffer.samples, samples)


def test_missing_file_raises_audio_load_error(tmp_path):
    with pytest.raises(audio_source.AudioLoadError):
        audio_source.load_sample_buffer(tmp_path / "missing.wav")


def test_undecodable_file_raises_audio_load_error(tmp_path):
    path = tmp_path / "notes.wav"
    path.write_text("not audio", encoding="utf-8")
    with pytest.raises(audio_source.AudioLoadError):
        audio_source.load_sample_buffer(path)
