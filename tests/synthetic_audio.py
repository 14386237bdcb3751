from __future__ import annotations

from typing import Sequence

import numpy as np

from analysis_models import SampleBuffer


def bass_hits(
    onset_times: Sequence[float],
    *,
    duration_seconds: float,
    sample_rate: int = 22050,
    frequency_hz: float = 60.0,
    amplitude: float = 0.8,
) -> SampleBuffer:
    """Silence with decaying low sine bursts starting at each onset time."""
    samples = np.zeros(int(duration_seconds * sample_rate), dtype=np.float64)
    burst_length = int(0.08 * sample_rate)
    t = np.arange(burst_length) / float(sample_rate)
    burst = amplitude * np.sin(2.0 * np.pi * frequency_hz * t) * np.exp(-t / 0.02)
    for onset_time in onset_times:
        start = int(onset_time * sample_rate)
        end = min(len(samples), start + burst_length)
        samples[start:end] += burst[: end - start]
    return SampleBuffer(samples=samples, sample_rate=sample_rate)
