# -*- coding: utf-8 -*-
########################
# audio_source.py
########################
# Purpose:
# - Decode an audio file into a mono SampleBuffer for analysis.
#
# Design notes:
# - Multi-channel audio is averaged to mono.
# - Decoding errors are wrapped in AudioLoadError with the file path.
#
########################

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
import soundfile

from analysis_models import SampleBuffer


class AudioLoadError(Exception):
    """Raised when an audio file cannot be read or decoded."""


def to_mono(data: np.ndarray) -> np.ndarray:
    array = np.asarray(data, dtype=np.float32)
    if array.ndim == 1:
        return array
    return array.mean(axis=1, dtype=np.float64).astype(np.float32)


def load_sample_buffer(audio_path: Union[str, Path]) -> SampleBuffer:
    path = Path(audio_path)
    try:
        data, sample_rate = soundfile.read(str(path), dtype="float32", always_2d=False)
    except (RuntimeError, OSError) as exc:
        raise AudioLoadError(f"Failed to decode audio file {path}: {exc}") from exc

    return SampleBuffer(samples=to_mono(data), sample_rate=int(sample_rate))
