# -*- coding: utf-8 -*-
########################
# analysis_models.py
########################
# Purpose:
# - Data models for the audio analysis pipeline.
# - SampleBuffer in, FluxSample series in the middle, OnsetSet out.
#
# Design notes:
# - No Qt usage. Plain dataclasses and numpy arrays.
# - SampleBuffer samples are copied once and marked read-only.
# - Band edges are fixed. Anything at or above 8 kHz is not assigned to a band.
#
########################
# Interfaces:
# Public enums:
# - class Band(str, enum.Enum): BASS | MID_LOW | MID_HIGH | HIGH
#
# Public dataclasses:
# - SampleBuffer(samples: np.ndarray, sample_rate: int)
# - BandEnergy(bass: float, mid_low: float, mid_high: float, high: float)
# - FluxSample(time_seconds: float, flux: float)
# - OnsetSet(bass: tuple, mid_low: tuple, mid_high: tuple, high: tuple)
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Dict, Sequence, Tuple

import numpy as np


class Band(str, enum.Enum):
    BASS = "bass"
    MID_LOW = "mid_low"
    MID_HIGH = "mid_high"
    HIGH = "high"


# (low_hz inclusive, high_hz exclusive)
BAND_RANGES_HZ: Dict[Band, Tuple[float, float]] = {
    Band.BASS: (0.0, 150.0),
    Band.MID_LOW: (150.0, 1000.0),
    Band.MID_HIGH: (1000.0, 4000.0),
    Band.HIGH: (4000.0, 8000.0),
}


@dataclass(frozen=True)
class SampleBuffer:
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate!r}")
        array = np.array(self.samples, dtype=np.float32).reshape(-1)
        array.setflags(write=False)
        object.__setattr__(self, "samples", array)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_seconds(self) -> float:
        return float(len(self)) / float(self.sample_rate)

    def is_empty(self) -> bool:
        return len(self) == 0


@dataclass(frozen=True)
class BandEnergy:
    bass: float = 0.0
    mid_low: float = 0.0
    mid_high: float = 0.0
    high: float = 0.0

    def value(self, band: Band) -> float:
        return float(getattr(self, Band(band).value))


@dataclass(frozen=True)
class FluxSample:
    time_seconds: float
    flux: float


@dataclass(frozen=True)
class OnsetSet:
    bass: Tuple[float, ...] = field(default_factory=tuple)
    mid_low: Tuple[float, ...] = field(default_factory=tuple)
    mid_high: Tuple[float, ...] = field(default_factory=tuple)
    high: Tuple[float, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "OnsetSet":
        return cls()

    @classmethod
    def from_mapping(cls, mapping: Dict[Band, Sequence[float]]) -> "OnsetSet":
        values = {Band(band).value: tuple(float(t) for t in times) for band, times in mapping.items()}
        return cls(**values)

    def times_for(self, band: Band) -> Tuple[float, ...]:
        return tuple(getattr(self, Band(band).value))

    def total_onsets(self) -> int:
        return sum(len(self.times_for(band)) for band in Band)

    def as_dict(self) -> Dict[str, list]:
        return {band.value: list(self.times_for(band)) for band in Band}
