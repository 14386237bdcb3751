# -*- coding: utf-8 -*-
########################
# band_onset_detector.py
########################
# Purpose:
# - Multi-band spectral flux onset detection from raw mono samples.
# - Produces an OnsetSet with one ordered onset series per band.
#
# Design notes:
# - No Qt usage. numpy only.
# - detect_by_band is a coroutine. It yields to the event loop every
#   progress_interval_frames frames and reports progress at the same point.
#   Those awaits are the only suspension points, so task cancellation lands there.
# - Flux is the half-wave rectified difference against the previous frame only.
# - Peak test is strict on the left and inclusive on the right so a flat
#   plateau fires once.
#
########################
# Interfaces:
# Public functions:
# - band_energies(magnitudes, sample_rate, fft_size) -> BandEnergy
# - spectral_flux(current: BandEnergy, previous: BandEnergy) -> BandEnergy
# - extract_onsets_from_flux(flux_samples, min_interval_seconds, ...) -> list[float]
# - filter_close_onsets(onsets, min_interval_seconds) -> list[float]
# - detect_onsets(samples, sensitivity=1.5) -> list[float]
#
# Public classes:
# - class BandOnsetDetector
#   - __init__(config: AnalysisConfig | None = None)
#   - async detect_by_band(samples, progress=None) -> OnsetSet
#   - detect_by_band_sync(samples, progress=None) -> OnsetSet
#
# Inputs:
# - SampleBuffer from audio_source or any decoding collaborator.
#
# Outputs:
# - OnsetSet consumed by ChartGenerator.
# - Progress fractions in [0, 1] for a progress indicator.
#
########################

from __future__ import annotations

import asyncio
from functools import lru_cache
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from analysis_models import BAND_RANGES_HZ, Band, BandEnergy, FluxSample, OnsetSet, SampleBuffer
import config as config_module
import spectrum


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@lru_cache(maxsize=16)
def _band_masks(sample_rate: int, fft_size: int) -> Tuple[Tuple[Band, np.ndarray], ...]:
    bin_size_hz = float(sample_rate) / float(fft_size)
    frequencies = np.arange(fft_size // 2, dtype=np.float64) * bin_size_hz
    masks = []
    for band in Band:
        low_hz, high_hz = BAND_RANGES_HZ[band]
        mask = (frequencies >= low_hz) & (frequencies < high_hz)
        mask.setflags(write=False)
        masks.append((band, mask))
    return tuple(masks)


def band_energies(magnitudes: np.ndarray, sample_rate: int, fft_size: int) -> BandEnergy:
    values = np.asarray(magnitudes, dtype=np.float64)
    totals = {band.value: float(values[mask].sum()) for band, mask in _band_masks(int(sample_rate), int(fft_size))}
    return BandEnergy(**totals)


def spectral_flux(current: BandEnergy, previous: BandEnergy) -> BandEnergy:
    return BandEnergy(
        bass=max(0.0, current.bass - previous.bass),
        mid_low=max(0.0, current.mid_low - previous.mid_low),
        mid_high=max(0.0, current.mid_high - previous.mid_high),
        high=max(0.0, current.high - previous.high),
    )


def filter_close_onsets(onsets: Sequence[float], min_interval_seconds: float) -> List[float]:
    if not onsets:
        return []

    filtered = [float(onsets[0])]
    for onset_time in onsets[1:]:
        if float(onset_time) - filtered[-1] >= float(min_interval_seconds):
            filtered.append(float(onset_time))
    return filtered


def extract_onsets_from_flux(
    flux_samples: Sequence[FluxSample],
    min_interval_seconds: float,
    *,
    window_frames: int = 10,
    multiplier: float = 1.5,
    floor: float = 0.001,
) -> List[float]:
    if not flux_samples:
        return []

    flux = np.fromiter((sample.flux for sample in flux_samples), dtype=np.float64, count=len(flux_samples))
    window = int(window_frames)
    peaks: List[float] = []

    for index in range(window, len(flux) - 1):
        local_mean = float(flux[index - window:index].sum()) / window
        threshold = local_mean * float(multiplier) + float(floor)
        value = flux[index]
        if value > threshold and value > flux[index - 1] and value >= flux[index + 1]:
            peaks.append(float(flux_samples[index].time_seconds))

    return filter_close_onsets(peaks, min_interval_seconds)


def detect_onsets(samples: Optional[SampleBuffer], sensitivity: float = 1.5) -> List[float]:
    """Single-band energy onset detection.

    Mean-square energy over 20 ms windows with a 10 ms hop. A frame is an onset
    when its energy rise beats the 75th percentile energy times sensitivity and
    it is not clearly below the next frame.
    """
    if samples is None or samples.is_empty():
        return []

    data = samples.samples.astype(np.float64)
    window_size = int(samples.sample_rate * 0.02)
    hop_size = max(1, window_size // 2)
    if window_size <= 0 or len(data) <= window_size:
        return []

    starts = np.arange(0, len(data) - window_size, hop_size)
    squared = np.concatenate(([0.0], np.cumsum(data * data)))
    energies = (squared[starts + window_size] - squared[starts]) / window_size

    threshold = float(np.sort(energies)[int(len(energies) * 0.75)]) * float(sensitivity)

    onsets: List[float] = []
    for index in range(1, len(energies) - 1):
        rise = energies[index] - energies[index - 1]
        if rise > threshold and energies[index] > energies[index + 1] * 0.8:
            onsets.append(float(index * hop_size) / samples.sample_rate)

    return filter_close_onsets(onsets, 0.1)


class BandOnsetDetector:
    def __init__(self, analysis_config: Optional[config_module.AnalysisConfig] = None) -> None:
        self._config = analysis_config if analysis_config is not None else config_module.AnalysisConfig()

    def config(self) -> config_module.AnalysisConfig:
        return self._config

    def min_interval_seconds(self, band: Band) -> float:
        return float(self._config.min_interval_seconds[Band(band).value])

    async def detect_by_band(
        self,
        samples: Optional[SampleBuffer],
        progress: Optional[ProgressCallback] = None,
    ) -> OnsetSet:
        if samples is None or samples.is_empty():
            logger.debug("No samples to analyse; returning empty onset set")
            return OnsetSet.empty()

        flux_by_band = await self._compute_flux(samples, progress)

        onsets: Dict[Band, List[float]] = {}
        for band in Band:
            onsets[band] = extract_onsets_from_flux(
                flux_by_band[band],
                self.min_interval_seconds(band),
                window_frames=self._config.threshold_window_frames,
                multiplier=self._config.threshold_multiplier,
                floor=self._config.threshold_floor,
            )

        result = OnsetSet.from_mapping(onsets)
        logger.info(
            "Detected onsets: %s",
            ", ".join(f"{band.value}={len(result.times_for(band))}" for band in Band),
        )
        return result

    def detect_by_band_sync(
        self,
        samples: Optional[SampleBuffer],
        progress: Optional[ProgressCallback] = None,
    ) -> OnsetSet:
        return asyncio.run(self.detect_by_band(samples, progress))

    async def flux_series(self, samples: SampleBuffer) -> Dict[Band, List[FluxSample]]:
        """Per-band flux series, exposed for inspection and tuning."""
        return await self._compute_flux(samples, None)

    async def _compute_flux(
        self,
        samples: SampleBuffer,
        progress: Optional[ProgressCallback],
    ) -> Dict[Band, List[FluxSample]]:
        data = samples.samples
        sample_rate = samples.sample_rate
        fft_size = int(self._config.fft_size)
        hop_size = int(self._config.hop_size)
        chunk_frames = int(self._config.progress_interval_frames)

        flux_by_band: Dict[Band, List[FluxSample]] = {band: [] for band in Band}
        total_frames = max(1, (len(data) - fft_size) // hop_size)
        previous = BandEnergy()

        logger.debug("Analysing %d samples at %d Hz (%d frames)", len(data), sample_rate, total_frames)

        for frame_index, start in enumerate(range(0, len(data) - fft_size, hop_size)):
            magnitudes = spectrum.magnitude_spectrum(data[start:start + fft_size])
            current = band_energies(magnitudes, sample_rate, fft_size)
            flux = spectral_flux(current, previous)
            time_seconds = float(start) / float(sample_rate)
            for band in Band:
                flux_by_band[band].append(FluxSample(time_seconds=time_seconds, flux=flux.value(band)))
            previous = current

            if frame_index % chunk_frames == 0:
                if progress is not None:
                    progress(min(1.0, frame_index / total_frames))
                await asyncio.sleep(0)

        if progress is not None:
            progress(1.0)

        return flux_by_band
