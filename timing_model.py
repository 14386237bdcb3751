# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Single source of truth for song timing in gameplay.
# - Converts the raw playback clock into song time by removing device latency and a manual offset.
#
# Design notes:
# - Gameplay code must use TimingModel.song_time_seconds or song_time_for.
# - No Qt usage. Keep this module pure and deterministic.
# - Latency is the sum of the input-path and output-path figures reported by the audio device.
# - Input events carry the raw clock sampled at the press. song_time_for converts that value
#   instead of reading the latest clock, so a late-processed press is not judged against a newer time.
#
########################
# Interfaces:
# Public dataclasses:
# - TimingSnapshot(raw_clock_seconds: float, latency_seconds: float, manual_offset_seconds: float,
#                  song_time_seconds: float)
#
# Public classes:
# - class TimingModel
#   - __init__(manual_offset_seconds: float = DEFAULT_MANUAL_OFFSET_SECONDS)
#   - raw_clock_seconds() -> float
#   - latency_seconds() -> float
#   - manual_offset_seconds() -> float
#   - song_time_seconds() -> float
#   - song_time_for(raw_clock_seconds: float) -> float
#   - set_device_latency(input_latency_seconds: float, output_latency_seconds: float) -> None
#   - set_manual_offset_seconds(manual_offset_seconds: float) -> None
#   - update_raw_clock_seconds(raw_clock_seconds: float) -> None
#   - snapshot() -> TimingSnapshot
#
# Inputs:
# - Raw playback position (seconds since playback start) from the playback collaborator.
# - Latency figures from the audio device.
#
# Outputs:
# - Derived song time used by NoteScheduler, JudgeEngine and GameSession.
#
########################

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_MANUAL_OFFSET_SECONDS = 0.05


@dataclass(frozen=True)
class TimingSnapshot:
    raw_clock_seconds: float
    latency_seconds: float
    manual_offset_seconds: float
    song_time_seconds: float


class TimingModel:
    def __init__(self, manual_offset_seconds: float = DEFAULT_MANUAL_OFFSET_SECONDS) -> None:
        self._raw_clock_seconds = 0.0
        self._input_latency_seconds = 0.0
        self._output_latency_seconds = 0.0
        self._manual_offset_seconds = float(manual_offset_seconds)

    def raw_clock_seconds(self) -> float:
        return float(self._raw_clock_seconds)

    def latency_seconds(self) -> float:
        return float(self._input_latency_seconds) + float(self._output_latency_seconds)

    def manual_offset_seconds(self) -> float:
        return float(self._manual_offset_seconds)

    def song_time_for(self, raw_clock_seconds: float) -> float:
        # Song time may be negative right after playback starts.
        return float(raw_clock_seconds) - self.latency_seconds() - self.manual_offset_seconds()

    def song_time_seconds(self) -> float:
        return self.song_time_for(self._raw_clock_seconds)

    def set_device_latency(self, input_latency_seconds: float, output_latency_seconds: float) -> None:
        # Devices that do not report a figure pass 0.
        self._input_latency_seconds = max(0.0, float(input_latency_seconds or 0.0))
        self._output_latency_seconds = max(0.0, float(output_latency_seconds or 0.0))

    def set_manual_offset_seconds(self, manual_offset_seconds: float) -> None:
        self._manual_offset_seconds = float(manual_offset_seconds)

    def update_raw_clock_seconds(self, raw_clock_seconds: float) -> None:
        self._raw_clock_seconds = float(raw_clock_seconds)

    def snapshot(self) -> TimingSnapshot:
        return TimingSnapshot(
            raw_clock_seconds=self.raw_clock_seconds(),
            latency_seconds=self.latency_seconds(),
            manual_offset_seconds=self.manual_offset_seconds(),
            song_time_seconds=self.song_time_seconds(),
        )


def _run_unit_tests() -> None:
    model = TimingModel()
    model.set_device_latency(0.01, 0.02)
    model.update_raw_clock_seconds(1.0)
    assert abs(model.latency_seconds() - 0.03) < 1e-9
    assert abs(model.song_time_seconds() - 0.92) < 1e-9

    assert abs(model.song_time_for(2.0) - 1.92) < 1e-9

    model.set_manual_offset_seconds(0.0)
    snap = model.snapshot()
    assert abs(snap.song_time_seconds - 0.97) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
