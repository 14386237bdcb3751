# -*- coding: utf-8 -*-
########################
# chart_generator.py
########################
# Purpose:
# - Turn detected onsets into a lane-annotated, cleaned note chart.
# - Difficulty thinning and a reduced-input (two lane) variant for touch play.
#
# Design notes:
# - Only bass onsets anchor notes. The other bands are carried in the OnsetSet but unused here.
# - Lane choice and thinning are random. The random source is injected so a seed reproduces a chart.
# - cleanup is idempotent: sort, dedupe on (time rounded to 2 decimals, lane), then per-lane spacing.
#
########################
# Interfaces:
# Public dataclasses:
# - GeneratedChart(chart: Chart, seed: Optional[int], generator_version: str, onset_count: int)
#
# Public functions:
# - seed_for(song_id: str, difficulty: str, generator_version: str = GENERATOR_VERSION) -> int
# - level_for_difficulty(difficulty: str) -> float
# - difficulty_label(difficulty: str, level: Optional[float] = None) -> str
#
# Public classes:
# - class ChartGenerator
#   - __init__(chart_config: ChartConfig | None = None, rng: random.Random | None = None)
#   - from_band_onsets(onsets: OnsetSet, duration_seconds: float = 0.0) -> Chart
#   - from_onsets(onset_times, duration_seconds: float = 0.0) -> Chart
#   - select_lane(existing_notes, time_seconds, window_seconds) -> int
#   - cleanup(notes) -> list[NoteEvent]
#   - adjust_difficulty(chart: Chart, level: float) -> Chart
#   - adjust_for_mobile(chart: Chart) -> Chart
#   - generate(onsets: OnsetSet, *, duration_seconds, difficulty) -> GeneratedChart
#
########################

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import logging
import random
from typing import Dict, List, Optional, Sequence

from analysis_models import Band, OnsetSet
import config as config_module
from gameplay_models import Chart, NoteEvent


logger = logging.getLogger(__name__)

GENERATOR_VERSION = "bass_flux_v1"

MOBILE_LANE_COUNT = 2

_LEVEL_BY_DIFFICULTY: Dict[str, float] = {
    "easy": 0.3,
    "normal": 0.6,
    "hard": 1.0,
}


@dataclass(frozen=True)
class GeneratedChart:
    chart: Chart
    seed: Optional[int]
    generator_version: str
    onset_count: int


def _normalize_difficulty(difficulty: str) -> str:
    return (difficulty or "").strip().lower()


def level_for_difficulty(difficulty: str) -> float:
    return float(_LEVEL_BY_DIFFICULTY.get(_normalize_difficulty(difficulty), 1.0))


def difficulty_label(difficulty: str, level: Optional[float] = None) -> str:
    """Name a chart by its difficulty, or "custom" when an explicit level differs from that difficulty's."""
    name = _normalize_difficulty(difficulty) or "normal"
    if level is None or float(level) == level_for_difficulty(name):
        return name
    return "custom"


def seed_for(song_id: str, difficulty: str, generator_version: str = GENERATOR_VERSION) -> int:
    payload = f"{song_id}|{_normalize_difficulty(difficulty)}|{generator_version}".encode("utf-8")
    digest = hashlib.sha256(payload).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


class ChartGenerator:
    def __init__(
        self,
        chart_config: Optional[config_module.ChartConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = chart_config if chart_config is not None else config_module.ChartConfig()
        if rng is not None:
            self._rng = rng
        elif self._config.seed is not None:
            self._rng = random.Random(int(self._config.seed))
        else:
            self._rng = random.Random()

    def config(self) -> config_module.ChartConfig:
        return self._config

    def lane_count(self) -> int:
        return int(self._config.lane_count)

    def from_band_onsets(self, onsets: OnsetSet, duration_seconds: float = 0.0) -> Chart:
        window_seconds = float(self._config.recent_lane_window_seconds)
        notes: List[NoteEvent] = []
        for time_seconds in onsets.times_for(Band.BASS):
            lane = self.select_lane(notes, float(time_seconds), window_seconds)
            notes.append(NoteEvent(time_seconds=float(time_seconds), lane=lane))

        cleaned = self.cleanup(notes)
        logger.debug("Placed %d bass notes, %d after cleanup", len(notes), len(cleaned))
        return Chart(notes=cleaned, duration_seconds=float(duration_seconds))

    def from_onsets(self, onset_times: Sequence[float], duration_seconds: float = 0.0) -> Chart:
        window_seconds = float(self._config.onset_lane_window_seconds)
        notes: List[NoteEvent] = []
        for time_seconds in onset_times:
            lane = self.select_lane(notes, float(time_seconds), window_seconds)
            notes.append(NoteEvent(time_seconds=float(time_seconds), lane=lane))
        return Chart(notes=notes, duration_seconds=float(duration_seconds))

    def select_lane(self, existing_notes: Sequence[NoteEvent], time_seconds: float, window_seconds: float) -> int:
        used_lanes = {note.lane for note in existing_notes if time_seconds - note.time_seconds < window_seconds}
        available_lanes = [lane for lane in range(self.lane_count()) if lane not in used_lanes]
        if available_lanes:
            return available_lanes[self._rng.randrange(len(available_lanes))]
        return self._rng.randrange(self.lane_count())

    def cleanup(self, notes: Sequence[NoteEvent]) -> List[NoteEvent]:
        ordered = sorted(notes, key=lambda note: float(note.time_seconds))

        decimals = int(self._config.dedupe_decimals)
        seen = set()
        unique: List[NoteEvent] = []
        for note in ordered:
            key = (f"{float(note.time_seconds):.{decimals}f}", int(note.lane))
            if key in seen:
                continue
            seen.add(key)
            unique.append(note)

        return self._filter_close_notes(unique)

    def _filter_close_notes(self, notes: Sequence[NoteEvent]) -> List[NoteEvent]:
        spacing = float(self._config.min_same_lane_spacing_seconds)
        last_time_by_lane: Dict[int, float] = {}
        result: List[NoteEvent] = []
        for note in notes:
            last_time = last_time_by_lane.get(int(note.lane))
            if last_time is None or float(note.time_seconds) - last_time >= spacing:
                result.append(note)
                last_time_by_lane[int(note.lane)] = float(note.time_seconds)
        return result

    def adjust_difficulty(self, chart: Chart, level: float) -> Chart:
        if float(level) >= 1.0:
            return chart

        keep_ratio = 0.3 + 0.7 * max(0.0, float(level))
        kept = [note for note in chart.notes if self._rng.random() < keep_ratio]
        return Chart(notes=kept, duration_seconds=chart.duration_seconds, difficulty=chart.difficulty)

    def adjust_for_mobile(self, chart: Chart) -> Chart:
        """Two-lane chart with no notes closer than mobile_min_gap_seconds, for touch play."""
        min_gap = float(self._config.mobile_min_gap_seconds)
        lanes_per_side = max(1, self.lane_count() // MOBILE_LANE_COUNT)

        kept: List[NoteEvent] = []
        for note in chart.notes:
            if kept and float(note.time_seconds) - kept[-1].time_seconds < min_gap:
                continue
            lane = min(MOBILE_LANE_COUNT - 1, int(note.lane) // lanes_per_side)
            kept.append(NoteEvent(time_seconds=float(note.time_seconds), lane=lane))

        return Chart(notes=kept, duration_seconds=chart.duration_seconds, difficulty=chart.difficulty)

    def generate(
        self,
        onsets: OnsetSet,
        *,
        duration_seconds: float = 0.0,
        difficulty: str = "normal",
        level: Optional[float] = None,
    ) -> GeneratedChart:
        effective_level = level_for_difficulty(difficulty) if level is None else float(level)
        full_chart = self.from_band_onsets(onsets, duration_seconds)
        thinned = self.adjust_difficulty(full_chart, effective_level)
        chart = Chart(
            notes=list(thinned.notes),
            duration_seconds=float(duration_seconds),
            difficulty=difficulty_label(difficulty, level),
        )

        logger.info(
            "Generated %s chart: %d notes from %d bass onsets (level %.2f)",
            chart.difficulty,
            len(chart.notes),
            len(onsets.times_for(Band.BASS)),
            effective_level,
        )
        return GeneratedChart(
            chart=chart,
            seed=self._config.seed,
            generator_version=GENERATOR_VERSION,
            onset_count=len(onsets.times_for(Band.BASS)),
        )
