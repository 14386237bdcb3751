# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Hit judgement and scoring engine.
# - Matches InputEvent to the nearest pending active note within timing windows.
# - Expires notes that pass the good window without a press as misses.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Strict inputs: consume only InputEvent (song time already latency-corrected) and song_time_seconds.
# - Scheduler owns the note statuses; JudgeEngine resolves notes via the scheduler boundary.
# - A press outside every window is a no-op. The note stays pending.
# - Score per hit is the category base plus floor(combo * 10), using the combo after the increment.
#
########################
# Interfaces:
# Public dataclasses:
# - JudgementWindows(perfect_seconds: float, great_seconds: float, good_seconds: float)
#   - classify_delta(delta_seconds: float) -> Optional[Judgement]
# - ScoreState(
#     combo: int,
#     max_combo: int,
#     score: int,
#     perfect_count: int,
#     great_count: int,
#     good_count: int,
#     miss_count: int,
#   )
#   - apply_judgement(judgement: Judgement) -> None
#   - accuracy(total_notes: int) -> float
#   - to_result(total_notes: int) -> SessionResult
#
# Public classes:
# - class JudgeEngine
#   - __init__(note_scheduler, judgement_windows, note_appear_seconds=2.0, events=None)
#   - score_state() -> ScoreState
#   - judgement_windows() -> JudgementWindows
#   - active_note_indices() -> list[int]
#   - recent_judgements() -> list[JudgementEvent]
#   - clear_recent_judgements() -> None
#   - reset() -> None
#   - on_input_event(input_event: InputEvent) -> Optional[JudgementEvent]
#   - update_for_time(song_time_seconds: float) -> list[JudgementEvent]
#
# Outputs:
# - JudgementEvent objects, and ScoreChanged / ComboChanged / JudgementRaised on the event channel.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Dict, List, Optional

import gameplay_events
import gameplay_models
from gameplay_models import Judgement
import note_scheduler


DEFAULT_NOTE_APPEAR_SECONDS = 2.0

BASE_SCORES: Dict[Judgement, int] = {
    Judgement.PERFECT: 1000,
    Judgement.GREAT: 500,
    Judgement.GOOD: 100,
}

ACCURACY_WEIGHTS: Dict[Judgement, float] = {
    Judgement.PERFECT: 1.0,
    Judgement.GREAT: 0.8,
    Judgement.GOOD: 0.5,
}

_DELTA_DECIMALS = note_scheduler.TIME_DIFF_DECIMALS


@dataclass(frozen=True)
class JudgementWindows:
    perfect_seconds: float = 0.05
    great_seconds: float = 0.10
    good_seconds: float = 0.15

    def __post_init__(self) -> None:
        if not (0.0 <= self.perfect_seconds <= self.great_seconds <= self.good_seconds):
            raise ValueError("judgement windows must satisfy 0 <= perfect <= great <= good")

    def classify_delta(self, delta_seconds: float) -> Optional[Judgement]:
        abs_delta = round(abs(float(delta_seconds)), _DELTA_DECIMALS)
        if abs_delta <= float(self.perfect_seconds):
            return Judgement.PERFECT
        if abs_delta <= float(self.great_seconds):
            return Judgement.GREAT
        if abs_delta <= float(self.good_seconds):
            return Judgement.GOOD
        return None


@dataclass
class ScoreState:
    combo: int = 0
    max_combo: int = 0
    score: int = 0
    perfect_count: int = 0
    great_count: int = 0
    good_count: int = 0
    miss_count: int = 0

    def apply_judgement(self, judgement: Judgement) -> None:
        kind = Judgement(judgement)

        if kind is Judgement.MISS:
            self.combo = 0
            self.miss_count += 1
            return

        self.combo += 1
        if kind is Judgement.PERFECT:
            self.perfect_count += 1
        elif kind is Judgement.GREAT:
            self.great_count += 1
        else:
            self.good_count += 1
        self.score += BASE_SCORES[kind] + int(math.floor(self.combo * 10))

        if self.combo > self.max_combo:
            self.max_combo = self.combo

    def accuracy(self, total_notes: int) -> float:
        if int(total_notes) <= 0:
            return 0.0
        weighted = (
            self.perfect_count * ACCURACY_WEIGHTS[Judgement.PERFECT]
            + self.great_count * ACCURACY_WEIGHTS[Judgement.GREAT]
            + self.good_count * ACCURACY_WEIGHTS[Judgement.GOOD]
        )
        return float(weighted) / float(total_notes)

    def to_result(self, total_notes: int) -> gameplay_models.SessionResult:
        return gameplay_models.SessionResult(
            score=self.score,
            max_combo=self.max_combo,
            perfect_count=self.perfect_count,
            great_count=self.great_count,
            good_count=self.good_count,
            miss_count=self.miss_count,
            total_notes=int(total_notes),
            accuracy=self.accuracy(total_notes),
        )


class JudgeEngine:
    def __init__(
        self,
        note_scheduler_obj: note_scheduler.NoteScheduler,
        judgement_windows: JudgementWindows,
        note_appear_seconds: float = DEFAULT_NOTE_APPEAR_SECONDS,
        events: Optional[gameplay_events.EventChannel] = None,
    ) -> None:
        self._note_scheduler = note_scheduler_obj
        self._judgement_windows = judgement_windows
        self._note_appear_seconds = float(note_appear_seconds)
        self._events = events if events is not None else gameplay_events.EventChannel()
        self._score_state = ScoreState()
        self._active_indices: List[int] = []
        self._recent_judgements: List[gameplay_models.JudgementEvent] = []

    def score_state(self) -> ScoreState:
        return self._score_state

    def judgement_windows(self) -> JudgementWindows:
        return self._judgement_windows

    def events(self) -> gameplay_events.EventChannel:
        return self._events

    def active_note_indices(self) -> List[int]:
        return list(self._active_indices)

    def clear_recent_judgements(self) -> None:
        self._recent_judgements.clear()

    def recent_judgements(self) -> List[gameplay_models.JudgementEvent]:
        return list(self._recent_judgements)

    def reset(self) -> None:
        self._score_state = ScoreState()
        self._active_indices = []
        self._recent_judgements.clear()

    def on_input_event(self, input_event: gameplay_models.InputEvent) -> Optional[gameplay_models.JudgementEvent]:
        song_time = float(input_event.time_seconds)
        note_index = self._note_scheduler.find_nearest_pending_note(
            lanes=input_event.lanes,
            song_time_seconds=song_time,
            miss_window_seconds=float(self._judgement_windows.good_seconds),
            lookahead_seconds=self._note_appear_seconds,
        )
        if note_index is None:
            return None

        note = self._note_scheduler.note(note_index)
        delta = song_time - float(note.time_seconds)
        judgement = self._judgement_windows.classify_delta(delta)
        if judgement is None:
            return None

        self._note_scheduler.mark_hit(note_index)
        return self._record(note_index, song_time, delta, judgement)

    def update_for_time(self, song_time_seconds: float) -> List[gameplay_models.JudgementEvent]:
        song_time = float(song_time_seconds)
        good_window = float(self._judgement_windows.good_seconds)

        misses: List[gameplay_models.JudgementEvent] = []
        candidates = self._note_scheduler.pending_notes_past_miss_window(
            song_time_seconds=song_time,
            miss_window_seconds=good_window,
        )
        for note_index in candidates:
            note = self._note_scheduler.note(note_index)
            delta = song_time - float(note.time_seconds)
            self._note_scheduler.mark_missed(note_index)
            misses.append(self._record(note_index, song_time, delta, Judgement.MISS))

        self._active_indices = self._note_scheduler.active_note_indices(
            song_time_seconds=song_time,
            miss_window_seconds=good_window,
            lookahead_seconds=self._note_appear_seconds,
        )
        return misses

    def _record(
        self,
        note_index: int,
        song_time: float,
        delta: float,
        judgement: Judgement,
    ) -> gameplay_models.JudgementEvent:
        note = self._note_scheduler.note(note_index)
        self._score_state.apply_judgement(judgement)

        event = gameplay_models.JudgementEvent(
            time_seconds=song_time,
            lane=int(note.lane),
            note_index=int(note_index),
            note_time_seconds=float(note.time_seconds),
            delta_seconds=float(delta),
            judgement=judgement,
        )
        self._recent_judgements.append(event)

        self._events.emit(gameplay_events.JudgementRaised(event=event))
        self._events.emit(gameplay_events.ScoreChanged(score=self._score_state.score))
        self._events.emit(
            gameplay_events.ComboChanged(combo=self._score_state.combo, max_combo=self._score_state.max_combo)
        )
        return event


def _run_unit_tests() -> None:
    chart = gameplay_models.Chart(
        notes=[gameplay_models.NoteEvent(time_seconds=1.0, lane=0)],
        duration_seconds=3.0,
    )
    scheduler = note_scheduler.NoteScheduler(chart)
    engine = JudgeEngine(scheduler, JudgementWindows())

    hit = engine.on_input_event(gameplay_models.InputEvent.for_lane(1.0, 0))
    assert hit is not None
    assert hit.judgement is Judgement.PERFECT
    assert engine.score_state().score == 1010

    stray = engine.on_input_event(gameplay_models.InputEvent.for_lane(1.0, 1))
    assert stray is None

    scheduler.reset()
    engine.reset()
    misses = engine.update_for_time(song_time_seconds=2.0)
    assert len(misses) == 1
    assert engine.score_state().miss_count == 1


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
