# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Organize chart notes into per-lane schedules for efficient judgement and rendering.
# - Owns the per-note status array (PENDING, HIT, MISSED) for one play session.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Schedule order is deterministic: sort by (time_seconds, lane). Note indexes refer to this order.
# - Status is index-addressed and never stored on NoteEvent, so one Chart can back many sessions.
#   A scheduler itself belongs to exactly one session.
# - A note leaves PENDING exactly once. Marking a resolved note again raises.
#
########################
# Interfaces:
# Public enums:
# - class NoteStatus(enum.Enum): PENDING | HIT | MISSED
#
# Public functions:
# - time_diff_seconds(note_time_seconds, song_time_seconds) -> float  (note minus song time, rounded to ns)
#
# Public classes:
# - class NoteScheduler
#   - __init__(chart: Chart, lane_count: Optional[int] = None)
#   - chart() -> Chart
#   - note(index: int) -> NoteEvent
#   - status(index: int) -> NoteStatus
#   - reset() -> None
#   - mark_hit(index: int) -> None
#   - mark_missed(index: int) -> None
#   - active_note_indices(*, song_time_seconds, miss_window_seconds, lookahead_seconds) -> list[int]
#   - find_nearest_pending_note(*, lanes, song_time_seconds, miss_window_seconds, lookahead_seconds) -> Optional[int]
#   - pending_notes_past_miss_window(*, song_time_seconds, miss_window_seconds) -> list[int]
#   - pending_count() -> int
#
# Inputs:
# - Chart and time parameters.
#
# Outputs:
# - Note indexes for rendering and candidate selection for JudgeEngine.
#
########################

from __future__ import annotations

import enum
from typing import Dict, Iterable, List, Optional

import gameplay_models


# Time differences are compared at nanosecond resolution so clock arithmetic noise
# does not move a note across a window edge.
TIME_DIFF_DECIMALS = 9


def time_diff_seconds(note_time_seconds: float, song_time_seconds: float) -> float:
    return round(float(note_time_seconds) - float(song_time_seconds), TIME_DIFF_DECIMALS)


class NoteStatus(enum.Enum):
    PENDING = "pending"
    HIT = "hit"
    MISSED = "missed"


class NoteScheduler:
    def __init__(self, chart: gameplay_models.Chart, lane_count: Optional[int] = None) -> None:
        if lane_count is not None:
            for note in chart.notes:
                if not 0 <= int(note.lane) < int(lane_count):
                    raise ValueError(f"note lane {note.lane} outside [0, {lane_count}) at t={note.time_seconds}")

        sorted_notes = sorted(chart.notes, key=lambda item: (float(item.time_seconds), int(item.lane)))
        self._chart = gameplay_models.Chart(
            notes=list(sorted_notes),
            duration_seconds=float(chart.duration_seconds),
            difficulty=str(chart.difficulty),
        )
        self._notes = self._chart.notes
        self._statuses: List[NoteStatus] = [NoteStatus.PENDING] * len(self._notes)
        self._lanes: Dict[int, List[int]] = {}
        for index, note in enumerate(self._notes):
            self._lanes.setdefault(int(note.lane), []).append(index)
        # First position in each lane list that may still be pending.
        self._lane_indices: Dict[int, int] = {lane: 0 for lane in self._lanes.keys()}

    def chart(self) -> gameplay_models.Chart:
        return self._chart

    def __len__(self) -> int:
        return len(self._notes)

    def note(self, index: int) -> gameplay_models.NoteEvent:
        return self._notes[index]

    def status(self, index: int) -> NoteStatus:
        return self._statuses[index]

    def statuses(self) -> List[NoteStatus]:
        return list(self._statuses)

    def reset(self) -> None:
        self._statuses = [NoteStatus.PENDING] * len(self._notes)
        for lane in self._lane_indices.keys():
            self._lane_indices[lane] = 0

    def mark_hit(self, index: int) -> None:
        self._resolve(index, NoteStatus.HIT)

    def mark_missed(self, index: int) -> None:
        self._resolve(index, NoteStatus.MISSED)

    def pending_count(self) -> int:
        return sum(1 for status in self._statuses if status is NoteStatus.PENDING)

    def _resolve(self, index: int, status: NoteStatus) -> None:
        current = self._statuses[index]
        if current is not NoteStatus.PENDING:
            raise RuntimeError(f"note {index} already resolved as {current.value}")
        self._statuses[index] = status
        self._advance_lane_index(int(self._notes[index].lane))

    def _advance_lane_index(self, lane: int) -> None:
        lane_list = self._lanes.get(lane, [])
        position = int(self._lane_indices.get(lane, 0))
        while position < len(lane_list) and self._statuses[lane_list[position]] is not NoteStatus.PENDING:
            position += 1
        self._lane_indices[lane] = position

    def _pending_in_lane(self, lane: int) -> Iterable[int]:
        lane_list = self._lanes.get(int(lane), [])
        for position in range(int(self._lane_indices.get(int(lane), 0)), len(lane_list)):
            index = lane_list[position]
            if self._statuses[index] is NoteStatus.PENDING:
                yield index

    def active_note_indices(
        self,
        *,
        song_time_seconds: float,
        miss_window_seconds: float,
        lookahead_seconds: float,
    ) -> List[int]:
        active: List[int] = []
        for index, note in enumerate(self._notes):
            if self._statuses[index] is not NoteStatus.PENDING:
                continue
            time_diff = time_diff_seconds(note.time_seconds, song_time_seconds)
            if time_diff < -float(miss_window_seconds):
                continue
            if time_diff < float(lookahead_seconds):
                active.append(index)
            else:
                break
        return active

    def find_nearest_pending_note(
        self,
        *,
        lanes: Iterable[int],
        song_time_seconds: float,
        miss_window_seconds: float,
        lookahead_seconds: float,
    ) -> Optional[int]:
        target = float(song_time_seconds)
        best_index: Optional[int] = None
        best_abs_delta = float("inf")

        for lane in sorted({int(lane) for lane in lanes}):
            for index in self._pending_in_lane(lane):
                time_diff = time_diff_seconds(self._notes[index].time_seconds, target)
                if time_diff < -float(miss_window_seconds):
                    continue
                if time_diff >= float(lookahead_seconds):
                    break
                abs_delta = abs(time_diff)
                if abs_delta < best_abs_delta:
                    best_index = index
                    best_abs_delta = abs_delta
                elif abs_delta == best_abs_delta and best_index is not None and index < best_index:
                    # Tie break: the earlier note when equidistant.
                    best_index = index

        return best_index

    def pending_notes_past_miss_window(
        self,
        *,
        song_time_seconds: float,
        miss_window_seconds: float,
    ) -> List[int]:
        candidates: List[int] = []

        for lane in sorted(self._lanes.keys()):
            for index in self._pending_in_lane(lane):
                time_diff = time_diff_seconds(self._notes[index].time_seconds, song_time_seconds)
                if time_diff < -float(miss_window_seconds):
                    candidates.append(index)
                else:
                    break

        candidates.sort()
        return candidates


def _run_unit_tests() -> None:
    notes = [
        gameplay_models.NoteEvent(time_seconds=1.0, lane=1),
        gameplay_models.NoteEvent(time_seconds=1.0, lane=0),
        gameplay_models.NoteEvent(time_seconds=0.5, lane=2),
    ]
    chart = gameplay_models.Chart(notes=notes, duration_seconds=5.0)
    scheduler = NoteScheduler(chart, lane_count=4)

    ordered = [(scheduler.note(i).time_seconds, scheduler.note(i).lane) for i in range(len(scheduler))]
    assert ordered == [(0.5, 2), (1.0, 0), (1.0, 1)]

    nearest = scheduler.find_nearest_pending_note(
        lanes=[0], song_time_seconds=1.0, miss_window_seconds=0.15, lookahead_seconds=2.0
    )
    assert nearest == 1

    misses = scheduler.pending_notes_past_miss_window(song_time_seconds=1.0, miss_window_seconds=0.15)
    assert misses == [0]


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
