# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the runtime gameplay pipeline.
# - Defines the Chart representation, lane input, judgements and the session result.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses.
# - Notes are immutable. Per-session hit/miss state lives in NoteScheduler, never here.
#
########################
# Interfaces:
# Public enums:
# - class Judgement(str, enum.Enum): PERFECT | GREAT | GOOD | MISS
#
# Public dataclasses:
# - NoteEvent(time_seconds: float, lane: int)
# - Chart(notes: list[NoteEvent], duration_seconds: float, difficulty: str)
# - InputEvent(time_seconds: float, lanes: tuple[int, ...])
# - JudgementEvent(time_seconds: float, lane: int, note_index: int, note_time_seconds: float,
#                  delta_seconds: float, judgement: Judgement)
# - SessionResult(score, max_combo, perfect_count, great_count, good_count, miss_count, total_notes, accuracy)
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Any, Dict, List, Tuple


class Judgement(str, enum.Enum):
    PERFECT = "perfect"
    GREAT = "great"
    GOOD = "good"
    MISS = "miss"


@dataclass(frozen=True)
class NoteEvent:
    time_seconds: float
    lane: int


@dataclass(frozen=True)
class Chart:
    notes: List[NoteEvent] = field(default_factory=list)
    duration_seconds: float = 0.0
    difficulty: str = "normal"

    def __len__(self) -> int:
        return len(self.notes)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "difficulty": self.difficulty,
            "duration_seconds": float(self.duration_seconds),
            "notes": [{"time": float(note.time_seconds), "lane": int(note.lane)} for note in self.notes],
        }


@dataclass(frozen=True)
class InputEvent:
    time_seconds: float
    lanes: Tuple[int, ...]

    @classmethod
    def for_lane(cls, time_seconds: float, lane: int) -> "InputEvent":
        return cls(time_seconds=float(time_seconds), lanes=(int(lane),))


@dataclass(frozen=True)
class JudgementEvent:
    time_seconds: float
    lane: int
    note_index: int
    note_time_seconds: float
    delta_seconds: float
    judgement: Judgement


@dataclass(frozen=True)
class SessionResult:
    score: int
    max_combo: int
    perfect_count: int
    great_count: int
    good_count: int
    miss_count: int
    total_notes: int
    accuracy: float
