# -*- coding: utf-8 -*-
########################
# gameplay_events.py
########################
# Purpose:
# - Typed gameplay events and a small observer channel.
# - Lets UI, effects and result screens follow a session without the session knowing about them.
#
# Design notes:
# - No Qt usage. session_driver.py mirrors these onto Qt signals for Qt hosts.
# - Listeners run synchronously in subscription order. Listener errors propagate to the emitter.
#
########################
# Interfaces:
# Public dataclasses:
# - ScoreChanged(score: int)
# - ComboChanged(combo: int, max_combo: int)
# - JudgementRaised(event: JudgementEvent)
# - SessionEnded(result: SessionResult)
#
# Public classes:
# - class EventChannel
#   - subscribe(listener) -> Callable[[], None]  (calling it unsubscribes)
#   - emit(event) -> None
#   - clear() -> None
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Union

from gameplay_models import JudgementEvent, SessionResult


@dataclass(frozen=True)
class ScoreChanged:
    score: int


@dataclass(frozen=True)
class ComboChanged:
    combo: int
    max_combo: int


@dataclass(frozen=True)
class JudgementRaised:
    event: JudgementEvent


@dataclass(frozen=True)
class SessionEnded:
    result: SessionResult


GameplayEvent = Union[ScoreChanged, ComboChanged, JudgementRaised, SessionEnded]
Listener = Callable[[GameplayEvent], None]


class EventChannel:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: GameplayEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def clear(self) -> None:
        self._listeners.clear()

    def listener_count(self) -> int:
        return len(self._listeners)
