# -*- coding: utf-8 -*-
########################
# session_driver.py
########################
# Purpose:
# - Qt host loop for a GameSession.
# - Ticks the session from a QTimer and mirrors gameplay events onto Qt signals.
#
# Design notes:
# - Gameplay logic must not depend on SessionDriver. GameSession is the gameplay source of truth.
# - The raw clock is injected as a callable so any playback backend can drive it.
# - QtCore only. No widgets are created here.
#
########################
# Interfaces:
# Public classes:
# - class SessionDriver(PyQt6.QtCore.QObject)
#   - Signals:
#     - scoreChanged(int)
#     - comboChanged(int)
#     - judgementRaised(JudgementEvent)
#     - sessionEnded(SessionResult)
#   - Methods:
#     - start(chart: Chart) -> None
#     - stop() -> None
#     - poll() -> None
#     - on_input_event(InputEvent) -> None
#     - on_playback_ended() -> None
#     - is_running() -> bool
#
# Inputs:
# - Raw playback clock callable, InputRouter.inputEvent, playback-ended notification.
#
# Outputs:
# - Qt signals for UI subscribers.
#
########################

from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

import gameplay_events
import gameplay_models
from game_session import GameSession


class SessionDriver(QObject):
    scoreChanged = pyqtSignal(int)
    comboChanged = pyqtSignal(int)
    judgementRaised = pyqtSignal(object)
    sessionEnded = pyqtSignal(object)

    def __init__(
        self,
        session: GameSession,
        raw_clock_provider: Callable[[], float],
        tick_interval_ms: Optional[int] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._raw_clock_provider = raw_clock_provider

        self._timer = QTimer(self)
        if tick_interval_ms is None:
            tick_interval_ms = session.config().tick_interval_ms
        self._timer.setInterval(int(tick_interval_ms))
        self._timer.timeout.connect(self.poll)

        self._unsubscribe = self._session.events().subscribe(self._on_session_event)

    def session(self) -> GameSession:
        return self._session

    def is_running(self) -> bool:
        return bool(self._timer.isActive())

    def start(self, chart: gameplay_models.Chart) -> None:
        self._session.start(chart)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._session.stop()

    def detach(self) -> None:
        self.stop()
        self._unsubscribe()

    def poll(self) -> None:
        if not self._session.is_playing():
            self._timer.stop()
            return
        self._session.tick(float(self._raw_clock_provider()))

    def on_input_event(self, input_event: gameplay_models.InputEvent) -> None:
        self._session.on_input_event(input_event)

    def on_playback_ended(self) -> None:
        self._session.notify_playback_ended(float(self._raw_clock_provider()))

    def _on_session_event(self, event: gameplay_events.GameplayEvent) -> None:
        if isinstance(event, gameplay_events.ScoreChanged):
            self.scoreChanged.emit(int(event.score))
        elif isinstance(event, gameplay_events.ComboChanged):
            self.comboChanged.emit(int(event.combo))
        elif isinstance(event, gameplay_events.JudgementRaised):
            self.judgementRaised.emit(event.event)
        elif isinstance(event, gameplay_events.SessionEnded):
            self._timer.stop()
            self.sessionEnded.emit(event.result)
