# -*- coding: utf-8 -*-
########################
# game_session.py
########################
# Purpose:
# - One play attempt over one chart.
# - Wires TimingModel + NoteScheduler + JudgeEngine and publishes gameplay events.
#
# Design notes:
# - No Qt usage. The host calls tick(raw_clock) from its own loop (see session_driver.py for Qt).
# - Input events carry the raw clock sampled at the press. They are converted with the same
#   latency correction as ticks, never with the latest clock value.
# - stop() halts tick and input processing immediately and publishes nothing.
# - After notify_playback_ended the session ends on the first tick at or past the grace deadline.
# - An empty chart is accepted. Refusing to start one is the caller's decision.
#
########################
# Interfaces:
# Public classes:
# - class GameSession
#   - __init__(judge_config: JudgeConfig | None = None, lane_count: int = 4, events: EventChannel | None = None)
#   - events() -> EventChannel
#   - timing() -> TimingModel
#   - is_playing() -> bool
#   - start(chart: Chart) -> None
#   - tick(raw_clock_seconds: float) -> list[JudgementEvent]
#   - on_input_event(input_event: InputEvent) -> Optional[JudgementEvent]
#   - notify_playback_ended(raw_clock_seconds: float) -> None
#   - end() -> Optional[SessionResult]
#   - stop() -> None
#   - result() -> Optional[SessionResult]
#
########################

from __future__ import annotations

import logging
from typing import List, Optional

import config as config_module
import gameplay_events
import gameplay_models
import judge
import note_scheduler
import timing_model


logger = logging.getLogger(__name__)


class GameSession:
    def __init__(
        self,
        judge_config: Optional[config_module.JudgeConfig] = None,
        lane_count: int = 4,
        events: Optional[gameplay_events.EventChannel] = None,
    ) -> None:
        self._config = judge_config if judge_config is not None else config_module.JudgeConfig()
        self._lane_count = int(lane_count)
        self._events = events if events is not None else gameplay_events.EventChannel()
        self._windows = judge.JudgementWindows(
            perfect_seconds=self._config.perfect_seconds,
            great_seconds=self._config.great_seconds,
            good_seconds=self._config.good_seconds,
        )
        self._timing = timing_model.TimingModel(manual_offset_seconds=self._config.manual_offset_seconds)

        self._note_scheduler: Optional[note_scheduler.NoteScheduler] = None
        self._judge_engine: Optional[judge.JudgeEngine] = None
        self._is_playing = False
        self._end_deadline_seconds: Optional[float] = None
        self._result: Optional[gameplay_models.SessionResult] = None

    def config(self) -> config_module.JudgeConfig:
        return self._config

    def events(self) -> gameplay_events.EventChannel:
        return self._events

    def timing(self) -> timing_model.TimingModel:
        return self._timing

    def is_playing(self) -> bool:
        return self._is_playing

    def judge_engine(self) -> Optional[judge.JudgeEngine]:
        return self._judge_engine

    def note_scheduler(self) -> Optional[note_scheduler.NoteScheduler]:
        return self._note_scheduler

    def score_state(self) -> judge.ScoreState:
        if self._judge_engine is None:
            return judge.ScoreState()
        return self._judge_engine.score_state()

    def result(self) -> Optional[gameplay_models.SessionResult]:
        return self._result

    def set_device_latency(self, input_latency_seconds: float, output_latency_seconds: float) -> None:
        self._timing.set_device_latency(input_latency_seconds, output_latency_seconds)

    def start(self, chart: gameplay_models.Chart) -> None:
        self._note_scheduler = note_scheduler.NoteScheduler(chart, lane_count=self._lane_count)
        self._judge_engine = judge.JudgeEngine(
            self._note_scheduler,
            self._windows,
            note_appear_seconds=self._config.note_appear_seconds,
            events=self._events,
        )
        self._timing.update_raw_clock_seconds(0.0)
        self._end_deadline_seconds = None
        self._result = None
        self._is_playing = True
        logger.info("Session started with %d notes", len(self._note_scheduler))

    def tick(self, raw_clock_seconds: float) -> List[gameplay_models.JudgementEvent]:
        if not self._is_playing or self._judge_engine is None:
            return []

        self._timing.update_raw_clock_seconds(raw_clock_seconds)
        misses = self._judge_engine.update_for_time(self._timing.song_time_seconds())

        if self._end_deadline_seconds is not None and float(raw_clock_seconds) >= self._end_deadline_seconds:
            self.end()
        return misses

    def on_input_event(self, input_event: gameplay_models.InputEvent) -> Optional[gameplay_models.JudgementEvent]:
        if not self._is_playing or self._judge_engine is None:
            return None

        song_time = self._timing.song_time_for(input_event.time_seconds)
        lanes = tuple(int(lane) for lane in input_event.lanes)
        return self._judge_engine.on_input_event(gameplay_models.InputEvent(time_seconds=song_time, lanes=lanes))

    def notify_playback_ended(self, raw_clock_seconds: float) -> None:
        if not self._is_playing:
            return
        self._end_deadline_seconds = float(raw_clock_seconds) + float(self._config.end_grace_seconds)
        logger.debug("Playback ended at %.3fs; session ends at %.3fs", raw_clock_seconds, self._end_deadline_seconds)

    def end(self) -> Optional[gameplay_models.SessionResult]:
        if not self._is_playing or self._note_scheduler is None or self._judge_engine is None:
            return None

        self._is_playing = False
        self._result = self._judge_engine.score_state().to_result(total_notes=len(self._note_scheduler))
        logger.info(
            "Session ended: score=%d max_combo=%d accuracy=%.3f",
            self._result.score,
            self._result.max_combo,
            self._result.accuracy,
        )
        self._events.emit(gameplay_events.SessionEnded(result=self._result))
        return self._result

    def stop(self) -> None:
        if self._is_playing:
            logger.info("Session stopped")
        self._is_playing = False
        self._end_deadline_seconds = None
