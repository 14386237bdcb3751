from __future__ import annotations

import pytest

import config as config_module
import gameplay_events
from gameplay_models import Chart, InputEvent, Judgement, NoteEvent
from game_session import GameSession
from note_scheduler import NoteScheduler
import timing_model


def _session(notes, **judge_overrides):
    session = GameSession(config_module.JudgeConfig(**judge_overrides))
    received = []
    session.events().subscribe(received.append)
    session.start(Chart(notes=list(notes), duration_seconds=10.0))
    return session, received


def test_song_time_subtracts_latency_and_manual_offset():
    model = timing_model.TimingModel()
    model.set_device_latency(0.01, 0.02)
    model.update_raw_clock_seconds(2.0)

    assert model.song_time_seconds() == pytest.approx(1.92)
    assert model.snapshot().latency_seconds == pytest.approx(0.03)


def test_negative_device_latency_is_clamped():
    model = timing_model.TimingModel(manual_offset_seconds=0.0)
    model.set_device_latency(-0.5, None)
    assert model.latency_seconds() == 0.0


def test_press_uses_the_clock_sampled_at_the_press():
    session, _ = _session([NoteEvent(2.0, 0)])
    session.set_device_latency(0.01, 0.02)

    session.tick(2.20)
    event = session.on_input_event(InputEvent.for_lane(2.08, 0))

    assert event is not None
    assert event.judgement is Judgement.PERFECT
    assert event.time_seconds == pytest.approx(2.0)


def test_session_ends_after_the_grace_period():
    session, received = _session([NoteEvent(1.0, 0)])

    session.notify_playback_ended(10.0)
    session.tick(10.4)
    assert session.is_playing()

    session.tick(10.5)
    assert not session.is_playing()
    ended = [event for event in received if isinstance(event, gameplay_events.SessionEnded)]
    assert len(ended) == 1
    assert ended[0].result == session.result()
    assert ended[0].result.miss_count == 1


def test_ticks_without_playback_end_keep_playing():
    session, _ = _session([NoteEvent(1.0, 0)])
    session.tick(100.0)
    assert session.is_playing()


def test_stop_halts_processing_and_publishes_nothing():
    session, received = _session([NoteEvent(1.0, 0)])

    session.stop()

    assert session.tick(5.0) == []
    assert session.on_input_event(InputEvent.for_lane(1.05, 0)) is None
    assert received == []
    assert session.result() is None


def test_events_follow_judgement_score_combo_order():
    session, received = _session([NoteEvent(1.0, 0)])

    session.on_input_event(InputEvent.for_lane(1.05, 0))

    assert [type(event) for event in received] == [
        gameplay_events.JudgementRaised,
        gameplay_events.ScoreChanged,
        gameplay_events.ComboChanged,
    ]
    assert received[1] == gameplay_events.ScoreChanged(score=1010)
    assert received[2] == gameplay_events.ComboChanged(combo=1, max_combo=1)


def test_result_reports_counts_and_weighted_accuracy():
    notes = [NoteEvent(1.0, 0), NoteEvent(2.0, 0), NoteEvent(3.0, 0), NoteEvent(4.0, 0)]
    session, _ = _session(notes)

    # Raw clock is song time plus the default 0.05 s manual offset.
    session.on_input_event(InputEvent.for_lane(1.05, 0))
    session.on_input_event(InputEvent.for_lane(2.13, 0))
    session.on_input_event(InputEvent.for_lane(3.18, 0))
    session.tick(4.5)
    result = session.end()

    assert (result.perfect_count, result.great_count, result.good_count, result.miss_count) == (1, 1, 1, 1)
    assert result.total_notes == 4
    assert result.accuracy == pytest.approx(0.575)
    assert result.score == 1010 + 520 + 130
    assert result.max_combo == 3


def test_empty_chart_session_has_zero_accuracy():
    session, received = _session([])
    result = session.end()

    assert result.total_notes == 0
    assert result.accuracy == 0.0
    assert isinstance(received[-1], gameplay_events.SessionEnded)


def test_end_twice_returns_none_the_second_time():
    session, received = _session([])
    session.end()
    assert session.end() is None
    assert len(received) == 1


def test_restart_resets_score_state():
    session, _ = _session([NoteEvent(1.0, 0)])
    session.on_input_event(InputEvent.for_lane(1.05, 0))
    session.start(Chart(notes=[NoteEvent(1.0, 0)]))
    assert session.score_state().score == 0


def test_note_lane_outside_lane_count_is_rejected():
    session = GameSession(lane_count=2)
    with pytest.raises(ValueError):
        session.start(Chart(notes=[NoteEvent(1.0, 3)]))


def test_resolving_a_note_twice_raises():
    scheduler = NoteScheduler(Chart(notes=[NoteEvent(1.0, 0)]))
    scheduler.mark_hit(0)
    with pytest.raises(RuntimeError):
        scheduler.mark_missed(0)


def test_module_self_checks():
    import note_scheduler

    timing_model._run_unit_tests()
    note_scheduler._run_unit_tests()
