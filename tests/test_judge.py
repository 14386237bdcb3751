from __future__ import annotations

import pytest

import gameplay_events
from gameplay_models import Chart, InputEvent, Judgement, NoteEvent
import judge
from note_scheduler import NoteScheduler, NoteStatus


def _engine(notes, windows=None, events=None):
    scheduler = NoteScheduler(Chart(notes=list(notes), duration_seconds=60.0), lane_count=4)
    engine = judge.JudgeEngine(scheduler, windows or judge.JudgementWindows(), events=events)
    return scheduler, engine


@pytest.mark.parametrize(
    "press_time, expected",
    [
        (10.05, Judgement.PERFECT),
        (9.95, Judgement.PERFECT),
        (10.050001, Judgement.GREAT),
        (10.1, Judgement.GREAT),
        (10.100001, Judgement.GOOD),
        (9.85, Judgement.GOOD),
        (10.15, Judgement.GOOD),
    ],
)
def test_window_boundaries(press_time, expected):
    scheduler, engine = _engine([NoteEvent(10.0, 0)])

    event = engine.on_input_event(InputEvent.for_lane(press_time, 0))

    assert event is not None
    assert event.judgement is expected
    assert scheduler.status(0) is NoteStatus.HIT


@pytest.mark.parametrize("press_time", [10.150001, 9.849999, 12.5])
def test_press_outside_every_window_leaves_note_pending(press_time):
    scheduler, engine = _engine([NoteEvent(10.0, 0)])

    assert engine.on_input_event(InputEvent.for_lane(press_time, 0)) is None
    assert scheduler.status(0) is NoteStatus.PENDING
    assert engine.score_state().combo == 0


def test_classify_delta_order():
    windows = judge.JudgementWindows(perfect_seconds=0.05, great_seconds=0.10, good_seconds=0.15)
    assert windows.classify_delta(-0.05) is Judgement.PERFECT
    assert windows.classify_delta(0.0500001) is Judgement.GREAT
    assert windows.classify_delta(0.15) is Judgement.GOOD
    assert windows.classify_delta(0.150001) is None


def test_windows_must_be_ordered():
    with pytest.raises(ValueError):
        judge.JudgementWindows(perfect_seconds=0.1, great_seconds=0.05, good_seconds=0.15)


def test_three_perfects_build_combo_and_score():
    _, engine = _engine([NoteEvent(1.0, 0), NoteEvent(2.0, 1), NoteEvent(3.0, 2)])
    combos = []
    scores = []

    for time_seconds, lane in [(1.0, 0), (2.0, 1), (3.0, 2)]:
        engine.on_input_event(InputEvent.for_lane(time_seconds, lane))
        combos.append(engine.score_state().combo)
        scores.append(engine.score_state().score)

    assert combos == [1, 2, 3]
    assert scores == [1010, 2030, 3060]
    assert engine.score_state().perfect_count == 3


def test_base_scores_per_category():
    _, engine = _engine([NoteEvent(1.0, 0), NoteEvent(2.0, 0)])
    engine.on_input_event(InputEvent.for_lane(1.07, 0))
    assert engine.score_state().score == 500 + 10
    engine.on_input_event(InputEvent.for_lane(2.12, 0))
    assert engine.score_state().score == 510 + 100 + 20


def test_miss_resets_combo_and_keeps_max_combo():
    scheduler, engine = _engine([NoteEvent(1.0, 0), NoteEvent(2.0, 1), NoteEvent(3.0, 2)])
    engine.on_input_event(InputEvent.for_lane(1.0, 0))
    engine.on_input_event(InputEvent.for_lane(2.0, 1))

    misses = engine.update_for_time(3.2)

    assert [miss.judgement for miss in misses] == [Judgement.MISS]
    assert scheduler.status(2) is NoteStatus.MISSED
    state = engine.score_state()
    assert state.combo == 0
    assert state.max_combo == 2
    assert state.miss_count == 1


def test_note_is_missed_only_once():
    scheduler, engine = _engine([NoteEvent(1.0, 0)])

    assert len(engine.update_for_time(1.2)) == 1
    assert engine.update_for_time(1.5) == []
    assert engine.on_input_event(InputEvent.for_lane(1.0, 0)) is None
    assert engine.score_state().miss_count == 1
    assert scheduler.status(0) is NoteStatus.MISSED


def test_note_inside_good_window_is_not_missed_yet():
    scheduler, engine = _engine([NoteEvent(1.0, 0)])
    assert engine.update_for_time(1.15) == []
    assert scheduler.status(0) is NoteStatus.PENDING


def test_tick_on_the_late_good_edge_keeps_the_note_pending():
    scheduler, engine = _engine([NoteEvent(10.0, 0)])

    assert engine.update_for_time(10.15) == []
    assert scheduler.status(0) is NoteStatus.PENDING
    assert engine.active_note_indices() == [0]

    event = engine.on_input_event(InputEvent.for_lane(10.15, 0))
    assert event.judgement is Judgement.GOOD


def test_tick_just_past_the_good_edge_misses_the_note():
    scheduler, engine = _engine([NoteEvent(10.0, 0)])
    assert len(engine.update_for_time(10.150001)) == 1
    assert scheduler.status(0) is NoteStatus.MISSED


def test_hit_note_is_never_missed():
    scheduler, engine = _engine([NoteEvent(1.0, 0)])
    engine.on_input_event(InputEvent.for_lane(1.0, 0))
    assert engine.update_for_time(5.0) == []
    assert scheduler.status(0) is NoteStatus.HIT


def test_press_picks_the_closest_note_in_the_lane():
    scheduler, engine = _engine([NoteEvent(1.0, 0), NoteEvent(1.12, 0)])
    event = engine.on_input_event(InputEvent.for_lane(1.1, 0))
    assert event.note_index == 1
    assert scheduler.status(0) is NoteStatus.PENDING


def test_equidistant_notes_resolve_to_the_earlier_one():
    _, engine = _engine([NoteEvent(1.0, 0), NoteEvent(1.5, 0)])
    event = engine.on_input_event(InputEvent.for_lane(1.25, 0))
    assert event.note_index == 0


def test_press_in_other_lane_is_ignored():
    scheduler, engine = _engine([NoteEvent(1.0, 0)])
    assert engine.on_input_event(InputEvent.for_lane(1.0, 2)) is None
    assert scheduler.status(0) is NoteStatus.PENDING


def test_lane_set_press_matches_any_listed_lane():
    _, engine = _engine([NoteEvent(1.0, 1), NoteEvent(1.03, 3)])
    event = engine.on_input_event(InputEvent(time_seconds=1.02, lanes=(2, 3)))
    assert event.lane == 3


def test_notes_beyond_lookahead_are_not_judged_or_active():
    _, engine = _engine([NoteEvent(5.0, 0)])
    engine.update_for_time(2.0)
    assert engine.active_note_indices() == []
    engine.update_for_time(3.5)
    assert engine.active_note_indices() == [0]


def test_events_are_published_for_hits_and_misses():
    channel = gameplay_events.EventChannel()
    received = []
    channel.subscribe(received.append)
    _, engine = _engine([NoteEvent(1.0, 0), NoteEvent(2.0, 1)], events=channel)

    engine.on_input_event(InputEvent.for_lane(1.0, 0))
    engine.update_for_time(3.0)

    kinds = [type(event).__name__ for event in received]
    assert kinds == [
        "JudgementRaised", "ScoreChanged", "ComboChanged",
        "JudgementRaised", "ScoreChanged", "ComboChanged",
    ]
    assert received[0].event.judgement is Judgement.PERFECT
    assert received[3].event.judgement is Judgement.MISS
    assert received[5] == gameplay_events.ComboChanged(combo=0, max_combo=1)


def test_accuracy_weights():
    state = judge.ScoreState(perfect_count=1, great_count=1, good_count=1, miss_count=1)
    assert state.accuracy(4) == pytest.approx(0.575)
    assert state.accuracy(0) == 0.0


def test_module_self_checks():
    judge._run_unit_tests()
