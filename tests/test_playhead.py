import math

import pytest

from playhead import Playhead


def test_seconds_per_bar_uses_quarter_note_reference():
    assert Playhead(120.0).seconds_per_bar() == pytest.approx(0.125)
    assert Playhead(60.0).seconds_per_bar() == pytest.approx(0.25)


def test_exact_bar_lands_on_zero():
    playhead = Playhead(120.0)
    assert playhead.advance(0.125) == 0.0


def test_multiple_bars_collapse_into_one_modulo_result():
    playhead = Playhead(120.0)
    playhead.advance(0.125 * 5.0 + 0.03125)
    assert playhead.progress() == pytest.approx(0.25)
    span = playhead.last_span()
    assert span.wrapped_full_bar()
    assert span.end_unwrapped == pytest.approx(5.25)


@pytest.mark.parametrize("elapsed", [-1.0, float("nan"), float("inf")])
def test_invalid_elapsed_does_not_move_progress(elapsed):
    playhead = Playhead(120.0)
    playhead.advance(0.01)
    before = playhead.progress()
    playhead.advance(elapsed)
    assert playhead.progress() == before
    assert playhead.last_span().elapsed_seconds == 0.0


@pytest.mark.parametrize("bpm", [0.0, -120.0, float("nan"), math.inf])
def test_invalid_tempo_is_rejected(bpm):
    playhead = Playhead(90.0)
    assert not playhead.set_tempo(bpm)
    assert playhead.tempo_bpm() == 90.0


def test_arc_length_scales_with_perimeter():
    playhead = Playhead(120.0)
    playhead.advance(0.0625)
    assert playhead.arc_length(565.0) == pytest.approx(282.5)


def test_reset_returns_to_start():
    playhead = Playhead(120.0)
    playhead.advance(0.1)
    playhead.reset()
    assert playhead.progress() == 0.0
    assert not playhead.last_span().wrapped_full_bar()
