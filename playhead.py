# -*- coding: utf-8 -*-
########################
# playhead.py
########################
# Purpose:
# - Single source of truth for bar progress.
# - Converts elapsed cycle time into progress around the shape using the current tempo.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic.
# - Progress lives in [0, 1). It only moves forward: negative elapsed time is clamped to zero.
# - One bar lasts 60 / (4 * tempo) seconds. The 4 is a fixed quarter-note reference and does not
#   depend on the node count; the node count only decides how many taps a bar has.
# - Several whole bars inside one advance collapse into the same modulo result.
#
########################
# Interfaces:
# Public dataclasses:
# - ProgressSpan(start: float, end_unwrapped: float, elapsed_seconds: float, seconds_per_bar: float)
#   - wrapped_full_bar() -> bool
#
# Public classes:
# - class Playhead
#   - progress() -> float
#   - tempo_bpm() -> float
#   - seconds_per_bar() -> float
#   - set_tempo(bpm: float) -> bool
#   - advance(elapsed_seconds: float) -> float
#   - arc_length(perimeter: float) -> float
#   - last_span() -> ProgressSpan
#   - reset() -> None
#
# Inputs:
# - elapsed_seconds per cycle from SequencerEngine.
# - tempo from configuration or UI adjustment (BPM).
#
# Outputs:
# - progress used by SequencerEngine, tap detection and renderers.
#
########################

from __future__ import annotations

import math
from dataclasses import dataclass

from logging_utils import log_event
from sequence_models import DEFAULT_TEMPO_BPM

# Quarter-note reference used to turn tempo into bar duration.
BEAT_UNIT = 4.0

# Results this close below 1.0 are float drift from an exact bar and snap to 0.0.
_WRAP_EPSILON = 1e-12


@dataclass(frozen=True)
class ProgressSpan:
    start: float
    end_unwrapped: float
    elapsed_seconds: float
    seconds_per_bar: float

    def wrapped_full_bar(self) -> bool:
        return (self.end_unwrapped - self.start) >= 1.0


class Playhead:
    def __init__(self, tempo_bpm: float = DEFAULT_TEMPO_BPM) -> None:
        self._progress = 0.0
        self._tempo_bpm = float(DEFAULT_TEMPO_BPM)
        self.set_tempo(tempo_bpm)
        self._last_span = ProgressSpan(0.0, 0.0, 0.0, self.seconds_per_bar())

    def progress(self) -> float:
        return float(self._progress)

    def tempo_bpm(self) -> float:
        return float(self._tempo_bpm)

    def seconds_per_bar(self) -> float:
        return 60.0 / (BEAT_UNIT * self._tempo_bpm)

    def set_tempo(self, bpm: float) -> bool:
        """Returns False and keeps the current tempo when bpm is not a positive finite number."""
        value = float(bpm)
        if not math.isfinite(value) or value <= 0.0:
            log_event("warning", "Playhead", "Rejected tempo", requested=bpm, kept=self._tempo_bpm)
            return False
        self._tempo_bpm = value
        return True

    def advance(self, elapsed_seconds: float) -> float:
        elapsed = float(elapsed_seconds)
        if not math.isfinite(elapsed):
            log_event("warning", "Playhead", "Non-finite elapsed time treated as zero", elapsed=elapsed_seconds)
            elapsed = 0.0
        elif elapsed < 0.0:
            log_event("debug", "Playhead", "Negative elapsed time clamped", elapsed=elapsed)
            elapsed = 0.0

        seconds_per_bar = self.seconds_per_bar()
        start = self._progress
        end_unwrapped = start + elapsed / seconds_per_bar

        value = end_unwrapped % 1.0
        if 1.0 - value < _WRAP_EPSILON:
            value = 0.0

        self._progress = value
        self._last_span = ProgressSpan(
            start=start,
            end_unwrapped=end_unwrapped,
            elapsed_seconds=elapsed,
            seconds_per_bar=seconds_per_bar,
        )
        return float(value)

    def arc_length(self, perimeter: float) -> float:
        return self._progress * float(perimeter)

    def last_span(self) -> ProgressSpan:
        return self._last_span

    def reset(self) -> None:
        self._progress = 0.0
        self._last_span = ProgressSpan(0.0, 0.0, 0.0, self.seconds_per_bar())


def _run_unit_tests() -> None:
    playhead = Playhead(120.0)
    assert playhead.seconds_per_bar() == 0.125

    playhead.advance(0.03125)
    assert playhead.progress() == 0.25

    playhead.advance(-1.0)
    assert playhead.progress() == 0.25

    playhead.advance(0.125 * 3.0)
    assert playhead.progress() == 0.25
    assert playhead.last_span().wrapped_full_bar()

    assert not playhead.set_tempo(0.0)
    assert playhead.tempo_bpm() == 120.0

    assert abs(playhead.arc_length(400.0) - 100.0) < 1e-9

    playhead.reset()
    assert playhead.progress() == 0.0


if __name__ == "__main__":
    _run_unit_tests()
    print("playhead.py: ok")
