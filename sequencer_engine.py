# -*- coding: utf-8 -*-
########################
# sequencer_engine.py
########################
# Purpose:
# - Per-cycle sequencer engine. Advances the playhead, re-measures the shape and taps the node
#   the playhead has just reached.
# - Owns the "last behind node" tap state and the node flash levels.
#
# Design notes:
# - No Qt usage. Pure sequencing logic, safe to call from a render tick or an audio block boundary.
# - advance() is O(N) with N <= 8 and never blocks. The tap sink must not block either.
# - Geometry is re-measured every cycle because nodes may be dragged between (or during) cycles.
# - A tap fires when the node behind the playhead changes, including None -> 0 on the first cycle
#   and N-1 -> 0 at the wrap.
# - Skipped nodes: by default a cycle that passes several nodes taps only the last one. With
#   emit_skipped_taps every crossed node is delivered to the tap sink in order; advance() still
#   returns the last event. Several whole bars in one cycle count as a single pass.
#
########################
# Interfaces:
# Public classes:
# - class SequencerEngine(Generic[PayloadT])
#   - __init__(*, beats_per_bar: int = 4, tempo_bpm: float = 120.0, shape_radius: float = 250.0,
#              payload_factory: Callable[[int], PayloadT] = default_payload_factory,
#              bounds: Optional[Bounds] = None, emit_skipped_taps: bool = False,
#              tap_sink: Optional[Callable[[TapEvent], None]] = None)
#   - advance(elapsed_seconds: float) -> Optional[TapEvent]
#   - reset(*, reshape: bool = True) -> None
#   - set_tempo(bpm: float) -> bool
#   - set_beats_per_bar(n: int) -> int
#   - set_node_position(index: int, point: Point) -> Point
#   - set_node_payload(index: int, payload: PayloadT) -> None
#   - set_tap_sink(tap_sink: Optional[Callable[[TapEvent], None]]) -> None
#   - set_emit_skipped_taps(enabled: bool) -> None
#   - progress() -> float
#   - tempo_bpm() -> float
#   - beats_per_bar() -> int
#   - path() -> ShapePath
#   - last_behind_index() -> Optional[int]
#   - playhead_position() -> Point
#   - snapshot() -> SequencerSnapshot
#
# Inputs:
# - elapsed seconds per cycle; node drags, tempo and time signature changes from the UI.
#
# Outputs:
# - TapEvent values returned from advance() and pushed to the tap sink.
#
########################

from __future__ import annotations

from typing import Callable, Generic, List, Optional

from geometry import Bounds, Point
from logging_utils import log_event
from playhead import Playhead, ProgressSpan
from sequence_models import (
    DEFAULT_NUM_NODES,
    DEFAULT_TEMPO_BPM,
    FLASH_TIME_SECONDS,
    PayloadT,
    SequencerSnapshot,
    TapEvent,
    clamp_num_nodes,
    default_payload_factory,
)
from shape_path import ShapePath
from tap_detector import (
    DEGENERATE_PERIMETER_EPSILON,
    boundary_in_span,
    crossed_indices,
    crossing_offset,
    interpolate_position,
    locate_bracket,
)

DEFAULT_SHAPE_RADIUS = 250.0

TapSink = Callable[[TapEvent], None]


class SequencerEngine(Generic[PayloadT]):
    def __init__(
        self,
        *,
        beats_per_bar: int = DEFAULT_NUM_NODES,
        tempo_bpm: float = DEFAULT_TEMPO_BPM,
        shape_radius: float = DEFAULT_SHAPE_RADIUS,
        payload_factory: Callable[[int], PayloadT] = default_payload_factory,
        bounds: Optional[Bounds] = None,
        emit_skipped_taps: bool = False,
        tap_sink: Optional[TapSink] = None,
    ) -> None:
        self._beats_per_bar = self._clamped_beats(beats_per_bar)
        self._playhead = Playhead(tempo_bpm)
        self._path: ShapePath[PayloadT] = ShapePath(
            self._beats_per_bar,
            shape_radius,
            payload_factory=payload_factory,
            bounds=bounds,
        )
        self._emit_skipped_taps = bool(emit_skipped_taps)
        self._tap_sink = tap_sink
        self._last_behind_index: Optional[int] = None

    # Queries

    def progress(self) -> float:
        return self._playhead.progress()

    def tempo_bpm(self) -> float:
        return self._playhead.tempo_bpm()

    def seconds_per_bar(self) -> float:
        return self._playhead.seconds_per_bar()

    def beats_per_bar(self) -> int:
        return int(self._beats_per_bar)

    def path(self) -> ShapePath[PayloadT]:
        return self._path

    def last_behind_index(self) -> Optional[int]:
        return self._last_behind_index

    def emit_skipped_taps(self) -> bool:
        return bool(self._emit_skipped_taps)

    def playhead_position(self) -> Point:
        cumulative = self._path.cumulative_lengths()
        return self._playhead_position_for(cumulative)

    def snapshot(self) -> SequencerSnapshot:
        cumulative = self._path.cumulative_lengths()
        return SequencerSnapshot(
            progress=self._playhead.progress(),
            tempo_bpm=self._playhead.tempo_bpm(),
            beats_per_bar=int(self._beats_per_bar),
            node_positions=tuple(self._path.positions()),
            flash_levels=tuple(node.flash_level for node in self._path.nodes()),
            cumulative_lengths=tuple(cumulative),
            playhead_position=self._playhead_position_for(cumulative),
            last_behind_index=self._last_behind_index,
        )

    # Commands

    def set_tempo(self, bpm: float) -> bool:
        return self._playhead.set_tempo(bpm)

    def set_beats_per_bar(self, n: int) -> int:
        """Change the node count. Always rebuilds the shape and resets tap state."""
        self._beats_per_bar = self._clamped_beats(n)
        self.reset(reshape=True)
        return int(self._beats_per_bar)

    def set_node_position(self, index: int, point: Point) -> Point:
        return self._path.set_node_position(index, point)

    def set_node_payload(self, index: int, payload: PayloadT) -> None:
        self._path.set_node_payload(index, payload)

    def set_tap_sink(self, tap_sink: Optional[TapSink]) -> None:
        self._tap_sink = tap_sink

    def set_emit_skipped_taps(self, enabled: bool) -> None:
        self._emit_skipped_taps = bool(enabled)

    def reset(self, *, reshape: bool = True) -> None:
        self._playhead.reset()
        self._last_behind_index = None
        if reshape:
            self._path.emplace_regular(self._beats_per_bar)
        for node in self._path.nodes():
            node.flash_level = 0.0
        log_event("info", "Engine", "Sequencer reset", beats_per_bar=self._beats_per_bar, reshape=reshape)

    def advance(self, elapsed_seconds: float) -> Optional[TapEvent[PayloadT]]:
        progress = self._playhead.advance(elapsed_seconds)
        span = self._playhead.last_span()
        self._decay_flash(span.elapsed_seconds)

        cumulative = self._path.cumulative_lengths()
        perimeter = cumulative[-1]
        bracket = locate_bracket(progress * perimeter, cumulative)

        if self._emit_skipped_taps and span.end_unwrapped > span.start:
            candidates = crossed_indices(
                self._last_behind_index,
                bracket.behind,
                len(cumulative) - 1,
                span.wrapped_full_bar(),
            )
            # Nodes whose boundary the playhead did not travel over this cycle only look
            # crossed because a drag moved the behind index backward.
            indices = [
                index
                for index in candidates
                if index == bracket.behind or boundary_in_span(self._boundary_fraction(index, cumulative), span)
            ]
        elif bracket.behind != self._last_behind_index:
            indices = [bracket.behind]
        else:
            indices = []

        event: Optional[TapEvent[PayloadT]] = None
        for index in indices:
            event = self._tap(index, cumulative, span)
        return event

    # Internals

    @staticmethod
    def _boundary_fraction(index: int, cumulative: List[float]) -> float:
        perimeter = cumulative[-1]
        if perimeter < DEGENERATE_PERIMETER_EPSILON:
            return 0.0
        return cumulative[index] / perimeter

    def _tap(self, index: int, cumulative: List[float], span: ProgressSpan) -> TapEvent[PayloadT]:
        boundary_fraction = self._boundary_fraction(index, cumulative)

        node = self._path.node(index)
        node.flash_level = 1.0
        self._last_behind_index = index

        event = TapEvent(
            node_index=index,
            payload=node.payload,
            cycle_timing_offset=crossing_offset(boundary_fraction, span),
        )
        log_event("debug", "Engine", "Tap", node=index, offset=f"{event.cycle_timing_offset:.6f}")
        if self._tap_sink is not None:
            self._tap_sink(event)
        return event

    def _decay_flash(self, elapsed_seconds: float) -> None:
        step = float(elapsed_seconds) / FLASH_TIME_SECONDS
        if step <= 0.0:
            return
        for node in self._path.nodes():
            if node.flash_level > 0.0:
                node.flash_level = max(node.flash_level - step, 0.0)

    def _playhead_position_for(self, cumulative: List[float]) -> Point:
        arc_length = self._playhead.arc_length(cumulative[-1])
        bracket = locate_bracket(arc_length, cumulative)
        return interpolate_position(
            arc_length,
            bracket,
            self._path.position(bracket.behind),
            self._path.position(bracket.ahead),
        )

    @staticmethod
    def _clamped_beats(n: int) -> int:
        value = clamp_num_nodes(n)
        if value != int(n):
            log_event("warning", "Engine", "Beats per bar clamped", requested=int(n), used=value)
        return value


def _run_unit_tests() -> None:
    engine = SequencerEngine(beats_per_bar=4, tempo_bpm=120.0, shape_radius=100.0)

    first = engine.advance(0.0)
    assert first is not None and first.node_index == 0
    assert engine.advance(0.0) is None

    taps = []
    for _ in range(4):
        event = engine.advance(0.03125)
        assert event is not None
        taps.append(event.node_index)
    assert taps == [1, 2, 3, 0]

    position = engine.playhead_position()
    assert abs(position.x) < 1e-9 and abs(position.y - 100.0) < 1e-9

    assert engine.set_beats_per_bar(11) == 8
    assert engine.path().num_nodes() == 8
    assert engine.last_behind_index() is None

    engine.reset()
    engine.reset()
    assert engine.progress() == 0.0 and engine.last_behind_index() is None


if __name__ == "__main__":
    _run_unit_tests()
    print("sequencer_engine.py: ok")
