# -*- coding: utf-8 -*-
########################
# sequence_models.py
########################
# Purpose:
# - Core data models for the shape sequencer runtime.
# - Defines nodes, tap events, the default note payload and the read-only snapshot for renderers.
#
# Design notes:
# - No Qt usage. Plain dataclasses.
# - Payloads are opaque to the engine. PayloadT is whatever the application attaches to a node.
# - Node is the only mutable model; everything handed to collaborators is frozen.
#
########################
# Interfaces:
# Constants:
# - MIN_NUM_NODES, MAX_NUM_NODES, DEFAULT_NUM_NODES, DEFAULT_TEMPO_BPM, FLASH_TIME_SECONDS
#
# Public dataclasses:
# - NoteEventData(note: float)
#   - frequency_hz() -> float
# - Node(position: Point, payload: PayloadT, flash_level: float)
# - TapEvent(node_index: int, payload: PayloadT, cycle_timing_offset: float)
# - SequencerSnapshot(progress, tempo_bpm, beats_per_bar, node_positions, flash_levels,
#                     cumulative_lengths, playhead_position, last_behind_index)
#
# Public functions:
# - note_to_freq(note: float) -> float
# - default_payload_factory(index: int) -> NoteEventData
# - clamp_num_nodes(value: int) -> int
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar

from geometry import Point

MIN_NUM_NODES = 3
MAX_NUM_NODES = 8
DEFAULT_NUM_NODES = 4
DEFAULT_TEMPO_BPM = 120.0

# Time for a tapped node's flash to fade back to idle.
FLASH_TIME_SECONDS = 0.40

DEFAULT_NOTE = 69.0
ROOT_ACCENT_SEMITONES = 12.0

PayloadT = TypeVar("PayloadT")


def note_to_freq(note: float) -> float:
    return 440.0 * (2.0 ** ((float(note) - 69.0) / 12.0))


def clamp_num_nodes(value: int) -> int:
    return max(MIN_NUM_NODES, min(MAX_NUM_NODES, int(value)))


@dataclass(frozen=True)
class NoteEventData:
    """Default application payload: a MIDI note number (fractional notes allowed)."""

    note: float = DEFAULT_NOTE

    def frequency_hz(self) -> float:
        return note_to_freq(self.note)


def default_payload_factory(index: int) -> NoteEventData:
    # The first node is the downbeat and sounds an octave up.
    if int(index) == 0:
        return NoteEventData(note=DEFAULT_NOTE + ROOT_ACCENT_SEMITONES)
    return NoteEventData(note=DEFAULT_NOTE)


@dataclass
class Node(Generic[PayloadT]):
    position: Point
    payload: PayloadT
    flash_level: float = 0.0


@dataclass(frozen=True)
class TapEvent(Generic[PayloadT]):
    node_index: int
    payload: PayloadT
    cycle_timing_offset: float


@dataclass(frozen=True)
class SequencerSnapshot:
    progress: float
    tempo_bpm: float
    beats_per_bar: int
    node_positions: Tuple[Point, ...]
    flash_levels: Tuple[float, ...]
    cumulative_lengths: Tuple[float, ...]
    playhead_position: Point
    last_behind_index: Optional[int]

    @property
    def perimeter(self) -> float:
        return float(self.cumulative_lengths[-1]) if self.cumulative_lengths else 0.0


def _run_unit_tests() -> None:
    assert abs(note_to_freq(69.0) - 440.0) < 1e-9
    assert abs(note_to_freq(81.0) - 880.0) < 1e-9
    assert default_payload_factory(0).note == 81.0
    assert default_payload_factory(3).note == 69.0
    assert clamp_num_nodes(1) == MIN_NUM_NODES
    assert clamp_num_nodes(12) == MAX_NUM_NODES

    event = TapEvent(node_index=2, payload={"anything": True}, cycle_timing_offset=0.0)
    assert event.payload == {"anything": True}


if __name__ == "__main__":
    _run_unit_tests()
    print("sequence_models.py: ok")
