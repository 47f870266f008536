# -*- coding: utf-8 -*-
########################
# tap_channel.py
########################
# Purpose:
# - Hand tap events from the sequencer cycle to the audio consumer without blocking either side.
# - Converts a tap's cycle timing offset into a sample-frame offset for note-on scheduling.
#
# Design notes:
# - No Qt usage.
# - put() never blocks. When the queue is full the event is dropped and counted.
# - drain() is meant for the audio callback: it takes whatever is queued and returns at once.
#
########################
# Interfaces:
# Public dataclasses:
# - NoteOn(timing_frames: int, data: PayloadT)
#
# Public classes:
# - class TapChannel
#   - __init__(maxsize: int = 256)
#   - put(event: TapEvent) -> bool
#   - __call__(event: TapEvent) -> bool  (alias of put, so a channel is itself a tap sink)
#   - drain(max_items: Optional[int] = None) -> list[TapEvent]
#   - dropped_count() -> int
#   - pending_count() -> int
#
# Public functions:
# - to_note_on(event: TapEvent, sample_rate: float) -> NoteOn
#
########################

from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Generic, List, Optional

from logging_utils import log_event
from sequence_models import PayloadT, TapEvent


@dataclass(frozen=True)
class NoteOn(Generic[PayloadT]):
    timing_frames: int
    data: PayloadT


def to_note_on(event: TapEvent, sample_rate: float) -> NoteOn:
    frames = int(round(max(0.0, float(event.cycle_timing_offset)) * float(sample_rate)))
    return NoteOn(timing_frames=frames, data=event.payload)


class TapChannel:
    def __init__(self, maxsize: int = 256) -> None:
        self._queue: "queue.Queue[TapEvent]" = queue.Queue(maxsize=max(1, int(maxsize)))
        self._dropped_count = 0

    def put(self, event: TapEvent) -> bool:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._dropped_count += 1
            log_event("warning", "TapChannel", "Queue full, tap dropped", node=event.node_index, dropped=self._dropped_count)
            return False
        return True

    # Lets a channel be passed straight in as the engine's tap sink.
    __call__ = put

    def drain(self, max_items: Optional[int] = None) -> List[TapEvent]:
        drained: List[TapEvent] = []
        while max_items is None or len(drained) < int(max_items):
            try:
                drained.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return drained

    def dropped_count(self) -> int:
        return int(self._dropped_count)

    def pending_count(self) -> int:
        return int(self._queue.qsize())


def _run_unit_tests() -> None:
    channel = TapChannel(maxsize=2)
    first = TapEvent(node_index=0, payload="a", cycle_timing_offset=0.01)
    assert channel.put(first)
    assert channel(TapEvent(node_index=1, payload="b", cycle_timing_offset=0.0))
    assert not channel.put(TapEvent(node_index=2, payload="c", cycle_timing_offset=0.0))
    assert channel.dropped_count() == 1

    drained = channel.drain()
    assert [event.node_index for event in drained] == [0, 1]
    assert channel.drain() == []

    note_on = to_note_on(first, 44100.0)
    assert note_on.timing_frames == 441 and note_on.data == "a"


if __name__ == "__main__":
    _run_unit_tests()
    print("tap_channel.py: ok")
