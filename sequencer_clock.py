# -*- coding: utf-8 -*-
########################
# sequencer_clock.py
########################
# Purpose:
# - Qt driver for SequencerEngine. Runs one engine cycle per QTimer tick.
# - Emits tap events for the audio side and snapshots for renderers.
# - Receives UI events (node drags, tempo, time signature, reset) as slots.
#
# Design notes:
# - All sequencing logic stays in SequencerEngine. This module only measures elapsed time and forwards.
# - Time source is injected as a callable returning monotonic seconds.
# - tick() can be called directly for tests and headless use.
#
########################
# Interfaces:
# Public classes:
# - class SequencerClock(PyQt6.QtCore.QObject)
#   - Signals:
#     - tapped(TapEvent)
#     - snapshotUpdated(SequencerSnapshot)
#   - Methods:
#     - engine() -> SequencerEngine
#     - start() -> None
#     - stop() -> None
#     - is_running() -> bool
#     - tick() -> Optional[TapEvent]
#     - on_node_dragged(index: int, x: float, y: float) -> None
#     - on_tempo_changed(bpm: float) -> None
#     - on_time_signature_changed(beats_per_bar: int) -> None
#     - on_reset_requested() -> None
#
# Inputs:
# - QTimer timeouts, UI events.
#
# Outputs:
# - tapped and snapshotUpdated signals.
#
########################

from __future__ import annotations

import time
from typing import Callable, List, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from geometry import Point
from logging_utils import log_event
from sequence_models import TapEvent
from sequencer_engine import SequencerEngine


class SequencerClock(QObject):
    tapped = pyqtSignal(object)
    snapshotUpdated = pyqtSignal(object)

    def __init__(
        self,
        engine: SequencerEngine,
        tick_interval_ms: int = 16,
        time_source: Callable[[], float] = time.perf_counter,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._time_source = time_source
        self._last_time_seconds: Optional[float] = None
        self._pending_taps: List[TapEvent] = []

        # Collect every tap the engine delivers, including skipped-node taps.
        self._engine.set_tap_sink(self._pending_taps.append)

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(max(1, int(tick_interval_ms)))
        self._tick_timer.timeout.connect(self.tick)

    def engine(self) -> SequencerEngine:
        return self._engine

    def start(self) -> None:
        if self._tick_timer.isActive():
            return
        self._last_time_seconds = float(self._time_source())
        self._tick_timer.start()
        log_event("info", "Clock", "Sequencer clock started", interval_ms=self._tick_timer.interval())

    def stop(self) -> None:
        if self._tick_timer.isActive():
            self._tick_timer.stop()
            log_event("info", "Clock", "Sequencer clock stopped")
        self._last_time_seconds = None

    def is_running(self) -> bool:
        return bool(self._tick_timer.isActive())

    def tick(self) -> Optional[TapEvent]:
        now_seconds = float(self._time_source())
        if self._last_time_seconds is None:
            elapsed_seconds = 0.0
        else:
            elapsed_seconds = max(0.0, now_seconds - self._last_time_seconds)
        self._last_time_seconds = now_seconds

        event = self._engine.advance(elapsed_seconds)

        pending = list(self._pending_taps)
        self._pending_taps.clear()
        for tap_event in pending:
            self.tapped.emit(tap_event)

        self.snapshotUpdated.emit(self._engine.snapshot())
        return event

    def on_node_dragged(self, index: int, x: float, y: float) -> None:
        self._engine.set_node_position(int(index), Point(x=float(x), y=float(y)))

    def on_tempo_changed(self, bpm: float) -> None:
        self._engine.set_tempo(float(bpm))

    def on_time_signature_changed(self, beats_per_bar: int) -> None:
        self._engine.set_beats_per_bar(int(beats_per_bar))
        self.snapshotUpdated.emit(self._engine.snapshot())

    def on_reset_requested(self) -> None:
        self._engine.reset(reshape=True)
        self.snapshotUpdated.emit(self._engine.snapshot())
