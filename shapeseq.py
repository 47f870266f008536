"""
shapeseq.py

Entrypoint for the shape sequencer core.

Modes
- Headless (default): simulates fixed-size frames and prints every tap as one JSON line.
- --qt: runs a QCoreApplication event loop with SequencerClock driving the engine in real time.

Both modes load config.py settings first and apply command line overrides on top.
"""

from __future__ import annotations

import argparse
import json
import math
import sys
from typing import Any, Dict, List, Optional

from config import AppConfig, get_config
from geometry import Bounds
from logging_utils import log_event, set_log_level
from sequence_models import TapEvent
from sequencer_engine import SequencerEngine, TapSink
from tap_channel import TapChannel, to_note_on


def build_engine(app_config: AppConfig, *, tap_sink: Optional[TapSink] = None) -> SequencerEngine:
    settings = app_config.sequencer
    bounds = None
    if settings.bounds_half_extent is not None:
        bounds = Bounds.centered(settings.bounds_half_extent)
    return SequencerEngine(
        beats_per_bar=int(settings.beats_per_bar),
        tempo_bpm=float(settings.tempo_bpm),
        shape_radius=float(settings.shape_radius),
        bounds=bounds,
        emit_skipped_taps=bool(settings.emit_skipped_taps),
        tap_sink=tap_sink,
    )


def _tap_payload(event: TapEvent, *, time_seconds: float, sample_rate: int) -> Dict[str, Any]:
    note_on = to_note_on(event, sample_rate)
    note_value = getattr(event.payload, "note", None)
    return {
        "time_seconds": round(float(time_seconds), 6),
        "node": int(event.node_index),
        "note": note_value,
        "cycle_timing_offset": round(float(event.cycle_timing_offset), 6),
        "timing_frames": int(note_on.timing_frames),
    }


def run_headless(engine: SequencerEngine, channel: TapChannel, *, bars: float, frame_seconds: float, sample_rate: int) -> List[Dict[str, Any]]:
    total_seconds = float(bars) * engine.seconds_per_bar()
    frame_count = int(math.ceil(total_seconds / float(frame_seconds)))
    emitted: List[Dict[str, Any]] = []

    for frame_index in range(frame_count + 1):
        frame_start_seconds = max(0, frame_index - 1) * float(frame_seconds)
        engine.advance(0.0 if frame_index == 0 else float(frame_seconds))
        for event in channel.drain():
            payload = _tap_payload(
                event,
                time_seconds=frame_start_seconds + float(event.cycle_timing_offset),
                sample_rate=sample_rate,
            )
            emitted.append(payload)
            print(json.dumps(payload, ensure_ascii=False))

    return emitted


def run_qt(engine: SequencerEngine, *, bars: float, tick_interval_ms: int, sample_rate: int) -> int:
    from PyQt6.QtCore import QCoreApplication, QTimer

    from sequencer_clock import SequencerClock

    qt_application = QCoreApplication.instance() or QCoreApplication(sys.argv)
    clock = SequencerClock(engine, tick_interval_ms=tick_interval_ms)

    def print_tap(event: TapEvent) -> None:
        print(json.dumps(_tap_payload(event, time_seconds=0.0, sample_rate=sample_rate), ensure_ascii=False))

    clock.tapped.connect(print_tap)

    duration_ms = int(math.ceil(float(bars) * engine.seconds_per_bar() * 1000.0))
    QTimer.singleShot(duration_ms, clock.stop)
    QTimer.singleShot(duration_ms + 1, qt_application.quit)

    clock.start()
    return int(qt_application.exec())


def main(argv: Optional[List[str]] = None) -> int:
    argument_parser = argparse.ArgumentParser(description="Geometric rhythm sequencer core")
    argument_parser.add_argument("--bars", type=float, default=2.0, help="Number of bars to run.")
    argument_parser.add_argument("--frame-ms", type=float, default=16.0, help="Headless frame size in milliseconds.")
    argument_parser.add_argument("--tempo", type=float, default=None, help="Override tempo in BPM.")
    argument_parser.add_argument("--beats", type=int, default=None, help="Override beats per bar (3..8).")
    argument_parser.add_argument("--emit-skipped", action="store_true", help="Tap every node passed in one frame.")
    argument_parser.add_argument("--qt", action="store_true", help="Drive the engine from a Qt event loop.")
    parsed_args = argument_parser.parse_args(argv)

    try:
        app_config, _config_path = get_config()
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    set_log_level(app_config.logging.level)

    channel = TapChannel()
    engine = build_engine(app_config, tap_sink=channel)
    if parsed_args.tempo is not None:
        engine.set_tempo(parsed_args.tempo)
    if parsed_args.beats is not None:
        engine.set_beats_per_bar(parsed_args.beats)
    if parsed_args.emit_skipped:
        engine.set_emit_skipped_taps(True)

    log_event(
        "info",
        "Main",
        "Starting sequencer",
        tempo=engine.tempo_bpm(),
        beats=engine.beats_per_bar(),
        seconds_per_bar=engine.seconds_per_bar(),
    )

    if parsed_args.qt:
        engine.set_tap_sink(None)
        return run_qt(
            engine,
            bars=parsed_args.bars,
            tick_interval_ms=int(app_config.clock.tick_interval_ms),
            sample_rate=int(app_config.clock.sample_rate),
        )

    run_headless(
        engine,
        channel,
        bars=parsed_args.bars,
        frame_seconds=max(0.001, float(parsed_args.frame_ms) / 1000.0),
        sample_rate=int(app_config.clock.sample_rate),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
