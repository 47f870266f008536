import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from geometry import Point  # noqa: E402
from sequencer_clock import SequencerClock  # noqa: E402
from sequencer_engine import SequencerEngine  # noqa: E402


@pytest.fixture(scope="module")
def qt_application():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


class FakeTime:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _clock(qt_application, **engine_kwargs):
    fake_time = FakeTime()
    engine = SequencerEngine(beats_per_bar=4, tempo_bpm=120.0, **engine_kwargs)
    clock = SequencerClock(engine, tick_interval_ms=10, time_source=fake_time)
    taps = []
    snapshots = []
    clock.tapped.connect(taps.append)
    clock.snapshotUpdated.connect(snapshots.append)
    return clock, fake_time, taps, snapshots


def test_ticks_advance_engine_by_measured_time(qt_application):
    clock, fake_time, taps, snapshots = _clock(qt_application)

    clock.tick()
    for _ in range(4):
        fake_time.now += 0.03125
        clock.tick()

    assert [tap.node_index for tap in taps] == [0, 1, 2, 3, 0]
    assert len(snapshots) == 5
    assert snapshots[-1].last_behind_index == 0


def test_skipped_taps_are_all_emitted(qt_application):
    clock, fake_time, taps, _ = _clock(qt_application, emit_skipped_taps=True)
    clock.tick()
    fake_time.now += 0.09375
    event = clock.tick()

    assert event.node_index == 3
    assert [tap.node_index for tap in taps] == [0, 1, 2, 3]


def test_clock_going_backwards_is_clamped(qt_application):
    clock, fake_time, taps, _ = _clock(qt_application)
    clock.tick()
    fake_time.now -= 5.0
    clock.tick()
    assert clock.engine().progress() == 0.0
    assert [tap.node_index for tap in taps] == [0]


def test_ui_slots_forward_to_engine(qt_application):
    clock, _, _, snapshots = _clock(qt_application)

    clock.on_tempo_changed(60.0)
    assert clock.engine().tempo_bpm() == 60.0

    clock.on_node_dragged(2, 12.0, -34.0)
    assert clock.engine().path().position(2) == Point(12.0, -34.0)

    clock.on_time_signature_changed(6)
    assert clock.engine().beats_per_bar() == 6
    assert snapshots[-1].beats_per_bar == 6

    clock.on_reset_requested()
    assert snapshots[-1].progress == 0.0
    assert snapshots[-1].last_behind_index is None


def test_start_and_stop(qt_application):
    clock, _, _, _ = _clock(qt_application)
    clock.start()
    assert clock.is_running()
    clock.stop()
    assert not clock.is_running()
