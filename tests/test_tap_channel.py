import threading

from sequence_models import NoteEventData, TapEvent
from sequencer_engine import SequencerEngine
from tap_channel import NoteOn, TapChannel, to_note_on


def test_channel_as_engine_sink_preserves_order():
    channel = TapChannel()
    engine = SequencerEngine(beats_per_bar=4, tempo_bpm=120.0, tap_sink=channel)
    engine.advance(0.0)
    for _ in range(4):
        engine.advance(0.03125)

    assert [event.node_index for event in channel.drain()] == [0, 1, 2, 3, 0]
    assert channel.pending_count() == 0


def test_full_channel_drops_instead_of_blocking():
    channel = TapChannel(maxsize=1)
    assert channel.put(TapEvent(node_index=0, payload=None, cycle_timing_offset=0.0))
    assert not channel.put(TapEvent(node_index=1, payload=None, cycle_timing_offset=0.0))
    assert channel.dropped_count() == 1
    assert channel.pending_count() == 1


def test_drain_respects_max_items():
    channel = TapChannel()
    for index in range(5):
        channel.put(TapEvent(node_index=index, payload=None, cycle_timing_offset=0.0))
    assert [event.node_index for event in channel.drain(max_items=2)] == [0, 1]
    assert [event.node_index for event in channel.drain()] == [2, 3, 4]


def test_drain_from_another_thread():
    channel = TapChannel()
    drained = []

    def consume():
        drained.extend(channel.drain())

    for index in range(3):
        channel.put(TapEvent(node_index=index, payload=None, cycle_timing_offset=0.0))
    worker = threading.Thread(target=consume)
    worker.start()
    worker.join(timeout=2.0)
    assert [event.node_index for event in drained] == [0, 1, 2]


def test_note_on_timing_in_frames():
    event = TapEvent(node_index=2, payload=NoteEventData(note=72.0), cycle_timing_offset=0.5)
    assert to_note_on(event, 48000) == NoteOn(timing_frames=24000, data=NoteEventData(note=72.0))
