import json

import pytest

import shapeseq
from config import AppConfig


@pytest.fixture
def default_config(monkeypatch):
    monkeypatch.setattr(shapeseq, "get_config", lambda: (AppConfig(), None))


def _printed_taps(capsys):
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


def test_headless_run_prints_one_bar_of_taps(default_config, capsys):
    assert shapeseq.main(["--bars", "1", "--frame-ms", "31.25"]) == 0

    taps = _printed_taps(capsys)
    assert [tap["node"] for tap in taps] == [0, 1, 2, 3, 0]
    assert taps[0]["note"] == 81.0
    assert taps[1]["note"] == 69.0
    assert [tap["time_seconds"] for tap in taps] == pytest.approx([0.0, 0.03125, 0.0625, 0.09375, 0.125])


def test_headless_overrides(default_config, capsys):
    assert shapeseq.main(["--bars", "1", "--frame-ms", "5", "--tempo", "60", "--beats", "5"]) == 0

    taps = _printed_taps(capsys)
    assert [tap["node"] for tap in taps] == [0, 1, 2, 3, 4, 0]


def test_emit_skipped_with_coarse_frames(default_config, capsys):
    assert shapeseq.main(["--bars", "1", "--frame-ms", "62.5", "--emit-skipped"]) == 0

    taps = _printed_taps(capsys)
    assert [tap["node"] for tap in taps] == [0, 1, 2, 3, 0]


def test_config_error_returns_two(monkeypatch, capsys):
    def broken_config():
        raise ValueError("Config validation failed")

    monkeypatch.setattr(shapeseq, "get_config", broken_config)
    assert shapeseq.main([]) == 2
    assert json.loads(capsys.readouterr().out)["ok"] is False


def test_build_engine_delivers_taps_to_channel_sink():
    channel = shapeseq.TapChannel()
    engine = shapeseq.build_engine(AppConfig(), tap_sink=channel)

    engine.advance(0.0)
    engine.advance(engine.seconds_per_bar() / 4.0)
    assert [event.node_index for event in channel.drain()] == [0, 1]


def test_build_engine_without_sink_keeps_taps_local():
    engine = shapeseq.build_engine(AppConfig())
    assert engine.advance(0.0).node_index == 0
