import pytest

from logging_utils import get_log_level, log_event, set_log_level


@pytest.fixture
def restore_level():
    previous = get_log_level()
    yield
    set_log_level(previous)


def test_set_log_level_round_trips(restore_level):
    set_log_level("debug")
    assert get_log_level() == "DEBUG"
    set_log_level("WARNING")
    assert get_log_level() == "WARNING"


def test_unknown_level_falls_back_to_info(restore_level):
    set_log_level("chatty")
    assert get_log_level() == "INFO"


def test_log_event_appends_fields(restore_level, caplog):
    set_log_level("DEBUG")
    log_event("info", "Engine", "Tap", node=2, offset="0.031250")

    record = caplog.records[-1]
    assert record.name == "shapeseq"
    assert record.getMessage() == "Tap | node=2 offset=0.031250"
    assert record.tag == "Engine"


def test_log_event_skips_disabled_levels(restore_level, caplog):
    set_log_level("ERROR")
    log_event("debug", "Engine", "Tap", node=0)
    assert [record for record in caplog.records if record.name == "shapeseq"] == []
