import pytest

import geometry
import playhead
import sequence_models
import sequencer_engine
import shape_path
import tap_channel
import tap_detector


@pytest.mark.parametrize(
    "module",
    [geometry, sequence_models, shape_path, playhead, tap_detector, sequencer_engine, tap_channel],
    ids=lambda module: module.__name__,
)
def test_module_self_check(module):
    module._run_unit_tests()
