"""
Tests for feedback evaluation and variable definitions.
"""

from arena_osc import feedbacks
from arena_osc.variables import get_all_variables, get_layer_variables, layer_variable_id

DURATION = 0.0001  # 60.48s


def play(state, position, layer=1, column=1):
    state.handle_message(f'/composition/layers/{layer}/clips/{column}/transport/position', position)
    state.handle_message(
        f'/composition/layers/{layer}/clips/{column}/transport/position/behaviour/duration', DURATION)


class TestCountdownWarning:

    def test_levels(self, state):
        """None, orange and red by remaining time"""
        play(state, 0.1)
        assert feedbacks.countdown_warning(state, 1) is None

        # 20.16s remaining
        play(state, 2 / 3)
        assert feedbacks.countdown_warning(state, 1) == 'orange'

        # ~6s remaining
        play(state, 0.9)
        assert feedbacks.countdown_warning(state, 1) == 'red'

    def test_finished_clip_is_orange_not_red(self, state):
        """Zero remaining is not critical"""
        play(state, 1.0)
        assert feedbacks.countdown_warning(state, 1) == 'orange'

    def test_unknown_duration(self, state):
        """No level without duration"""
        state.handle_message('/composition/layers/1/clips/1/transport/position', 0.99)
        assert feedbacks.countdown_warning(state, 1) is None
        assert feedbacks.countdown_warning(state, 5) is None

    def test_custom_thresholds(self, state):
        """Thresholds can be overridden"""
        play(state, 0.5)
        assert feedbacks.countdown_warning(state, 1, warning_seconds=40, critical_seconds=35) == 'red'


class TestStateFeedbacks:

    def test_active_column(self, state):
        """Matches only the active column"""
        state.handle_message('/composition/columns/4/connected', 2)
        assert feedbacks.active_column(state, 4)
        assert not feedbacks.active_column(state, 3)

    def test_connected_clip(self, state):
        """Matches only the active clip of the layer"""
        state.handle_message('/composition/layers/2/clips/5/connected', 3)
        assert feedbacks.connected_clip(state, 2, 5)
        assert not feedbacks.connected_clip(state, 2, 4)
        assert not feedbacks.connected_clip(state, 1, 5)


class TestVariables:

    def test_layer_variable_ids(self):
        """Per-layer variable ids"""
        ids = [v['variable_id'] for v in get_layer_variables(3)]
        assert ids == [
            'osc_layer_3_elapsed',
            'osc_layer_3_duration',
            'osc_layer_3_remaining',
            'osc_layer_3_remaining_seconds',
            'osc_layer_3_progress',
            'osc_layer_3_clip_name',
        ]
        assert layer_variable_id(12, 'progress') == 'osc_layer_12_progress'

    def test_default_layers_always_defined(self):
        """Layers 1-10 are always defined"""
        variables = get_all_variables()
        assert len(variables) == 2 + 10 * 6
        assert variables[0]['variable_id'] == 'osc_active_column'

    def test_extra_layers(self):
        """Only layers beyond 10 are added"""
        ids = [v['variable_id'] for v in get_all_variables({3, 12})]
        assert len(ids) == 2 + 11 * 6
        assert 'osc_layer_12_clip_name' in ids
        assert ids.count('osc_layer_3_elapsed') == 1
