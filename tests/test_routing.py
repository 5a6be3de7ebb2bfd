from peril.routing import PlayingState


def test_playing_state_to_dict_uses_wire_field_name():
    assert PlayingState(is_paused=True).to_dict() == {"IsPaused": True}


def test_playing_state_round_trip():
    for paused in (True, False):
        state = PlayingState(is_paused=paused)
        assert PlayingState.from_dict(state.to_dict()) == state


def test_playing_state_missing_field_means_not_paused():
    assert PlayingState.from_dict({}).is_paused is False


def test_playing_state_default_is_not_paused():
    assert PlayingState().is_paused is False