from typing import List

import pytest
from pytest_mock import MockerFixture

from audio_annote.domain import AnnotatorConfig
from audio_annote.playback import TRANSPORT_PAUSE, TRANSPORT_PLAY, PlaybackController


def test_initial_state(controller: PlaybackController) -> None:
    st = controller.state
    assert st.zoom_px_per_second == 230
    assert st.speed_multiplier == 1.0
    assert st.volume == 1.0
    assert not controller.is_ready()


@pytest.mark.parametrize(
    "value, expected",
    [(1000, 700), (-5, 200), (452, 450), (455, 460), (237, 240), (199.6, 200), (float("inf"), 700), (float("-inf"), 200)],
)
def test_zoom_is_clamped(controller: PlaybackController, surface, value: float, expected: int) -> None:
    assert controller.set_zoom(value) == expected
    assert controller.state.zoom_px_per_second == expected
    assert surface.named("set_zoom")[-1] == (expected,)


def test_zoom_nan_keeps_current(controller: PlaybackController, surface) -> None:
    controller.set_zoom(300)
    calls = len(surface.named("set_zoom"))

    assert controller.set_zoom(float("nan")) == 300
    assert controller.state.zoom_px_per_second == 300
    assert len(surface.named("set_zoom")) == calls


def test_zoom_steps(controller: PlaybackController, surface) -> None:
    assert controller.zoom_in() == 240
    assert controller.zoom_out() == 230
    controller.set_zoom(200)
    calls = len(surface.named("set_zoom"))
    assert controller.zoom_out() == 200
    # unchanged value is not pushed again
    assert len(surface.named("set_zoom")) == calls


def test_volume(controller: PlaybackController, surface) -> None:
    assert controller.set_volume(1.5) == 1.0
    assert surface.named("set_volume") == []

    for _ in range(3):
        controller.volume_down()
    assert controller.state.volume == pytest.approx(0.7)
    assert surface.named("set_volume")[-1] == (controller.state.volume,)

    for _ in range(20):
        controller.volume_down()
    assert controller.state.volume == 0.0
    controller.volume_up()
    assert controller.state.volume == pytest.approx(0.1)


def test_speed(controller: PlaybackController, surface) -> None:
    assert controller.set_speed(0) == 1.0
    assert controller.set_speed(-2) == 1.0
    assert surface.named("set_speed") == []

    assert controller.set_speed_from_menu("5") == 2.0
    assert controller.set_speed_from_menu("missing") == 2.0
    assert controller.set_speed(3.0) == 3.0
    assert surface.named("set_speed") == [(2.0,), (3.0,)]


def test_load_reapplies_transport_settings(controller: PlaybackController, surface) -> None:
    controller.set_zoom(300)
    controller.set_volume(0.5)
    surface.calls.clear()

    controller.load("track.wav")

    assert [name for name, _ in surface.calls] == ["load", "set_speed", "set_zoom", "set_volume"]
    assert surface.named("set_zoom") == [(300,)]
    assert surface.named("set_volume") == [(0.5,)]


def test_ready_fires_once(mocker: MockerFixture, surface, cfg: AnnotatorConfig) -> None:
    observer = mocker.Mock()
    controller = PlaybackController(surface, cfg, observer=observer)
    durations: List[float] = []
    controller.ready.connect(durations.append)

    controller.on_ready(12.0)
    controller.on_ready(12.0)

    observer.on_ready.assert_called_once_with(controller)
    assert durations == [12.0]
    assert controller.state.duration_seconds == 12.0

    controller.load("other.wav")
    controller.on_ready(3.0)
    assert observer.on_ready.call_count == 2
    assert durations == [12.0, 3.0]


def test_transport_goes_through_one_channel(mocker: MockerFixture, surface, cfg: AnnotatorConfig) -> None:
    observer = mocker.Mock()
    controller = PlaybackController(surface, cfg, observer=observer)
    events: List[str] = []
    controller.transport_changed.connect(events.append)

    controller.on_play()
    controller.on_pause()

    assert observer.on_transport_change.call_args_list == [
        mocker.call(TRANSPORT_PLAY),
        mocker.call(TRANSPORT_PAUSE),
    ]
    assert events == ["play", "pause"]


def test_seek_is_clamped_to_duration(controller: PlaybackController, surface) -> None:
    controller.on_ready(10.0)
    controller.seek(25.0)
    controller.seek(-1.0)
    assert surface.named("seek") == [(10.0,), (0.0,)]

    controller.play_region(2.0, 4.0)
    assert surface.named("seek_and_play") == [(2.0, 4.0)]
    assert controller.state.position_seconds == 2.0


def test_play_pause_forward_to_surface(controller: PlaybackController, surface) -> None:
    controller.play()
    controller.pause()
    assert [name for name, _ in surface.calls] == ["play", "pause"]
