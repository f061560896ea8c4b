import os
from typing import Any, Dict, List, Optional, Tuple

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt5.QtWidgets import QApplication  # noqa: E402

from audio_annote.bridge import RegionBridge  # noqa: E402
from audio_annote.domain import AnnotatorConfig  # noqa: E402
from audio_annote.playback import PlaybackController  # noqa: E402
from audio_annote.regions import LabelAuthorizer, RegionStore  # noqa: E402
from audio_annote.tasks import TaskQueue  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qapp() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


class FakeSurface:
    """Records every call the engine makes on its rendering surface."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.drawn: Dict[str, Tuple[float, float, str]] = {}
        self.patches: List[Tuple[str, Dict[str, Any]]] = []
        self.discarded: List[str] = []
        self._n = 0

    def load(self, source: str) -> None:
        self.calls.append(("load", (source,)))

    def set_zoom(self, px_per_second: int) -> None:
        self.calls.append(("set_zoom", (px_per_second,)))

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", (volume,)))

    def set_speed(self, speed: float) -> None:
        self.calls.append(("set_speed", (speed,)))

    def seek(self, position: float) -> None:
        self.calls.append(("seek", (position,)))

    def seek_and_play(self, position: float, end: Optional[float] = None) -> None:
        self.calls.append(("seek_and_play", (position, end)))

    def play(self) -> None:
        self.calls.append(("play", ()))

    def pause(self) -> None:
        self.calls.append(("pause", ()))

    def draw_region(self, start: float, end: float, color: str) -> str:
        self._n += 1
        artifact_id = f"drawn-{self._n}"
        self.drawn[artifact_id] = (start, end, color)
        return artifact_id

    def patch_region(self, artifact_id: str, **props: Any) -> None:
        self.patches.append((artifact_id, props))

    def discard_region(self, artifact_id: str) -> None:
        self.discarded.append(artifact_id)

    def named(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for n, args in self.calls if n == name]


@pytest.fixture
def cfg() -> AnnotatorConfig:
    return AnnotatorConfig(labels=["speech", "music", "noise"])


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def queue() -> TaskQueue:
    return TaskQueue()


@pytest.fixture
def authorizer(cfg: AnnotatorConfig) -> LabelAuthorizer:
    return LabelAuthorizer(cfg)


@pytest.fixture
def store(cfg: AnnotatorConfig, authorizer: LabelAuthorizer) -> RegionStore:
    return RegionStore(cfg, authorizer=authorizer, styler=authorizer.style)


@pytest.fixture
def controller(surface: FakeSurface, cfg: AnnotatorConfig) -> PlaybackController:
    return PlaybackController(surface, cfg)


@pytest.fixture
def bridge(
    store: RegionStore,
    surface: FakeSurface,
    controller: PlaybackController,
    queue: TaskQueue,
    cfg: AnnotatorConfig,
) -> RegionBridge:
    return RegionBridge(store, surface, controller, queue, cfg)
