# audio_annote/__init__.py
'''
audio_annote/
    __init__.py
    __main__.py

    app.py                 # QApplication + logging + root selection
    main_window.py         # QMainWindow layout + wiring

    domain.py              # dataclasses: AnnotatorConfig, Region, RegionLabels, RatingAttribute, PlaybackState
    errors.py              # engine exceptions + SkippedEntry diagnostics
    interfaces.py          # RenderingSurface / RegionAuthorizer / TransportObserver protocols
    timeline.py            # clock formatting + ruler notch policy
    tasks.py               # deferred single-threaded task queue
    regions.py             # RegionStore (signals) + LabelAuthorizer
    bridge.py              # surface gestures <-> store, artifact index, region states
    playback.py            # zoom / speed / volume / transport controller
    document.py            # regions + ratings <-> persisted result list
    persistence.py         # load/save root config.json, load/save annotation documents

    widgets/
      waveform_view.py     # waveform canvas + ruler + region overlay + gestures
      audio_surface.py     # QMediaPlayer + waveform view as a RenderingSurface
      labels_panel.py      # label list + color squares + active label checks
      rating_bar.py        # clickable rating icons + hotkey
'''

from __future__ import annotations

__all__ = ["__version__", "run_app"]

__version__ = "0.1.0"

from .app import run_app
