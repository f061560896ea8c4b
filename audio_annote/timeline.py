# audio_annote/timeline.py
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, NamedTuple


# -----------------------------
# Clock formatting
# -----------------------------

def ms_to_time_str(ms: int) -> str:
    if ms is None:
        ms = 0
    ms = max(0, int(ms))
    s = ms // 1000
    m = s // 60
    s = s % 60
    return f"{m:02d}:{s:02d}"


def seconds_to_time_str(sec: float) -> str:
    if sec is None:
        sec = 0.0
    return ms_to_time_str(int(round(float(sec) * 1000.0)))


# -----------------------------
# Ruler notch policy
# -----------------------------
#
# The ruler asks four questions of the current pixel density (px per second):
# how to print a notch label, how far apart notches are, and which notches get
# a primary / secondary label. All four walk the same breakpoint ladder so the
# answers stay consistent with each other.

_FRACTION_2_DIGITS_PX = 25 * 10
_FRACTION_1_DIGIT_PX = 25


def _check_density(px_per_sec: float) -> float:
    px = float(px_per_sec)
    if not px > 0:
        raise ValueError(f"px_per_sec must be > 0, got {px_per_sec!r}")
    return px


def _fixed(value: float, digits: int) -> str:
    # toFixed-style: ties round away from zero, not to even
    quantum = Decimal(1).scaleb(-digits)
    return format(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP), "f")


def _coarse_spacing(px: float) -> int:
    # Fewer than one notch per 15 seconds fits: fall back to whole minutes.
    return int(math.ceil(0.5 / px)) * 60


def format_label(seconds: float, px_per_sec: float) -> str:
    """Format a notch label as ``M:SS.frac``.

    Minutes are suppressed below one minute and ``frac`` has 0, 1 or 2 digits
    as the zoom increases.
    """
    px = _check_density(px_per_sec)
    seconds = float(seconds)
    minutes = int(math.floor(seconds / 60.0))
    seconds = seconds - minutes * 60.0

    if px >= _FRACTION_2_DIGITS_PX:
        seconds_str = _fixed(seconds, 2)
    elif px >= _FRACTION_1_DIGIT_PX:
        seconds_str = _fixed(seconds, 1)
    else:
        seconds_str = _fixed(seconds, 0)

    if minutes > 0:
        if seconds < 10:
            seconds_str = "0" + seconds_str
        return f"{minutes}:{seconds_str}"
    return seconds_str


def notch_interval_seconds(px_per_sec: float) -> float:
    """Seconds between two notches; non-increasing as the density grows."""
    px = _check_density(px_per_sec)
    if px >= 25 * 100:
        return 0.01
    if px >= 25 * 40:
        return 0.025
    if px >= 25 * 10:
        return 0.1
    if px >= 25 * 4:
        return 0.25
    if px >= 25:
        return 1
    if px * 5 >= 25:
        return 5
    if px * 15 >= 25:
        return 15
    return _coarse_spacing(px)


def primary_label_cadence(px_per_sec: float) -> int:
    """Label every Nth notch in the primary style."""
    px = _check_density(px_per_sec)
    if px >= 25 * 100:
        return 10
    if px >= 25 * 40:
        return 4
    if px >= 25 * 10:
        return 10
    if px >= 25 * 4:
        return 4
    if px >= 25:
        return 1
    if px * 5 >= 25:
        return 5
    if px * 15 >= 25:
        return 15
    return _coarse_spacing(px)


def secondary_label_cadence(px_per_sec: float) -> int:
    """Label every Nth notch in the secondary style, about one per 10 seconds."""
    return int(math.floor(10 / notch_interval_seconds(px_per_sec)))


# -----------------------------
# Notch enumeration for ruler painters
# -----------------------------

class Notch(NamedTuple):
    time: float
    x: float
    label: str
    primary: bool
    secondary: bool


def notches(duration: float, px_per_sec: float) -> Iterator[Notch]:
    """Yield every notch of a ruler covering ``[0, duration]``.

    ``x`` is relative to the start of the track. Notches that carry neither a
    primary nor a secondary label get an empty ``label``.
    """
    px = _check_density(px_per_sec)
    duration = max(0.0, float(duration or 0.0))
    interval = float(notch_interval_seconds(px))
    primary = primary_label_cadence(px)
    secondary = secondary_label_cadence(px)

    count = int(math.floor(duration / interval + 1e-9))
    for i in range(count + 1):
        t = i * interval
        is_primary = primary > 0 and i % primary == 0
        is_secondary = secondary > 0 and i % secondary == 0
        label = format_label(t, px) if (is_primary or is_secondary) else ""
        yield Notch(time=t, x=t * px, label=label, primary=is_primary, secondary=is_secondary)
