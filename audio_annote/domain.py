# audio_annote/domain.py
from __future__ import annotations

import colorsys
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import MalformedEntry


# -----------------------------
# Identity
# -----------------------------

def guid() -> str:
    """Short random identifier used for entity ids and persisted ids."""
    return uuid.uuid4().hex[:10]


# -----------------------------
# Labels / Colors
# -----------------------------

# 50 distinct, high-contrast colors (hex). Assigned sequentially to labels.
LABEL_COLOR_PALETTE_50: List[str] = [
    "#E6194B", "#3CB44B", "#FFE119", "#4363D8", "#F58231",
    "#911EB4", "#46F0F0", "#F032E6", "#BCF60C", "#FABEBE",
    "#008080", "#E6BEFF", "#9A6324", "#FFFAC8", "#800000",
    "#AAFFC3", "#808000", "#FFD8B1", "#000075", "#808080",
    "#000000", "#FF4500", "#1E90FF", "#32CD32", "#FFD700",
    "#8A2BE2", "#00CED1", "#FF1493", "#7FFF00", "#FFB6C1",
    "#20B2AA", "#BA55D3", "#B8860B", "#F0E68C", "#A52A2A",
    "#2E8B57", "#BDB76B", "#D2691E", "#4169E1", "#DC143C",
    "#00FA9A", "#9400D3", "#FF8C00", "#2F4F4F", "#ADFF2F",
    "#C71585", "#00BFFF", "#228B22", "#FF6347", "#6A5ACD",
]

_GOLDEN_ANGLE = 137.50776405003785


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    s = (hex_color or "").strip().lstrip("#")
    if len(s) == 8:
        # #AARRGGBB
        s = s[2:]
    if len(s) != 6:
        return (0, 0, 0)
    try:
        return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
    except ValueError:
        return (0, 0, 0)


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    r, g, b = (max(0, min(int(c), 255)) for c in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def with_alpha(hex_color: str, alpha: float) -> str:
    """Return ``#AARRGGBB`` (the form QColor accepts) for an opacity in 0..1."""
    a = int(round(max(0.0, min(float(alpha), 1.0)) * 255.0))
    r, g, b = hex_to_rgb(hex_color)
    return f"#{a:02X}{r:02X}{g:02X}{b:02X}"


def generated_color_hex(gen_index: int) -> str:
    """Deterministic vivid color for labels beyond the fixed palette."""
    hue = ((int(gen_index) + 1) * _GOLDEN_ANGLE) % 360.0
    sat = 0.74 + 0.04 * (int(gen_index) % 3)
    val = 0.88 + 0.035 * (int(gen_index) % 3)
    r, g, b = colorsys.hsv_to_rgb(hue / 360.0, sat, val)
    return rgb_to_hex((int(round(r * 255)), int(round(g * 255)), int(round(b * 255))))


# -----------------------------
# Configuration
# -----------------------------

DEFAULT_SPEED_MENU: Dict[str, float] = {
    "1": 0.5,
    "2": 1.0,
    "3": 1.25,
    "4": 1.5,
    "5": 2.0,
}

DEFAULT_ICON_SIZES: Dict[str, int] = {"small": 15, "medium": 25, "large": 40}


@dataclass
class AnnotatorConfig:
    """
    Explicit configuration handed to the bridge, controller and widgets.
    Stored in <root_dir>/config.json
    """
    from_name: str = "label"
    to_name: str = "audio"
    labels: List[str] = field(default_factory=list)

    # stable mapping: label -> palette index. Keeps colors consistent over time.
    label_color_map: Dict[str, int] = field(default_factory=dict)

    zoom_min: int = 200
    zoom_max: int = 700
    zoom_step: int = 10
    zoom_initial: int = 230

    volume_step: float = 0.1
    speed_menu: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SPEED_MENU))

    wave_color: str = "#97A0AF"
    progress_color: str = "#52c41a"
    region_alpha: float = 0.3
    selected_region_alpha: float = 0.8

    drag_slop_px: int = 5
    waveform_height: int = 128
    icon_sizes: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_ICON_SIZES))

    rating_name: str = "rating"
    rating_max: int = 5
    rating_hotkey: Optional[str] = "r"

    def to_dict(self) -> Dict:
        return {
            "from_name": self.from_name,
            "to_name": self.to_name,
            "labels": list(self.labels),
            "label_color_map": {str(k): int(v) for k, v in self.label_color_map.items()},
            "zoom": {
                "min": int(self.zoom_min),
                "max": int(self.zoom_max),
                "step": int(self.zoom_step),
                "initial": int(self.zoom_initial),
            },
            "volume_step": float(self.volume_step),
            "speed_menu": {str(k): float(v) for k, v in self.speed_menu.items()},
            "colors": {
                "wave": self.wave_color,
                "progress": self.progress_color,
                "region_alpha": float(self.region_alpha),
                "selected_region_alpha": float(self.selected_region_alpha),
            },
            "drag_slop_px": int(self.drag_slop_px),
            "waveform_height": int(self.waveform_height),
            "icon_sizes": {str(k): int(v) for k, v in self.icon_sizes.items()},
            "rating": {
                "name": self.rating_name,
                "max": int(self.rating_max),
                "hotkey": self.rating_hotkey,
            },
            "config_version": 1,
        }

    @staticmethod
    def from_dict(d: Dict) -> "AnnotatorConfig":
        cfg = AnnotatorConfig()
        d = d or {}

        cfg.from_name = str(d.get("from_name") or cfg.from_name)
        cfg.to_name = str(d.get("to_name") or cfg.to_name)
        cfg.labels = [str(x) for x in (d.get("labels") or []) if str(x).strip()]

        raw_map = d.get("label_color_map") or {}
        color_map: Dict[str, int] = {}
        for k, v in raw_map.items():
            try:
                color_map[str(k)] = int(v)
            except (TypeError, ValueError):
                continue
        cfg.label_color_map = color_map

        zoom = d.get("zoom") or {}
        cfg.zoom_min = _int_or(zoom.get("min"), cfg.zoom_min)
        cfg.zoom_max = _int_or(zoom.get("max"), cfg.zoom_max)
        if cfg.zoom_max < cfg.zoom_min:
            cfg.zoom_min, cfg.zoom_max = cfg.zoom_max, cfg.zoom_min
        cfg.zoom_step = max(1, _int_or(zoom.get("step"), cfg.zoom_step))
        cfg.zoom_initial = _int_or(zoom.get("initial"), cfg.zoom_initial)

        cfg.volume_step = _float_or(d.get("volume_step"), cfg.volume_step)

        menu = d.get("speed_menu")
        if isinstance(menu, dict) and menu:
            parsed: Dict[str, float] = {}
            for k, v in menu.items():
                speed = _float_or(v, 0.0)
                if speed > 0:
                    parsed[str(k)] = speed
            if parsed:
                cfg.speed_menu = parsed

        colors = d.get("colors") or {}
        cfg.wave_color = str(colors.get("wave") or cfg.wave_color)
        cfg.progress_color = str(colors.get("progress") or cfg.progress_color)
        cfg.region_alpha = _float_or(colors.get("region_alpha"), cfg.region_alpha)
        cfg.selected_region_alpha = _float_or(colors.get("selected_region_alpha"), cfg.selected_region_alpha)

        cfg.drag_slop_px = max(0, _int_or(d.get("drag_slop_px"), cfg.drag_slop_px))
        cfg.waveform_height = max(16, _int_or(d.get("waveform_height"), cfg.waveform_height))

        sizes = d.get("icon_sizes")
        if isinstance(sizes, dict):
            for k, v in sizes.items():
                cfg.icon_sizes[str(k)] = _int_or(v, cfg.icon_sizes.get(str(k), 25))

        rating = d.get("rating") or {}
        cfg.rating_name = str(rating.get("name") or cfg.rating_name)
        cfg.rating_max = max(1, _int_or(rating.get("max"), cfg.rating_max))
        if "hotkey" in rating:
            cfg.rating_hotkey = rating.get("hotkey") or None
        return cfg

    def clamp_zoom(self, value: float, current: Optional[int] = None) -> int:
        """
        Snap to the zoom_step grid anchored at zoom_min and clamp into
        [zoom_min, zoom_max]. NaN keeps ``current`` (or the initial zoom).
        """
        v = float(value)
        if math.isnan(v):
            return self.clamp_zoom(self.zoom_initial if current is None else current)
        if math.isinf(v):
            return self.zoom_max if v > 0 else self.zoom_min
        step = max(1, int(self.zoom_step))
        snapped = self.zoom_min + int(math.floor((v - self.zoom_min) / step + 0.5)) * step
        return int(max(self.zoom_min, min(snapped, self.zoom_max)))


def _int_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float_or(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# -----------------------------
# Color assignment helpers
# -----------------------------

def get_label_color_hex(label: Optional[str], cfg: Optional[AnnotatorConfig]) -> str:
    """
    Returns a stable color for a label using cfg.label_color_map.
    New labels get the next free palette index; once the palette is exhausted
    they get generated colors instead of wrapping.
    """
    palette_n = len(LABEL_COLOR_PALETTE_50)
    if not label:
        return LABEL_COLOR_PALETTE_50[0]

    if cfg is None:
        return LABEL_COLOR_PALETTE_50[sum(label.encode("utf-8")) % palette_n]

    idx = cfg.label_color_map.get(label)
    if idx is None:
        used = set(int(x) for x in cfg.label_color_map.values())
        idx = next((i for i in range(palette_n) if i not in used), None)
        if idx is None:
            idx = max(max(used) + 1, palette_n)
        cfg.label_color_map[label] = idx

    if idx < palette_n:
        return LABEL_COLOR_PALETTE_50[idx]
    return generated_color_hex(idx - palette_n)


# -----------------------------
# Region + label payload
# -----------------------------

@dataclass
class RegionLabels:
    """
    Default label payload of a region: the label names applied to it.
    An empty payload means the region has no recorded annotation and is left
    out of the persisted document.
    """
    labels: List[str] = field(default_factory=list)
    highlighted: bool = False  # hover / tooltip state
    type: str = "labels"

    def to_state_json(self) -> Optional[Dict]:
        if not self.labels:
            return None
        return {"labels": list(self.labels)}

    def from_state_json(self, value: Dict) -> None:
        labels = (value or {}).get("labels")
        if not isinstance(labels, list):
            raise MalformedEntry("labels value must carry a 'labels' list")
        self.labels = [str(x) for x in labels]

    def on_mouse_over(self) -> None:
        self.highlighted = True

    def on_mouse_leave(self) -> None:
        self.highlighted = False

    def tooltip(self) -> str:
        return ", ".join(self.labels)


@dataclass
class Region:
    """
    A time-bounded interval annotation over the audio track.
    Times are in seconds. ``id`` never changes; ``persisted_id`` is what the
    document stores and is restored on hydration.
    """
    start: float
    end: float
    payload: Any = field(default_factory=RegionLabels)
    color: str = "#4D3CB44B"
    selected_color: str = "#CC3CB44B"
    selected: bool = False
    id: str = field(default_factory=guid)
    persisted_id: str = field(default_factory=guid)

    @property
    def duration(self) -> float:
        return max(0.0, float(self.end) - float(self.start))

    @property
    def display_color(self) -> str:
        return self.selected_color if self.selected else self.color

    def to_state_json(self, from_name: str, to_name: str) -> Optional[Dict]:
        value = self.payload.to_state_json() if self.payload is not None else None
        if not value:
            return None
        return {
            "id": self.persisted_id,
            "from_name": from_name,
            "to_name": to_name,
            "type": getattr(self.payload, "type", "labels"),
            "value": {"start": float(self.start), "end": float(self.end), **value},
        }


def normalize_bounds(start: float, end: float, duration: Optional[float] = None) -> Tuple[float, float]:
    """Swap inverted bounds and clamp both into ``[0, duration]``."""
    s = float(start)
    e = float(end)
    if e < s:
        s, e = e, s
    s = max(0.0, s)
    e = max(0.0, e)
    if duration is not None and duration > 0:
        s = min(s, float(duration))
        e = min(e, float(duration))
    return s, e


# -----------------------------
# Rating attribute
# -----------------------------

@dataclass
class RatingAttribute:
    """
    Ordinal rating (0..max_rating) attached to a named target element.
    A zero rating is "unset" and is omitted from the persisted document.
    """
    name: str
    to_name: Optional[str] = None
    max_rating: int = 5
    default_value: int = 0
    size: str = "medium"   # "small" | "medium" | "large"
    icon: str = "star"     # "star" | "heart" | "fire" | "smile"
    hotkey: Optional[str] = None

    rating: int = field(default=0, init=False)
    type: str = field(default="rating", init=False)
    id: str = field(default_factory=guid)
    persisted_id: str = field(default_factory=guid)

    def __post_init__(self) -> None:
        self.max_rating = max(0, int(self.max_rating))
        self.set_value(self.default_value)

    @property
    def is_selected(self) -> bool:
        return self.rating > 0

    def set_value(self, value: float) -> None:
        self.rating = int(max(0, min(int(value or 0), self.max_rating)))

    handle_rate = set_value

    def advance(self) -> None:
        if self.rating >= self.max_rating:
            self.rating = 0
        else:
            self.rating = self.rating + 1

    def on_hotkey(self) -> None:
        self.advance()

    def unselect_all(self) -> None:
        self.rating = 0

    def selected_string(self) -> str:
        return f"{self.rating} star"

    def selected_names(self) -> int:
        return self.rating

    def icon_size(self, cfg: Optional[AnnotatorConfig] = None) -> int:
        sizes = cfg.icon_sizes if cfg is not None else DEFAULT_ICON_SIZES
        return int(sizes.get(self.size, sizes.get("medium", 25)))

    def to_state_json(self) -> Optional[Dict]:
        if not self.rating:
            return None
        return {
            "id": self.persisted_id,
            "from_name": self.name,
            "to_name": self.to_name or self.name,
            "type": self.type,
            "value": {"rating": self.rating},
        }

    def from_state_json(self, obj: Dict) -> None:
        value = obj.get("value") if isinstance(obj, dict) else None
        if not isinstance(value, dict):
            raise MalformedEntry("rating entry has no 'value'")
        if "rating" not in value:
            raise MalformedEntry("rating entry value has no 'rating'")
        try:
            rating = int(value["rating"])
        except (TypeError, ValueError) as e:
            raise MalformedEntry(f"rating is not a number: {value['rating']!r}") from e

        if obj.get("id"):
            self.persisted_id = str(obj["id"])
        self.set_value(rating)


# -----------------------------
# Playback state
# -----------------------------

@dataclass
class PlaybackState:
    """Transport state owned by the playback controller."""
    position_seconds: float = 0.0
    duration_seconds: float = 0.0
    zoom_px_per_second: int = 230
    speed_multiplier: float = 1.0
    volume: float = 1.0

    def to_dict(self) -> Dict:
        return {
            "position": float(self.position_seconds),
            "duration": float(self.duration_seconds),
            "zoom": int(self.zoom_px_per_second),
            "speed": float(self.speed_multiplier),
            "volume": float(self.volume),
        }
