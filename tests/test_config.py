import pytest

from audio_annote.domain import (
    LABEL_COLOR_PALETTE_50,
    AnnotatorConfig,
    generated_color_hex,
    get_label_color_hex,
    hex_to_rgb,
    rgb_to_hex,
    with_alpha,
)


def test_defaults() -> None:
    cfg = AnnotatorConfig()
    assert (cfg.zoom_min, cfg.zoom_max, cfg.zoom_step, cfg.zoom_initial) == (200, 700, 10, 230)
    assert cfg.speed_menu == {"1": 0.5, "2": 1.0, "3": 1.25, "4": 1.5, "5": 2.0}
    assert cfg.rating_max == 5


def test_dict_round_trip() -> None:
    cfg = AnnotatorConfig(labels=["a", "b"], zoom_initial=400, rating_hotkey=None)
    cfg.speed_menu = {"slow": 0.75, "fast": 3.0}
    assert AnnotatorConfig.from_dict(cfg.to_dict()) == cfg


def test_from_dict_is_tolerant() -> None:
    cfg = AnnotatorConfig.from_dict(
        {
            "labels": ["speech", "", "  ", 3],
            "label_color_map": {"speech": "2", "bad": "x"},
            "zoom": {"min": 900, "max": 100, "step": 0, "initial": "wide"},
            "volume_step": "loud",
            "speed_menu": {"1": -1, "2": "fast"},
            "rating": {"max": 0},
        }
    )
    assert cfg.labels == ["speech", "3"]
    assert cfg.label_color_map == {"speech": 2}
    assert (cfg.zoom_min, cfg.zoom_max) == (100, 900)
    assert cfg.zoom_step == 1
    assert cfg.zoom_initial == 230
    assert cfg.volume_step == 0.1
    assert cfg.speed_menu == AnnotatorConfig().speed_menu
    assert cfg.rating_max == 1
    assert cfg.rating_hotkey == "r"


def test_from_dict_empty() -> None:
    assert AnnotatorConfig.from_dict({}) == AnnotatorConfig()
    assert AnnotatorConfig.from_dict(None) == AnnotatorConfig()


@pytest.mark.parametrize(
    "value, expected",
    [(1000, 700), (-5, 200), (230, 230), (455.4, 460), (237, 240), (float("inf"), 700), (float("-inf"), 200), (float("nan"), 230)],
)
def test_clamp_zoom(value: float, expected: int) -> None:
    assert AnnotatorConfig().clamp_zoom(value) == expected


def test_label_colors_are_stable() -> None:
    cfg = AnnotatorConfig()
    first = get_label_color_hex("speech", cfg)
    second = get_label_color_hex("music", cfg)

    assert first == LABEL_COLOR_PALETTE_50[0]
    assert second == LABEL_COLOR_PALETTE_50[1]
    assert get_label_color_hex("speech", cfg) == first
    assert cfg.label_color_map == {"speech": 0, "music": 1}


def test_label_colors_past_palette_are_generated() -> None:
    cfg = AnnotatorConfig()
    cfg.label_color_map = {f"l{i}": i for i in range(len(LABEL_COLOR_PALETTE_50))}

    color = get_label_color_hex("extra", cfg)

    assert cfg.label_color_map["extra"] == len(LABEL_COLOR_PALETTE_50)
    assert color == generated_color_hex(0)
    assert get_label_color_hex("extra2", cfg) == generated_color_hex(1)


def test_color_helpers() -> None:
    assert hex_to_rgb("#FF8000") == (255, 128, 0)
    assert hex_to_rgb("#80FF8000") == (255, 128, 0)
    assert hex_to_rgb("nonsense") == (0, 0, 0)
    assert rgb_to_hex((300, -4, 16)) == "#FF0010"
    assert with_alpha("#3CB44B", 0.0) == "#003CB44B"
    assert with_alpha("#3CB44B", 1.0) == "#FF3CB44B"
