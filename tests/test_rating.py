import pytest

from audio_annote.domain import AnnotatorConfig, RatingAttribute
from audio_annote.errors import MalformedEntry


def test_defaults_to_unset() -> None:
    attr = RatingAttribute(name="rating", to_name="audio")
    assert attr.rating == 0
    assert not attr.is_selected
    assert attr.to_state_json() is None


def test_default_value_is_clamped() -> None:
    assert RatingAttribute(name="r", max_rating=3, default_value=7).rating == 3


def test_hotkey_cycles_back_to_zero() -> None:
    attr = RatingAttribute(name="rating", max_rating=5)
    seen = []
    for _ in range(attr.max_rating + 1):
        attr.on_hotkey()
        seen.append(attr.rating)
    assert seen == [1, 2, 3, 4, 5, 0]


def test_set_value_clamps() -> None:
    attr = RatingAttribute(name="rating", max_rating=5)
    attr.set_value(9)
    assert attr.rating == 5
    attr.handle_rate(-2)
    assert attr.rating == 0
    attr.set_value(3)
    assert attr.selected_string() == "3 star"
    assert attr.selected_names() == 3

    attr.unselect_all()
    assert attr.rating == 0


def test_serialize() -> None:
    attr = RatingAttribute(name="quality", to_name="audio")
    attr.set_value(4)
    assert attr.to_state_json() == {
        "id": attr.persisted_id,
        "from_name": "quality",
        "to_name": "audio",
        "type": "rating",
        "value": {"rating": 4},
    }


def test_serialize_defaults_target_to_own_name() -> None:
    attr = RatingAttribute(name="quality")
    attr.set_value(1)
    assert attr.to_state_json()["to_name"] == "quality"


def test_from_state_json_restores_value_and_id() -> None:
    attr = RatingAttribute(name="rating", to_name="audio")
    attr.from_state_json({"id": "abc123", "value": {"rating": 2}})
    assert attr.rating == 2
    assert attr.persisted_id == "abc123"


@pytest.mark.parametrize(
    "entry",
    [
        {"id": "x"},
        {"id": "x", "value": "3"},
        {"id": "x", "value": {}},
        {"id": "x", "value": {"rating": "lots"}},
        {"id": "x", "value": {"rating": None}},
        None,
    ],
)
def test_malformed_rating_rejected(entry) -> None:
    attr = RatingAttribute(name="rating")
    attr.set_value(2)
    with pytest.raises(MalformedEntry):
        attr.from_state_json(entry)
    assert attr.rating == 2
    assert attr.persisted_id != "x"


def test_icon_size_from_config() -> None:
    cfg = AnnotatorConfig()
    assert RatingAttribute(name="r", size="small").icon_size(cfg) == 15
    assert RatingAttribute(name="r", size="large").icon_size() == 40
    assert RatingAttribute(name="r", size="huge").icon_size(cfg) == 25
