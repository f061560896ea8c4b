import json
import os
from pathlib import Path

import pytest

from audio_annote.document import AnnotationDocument
from audio_annote.domain import AnnotatorConfig, RatingAttribute, Region, RegionLabels
from audio_annote.persistence import (
    config_path,
    default_document_path,
    load_config,
    load_document,
    save_config,
    save_document,
)
from audio_annote.regions import RegionStore


def test_config_round_trip(tmp_path: Path) -> None:
    cfg = AnnotatorConfig(labels=["speech", "music"], zoom_initial=300)
    cfg.label_color_map = {"speech": 0, "music": 3}

    path = save_config(cfg, str(tmp_path))

    assert path == config_path(str(tmp_path))
    loaded = load_config(str(tmp_path))
    assert loaded == cfg
    assert [p.name for p in tmp_path.iterdir()] == ["config.json"]


def test_load_config_missing_or_invalid(tmp_path: Path) -> None:
    assert load_config(None) is None
    assert load_config(str(tmp_path)) is None

    (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
    assert load_config(str(tmp_path)) is None

    (tmp_path / "config.json").write_text("[1, 2]", encoding="utf-8")
    assert load_config(str(tmp_path)) is None


def test_save_config_requires_root() -> None:
    with pytest.raises(ValueError):
        save_config(AnnotatorConfig(), "")


def test_default_document_path() -> None:
    assert default_document_path(os.path.join("data", "song.wav")) == os.path.join("data", "song.annotations.json")


def _document(cfg: AnnotatorConfig) -> AnnotationDocument:
    store = RegionStore(cfg)
    rating = RatingAttribute(name="rating", to_name="audio")
    return AnnotationDocument(store, [rating], cfg)


def test_document_round_trip(tmp_path: Path) -> None:
    cfg = AnnotatorConfig()
    doc = _document(cfg)
    doc.source = "song.wav"
    region = doc.store.add(Region(start=1.0, end=2.5, payload=RegionLabels(labels=["speech"])))
    doc.attribute("rating").set_value(2)

    path = str(tmp_path / "song.annotations.json")
    save_document(doc, path)

    on_disk = json.loads(Path(path).read_text(encoding="utf-8"))
    assert on_disk["meta_version"] == 1
    assert on_disk["audio"] == "song.wav"
    assert len(on_disk["result"]) == 2
    assert not [p for p in tmp_path.iterdir() if p.name.startswith(".tmp_")]

    other = _document(cfg)
    report = load_document(other, path)
    assert report.ok
    assert report.regions == 1
    assert report.attributes == 1
    (loaded,) = other.store.regions()
    assert (loaded.start, loaded.end) == (1.0, 2.5)
    assert loaded.persisted_id == region.persisted_id
    assert other.attribute("rating").rating == 2
    assert other.source == "song.wav"


def test_load_document_unreadable(tmp_path: Path) -> None:
    doc = _document(AnnotatorConfig())

    with pytest.raises(OSError):
        load_document(doc, str(tmp_path / "missing.json"))

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_document(doc, str(broken))

    listed = tmp_path / "list.json"
    listed.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_document(doc, str(listed))


def test_save_document_requires_path() -> None:
    with pytest.raises(ValueError):
        save_document(_document(AnnotatorConfig()), "")


def test_save_after_partial_load_keeps_skipped_entries(tmp_path: Path) -> None:
    entries = [
        {"id": "r1", "from_name": "label", "to_name": "audio", "type": "labels",
         "value": {"start": 0.0, "end": 1.0, "labels": ["speech"]}},
        {"id": "c1", "from_name": "mood", "to_name": "audio", "type": "choices", "value": {"choices": ["calm"]}},
    ]
    path = tmp_path / "take.annotations.json"
    path.write_text(json.dumps({"audio": "take.wav", "result": entries, "meta_version": 1}), encoding="utf-8")

    doc = _document(AnnotatorConfig())
    report = load_document(doc, str(path))
    assert [s.entry_id for s in report.skipped] == ["c1"]

    save_document(doc, str(path))

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert [e["id"] for e in on_disk["result"]] == ["r1", "c1"]
    assert on_disk["result"][1] == entries[1]
