import pytest

from audio_annote.document import DOCUMENT_VERSION, AnnotationDocument
from audio_annote.domain import AnnotatorConfig, Region, RatingAttribute, RegionLabels
from audio_annote.regions import RegionStore


@pytest.fixture
def rating(cfg: AnnotatorConfig) -> RatingAttribute:
    return RatingAttribute(name=cfg.rating_name, to_name=cfg.to_name, max_rating=cfg.rating_max)


@pytest.fixture
def doc(store: RegionStore, rating: RatingAttribute, cfg: AnnotatorConfig) -> AnnotationDocument:
    doc = AnnotationDocument(store, [rating], cfg)
    doc.source = "clips/take1.wav"
    return doc


def test_to_dict(doc: AnnotationDocument, store: RegionStore, rating: RatingAttribute) -> None:
    region = store.add(Region(start=0.5, end=1.5, payload=RegionLabels(labels=["speech"])))
    store.add(Region(start=2.0, end=3.0))

    d = doc.to_dict()
    assert d["audio"] == "clips/take1.wav"
    assert d["meta_version"] == DOCUMENT_VERSION
    # empty region payload and zero rating are both left out
    assert [e["id"] for e in d["result"]] == [region.persisted_id]

    rating.set_value(3)
    result = doc.to_state_json()
    assert [e["type"] for e in result] == ["labels", "rating"]
    assert result[1]["value"] == {"rating": 3}


def test_partial_hydration_reports_skipped_entries(doc: AnnotationDocument, store: RegionStore, rating: RatingAttribute) -> None:
    entries = [
        {"id": "r1", "from_name": "label", "to_name": "audio", "type": "labels",
         "value": {"start": 1.0, "end": 2.0, "labels": ["speech"]}},
        {"id": "r2", "from_name": "label", "to_name": "audio", "type": "labels",
         "value": {"end": 2.0, "labels": ["speech"]}},
        {"id": "q1", "from_name": "rating", "to_name": "audio", "type": "rating", "value": {"rating": 4}},
        {"id": "c1", "from_name": "mood", "to_name": "audio", "type": "choices", "value": {"choices": ["calm"]}},
        "not an entry",
        {"id": "q2", "from_name": "clarity", "to_name": "audio", "type": "rating", "value": {}},
    ]

    report = doc.from_state_json(entries)

    assert report.regions == 1
    assert report.attributes == 1
    assert not report.ok
    assert [s.index for s in report.skipped] == [1, 3, 4, 5]
    assert [s.entry_id for s in report.skipped] == ["r2", "c1", None, "q2"]
    assert "choices" in report.skipped[1].reason

    (region,) = store.regions()
    assert region.persisted_id == "r1"
    assert rating.rating == 4
    assert rating.persisted_id == "q1"
    # a bad entry never leaves a half-built attribute behind
    assert doc.attribute("clarity") is None

    # skipped entries are written back untouched after the known ones
    assert doc.unloaded == [entries[1], entries[3], entries[4], entries[5]]
    result = doc.to_dict()["result"]
    assert [e["id"] for e in result[:2]] == ["r1", "q1"]
    assert result[2:] == doc.unloaded

    doc.from_state_json([])
    assert doc.unloaded == []


def test_rating_for_unknown_attribute_is_created(doc: AnnotationDocument, cfg: AnnotatorConfig) -> None:
    report = doc.from_state_json(
        [{"id": "q9", "from_name": "clarity", "to_name": "audio", "type": "rating", "value": {"rating": 2}}]
    )

    assert report.ok
    attr = doc.attribute("clarity")
    assert attr is not None
    assert attr.rating == 2
    assert attr.max_rating == cfg.rating_max
    assert attr.to_name == "audio"


def test_hydration_replaces_previous_state(doc: AnnotationDocument, store: RegionStore, rating: RatingAttribute) -> None:
    store.add(Region(start=0.0, end=1.0, payload=RegionLabels(labels=["noise"])))
    rating.set_value(5)

    report = doc.from_state_json([])

    assert report.ok
    assert len(store) == 0
    assert rating.rating == 0


def test_from_dict(doc: AnnotationDocument, store: RegionStore) -> None:
    report = doc.from_dict(
        {
            "audio": "other.wav",
            "result": [
                {"id": "r1", "type": "labels", "value": {"start": 0.0, "end": 1.0, "labels": ["music"]}},
            ],
            "meta_version": 1,
        }
    )
    assert report.ok
    assert doc.source == "other.wav"
    assert len(store) == 1

    bad = doc.from_dict({"audio": "x.wav", "result": {"oops": True}})
    assert not bad.ok
    assert len(store) == 0

    assert doc.from_dict({}).ok
