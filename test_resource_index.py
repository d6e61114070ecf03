"""Tests for the resource index model and its file format."""

import json

import pytest

from clipsync.models.resource import (
    ClipSource,
    Contributor,
    FileMeta,
    ResourceIndex,
    ResourceMeta,
    ResourceRecord,
    parse_timestamp,
)
from clipsync.utils.index_store import IndexFormatError, load_index, persist_index


def make_meta(filename="r1-One.mp3", **overrides):
    fields = dict(
        id="3f0c1a52-3c5e-4a57-9f7e-0d4c1ef0a111",
        ref_id="r1",
        title="One",
        filename=filename,
        source=ClipSource(url="https://www.youtube.com/watch?v=a", title="Video", start_time=10.0),
        description="First clip",
        contributor=Contributor(name="Ann", link="https://ann.example"),
        tags=["intro", "music"],
        language={"en": "One", "ja": "ワン"},
        filemeta=FileMeta(md5="d41d8cd98f00b204e9800998ecf8427e", size=1024, duration=5.0),
    )
    fields.update(overrides)
    return ResourceMeta(**fields)


def test_missing_file_gives_empty_v1_index(tmp_path):
    index = load_index(tmp_path / "meta.json")

    assert index.v == 1
    assert index.resources == {}


def test_persist_then_load_reproduces_the_index(tmp_path):
    path = tmp_path / "meta.json"
    index = ResourceIndex()
    index.put("r1-One.mp3", make_meta())
    index.put("r2-Two.mp3", make_meta("r2-Two.mp3", ref_id="r2", contributor=None, filemeta=None))

    persist_index(path, index)
    reloaded = load_index(path)

    assert reloaded == index
    assert list(tmp_path.iterdir()) == [path]


def test_file_uses_camel_case_keys_and_omits_unset_fields(tmp_path):
    path = tmp_path / "meta.json"
    index = ResourceIndex()
    index.put(
        "r1-One.mp3",
        make_meta(
            source=ClipSource(url="https://v", title="Video"),
            description=None,
            contributor=None,
            tags=None,
            language=None,
            filemeta=None,
        ),
    )

    persist_index(path, index)

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "v": 1,
        "resources": {
            "r1-One.mp3": {
                "id": "3f0c1a52-3c5e-4a57-9f7e-0d4c1ef0a111",
                "refId": "r1",
                "title": "One",
                "filename": "r1-One.mp3",
                "source": {"url": "https://v", "title": "Video"},
            }
        },
    }


def test_persist_overwrites_the_previous_file(tmp_path):
    path = tmp_path / "meta.json"
    path.write_text('{"v": 1, "resources": {"stale.mp3": {}}}', encoding="utf-8")
    index = ResourceIndex()
    index.put("r1-One.mp3", make_meta())

    persist_index(path, index)

    assert list(json.loads(path.read_text(encoding="utf-8"))["resources"]) == ["r1-One.mp3"]


def test_put_refuses_to_replace_an_entry():
    index = ResourceIndex()
    index.put("r1-One.mp3", make_meta())

    with pytest.raises(KeyError):
        index.put("r1-One.mp3", make_meta(ref_id="other"))
    assert index.resources["r1-One.mp3"].ref_id == "r1"
    assert index.has_entry("r1-One.mp3")
    assert not index.has_entry("r2-Two.mp3")


def test_newer_schema_version_is_rejected(tmp_path):
    path = tmp_path / "meta.json"
    path.write_text('{"v": 2, "resources": {}}', encoding="utf-8")

    with pytest.raises(IndexFormatError):
        load_index(path)


def test_corrupt_index_is_rejected(tmp_path):
    path = tmp_path / "meta.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(IndexFormatError):
        load_index(path)


def test_entry_without_required_fields_is_rejected(tmp_path):
    path = tmp_path / "meta.json"
    path.write_text('{"v": 1, "resources": {"a.mp3": {"title": "A"}}}', encoding="utf-8")

    with pytest.raises(IndexFormatError):
        load_index(path)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        ("10", 10.0),
        (5, 5.0),
        (2.5, 2.5),
        ("1:30", 90.0),
        ("00:01:30.5", 90.5),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


@pytest.mark.parametrize(
    "value", ["soon", "-3", "1::2", "1:2:3:4", True, "nan", "inf", "1e309", float("nan")]
)
def test_parse_timestamp_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_record_from_store_document():
    record = ResourceRecord.from_document(
        "301234",
        {
            "title": "Opening",
            "videoUrl": " https://youtu.be/abc ",
            "author": "Ann",
            "startTime": "10",
            "duration": 5,
            "tags": ["intro"],
        },
    )

    assert record.id == "301234"
    assert record.video_url == "https://youtu.be/abc"
    assert record.start_seconds == 10.0
    assert record.duration_seconds == 5.0
    assert record.tags == ["intro"]
    assert record.description is None


def test_record_document_needs_title_and_url():
    with pytest.raises(ValueError):
        ResourceRecord.from_document("1", {"videoUrl": "https://youtu.be/abc"})
    with pytest.raises(ValueError):
        ResourceRecord.from_document("1", {"title": "No url"})
