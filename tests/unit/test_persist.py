from __future__ import annotations

import json
import zipfile
import zlib
from pathlib import Path

import pytest

from bayeskit.classifiers import (
    IntentClassifier,
    KNearestNeighborsClassifier,
    NaiveBayesClassifier,
)
from bayeskit.persist import (
    FORMAT_VERSION,
    IncompatibleModelError,
    ModelEnvelope,
    ModelIOError,
    read_envelope,
    write_envelope,
)


def _bayes() -> NaiveBayesClassifier:
    classifier = NaiveBayesClassifier()
    classifier.learn("great movie", "positive")
    classifier.learn("terrible film", "negative")
    return classifier


def _write_archive(path: Path, members: dict[str, bytes | str]) -> None:
    with zipfile.ZipFile(path, "w") as archive:
        for name, body in members.items():
            archive.writestr(name, body)


def test_archive_contains_payload_and_metadata(tmp_path: Path) -> None:
    path = _bayes().save(tmp_path / "model.bkm")

    with zipfile.ZipFile(path) as archive:
        assert sorted(archive.namelist()) == ["meta.conf", "model.json"]
        metadata = archive.read("meta.conf").decode("utf-8")
        payload = json.loads(archive.read("model.json"))

    assert metadata.splitlines() == [FORMAT_VERSION, "NaiveBayes", "01"]
    assert payload["vocabulary_size"] == 4
    assert payload["classes"]["positive"]["words"] == ["great", "movie"]


def test_metadata_fields_with_whitespace_survive(tmp_path: Path) -> None:
    path = tmp_path / "spaced.bkm"
    write_envelope(
        path,
        ModelEnvelope(
            format_version=FORMAT_VERSION,
            name="Naive Bayes Variant",
            schema_version="01 beta",
            payload=b"{}",
        ),
    )

    envelope = read_envelope(path)

    assert " " in FORMAT_VERSION
    assert envelope.format_version == FORMAT_VERSION
    assert envelope.name == "Naive Bayes Variant"
    assert envelope.schema_version == "01 beta"
    assert envelope.payload == b"{}"


def test_wrong_classifier_type_is_rejected_without_mutation(tmp_path: Path) -> None:
    knn = KNearestNeighborsClassifier(k=1)
    knn.learn_batch([[0, 0], [1, 1]], ["a", "b"])
    path = knn.save(tmp_path / "knn.bkm")
    target = _bayes()
    before = target.to_state()

    with pytest.raises(IncompatibleModelError) as excinfo:
        target.load(path)

    assert excinfo.value.expected == "NaiveBayes"
    assert excinfo.value.found == "KNearestNeighbors"
    assert target.to_state() == before
    assert target.classify("great") == "positive"


def test_wrong_schema_version_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "future.bkm"
    _write_archive(
        path,
        {"model.json": "{}", "meta.conf": f"{FORMAT_VERSION}\nNaiveBayes\n02\n"},
    )
    target = _bayes()

    with pytest.raises(IncompatibleModelError) as excinfo:
        target.load(path)

    assert excinfo.value.found == "02"
    assert target.classify("terrible") == "negative"


def test_wrong_format_version_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "old.bkm"
    _write_archive(path, {"model.json": "{}", "meta.conf": "Other 9\nIntentClassifier\n01\n"})

    with pytest.raises(IncompatibleModelError):
        IntentClassifier().load(path)


def test_malformed_metadata_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "short.bkm"
    _write_archive(path, {"model.json": "{}", "meta.conf": f"{FORMAT_VERSION}\nNaiveBayes\n"})

    with pytest.raises(IncompatibleModelError):
        read_envelope(path)


def test_missing_member_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "partial.bkm"
    _write_archive(path, {"meta.conf": f"{FORMAT_VERSION}\nNaiveBayes\n01\n"})

    with pytest.raises(IncompatibleModelError):
        read_envelope(path)


def test_invalid_payload_leaves_target_untouched(tmp_path: Path) -> None:
    path = tmp_path / "broken.bkm"
    _write_archive(
        path,
        {
            "model.json": json.dumps({"vocabulary_size": 3, "words": {}}),
            "meta.conf": f"{FORMAT_VERSION}\nNaiveBayes\n01\n",
        },
    )
    target = _bayes()
    before = target.to_state()

    with pytest.raises(IncompatibleModelError):
        target.load(path)

    assert target.to_state() == before


def test_missing_file_raises_model_io_error(tmp_path: Path) -> None:
    path = tmp_path / "missing.bkm"

    with pytest.raises(ModelIOError) as excinfo:
        NaiveBayesClassifier().load(path)

    assert excinfo.value.path == path
    assert isinstance(excinfo.value.__cause__, OSError)


def test_non_archive_raises_model_io_error(tmp_path: Path) -> None:
    path = tmp_path / "garbage.bkm"
    path.write_text("not a zip archive", encoding="utf-8")

    with pytest.raises(ModelIOError):
        read_envelope(path)


def test_corrupt_payload_raises_model_io_error(tmp_path: Path) -> None:
    path = tmp_path / "corrupt.bkm"
    _write_archive(
        path,
        {"model.json": "{not json", "meta.conf": f"{FORMAT_VERSION}\nNaiveBayes\n01\n"},
    )

    with pytest.raises(ModelIOError):
        NaiveBayesClassifier().load(path)


def test_save_replaces_existing_file_atomically(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "model.bkm"
    first = _bayes()
    first.save(path)
    second = NaiveBayesClassifier()
    second.learn("only words", "single")
    second.save(path)

    restored = NaiveBayesClassifier()
    restored.load(path)

    assert restored.labels() == ["single"]
    assert [entry.name for entry in path.parent.iterdir()] == ["model.bkm"]


def test_load_replaces_previous_state(tmp_path: Path) -> None:
    path = _bayes().save(tmp_path / "model.bkm")
    target = NaiveBayesClassifier()
    target.learn("unrelated words", "other")

    target.load(path)

    assert target.labels() == ["negative", "positive"]


def _flip_compressed_bytes(path: Path, member: str, count: int = 8) -> None:
    with zipfile.ZipFile(path) as archive:
        info = archive.getinfo(member)
    raw = bytearray(path.read_bytes())
    header = info.header_offset
    name_length = int.from_bytes(raw[header + 26 : header + 28], "little")
    extra_length = int.from_bytes(raw[header + 28 : header + 30], "little")
    start = header + 30 + name_length + extra_length + info.compress_size // 2
    for offset in range(start, start + count):
        raw[offset] ^= 0xFF
    path.write_bytes(bytes(raw))


def test_damaged_compressed_payload_raises_model_io_error(tmp_path: Path) -> None:
    classifier = NaiveBayesClassifier()
    for index in range(50):
        classifier.learn(f"word{index} filler{index * 7} token{index % 5}", f"label{index % 3}")
    path = classifier.save(tmp_path / "damaged.bkm")
    _flip_compressed_bytes(path, "model.json")

    with pytest.raises(ModelIOError) as excinfo:
        NaiveBayesClassifier().load(path)

    assert excinfo.value.path == path
    assert isinstance(excinfo.value.__cause__, (zlib.error, zipfile.BadZipFile, EOFError))
