from __future__ import annotations

from pathlib import Path

import pytest

from bayeskit.samples import SampleFormatError, read_text_samples, read_vector_samples


def test_read_text_samples(tmp_path: Path) -> None:
    corpus = tmp_path / "corpus.tsv"
    corpus.write_text(
        "# comment\npositive\tgreat movie\n\nnegative\tterrible\tfilm\n",
        encoding="utf-8",
    )

    assert list(read_text_samples(corpus)) == [
        ("great movie", "positive"),
        ("terrible\tfilm", "negative"),
    ]


def test_text_sample_without_tab_reports_line(tmp_path: Path) -> None:
    corpus = tmp_path / "corpus.tsv"
    corpus.write_text("positive\tok\nbroken line\n", encoding="utf-8")

    with pytest.raises(SampleFormatError) as excinfo:
        list(read_text_samples(corpus))

    assert excinfo.value.line_number == 2


def test_read_vector_samples(tmp_path: Path) -> None:
    corpus = tmp_path / "points.csv"
    corpus.write_text("0,0,A\n10,10,B\n\n5.5,-1,A\n", encoding="utf-8")

    samples = read_vector_samples(corpus)

    assert samples.vectors == [[0.0, 0.0], [10.0, 10.0], [5.5, -1.0]]
    assert samples.labels == ["A", "B", "A"]


@pytest.mark.parametrize(
    "content",
    [
        "0,0,A\n1,B\n",
        "0,zero,A\n",
        "0,0,\n",
        "A\n",
    ],
)
def test_invalid_vector_rows_raise(tmp_path: Path, content: str) -> None:
    corpus = tmp_path / "points.csv"
    corpus.write_text(content, encoding="utf-8")

    with pytest.raises(SampleFormatError):
        read_vector_samples(corpus)


@pytest.mark.parametrize(
    "reader, name",
    [
        (lambda path: list(read_text_samples(path)), "corpus.tsv"),
        (read_vector_samples, "points.csv"),
    ],
)
def test_non_utf8_corpus_raises_sample_format_error(tmp_path: Path, reader, name: str) -> None:
    corpus = tmp_path / name
    corpus.write_bytes(b"\xff\xfe\x00broken\tbytes\n")

    with pytest.raises(SampleFormatError, match="not valid UTF-8") as excinfo:
        reader(corpus)

    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
