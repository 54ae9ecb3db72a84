"""Readers for labelled training corpora."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

LOGGER = logging.getLogger(__name__)


class SampleFormatError(ValueError):
    """Raised when a corpus line cannot be parsed."""

    def __init__(self, path: Path, line_number: int, reason: str) -> None:
        super().__init__(f"{path}:{line_number}: {reason}")
        self.path = path
        self.line_number = line_number


@dataclass(frozen=True)
class VectorSamples:
    """Parallel training vectors and labels."""

    vectors: list[list[float]]
    labels: list[str]


def read_text_samples(path: Path) -> Iterator[tuple[str, str]]:
    """Yield ``(text, label)`` pairs from a ``label<TAB>text`` file.

    Blank lines and lines starting with ``#`` are skipped.
    """

    line_number = 0
    with path.open("r", encoding="utf-8") as handle:
        try:
            for line_number, line in enumerate(handle, start=1):
                stripped = line.rstrip("\r\n")
                if not stripped.strip() or stripped.lstrip().startswith("#"):
                    continue
                if "\t" not in stripped:
                    raise SampleFormatError(path, line_number, "expected 'label<TAB>text'")
                label, text = stripped.split("\t", 1)
                if not label.strip():
                    raise SampleFormatError(path, line_number, "label cannot be empty")
                yield text, label.strip()
        except UnicodeDecodeError as exc:
            raise SampleFormatError(path, line_number + 1, "corpus is not valid UTF-8") from exc


def read_vector_samples(path: Path) -> VectorSamples:
    """Read ``f1,...,fn,label`` rows; every row must have the same width."""

    vectors: list[list[float]] = []
    labels: list[str] = []
    width: int | None = None
    line_number = 0
    with path.open("r", encoding="utf-8", newline="") as handle:
        try:
            for line_number, row in enumerate(csv.reader(handle), start=1):
                if not row or (len(row) == 1 and not row[0].strip()):
                    continue
                if row[0].lstrip().startswith("#"):
                    continue
                if len(row) < 2:
                    raise SampleFormatError(path, line_number, "expected features and a label")
                if width is not None and len(row) != width:
                    raise SampleFormatError(
                        path, line_number, f"expected {width - 1} features, got {len(row) - 1}"
                    )
                width = len(row)
                vectors.append(parse_vector(row[:-1], path=path, line_number=line_number))
                label = row[-1].strip()
                if not label:
                    raise SampleFormatError(path, line_number, "label cannot be empty")
                labels.append(label)
        except UnicodeDecodeError as exc:
            raise SampleFormatError(path, line_number + 1, "corpus is not valid UTF-8") from exc
    LOGGER.debug("Read %d vector samples from %s", len(labels), path)
    return VectorSamples(vectors=vectors, labels=labels)


def parse_vector(
    values: list[str],
    *,
    path: Path | None = None,
    line_number: int = 0,
) -> list[float]:
    try:
        return [float(value) for value in values]
    except ValueError as exc:
        if path is None:
            raise
        raise SampleFormatError(path, line_number, f"non-numeric feature ({exc})") from exc


__all__ = [
    "SampleFormatError",
    "VectorSamples",
    "parse_vector",
    "read_text_samples",
    "read_vector_samples",
]
