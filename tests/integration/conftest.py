from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any

import pytest

REVIEWS = [
    ("positive", "An absolutely wonderful film with great acting"),
    ("positive", "Loved the story, the cast was brilliant"),
    ("positive", "Great soundtrack and a moving ending"),
    ("positive", "Brilliant direction, wonderful pacing"),
    ("negative", "Terrible plot and awful dialogue"),
    ("negative", "Boring, far too long and badly acted"),
    ("negative", "The worst film I have seen this year, awful"),
    ("negative", "Dull characters and a terrible ending"),
]

INTENTS = [
    ("greeting", "hello there"),
    ("greeting", "hi how are you"),
    ("greeting", "good morning"),
    ("weather", "will it rain tomorrow"),
    ("weather", "what is the weather like today"),
    ("weather", "is it sunny outside"),
    ("farewell", "goodbye see you later"),
    ("farewell", "bye for now"),
]


class EventCollector:
    """Thread-safe helper for waiting on results produced by worker threads."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []
        self._condition = threading.Condition()

    def add(self, event: dict[str, Any]) -> None:
        with self._condition:
            self.events.append(event)
            self._condition.notify_all()

    def wait_for(self, count: int, timeout: float = 30.0) -> bool:
        """Wait until a minimum number of events have been collected."""

        deadline = time.monotonic() + timeout
        with self._condition:
            while len(self.events) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._condition.wait(timeout=remaining)
            return True


def write_corpus(path: Path, samples: list[tuple[str, str]]) -> Path:
    """Write ``(label, text)`` samples as a ``label<TAB>text`` corpus."""

    path.write_text("".join(f"{label}\t{text}\n" for label, text in samples), encoding="utf-8")
    return path


@pytest.fixture
def reviews_corpus(tmp_path: Path) -> Path:
    return write_corpus(tmp_path / "reviews.tsv", REVIEWS)


@pytest.fixture
def intents_corpus(tmp_path: Path) -> Path:
    return write_corpus(tmp_path / "intents.tsv", INTENTS)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically mark tests in this package as integration."""

    package_root = Path(__file__).resolve().parent
    integration_mark = pytest.mark.integration
    for item in items:
        try:
            path = Path(item.fspath).resolve()
        except OSError:
            continue
        if package_root in path.parents:
            item.add_marker(integration_mark)
