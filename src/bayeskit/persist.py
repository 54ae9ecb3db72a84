"""Versioned on-disk envelope shared by all classifiers.

A model file is a zip archive with two members:

``model.json``
    The classifier's state, produced by ``to_state()`` and encoded as JSON.
    The envelope treats it as opaque bytes.
``meta.conf``
    Exactly three lines: envelope format version, classifier name, and
    classifier schema version.

Loading validates the metadata against the target classifier before the
payload is decoded, so a mismatched file never touches the target's state.
"""

from __future__ import annotations

import json
import logging
import uuid
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .classifiers.base import Classifier

LOGGER = logging.getLogger(__name__)

FORMAT_VERSION = "BKM 1"
PAYLOAD_MEMBER = "model.json"
METADATA_MEMBER = "meta.conf"
METADATA_FIELDS = 3


class IncompatibleModelError(ValueError):
    """Raised when a model file does not match the classifier loading it."""

    def __init__(
        self,
        message: str,
        *,
        expected: str | None = None,
        found: str | None = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.found = found


class ModelIOError(OSError):
    """Raised when a model archive cannot be read or written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{reason}: {path}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class ModelEnvelope:
    """Metadata plus opaque payload of a persisted classifier."""

    format_version: str
    name: str
    schema_version: str
    payload: bytes

    def metadata_text(self) -> str:
        return "\n".join([self.format_version, self.name, self.schema_version]) + "\n"


def save_model(classifier: Classifier, path: Path | str) -> Path:
    """Serialise ``classifier`` into an envelope written atomically to ``path``."""

    target = Path(path).expanduser()
    LOGGER.info("Saving %s classifier to %s", classifier.MODEL_NAME, target)
    payload = json.dumps(classifier.to_state(), separators=(",", ":"), sort_keys=True)
    envelope = ModelEnvelope(
        format_version=FORMAT_VERSION,
        name=classifier.MODEL_NAME,
        schema_version=classifier.SCHEMA_VERSION,
        payload=payload.encode("utf-8"),
    )
    write_envelope(target, envelope)
    return target


def load_model(path: Path | str, classifier: Classifier) -> None:
    """Restore ``classifier`` from ``path``, replacing its entire state.

    Raises :class:`IncompatibleModelError` when the file was written by a
    different classifier or schema version; the target is left untouched.
    """

    source = Path(path).expanduser()
    LOGGER.info("Loading %s classifier from %s", classifier.MODEL_NAME, source)
    envelope = read_envelope(source)
    check_compatible(envelope, classifier.MODEL_NAME, classifier.SCHEMA_VERSION)
    state = decode_payload(envelope, source)
    try:
        classifier.from_state(state)
    except IncompatibleModelError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise IncompatibleModelError(
            f"Invalid {envelope.name} payload in {source}: {exc}",
            expected=classifier.MODEL_NAME,
            found=envelope.name,
        ) from exc


def check_compatible(envelope: ModelEnvelope, name: str, schema_version: str) -> None:
    if envelope.format_version != FORMAT_VERSION:
        raise IncompatibleModelError(
            f"Unsupported envelope format {envelope.format_version!r}",
            expected=FORMAT_VERSION,
            found=envelope.format_version,
        )
    if envelope.name != name:
        raise IncompatibleModelError(
            f"File contains a {envelope.name} classifier, not {name}",
            expected=name,
            found=envelope.name,
        )
    if envelope.schema_version != schema_version:
        raise IncompatibleModelError(
            f"Cannot read {name} schema version {envelope.schema_version!r} "
            f"(expected {schema_version!r})",
            expected=schema_version,
            found=envelope.schema_version,
        )


def decode_payload(envelope: ModelEnvelope, source: Path) -> dict[str, Any]:
    try:
        state = json.loads(envelope.payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ModelIOError(source, "Corrupt model payload") from exc
    if not isinstance(state, dict):
        raise IncompatibleModelError(f"Model payload in {source} must be a mapping.")
    return state


def write_envelope(target: Path, envelope: ModelEnvelope) -> None:
    tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(PAYLOAD_MEMBER, envelope.payload)
            archive.writestr(METADATA_MEMBER, envelope.metadata_text())
        tmp_path.replace(target)
    except OSError as exc:
        raise ModelIOError(target, "Failed to write model") from exc
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def read_envelope(source: Path | str) -> ModelEnvelope:
    """Read and parse a model archive without interpreting its payload."""

    path = Path(source).expanduser()
    try:
        with zipfile.ZipFile(path, "r") as archive:
            members = set(archive.namelist())
            missing = {PAYLOAD_MEMBER, METADATA_MEMBER} - members
            if missing:
                raise IncompatibleModelError(
                    f"{path} is not a model archive (missing {', '.join(sorted(missing))})"
                )
            payload = archive.read(PAYLOAD_MEMBER)
            metadata = archive.read(METADATA_MEMBER)
    except zipfile.BadZipFile as exc:
        raise ModelIOError(path, "Not a valid model archive") from exc
    except (zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
        # damaged deflate stream, encrypted or unsupported member
        raise ModelIOError(path, "Corrupt model archive") from exc
    except OSError as exc:
        raise ModelIOError(path, "Failed to read model") from exc

    format_version, name, schema_version = parse_metadata(metadata, path)
    return ModelEnvelope(
        format_version=format_version,
        name=name,
        schema_version=schema_version,
        payload=payload,
    )


def parse_metadata(raw: bytes, path: Path) -> tuple[str, str, str]:
    """Split the metadata record into its fixed fields, one per line."""

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ModelIOError(path, "Corrupt model metadata") from exc
    lines = text.splitlines()
    if len(lines) != METADATA_FIELDS or not all(lines):
        raise IncompatibleModelError(
            f"Malformed metadata in {path}: expected {METADATA_FIELDS} non-empty lines, "
            f"got {len(lines)}"
        )
    return lines[0], lines[1], lines[2]


__all__ = [
    "FORMAT_VERSION",
    "IncompatibleModelError",
    "ModelEnvelope",
    "ModelIOError",
    "check_compatible",
    "load_model",
    "read_envelope",
    "save_model",
    "write_envelope",
]
