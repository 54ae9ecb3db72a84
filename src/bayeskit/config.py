"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .classifiers.knn import DistanceMethod
from .tokenizers import Tokenizer, build_tokenizer

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/bayeskit/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/lib/bayeskit")
DEFAULT_LOG_LEVEL = "info"
DEFAULT_TOKENIZER = "default"
DEFAULT_K = 3


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class TokenizerConfig:
    """Which tokenizer strategy the text classifiers are built with."""

    name: str = DEFAULT_TOKENIZER
    remove_stop_words: bool = False
    min_n: int = 1
    max_n: int = 2

    def build(self) -> Tokenizer:
        return build_tokenizer(
            self.name,
            remove_stop_words=self.remove_stop_words,
            min_n=self.min_n,
            max_n=self.max_n,
        )


@dataclass(frozen=True)
class KnnConfig:
    """Defaults for new nearest-neighbour models."""

    k: int = DEFAULT_K
    distance: DistanceMethod = DistanceMethod.EUCLIDEAN
    weights: tuple[float, ...] | None = None


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path = DEFAULT_ROOT_DIR.expanduser()
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    knn: KnnConfig = field(default_factory=KnnConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML.

    A missing file is only an error when it was requested explicitly or via
    ``BAYESKIT_CONFIG``; otherwise defaults are returned.
    """

    config_path, explicit = _resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        LOGGER.debug("No config at %s, using defaults", config_path)
        return Config()

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return _parse_config(raw)


def _resolve_config_path(explicit: Path | str | None) -> tuple[Path, bool]:
    if explicit:
        return Path(explicit).expanduser(), True
    env_path = os.environ.get("BAYESKIT_CONFIG")
    if env_path:
        return Path(env_path).expanduser(), True
    return DEFAULT_CONFIG_PATH.expanduser(), False


def _parse_config(raw: dict[str, Any]) -> Config:
    root_dir = Path(raw.get("rootdir") or raw.get("root_dir") or DEFAULT_ROOT_DIR).expanduser()
    return Config(
        root_dir=root_dir,
        tokenizer=_parse_tokenizer(raw.get("tokenizer")),
        knn=_parse_knn(raw.get("knn")),
        logging=_parse_logging(raw.get("logging")),
    )


def _parse_tokenizer(value: Any) -> TokenizerConfig:
    if value is None:
        return TokenizerConfig()
    if isinstance(value, str):
        value = {"name": value}
    if not isinstance(value, dict):
        raise ConfigError("tokenizer must be a mapping or a tokenizer name.")
    config = TokenizerConfig(
        name=str(value.get("name", DEFAULT_TOKENIZER)),
        remove_stop_words=bool(value.get("remove_stop_words", False)),
        min_n=_parse_int(value.get("min_n", 1), "tokenizer.min_n"),
        max_n=_parse_int(value.get("max_n", 2), "tokenizer.max_n"),
    )
    try:
        config.build()
    except ValueError as exc:
        raise ConfigError(f"tokenizer: {exc}") from exc
    return config


def _parse_knn(value: Any) -> KnnConfig:
    if value is None:
        return KnnConfig()
    if not isinstance(value, dict):
        raise ConfigError("knn must be a mapping.")
    k = _parse_int(value.get("k", DEFAULT_K), "knn.k")
    if k < 1:
        raise ConfigError("knn.k must be at least 1.")
    try:
        distance = DistanceMethod(str(value.get("distance", DistanceMethod.EUCLIDEAN.value)))
    except ValueError as exc:
        choices = ", ".join(method.value for method in DistanceMethod)
        raise ConfigError(f"knn.distance must be one of: {choices}.") from exc
    return KnnConfig(k=k, distance=distance, weights=_parse_weights(value.get("weights")))


def _parse_weights(value: Any) -> tuple[float, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not value:
        raise ConfigError("knn.weights must be a non-empty list of numbers.")
    weights: list[float] = []
    for idx, entry in enumerate(value, start=1):
        if isinstance(entry, bool) or not isinstance(entry, (int, float)):
            raise ConfigError(f"knn.weights[{idx}] must be a number.")
        if entry < 0:
            raise ConfigError(f"knn.weights[{idx}] cannot be negative.")
        weights.append(float(entry))
    return tuple(weights)


def _parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer.")
    return value


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = bool(value.get("debug_file", False))
    return LoggingConfig(level=level, debug_file=debug_file)


__all__ = [
    "Config",
    "ConfigError",
    "KnnConfig",
    "LoggingConfig",
    "TokenizerConfig",
    "load_config",
]
