"""bayeskit command-line interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from . import __version__
from .classifiers import (
    IntentClassifier,
    KNearestNeighborsClassifier,
    NaiveBayesClassifier,
    NotClassifiedError,
)
from .classifiers.base import Classifier, DimensionMismatchError
from .classifiers.registry import ModelKind, create_classifier, open_model
from .config import Config, ConfigError, load_config
from .logging import configure_logging
from .persist import IncompatibleModelError, ModelIOError, read_envelope
from .samples import SampleFormatError, parse_vector, read_text_samples, read_vector_samples

app = typer.Typer(help="Train, apply and inspect bayeskit text classifiers.")
LOGGER = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None


@app.callback()
def _bayeskit(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Path to config (env BAYESKIT_CONFIG or ~/.config/bayeskit/config.yaml).",
        ),
    ] = None,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved)


@app.command()
def train(
    ctx: typer.Context,
    model: Annotated[Path, typer.Argument(..., help="Where to write the trained model.")],
    corpus: Annotated[
        Path,
        typer.Argument(..., help="TSV label<TAB>text corpus (CSV f1,...,fn,label for knn)."),
    ],
    kind: Annotated[
        ModelKind,
        typer.Option("-k", "--kind", help="Classifier family to train."),
    ] = ModelKind.NAIVE_BAYES,
    append: Annotated[
        bool,
        typer.Option("--append", help="Continue training an existing model."),
    ] = False,
) -> None:
    """Train a classifier from a corpus file and save it."""

    config = _load_environment(_state(ctx))
    model_path = model.expanduser()
    corpus_path = corpus.expanduser()
    if not corpus_path.is_file():
        _fail(f"Corpus file not found: {corpus_path}")

    classifier = create_classifier(kind, config)
    try:
        if append and model_path.exists():
            classifier.load(model_path)
        count = _train_from_corpus(classifier, corpus_path)
        classifier.save(model_path)
    except (
        SampleFormatError,
        DimensionMismatchError,
        ModelIOError,
        IncompatibleModelError,
    ) as exc:
        _fail(str(exc))

    LOGGER.info("Trained %s on %d samples from %s", classifier.MODEL_NAME, count, corpus_path)
    typer.echo(f"Trained {classifier.MODEL_NAME} on {count} sample(s) → {model_path}")


@app.command()
def classify(
    ctx: typer.Context,
    model: Annotated[Path, typer.Argument(..., help="Trained model file.")],
    inputs: Annotated[
        list[str],
        typer.Argument(..., help="Texts to classify (comma-separated numbers for knn models)."),
    ],
) -> None:
    """Print the predicted label for each input."""

    config = _load_environment(_state(ctx))
    try:
        classifier = open_model(model.expanduser(), config)
    except (ModelIOError, IncompatibleModelError) as exc:
        _fail(str(exc))

    for text in inputs:
        try:
            label = _classify_one(classifier, text)
        except NotClassifiedError as exc:
            typer.secho(f"{text}\t<not classified: {exc}>", fg=typer.colors.YELLOW)
            continue
        except (ValueError, DimensionMismatchError) as exc:
            _fail(f"Invalid input {text!r}: {exc}")
        typer.echo(f"{text}\t{label}")


@app.command()
def inspect(
    ctx: typer.Context,
    model: Annotated[Path, typer.Argument(..., help="Model file to describe.")],
) -> None:
    """Show the envelope metadata of a saved model."""

    _load_environment(_state(ctx))
    try:
        envelope = read_envelope(model.expanduser())
    except (ModelIOError, IncompatibleModelError) as exc:
        _fail(str(exc))

    typer.echo(f"bayeskit {__version__}")
    typer.echo(f"Format: {envelope.format_version}")
    typer.echo(f"Classifier: {envelope.name}")
    typer.echo(f"Schema version: {envelope.schema_version}")
    typer.echo(f"Payload bytes: {len(envelope.payload)}")


def _train_from_corpus(classifier: Classifier, corpus: Path) -> int:
    if isinstance(classifier, KNearestNeighborsClassifier):
        samples = read_vector_samples(corpus)
        classifier.extend_batch(samples.vectors, samples.labels)
        return len(samples.labels)
    if isinstance(classifier, NaiveBayesClassifier):
        return classifier.learn_many(read_text_samples(corpus))
    if isinstance(classifier, IntentClassifier):
        count = 0
        for text, label in read_text_samples(corpus):
            classifier.train(text, label)
            count += 1
        return count
    raise TypeError(f"Cannot train {type(classifier).__name__} from a corpus")


def _classify_one(classifier: Classifier, text: str) -> str:
    if isinstance(classifier, KNearestNeighborsClassifier):
        return classifier.classify_one(parse_vector(text.split(",")))
    if isinstance(classifier, (NaiveBayesClassifier, IntentClassifier)):
        return classifier.classify(text)
    raise TypeError(f"Cannot classify text with {type(classifier).__name__}")


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state is not initialised")
    return state


def _load_environment(state: CLIState) -> Config:
    try:
        config = load_config(state.config_path)
        configure_logging(config.logging, config.root_dir)
    except ConfigError as exc:
        _fail(str(exc))
    return config


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


__all__ = ["app"]
