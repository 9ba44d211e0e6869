"""Command-line interface for the SMS spam classifier.

Provides ``evaluate``, ``sweep``, ``classify`` and ``features`` commands
with rich terminal output using the ``click`` and ``rich`` libraries.
Defaults come from the environment (see :mod:`sms_spam_classifier.config`).

Usage::

    sms-spam-classifier evaluate --dataset SMSSpamCollection
    sms-spam-classifier sweep -a 0.01 -a 0.1 -a 1
    sms-spam-classifier classify "WINNER!! Claim your prize now"
    sms-spam-classifier features --top 15
"""

from __future__ import annotations

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import Settings, load_settings, parse_sep
from .dataset import DatasetSplit, class_distribution, load_messages, split_messages
from .evaluation import EvaluationResult
from .models import Label, SpamClassifierError
from .spam_filter import SpamFilter

console = Console()

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    logging.getLogger().setLevel(level)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/] {escape(str(error))}", soft_wrap=True)
    sys.exit(1)


def _label_style(label: Label) -> str:
    return "bold red" if label == Label.SPAM else "bold green"


def _dataset_options(func: Callable) -> Callable:
    """Options shared by every command that trains a model."""

    @click.option("--dataset", "-d", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                  default=None, help="Labeled SMS dataset (label and sms columns).")
    @click.option("--sep", default=None, help="Field separator ('tab' for TSV).")
    @click.option("--header/--no-header", default=None,
                  help="Whether the dataset's first row holds column names.")
    @click.option("--seed", type=int, default=None, help="Random seed for the split.")
    @click.option("--alpha", "-a", "alphas", type=float, multiple=True,
                  help="Smoothing constant candidate (repeatable).")
    @click.option("--stratify", is_flag=True, help="Preserve class proportions in each split.")
    @click.option("--strict", is_flag=True, help="Fail if a split is missing a class.")
    @click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
    @functools.wraps(func)
    def wrapper(
        dataset: Optional[Path],
        sep: Optional[str],
        header: Optional[bool],
        seed: Optional[int],
        alphas: tuple[float, ...],
        stratify: bool,
        strict: bool,
        verbose: bool,
        **kwargs,
    ):
        try:
            settings = load_settings()
        except ValueError as e:
            _fail(e)

        if dataset is not None:
            settings.dataset = dataset
        if sep is not None:
            settings.sep = parse_sep(sep)
        if header is not None:
            settings.header = header
        if seed is not None:
            settings.seed = seed
        if alphas:
            settings.alphas = alphas
        _configure_logging("DEBUG" if verbose else settings.log_level)

        return func(settings=settings, stratify=stratify, strict=strict, **kwargs)

    return wrapper


def _prepare(
    settings: Settings,
    stratify: bool,
    strict: bool,
) -> tuple[DatasetSplit, SpamFilter, dict[float, float]]:
    """Load, split, train on the training split and tune on validation."""
    messages = load_messages(settings.dataset, sep=settings.sep, header=settings.header)
    split = split_messages(
        messages,
        ratios=settings.ratios,
        seed=settings.seed,
        stratify=stratify,
        strict=strict,
    )
    spam_filter = SpamFilter()
    spam_filter.train(split.train)
    sweep_results = spam_filter.tune(split.validation, settings.alphas)
    logger.info("Selected alpha=%g", spam_filter.alpha)
    return split, spam_filter, sweep_results


@click.group()
@click.version_option(package_name="sms-spam-classifier")
def main() -> None:
    """📱 SMS Spam Classifier — multinomial Naive Bayes for text messages.

    Train on a labeled SMS dataset, tune the smoothing constant on a
    validation split, and measure accuracy on a held-out test split.
    """
    pass


@main.command()
@_dataset_options
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def evaluate(settings: Settings, stratify: bool, strict: bool, output: str) -> None:
    """Train, tune alpha on validation, and report test accuracy.

    Example: sms-spam-classifier evaluate --dataset SMSSpamCollection
    """
    with console.status("[bold blue]Training classifier...", spinner="dots"):
        try:
            split, spam_filter, sweep_results = _prepare(settings, stratify, strict)
            result = spam_filter.evaluate(split.test)
        except (SpamClassifierError, ValueError) as e:
            _fail(e)

    if output == "json":
        click.echo(json.dumps({
            "split": split.sizes(),
            "model": spam_filter.model.to_dict(),
            "sweep": {str(a): round(acc, 4) for a, acc in sweep_results.items()},
            "test": result.to_dict(),
        }, indent=2))
    else:
        _render_split(split)
        _render_sweep(sweep_results, spam_filter.alpha)
        _render_evaluation(result)


@main.command()
@_dataset_options
def sweep(settings: Settings, stratify: bool, strict: bool) -> None:
    """Report validation accuracy for each smoothing constant.

    Example: sms-spam-classifier sweep -a 0.1 -a 0.5 -a 1
    """
    with console.status("[bold blue]Sweeping alpha...", spinner="dots"):
        try:
            _, spam_filter, sweep_results = _prepare(settings, stratify, strict)
        except (SpamClassifierError, ValueError) as e:
            _fail(e)

    _render_sweep(sweep_results, spam_filter.alpha)


@main.command()
@click.argument("text")
@_dataset_options
@click.option("--review-threshold", type=float, default=0.1, show_default=True,
              help="Flag results whose posterior margin is below this value.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def classify(
    text: str,
    settings: Settings,
    stratify: bool,
    strict: bool,
    review_threshold: float,
    output: str,
) -> None:
    """Classify a single message as spam or ham.

    Example: sms-spam-classifier classify "WINNER!! Claim your prize now"
    """
    with console.status("[bold blue]Training classifier...", spinner="dots"):
        try:
            _, spam_filter, _ = _prepare(settings, stratify, strict)
            result = spam_filter.classify(text)
        except (SpamClassifierError, ValueError) as e:
            _fail(e)

    needs_review = result.needs_review(review_threshold)
    if output == "json":
        click.echo(json.dumps({
            **result.to_dict(),
            "alpha": spam_filter.alpha,
            "needs_review": needs_review,
        }, indent=2))
        return

    style = _label_style(result.label)
    console.print(Panel(
        f"[{style}]{result.label.value.upper()}[/]\n"
        f"P(spam) = {result.spam_probability:.4f} | "
        f"P(ham) = {result.ham_probability:.4f} | "
        f"margin = {result.margin:.4f} | alpha = {spam_filter.alpha:g}",
        title="📱 Classification",
        border_style="blue",
    ))
    if needs_review:
        console.print("[bold yellow]Near tie:[/] consider manual review of this message.")


@main.command()
@_dataset_options
@click.option("--top", "-n", type=int, default=10, show_default=True,
              help="Number of tokens per class.")
def features(settings: Settings, stratify: bool, strict: bool, top: int) -> None:
    """Show the most informative tokens for each class.

    Example: sms-spam-classifier features --top 15
    """
    with console.status("[bold blue]Training classifier...", spinner="dots"):
        try:
            _, spam_filter, _ = _prepare(settings, stratify, strict)
            alpha = spam_filter.alpha if spam_filter.alpha > 0 else 1.0
            ranked = {
                label: spam_filter.model.most_informative_tokens(label, alpha=alpha, top_n=top)
                for label in Label
            }
        except (SpamClassifierError, ValueError) as e:
            _fail(e)

    for label, tokens in ranked.items():
        table = Table(title=f"Most {label.value}-like tokens (alpha={alpha:g})", min_width=50)
        table.add_column("#", justify="right", width=4)
        table.add_column("Token", style="cyan")
        table.add_column("Log ratio", justify="right")
        for i, (token, ratio) in enumerate(tokens, 1):
            table.add_row(str(i), token, f"{ratio:.4f}")
        console.print(table)
        console.print()


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_split(split: DatasetSplit) -> None:
    """Render split sizes and class balance."""
    table = Table(title="Dataset Split")
    table.add_column("Split", style="cyan")
    table.add_column("Messages", justify="right")
    table.add_column("Spam", justify="right")
    table.add_column("Ham", justify="right")

    for name, part in split.parts().items():
        distribution = class_distribution(part)
        table.add_row(
            name,
            str(len(part)),
            f"{distribution[Label.SPAM]:.1%}",
            f"{distribution[Label.HAM]:.1%}",
        )

    console.print()
    console.print(table)
    console.print()


def _render_sweep(results: dict[float, float], chosen: float) -> None:
    """Render validation accuracy per alpha, highlighting the chosen one."""
    table = Table(title="Validation Accuracy by Alpha", min_width=40)
    table.add_column("Alpha", justify="right")
    table.add_column("Accuracy", justify="right")

    for alpha, accuracy in results.items():
        style = "bold green" if alpha == chosen else None
        table.add_row(f"{alpha:g}", f"{accuracy:.2%}", style=style)

    console.print(table)
    console.print()


def _render_evaluation(result: EvaluationResult) -> None:
    """Render test accuracy and the confusion matrix."""
    counts = result.confusion

    table = Table(title=f"Test Confusion Matrix (alpha={result.alpha:g})")
    table.add_column("", style="cyan")
    table.add_column("Predicted spam", justify="right")
    table.add_column("Predicted ham", justify="right")
    table.add_row("True spam", str(counts.true_positive), str(counts.false_negative))
    table.add_row("True ham", str(counts.false_positive), str(counts.true_negative))
    console.print(table)

    accuracy = result.accuracy
    if accuracy >= 0.95:
        score_style = "bold green"
    elif accuracy >= 0.8:
        score_style = "bold yellow"
    else:
        score_style = "bold red"

    console.print(
        f"Test Accuracy: [{score_style}]{accuracy:.2%}[/] "
        f"({counts.correct}/{counts.total}) | "
        f"Spam precision {counts.precision:.4f} | recall {counts.recall:.4f}"
    )
    console.print()


if __name__ == "__main__":
    main()
