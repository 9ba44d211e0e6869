"""Accuracy, confusion counts and smoothing-constant sweeps."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from .classifier import NaiveBayesModel, classify, validate_alpha
from .models import Label, Message

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Confusion Counts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfusionCounts:
    """2x2 confusion matrix with spam as the positive class.

    Attributes:
        true_positive: True spam predicted spam.
        false_negative: True spam predicted ham.
        false_positive: True ham predicted spam.
        true_negative: True ham predicted ham.
    """

    true_positive: int = 0
    false_negative: int = 0
    false_positive: int = 0
    true_negative: int = 0

    @property
    def total(self) -> int:
        return self.true_positive + self.false_negative + self.false_positive + self.true_negative

    @property
    def correct(self) -> int:
        return self.true_positive + self.true_negative

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0

    @property
    def precision(self) -> float:
        predicted_spam = self.true_positive + self.false_positive
        return self.true_positive / predicted_spam if predicted_spam > 0 else 0.0

    @property
    def recall(self) -> float:
        actual_spam = self.true_positive + self.false_negative
        return self.true_positive / actual_spam if actual_spam > 0 else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if (p + r) > 0 else 0.0

    def as_matrix(self) -> dict[str, dict[str, int]]:
        """Nested ``{true_label: {predicted_label: count}}`` mapping."""
        return {
            Label.SPAM.value: {
                Label.SPAM.value: self.true_positive,
                Label.HAM.value: self.false_negative,
            },
            Label.HAM.value: {
                Label.SPAM.value: self.false_positive,
                Label.HAM.value: self.true_negative,
            },
        }

    def to_dict(self) -> dict:
        return {
            "accuracy": round(self.accuracy, 4),
            "precision": round(self.precision, 4),
            "recall": round(self.recall, 4),
            "f1": round(self.f1, 4),
            "confusion_matrix": self.as_matrix(),
        }

    def summary(self) -> str:
        """Human-readable summary of the counts."""
        return "\n".join([
            f"Accuracy: {self.accuracy:.2%}",
            f"Spam precision: {self.precision:.4f}",
            f"Spam recall: {self.recall:.4f}",
            f"Spam F1: {self.f1:.4f}",
            "",
            f"{'':<12} {'pred spam':>10} {'pred ham':>10}",
            f"{'true spam':<12} {self.true_positive:>10} {self.false_negative:>10}",
            f"{'true ham':<12} {self.false_positive:>10} {self.true_negative:>10}",
        ])


def confusion_counts(
    y_true: Sequence[Label],
    y_pred: Sequence[Label],
) -> ConfusionCounts:
    """Tally true and predicted labels into a confusion matrix.

    Raises:
        ValueError: If the sequences differ in length.
    """
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")

    tp = fn = fp = tn = 0
    for true, pred in zip(y_true, y_pred):
        if true == Label.SPAM:
            if pred == Label.SPAM:
                tp += 1
            else:
                fn += 1
        elif pred == Label.SPAM:
            fp += 1
        else:
            tn += 1

    return ConfusionCounts(
        true_positive=tp,
        false_negative=fn,
        false_positive=fp,
        true_negative=tn,
    )


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EvaluationResult:
    """Accuracy of a model on a labeled dataset at one smoothing constant."""

    alpha: float
    confusion: ConfusionCounts

    @property
    def accuracy(self) -> float:
        return self.confusion.accuracy

    def to_dict(self) -> dict:
        return {"alpha": self.alpha, "total": self.confusion.total, **self.confusion.to_dict()}


def evaluate(
    model: NaiveBayesModel,
    alpha: float,
    messages: Iterable[Message],
) -> EvaluationResult:
    """Classify every message and compare against its true label.

    An empty dataset has accuracy 0.0 and is logged as a warning.

    Raises:
        InvalidAlphaError: If alpha is negative.
    """
    alpha = validate_alpha(alpha)
    messages = list(messages)

    y_true = [message.label for message in messages]
    y_pred = [classify(message.text, alpha, model) for message in messages]
    counts = confusion_counts(y_true, y_pred)

    if counts.total == 0:
        logger.warning("Evaluated on an empty dataset; accuracy reported as 0.0")
    logger.debug(
        "alpha=%g: %d/%d correct (%.4f)",
        alpha, counts.correct, counts.total, counts.accuracy,
    )
    return EvaluationResult(alpha=alpha, confusion=counts)


def sweep(
    model: NaiveBayesModel,
    alphas: Iterable[float],
    messages: Iterable[Message],
) -> dict[float, float]:
    """Accuracy of ``model`` on ``messages`` for each candidate alpha.

    The result preserves candidate order. Every alpha is validated before
    any message is classified. Repeated candidates collapse to one entry.

    Raises:
        InvalidAlphaError: If any candidate is negative.
    """
    candidates = [validate_alpha(alpha) for alpha in alphas]
    messages = list(messages)

    results: dict[float, float] = {}
    for alpha in candidates:
        results[alpha] = evaluate(model, alpha, messages).accuracy
        logger.info("Sweep alpha=%g accuracy=%.4f", alpha, results[alpha])
    return results


def best_alpha(results: Mapping[float, float]) -> float:
    """Pick the alpha with the highest accuracy; the earliest wins ties.

    Raises:
        ValueError: If ``results`` is empty.
    """
    if not results:
        raise ValueError("No sweep results to choose from")

    best, best_accuracy = None, -1.0
    for alpha, accuracy in results.items():
        if accuracy > best_accuracy:
            best, best_accuracy = alpha, accuracy
    return best  # type: ignore[return-value]
