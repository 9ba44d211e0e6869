"""High-level spam filter bundling a trained model with a smoothing constant."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Optional

from .classifier import ClassificationResult, NaiveBayesModel, score, train, validate_alpha
from .evaluation import EvaluationResult, best_alpha, evaluate, sweep
from .models import Message


class SpamFilter:
    """Train/tune/classify interface over ``NaiveBayesModel``.

    Example::

        spam_filter = SpamFilter()
        spam_filter.train(split.train)
        spam_filter.tune(split.validation, alphas=[0.1, 0.5, 1.0])

        result = spam_filter.classify("WINNER!! Claim your prize now")
        print(result.label)        # Label.SPAM
        print(result.margin)       # 0.98

        print(spam_filter.evaluate(split.test).accuracy)

    Args:
        alpha: Initial smoothing constant (1.0 = Laplace smoothing).
    """

    def __init__(self, alpha: float = 1.0) -> None:
        self._alpha = validate_alpha(alpha)
        self._model: Optional[NaiveBayesModel] = None

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = validate_alpha(value)

    @property
    def is_trained(self) -> bool:
        """Whether the filter has been trained."""
        return self._model is not None

    @property
    def model(self) -> NaiveBayesModel:
        """The trained model.

        Raises:
            RuntimeError: If the filter has not been trained.
        """
        if self._model is None:
            raise RuntimeError("Spam filter not trained. Call train() first.")
        return self._model

    def train(self, messages: Iterable[Message]) -> NaiveBayesModel:
        """Train a fresh model, replacing any previous one."""
        self._model = train(messages)
        return self._model

    def classify(self, text: str) -> ClassificationResult:
        """Classify a single message at the current alpha."""
        return score(text, self._alpha, self.model)

    def classify_batch(self, texts: Iterable[str]) -> list[ClassificationResult]:
        model = self.model
        return [score(text, self._alpha, model) for text in texts]

    def evaluate(self, messages: Iterable[Message]) -> EvaluationResult:
        """Accuracy and confusion counts at the current alpha."""
        return evaluate(self.model, self._alpha, messages)

    def tune(
        self,
        messages: Iterable[Message],
        alphas: Sequence[float],
    ) -> dict[float, float]:
        """Sweep ``alphas`` on validation messages and adopt the best one.

        Returns:
            Mapping of alpha to validation accuracy, in candidate order.
        """
        results = sweep(self.model, alphas, messages)
        self._alpha = best_alpha(results)
        return results
