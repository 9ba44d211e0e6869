"""Multinomial Naive Bayes for SMS spam filtering.

Training builds, in one pass over the labeled messages:
- the vocabulary (every token seen in training)
- a frequency table of per-class token occurrences
- class priors and per-class token totals

Together these form an immutable ``NaiveBayesModel``. The smoothing
constant ``alpha`` is not part of the model: it is supplied to every
estimate, so one trained model can be scored under many alphas without
retokenizing the corpus.

For a token ``w`` and class ``c`` the additive (Laplace/Lidstone) estimate is::

    P(w|c) = (count(w, c) + alpha) / (N_c + alpha * |V|)

Scores are accumulated as sums of log-probabilities so that long messages
do not underflow to zero.
"""

from __future__ import annotations

import logging
import math
import numbers
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .models import EmptyTrainingSetError, InvalidAlphaError, Label, Message, TokenCounts
from .preprocessing import normalize

logger = logging.getLogger(__name__)


def validate_alpha(alpha: float) -> float:
    """Check that a smoothing constant is a finite, non-negative number.

    Raises:
        InvalidAlphaError: If alpha is negative, NaN, infinite or not a number.
    """
    if isinstance(alpha, bool) or not isinstance(alpha, numbers.Real):
        raise InvalidAlphaError(f"alpha must be a number, got {alpha!r}")
    if math.isnan(alpha) or math.isinf(alpha):
        raise InvalidAlphaError(f"alpha must be finite, got {alpha}")
    if alpha < 0:
        raise InvalidAlphaError(f"alpha must be non-negative, got {alpha}")
    return float(alpha)


def _log(p: float) -> float:
    return math.log(p) if p > 0 else -math.inf


# ---------------------------------------------------------------------------
# Vocabulary and Frequency Tables
# ---------------------------------------------------------------------------


def build_vocabulary(messages: Iterable[Message]) -> frozenset[str]:
    """Collect the distinct tokens of a training corpus."""
    vocabulary: set[str] = set()
    for message in messages:
        vocabulary.update(normalize(message.text))
    return frozenset(vocabulary)


@dataclass(frozen=True)
class FrequencyTable:
    """Per-class token occurrence counts.

    Attributes:
        counts: Read-only mapping of every vocabulary token to its counts.
            Tokens absent from a class have a zero count for it.
        n_spam_tokens: Token occurrences, with repetition, in spam messages.
        n_ham_tokens: Token occurrences, with repetition, in ham messages.
    """

    counts: Mapping[str, TokenCounts]
    n_spam_tokens: int
    n_ham_tokens: int

    @property
    def n_vocabulary(self) -> int:
        return len(self.counts)

    def count(self, token: str, label: Label) -> int:
        counts = self.counts.get(token)
        return counts.for_label(label) if counts is not None else 0

    def n_tokens(self, label: Label) -> int:
        return self.n_spam_tokens if label == Label.SPAM else self.n_ham_tokens


def _count_tokens(
    tokenized: list[tuple[Label, list[str]]],
    vocabulary: frozenset[str],
) -> FrequencyTable:
    """Tally tokens per class in a single pass over pre-tokenized messages."""
    tallies: dict[Label, Counter[str]] = {Label.SPAM: Counter(), Label.HAM: Counter()}
    for label, tokens in tokenized:
        tallies[label].update(tokens)

    spam, ham = tallies[Label.SPAM], tallies[Label.HAM]
    counts = {
        token: TokenCounts(spam=spam.get(token, 0), ham=ham.get(token, 0))
        for token in vocabulary
    }
    return FrequencyTable(
        counts=MappingProxyType(counts),
        n_spam_tokens=sum(spam.values()),
        n_ham_tokens=sum(ham.values()),
    )


def build_counts(
    messages: Iterable[Message],
    vocabulary: frozenset[str],
) -> FrequencyTable:
    """Count occurrences of each vocabulary token in spam and ham messages.

    Args:
        messages: Labeled training messages.
        vocabulary: Tokens the table should cover.

    Returns:
        FrequencyTable with zero-filled counts for every vocabulary token.
    """
    tokenized = [(message.label, normalize(message.text)) for message in messages]
    return _count_tokens(tokenized, frozenset(vocabulary))


# ---------------------------------------------------------------------------
# Trained Model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NaiveBayesModel:
    """Read-only result of training on a labeled corpus.

    Attributes:
        vocabulary: Distinct tokens seen during training.
        frequencies: Per-class token counts and totals.
        n_spam_messages: Number of spam training messages.
        n_ham_messages: Number of ham training messages.
    """

    vocabulary: frozenset[str]
    frequencies: FrequencyTable
    n_spam_messages: int
    n_ham_messages: int

    @property
    def n_vocabulary(self) -> int:
        return len(self.vocabulary)

    @property
    def n_spam_tokens(self) -> int:
        return self.frequencies.n_spam_tokens

    @property
    def n_ham_tokens(self) -> int:
        return self.frequencies.n_ham_tokens

    @property
    def n_messages(self) -> int:
        return self.n_spam_messages + self.n_ham_messages

    @property
    def p_spam(self) -> float:
        return self.n_spam_messages / self.n_messages

    @property
    def p_ham(self) -> float:
        return self.n_ham_messages / self.n_messages

    def prior(self, label: Label) -> float:
        return self.p_spam if label == Label.SPAM else self.p_ham

    def estimate(self, token: str, label: Label, alpha: float) -> float:
        """Smoothed probability of ``token`` given ``label``.

        Out-of-vocabulary tokens return 1.0 for both classes, so they leave
        a product of probabilities unchanged. With ``alpha == 0`` a token
        never seen in a class estimates to 0.0.

        Raises:
            InvalidAlphaError: If alpha is negative.
        """
        return self._estimate(token, label, validate_alpha(alpha))

    def _estimate(self, token: str, label: Label, alpha: float) -> float:
        if token not in self.vocabulary:
            return 1.0
        denominator = self.frequencies.n_tokens(label) + alpha * self.n_vocabulary
        if denominator == 0:
            return 0.0
        return (self.frequencies.count(token, label) + alpha) / denominator

    def log_scores(self, tokens: list[str], alpha: float) -> dict[Label, float]:
        """Unnormalized log posterior of each class for a token sequence.

        ``log P(c) + sum(log P(w|c))`` over the in-vocabulary tokens,
        repetitions included. A zero probability yields ``-inf``.
        """
        alpha = validate_alpha(alpha)
        scores: dict[Label, float] = {}
        for label in (Label.SPAM, Label.HAM):
            score = _log(self.prior(label))
            for token in tokens:
                if token in self.vocabulary:
                    score += _log(self._estimate(token, label, alpha))
            scores[label] = score
        return scores

    def most_informative_tokens(
        self,
        label: Label,
        alpha: float = 1.0,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Return the tokens that most favor ``label`` over the other class.

        Ranked by ``log P(w|label) - log P(w|other)``.

        Raises:
            InvalidAlphaError: If alpha is not strictly positive.
        """
        alpha = validate_alpha(alpha)
        if alpha == 0:
            raise InvalidAlphaError("alpha must be positive to rank tokens")

        other = Label.HAM if label == Label.SPAM else Label.SPAM
        ratios = [
            (
                token,
                round(
                    math.log(self._estimate(token, label, alpha))
                    - math.log(self._estimate(token, other, alpha)),
                    4,
                ),
            )
            for token in self.vocabulary
        ]
        ratios.sort(key=lambda x: (-x[1], x[0]))
        return ratios[:top_n]

    def to_dict(self) -> dict:
        """Summary statistics (the token table itself is not included)."""
        return {
            "n_messages": self.n_messages,
            "n_spam_messages": self.n_spam_messages,
            "n_ham_messages": self.n_ham_messages,
            "n_vocabulary": self.n_vocabulary,
            "n_spam_tokens": self.n_spam_tokens,
            "n_ham_tokens": self.n_ham_tokens,
            "p_spam": round(self.p_spam, 4),
            "p_ham": round(self.p_ham, 4),
        }


def train(messages: Iterable[Message]) -> NaiveBayesModel:
    """Build a model from labeled training messages.

    Each message is tokenized exactly once.

    Raises:
        EmptyTrainingSetError: If either class has no training messages.
    """
    tokenized = [(message.label, normalize(message.text)) for message in messages]

    n_spam = sum(1 for label, _ in tokenized if label == Label.SPAM)
    n_ham = len(tokenized) - n_spam
    if n_spam == 0 or n_ham == 0:
        raise EmptyTrainingSetError(
            f"Training set needs messages of both classes (spam={n_spam}, ham={n_ham})"
        )

    vocabulary = frozenset(token for _, tokens in tokenized for token in tokens)
    model = NaiveBayesModel(
        vocabulary=vocabulary,
        frequencies=_count_tokens(tokenized, vocabulary),
        n_spam_messages=n_spam,
        n_ham_messages=n_ham,
    )
    logger.info(
        "Trained on %d messages (%d spam, %d ham), vocabulary of %d tokens",
        model.n_messages, n_spam, n_ham, model.n_vocabulary,
    )
    return model


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of scoring a single message.

    ``label`` is spam whenever the spam score is greater than or equal to
    the ham score; exact ties go to spam. ``margin`` exposes how close the
    call was so that near ties can be sent for manual review.
    """

    label: Label
    log_score_spam: float
    log_score_ham: float

    @property
    def spam_probability(self) -> float:
        """Normalized posterior P(spam|message), via log-sum-exp."""
        max_score = max(self.log_score_spam, self.log_score_ham)
        if max_score == -math.inf:
            return 0.5
        spam = math.exp(self.log_score_spam - max_score)
        ham = math.exp(self.log_score_ham - max_score)
        return spam / (spam + ham)

    @property
    def ham_probability(self) -> float:
        return 1.0 - self.spam_probability

    @property
    def margin(self) -> float:
        return abs(self.spam_probability - self.ham_probability)

    def needs_review(self, threshold: float = 0.1) -> bool:
        """True if the posteriors are closer than ``threshold``."""
        return self.margin < threshold

    def to_dict(self) -> dict:
        return {
            "label": self.label.value,
            "spam_probability": round(self.spam_probability, 4),
            "ham_probability": round(self.ham_probability, 4),
            "margin": round(self.margin, 4),
        }


def score(text: str, alpha: float, model: NaiveBayesModel) -> ClassificationResult:
    """Score a message against both classes.

    Raises:
        InvalidAlphaError: If alpha is negative.
    """
    scores = model.log_scores(normalize(text), alpha)
    spam, ham = scores[Label.SPAM], scores[Label.HAM]
    return ClassificationResult(
        label=Label.SPAM if spam >= ham else Label.HAM,
        log_score_spam=spam,
        log_score_ham=ham,
    )


def classify(text: str, alpha: float, model: NaiveBayesModel) -> Label:
    """Label a message as spam or ham."""
    return score(text, alpha, model).label
