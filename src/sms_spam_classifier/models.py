"""Data models and error types for SMS spam classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Label(str, Enum):
    """SMS message classes."""

    SPAM = "spam"
    HAM = "ham"

    @classmethod
    def parse(cls, value: str) -> "Label":
        """Parse a raw label string such as ``"spam"`` or ``" Ham "``.

        Raises:
            ValueError: If the value is not a known label.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for label in cls:
            if label.value == normalized:
                return label
        raise ValueError(f"Unknown label: {value!r}. Expected one of: spam, ham")


@dataclass(frozen=True)
class Message:
    """A single SMS message with its label.

    Plain string labels such as ``"spam"`` are parsed into :class:`Label`;
    unknown labels raise ``ValueError``.
    """

    label: Label
    text: str

    def __post_init__(self):
        object.__setattr__(self, "label", Label.parse(self.label))

    @property
    def is_spam(self) -> bool:
        return self.label == Label.SPAM

    def to_dict(self) -> dict:
        return {"label": self.label.value, "sms": self.text}


@dataclass(frozen=True)
class TokenCounts:
    """Occurrences of a token in spam and ham training messages."""

    spam: int = 0
    ham: int = 0

    def for_label(self, label: Label) -> int:
        return self.spam if label == Label.SPAM else self.ham


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SpamClassifierError(Exception):
    """Base class for all errors raised by this package."""


class InvalidAlphaError(SpamClassifierError, ValueError):
    """Smoothing constant is negative or not a finite number."""


class EmptyTrainingSetError(SpamClassifierError, ValueError):
    """Training data lacks messages of one or both classes."""


class DatasetError(SpamClassifierError, ValueError):
    """Dataset file could not be read or contains invalid rows."""


class DegenerateSplitError(SpamClassifierError, ValueError):
    """A dataset split is missing one of the classes."""
