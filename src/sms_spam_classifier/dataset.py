"""Loading labeled SMS datasets and splitting them for training.

The expected input is a delimited table with two columns: ``label``
(``"ham"`` or ``"spam"``) and ``sms`` (the message text). The UCI
SMS Spam Collection ships as a headerless tab-separated file, which is
the default format here.
"""

from __future__ import annotations

import csv
import logging
import math
import random
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .models import DatasetError, DegenerateSplitError, Label, Message

logger = logging.getLogger(__name__)

COLUMNS: tuple[str, str] = ("label", "sms")

DEFAULT_RATIOS: tuple[float, float, float] = (0.8, 0.1, 0.1)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_messages(
    path: str | Path,
    sep: str = "\t",
    header: bool = False,
) -> list[Message]:
    """Read labeled messages from a delimited file.

    Args:
        path: Path to the dataset file.
        sep: Field separator. Tab-separated files are read without quote
            handling, since SMS text routinely contains stray quotes.
        header: Whether the first row names the columns. Column names are
            matched case-insensitively against ``label`` and ``sms``.

    Returns:
        Messages in file order.

    Raises:
        DatasetError: If the file cannot be parsed, lacks the expected
            columns, or contains an unknown label.
    """
    path = Path(path)
    try:
        frame = pd.read_csv(
            path,
            sep=sep,
            header=0 if header else None,
            dtype=str,
            index_col=False,
            keep_default_na=False,
            quoting=csv.QUOTE_NONE if sep == "\t" else csv.QUOTE_MINIMAL,
            encoding="utf-8",
        )
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DatasetError(f"Cannot read dataset {path}: {exc}") from exc

    if frame.empty:
        raise DatasetError(f"Dataset {path} contains no messages")

    if not header:
        if frame.shape[1] != len(COLUMNS):
            raise DatasetError(
                f"Dataset {path} has {frame.shape[1]} columns per row, "
                f"expected {len(COLUMNS)} (label, sms)"
            )
        frame.columns = list(COLUMNS)

    frame.columns = [str(c).strip().lower() for c in frame.columns]
    missing = [c for c in COLUMNS if c not in frame.columns]
    if missing:
        raise DatasetError(
            f"Dataset {path} is missing column(s): {', '.join(missing)}"
        )

    messages = []
    for row, (label, text) in enumerate(zip(frame["label"], frame["sms"]), start=1):
        try:
            messages.append(Message(label=Label.parse(label), text=text))
        except ValueError as exc:
            raise DatasetError(f"{path}, row {row}: {exc}") from exc

    logger.info("Loaded %d messages from %s", len(messages), path)
    return messages


def messages_from_records(records: Iterable[tuple[str, str]]) -> list[Message]:
    """Build messages from ``(label, text)`` pairs.

    Raises:
        DatasetError: If a label is unknown.
    """
    messages = []
    for i, (label, text) in enumerate(records):
        try:
            messages.append(Message(label=Label.parse(label), text=text))
        except ValueError as exc:
            raise DatasetError(f"Record {i}: {exc}") from exc
    return messages


def class_distribution(messages: Sequence[Message]) -> dict[Label, float]:
    """Fraction of messages in each class (0.0 for an empty sequence)."""
    total = len(messages)
    return {
        label: (sum(1 for m in messages if m.label == label) / total if total else 0.0)
        for label in Label
    }


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatasetSplit:
    """Disjoint training, validation and test partitions of a dataset."""

    train: tuple[Message, ...]
    validation: tuple[Message, ...]
    test: tuple[Message, ...]

    def parts(self) -> dict[str, tuple[Message, ...]]:
        return {"train": self.train, "validation": self.validation, "test": self.test}

    def sizes(self) -> dict[str, int]:
        return {name: len(part) for name, part in self.parts().items()}

    def missing_classes(self) -> dict[str, list[Label]]:
        """Splits lacking at least one class, with the classes they lack."""
        result: dict[str, list[Label]] = {}
        for name, part in self.parts().items():
            present = {m.label for m in part}
            missing = [label for label in Label if label not in present]
            if missing:
                result[name] = missing
        return result


def _check_ratios(ratios: Sequence[float]) -> tuple[float, float, float]:
    if len(ratios) != 3:
        raise ValueError(f"Expected 3 split ratios, got {len(ratios)}")
    if any(r < 0 for r in ratios):
        raise ValueError(f"Split ratios must be non-negative, got {tuple(ratios)}")
    if not math.isclose(sum(ratios), 1.0, abs_tol=1e-9):
        raise ValueError(f"Split ratios must sum to 1, got {sum(ratios)}")
    return (float(ratios[0]), float(ratios[1]), float(ratios[2]))


def _split_sizes(n: int, ratios: tuple[float, float, float]) -> tuple[int, int, int]:
    n_train = min(n, int(round(n * ratios[0])))
    n_validation = min(n - n_train, int(round(n * ratios[1])))
    return n_train, n_validation, n - n_train - n_validation


def split_messages(
    messages: Sequence[Message],
    ratios: Sequence[float] = DEFAULT_RATIOS,
    seed: int = 1,
    stratify: bool = False,
    strict: bool = False,
) -> DatasetSplit:
    """Randomly partition messages into training, validation and test sets.

    Every message lands in exactly one split. The same ``seed`` always
    yields the same partition.

    Args:
        messages: Labeled messages.
        ratios: Fractions for (train, validation, test); must sum to 1.
        seed: Random seed for reproducibility.
        stratify: Keep each class's proportion roughly equal across splits.
        strict: Raise instead of warning when a split lacks a class.

    Returns:
        DatasetSplit with the three partitions.

    Raises:
        ValueError: If the ratios are malformed.
        DegenerateSplitError: If ``strict`` and a split lacks a class.
    """
    ratios = _check_ratios(ratios)
    rng = random.Random(seed)

    if stratify:
        class_indices: dict[Label, list[int]] = defaultdict(list)
        for idx, message in enumerate(messages):
            class_indices[message.label].append(idx)

        parts: list[list[int]] = [[], [], []]
        for label in Label:
            indices = class_indices[label]
            rng.shuffle(indices)
            n_train, n_validation, _ = _split_sizes(len(indices), ratios)
            parts[0].extend(indices[:n_train])
            parts[1].extend(indices[n_train : n_train + n_validation])
            parts[2].extend(indices[n_train + n_validation :])
        for part in parts:
            rng.shuffle(part)
        train_idx, validation_idx, test_idx = parts
    else:
        indices = list(range(len(messages)))
        rng.shuffle(indices)
        n_train, n_validation, _ = _split_sizes(len(indices), ratios)
        train_idx = indices[:n_train]
        validation_idx = indices[n_train : n_train + n_validation]
        test_idx = indices[n_train + n_validation :]

    split = DatasetSplit(
        train=tuple(messages[i] for i in train_idx),
        validation=tuple(messages[i] for i in validation_idx),
        test=tuple(messages[i] for i in test_idx),
    )

    for name, labels in split.missing_classes().items():
        names = ", ".join(label.value for label in labels)
        if strict:
            raise DegenerateSplitError(f"The {name} split has no {names} messages")
        logger.warning("The %s split has no %s messages; its accuracy is not meaningful", name, names)

    return split
