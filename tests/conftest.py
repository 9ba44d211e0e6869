"""Shared test fixtures for sms-spam-classifier tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from sms_spam_classifier.classifier import NaiveBayesModel, train
from sms_spam_classifier.models import Label, Message


@pytest.fixture
def sample_dataset_path() -> Path:
    """Path to the bundled sample of the SMS Spam Collection (TSV, no header)."""
    return Path(__file__).parent.parent / "examples" / "sample_sms.tsv"


@pytest.fixture
def scenario_messages() -> list[Message]:
    """Four-message training set with equal class priors."""
    return [
        Message(Label.SPAM, "win money now"),
        Message(Label.HAM, "see you at the meeting"),
        Message(Label.SPAM, "win a prize"),
        Message(Label.HAM, "meeting notes attached"),
    ]


@pytest.fixture
def scenario_model(scenario_messages: list[Message]) -> NaiveBayesModel:
    """Model trained on ``scenario_messages``."""
    return train(scenario_messages)


@pytest.fixture
def validation_messages() -> list[Message]:
    """Ten labeled messages; the scenario model gets exactly 6 right."""
    return (
        [Message(Label.SPAM, "win money now")] * 3
        + [Message(Label.HAM, "meeting notes")] * 3
        # mislabeled relative to what the scenario model predicts
        + [Message(Label.HAM, "win a prize")] * 2
        + [Message(Label.SPAM, "see you at the meeting")] * 2
    )
