"""Tests for vocabulary construction, frequency tables and Naive Bayes scoring.

Uses a four-message corpus (two spam, two ham) whose counts are easy to
verify by hand:

    spam tokens: win money now win a prize          (6)
    ham tokens:  see you at the meeting meeting notes attached   (8)
"""

from __future__ import annotations

import dataclasses
import math
import random
from fractions import Fraction

import pytest

from sms_spam_classifier.classifier import (
    ClassificationResult,
    NaiveBayesModel,
    build_counts,
    build_vocabulary,
    classify,
    score,
    train,
    validate_alpha,
)
from sms_spam_classifier.models import (
    EmptyTrainingSetError,
    InvalidAlphaError,
    Label,
    Message,
)

SCENARIO_VOCABULARY = {
    "win", "money", "now", "see", "you", "at", "the",
    "meeting", "a", "prize", "notes", "attached",
}


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

class TestBuildVocabulary:
    def test_scenario_vocabulary(self, scenario_messages):
        vocabulary = build_vocabulary(scenario_messages)
        assert vocabulary == SCENARIO_VOCABULARY
        assert len(vocabulary) == 12

    def test_is_frozen(self, scenario_messages):
        assert isinstance(build_vocabulary(scenario_messages), frozenset)

    def test_order_independent(self, scenario_messages):
        shuffled = list(scenario_messages)
        random.Random(7).shuffle(shuffled)
        assert build_vocabulary(shuffled) == build_vocabulary(scenario_messages)

    def test_empty_corpus(self):
        assert build_vocabulary([]) == frozenset()

    def test_uses_normalized_tokens(self):
        vocabulary = build_vocabulary([Message(Label.SPAM, "WIN!!! Win 100 win")])
        assert vocabulary == {"win"}


# ---------------------------------------------------------------------------
# Frequency Tables
# ---------------------------------------------------------------------------

class TestBuildCounts:
    def test_scenario_counts(self, scenario_messages):
        table = build_counts(scenario_messages, build_vocabulary(scenario_messages))
        assert table.n_spam_tokens == 6
        assert table.n_ham_tokens == 8
        assert table.n_vocabulary == 12
        assert table.count("win", Label.SPAM) == 2
        assert table.count("win", Label.HAM) == 0
        assert table.count("meeting", Label.HAM) == 2
        assert table.count("meeting", Label.SPAM) == 0

    def test_zero_filled_for_every_vocabulary_token(self, scenario_messages):
        vocabulary = build_vocabulary(scenario_messages)
        table = build_counts(scenario_messages, vocabulary)
        assert set(table.counts) == vocabulary
        for counts in table.counts.values():
            assert counts.spam >= 0 and counts.ham >= 0
            assert counts.spam + counts.ham > 0

    def test_repetition_within_message_counted(self):
        messages = [Message(Label.SPAM, "free free free"), Message(Label.HAM, "hi")]
        table = build_counts(messages, build_vocabulary(messages))
        assert table.count("free", Label.SPAM) == 3
        assert table.n_spam_tokens == 3

    def test_tokens_outside_vocabulary_not_tabled(self, scenario_messages):
        table = build_counts(scenario_messages, frozenset({"win"}))
        assert set(table.counts) == {"win"}
        assert table.count("prize", Label.SPAM) == 0
        # Totals still include every token occurrence
        assert table.n_spam_tokens == 6

    def test_table_is_read_only(self, scenario_messages):
        table = build_counts(scenario_messages, build_vocabulary(scenario_messages))
        with pytest.raises(TypeError):
            table.counts["new"] = None  # type: ignore[index]

    def test_unknown_token_counts_zero(self, scenario_messages):
        table = build_counts(scenario_messages, build_vocabulary(scenario_messages))
        assert table.count("zebra", Label.SPAM) == 0


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------

class TestTrain:
    def test_model_parameters(self, scenario_model):
        assert isinstance(scenario_model, NaiveBayesModel)
        assert scenario_model.vocabulary == SCENARIO_VOCABULARY
        assert scenario_model.n_vocabulary == 12
        assert scenario_model.n_spam_tokens == 6
        assert scenario_model.n_ham_tokens == 8
        assert scenario_model.n_spam_messages == 2
        assert scenario_model.n_ham_messages == 2
        assert scenario_model.p_spam == pytest.approx(0.5)
        assert scenario_model.p_ham == pytest.approx(0.5)

    def test_priors_sum_to_one(self, sample_dataset_path):
        from sms_spam_classifier.dataset import load_messages

        model = train(load_messages(sample_dataset_path))
        assert model.p_spam + model.p_ham == pytest.approx(1.0)
        assert 0.0 <= model.p_spam <= 1.0
        assert 0.0 <= model.p_ham <= 1.0
        assert model.p_spam == pytest.approx(14 / 40)

    def test_model_is_immutable(self, scenario_model):
        with pytest.raises(dataclasses.FrozenInstanceError):
            scenario_model.n_spam_messages = 5  # type: ignore[misc]

    def test_retraining_in_any_order_is_identical(self, scenario_messages, scenario_model):
        retrained = train(list(reversed(scenario_messages)))
        assert retrained.vocabulary == scenario_model.vocabulary
        assert dict(retrained.frequencies.counts) == dict(scenario_model.frequencies.counts)

    def test_accepts_generator(self, scenario_messages):
        model = train(m for m in scenario_messages)
        assert model.n_messages == 4

    def test_no_spam_raises(self):
        with pytest.raises(EmptyTrainingSetError, match="spam=0"):
            train([Message(Label.HAM, "hello"), Message(Label.HAM, "hi")])

    def test_no_ham_raises(self):
        with pytest.raises(EmptyTrainingSetError, match="ham=0"):
            train([Message(Label.SPAM, "win")])

    def test_empty_raises(self):
        with pytest.raises(EmptyTrainingSetError):
            train([])

    def test_string_labels(self):
        model = train([Message("spam", "win money now"), Message("ham", "meeting notes")])
        assert model.n_spam_messages == 1
        assert model.n_ham_messages == 1
        assert model.frequencies.count("win", Label.SPAM) == 1

    def test_to_dict(self, scenario_model):
        data = scenario_model.to_dict()
        assert data["n_vocabulary"] == 12
        assert data["p_spam"] == 0.5
        assert data["n_messages"] == 4


# ---------------------------------------------------------------------------
# Probability Estimator
# ---------------------------------------------------------------------------

class TestEstimate:
    def test_laplace_formula(self, scenario_model):
        # (2 + 1) / (6 + 1 * 12)
        assert scenario_model.estimate("win", Label.SPAM, 1.0) == pytest.approx(3 / 18)
        # (0 + 1) / (8 + 1 * 12)
        assert scenario_model.estimate("win", Label.HAM, 1.0) == pytest.approx(1 / 20)
        assert scenario_model.estimate("meeting", Label.HAM, 1.0) == pytest.approx(3 / 20)

    def test_lidstone_formula(self, scenario_model):
        # (2 + 0.5) / (6 + 0.5 * 12)
        assert scenario_model.estimate("win", Label.SPAM, 0.5) == pytest.approx(2.5 / 12)

    def test_laplace_estimates_in_unit_interval(self, scenario_model):
        for token in scenario_model.vocabulary:
            for label in Label:
                p = scenario_model.estimate(token, label, 1.0)
                assert 0.0 < p <= 1.0

    def test_unseen_in_class_is_positive(self, scenario_model):
        assert scenario_model.frequencies.count("prize", Label.HAM) == 0
        assert scenario_model.estimate("prize", Label.HAM, 1.0) > 0

    @pytest.mark.parametrize("token,label", [
        ("win", Label.SPAM),
        ("meeting", Label.SPAM),
        ("meeting", Label.HAM),
        ("the", Label.HAM),
    ])
    def test_larger_alpha_moves_toward_uniform(self, scenario_model, token, label):
        uniform = 1 / scenario_model.n_vocabulary
        distances = [
            abs(scenario_model.estimate(token, label, alpha) - uniform)
            for alpha in (0.1, 1.0, 10.0, 1000.0)
        ]
        assert distances == sorted(distances, reverse=True)
        assert distances[-1] < 1e-3

    def test_out_of_vocabulary_is_neutral(self, scenario_model):
        assert scenario_model.estimate("zebra", Label.SPAM, 1.0) == 1.0
        assert scenario_model.estimate("zebra", Label.HAM, 0.0) == 1.0

    def test_alpha_zero_is_maximum_likelihood(self, scenario_model):
        assert scenario_model.estimate("win", Label.SPAM, 0.0) == pytest.approx(2 / 6)
        assert scenario_model.estimate("win", Label.HAM, 0.0) == 0.0

    def test_alpha_zero_with_tokenless_class(self):
        model = train([Message(Label.SPAM, "!!! 123"), Message(Label.HAM, "hello")])
        assert model.n_spam_tokens == 0
        assert model.estimate("hello", Label.SPAM, 0.0) == 0.0
        assert model.estimate("hello", Label.SPAM, 1.0) == pytest.approx(1.0)

    def test_negative_alpha_raises(self, scenario_model):
        with pytest.raises(InvalidAlphaError):
            scenario_model.estimate("win", Label.SPAM, -0.1)


class TestValidateAlpha:
    @pytest.mark.parametrize("alpha", [0, 0.0, 0.5, 1, 100.0, Fraction(1, 2)])
    def test_accepts(self, alpha):
        assert validate_alpha(alpha) == float(alpha)

    @pytest.mark.parametrize("alpha", [-1, -1e-9, float("nan"), float("inf"), "1", None, True])
    def test_rejects(self, alpha):
        with pytest.raises(InvalidAlphaError):
            validate_alpha(alpha)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassify:
    def test_scenario_win_big_now_is_spam(self, scenario_model):
        result = score("win big now", 1.0, scenario_model)
        assert result.log_score_spam > result.log_score_ham
        assert result.label is Label.SPAM
        assert classify("win big now", 1.0, scenario_model) is Label.SPAM

    def test_scenario_scores_match_hand_computation(self, scenario_model):
        result = score("win big now", 1.0, scenario_model)
        # "big" is out of vocabulary and contributes nothing
        assert result.log_score_spam == pytest.approx(
            math.log(0.5) + math.log(3 / 18) + math.log(2 / 18)
        )
        assert result.log_score_ham == pytest.approx(
            math.log(0.5) + math.log(1 / 20) + math.log(1 / 20)
        )

    def test_ham_message(self, scenario_model):
        assert classify("Meeting notes, see you there", 1.0, scenario_model) is Label.HAM

    def test_normalizes_like_training(self, scenario_model):
        assert classify("WIN!!! MONEY 100 NOW", 1.0, scenario_model) is Label.SPAM

    def test_repeated_tokens_count_each_time(self, scenario_model):
        once = score("meeting", 1.0, scenario_model)
        twice = score("meeting meeting", 1.0, scenario_model)
        assert twice.log_score_ham < once.log_score_ham
        assert twice.log_score_ham == pytest.approx(
            math.log(0.5) + 2 * math.log(3 / 20)
        )

    def test_empty_message_tie_goes_to_spam(self, scenario_model):
        result = score("", 1.0, scenario_model)
        assert result.log_score_spam == result.log_score_ham
        assert result.label is Label.SPAM

    @pytest.mark.parametrize("alpha", [0.0, 0.1, 1.0, 5.0])
    def test_empty_message_returns_larger_prior(self, alpha):
        ham_heavy = train([
            Message(Label.SPAM, "win"),
            Message(Label.HAM, "hi"),
            Message(Label.HAM, "hello"),
        ])
        spam_heavy = train([
            Message(Label.SPAM, "win"),
            Message(Label.SPAM, "prize"),
            Message(Label.HAM, "hi"),
        ])
        assert classify("", alpha, ham_heavy) is Label.HAM
        assert classify("", alpha, spam_heavy) is Label.SPAM
        assert classify("123 !!!", alpha, ham_heavy) is Label.HAM

    def test_all_out_of_vocabulary_uses_prior(self):
        ham_heavy = train([
            Message(Label.SPAM, "win"),
            Message(Label.HAM, "hi"),
            Message(Label.HAM, "hello"),
        ])
        assert classify("zebra giraffe", 1.0, ham_heavy) is Label.HAM

    def test_all_out_of_vocabulary_equal_priors_is_spam(self, scenario_model):
        assert classify("zebra giraffe", 1.0, scenario_model) is Label.SPAM

    def test_long_message_does_not_underflow(self, scenario_model):
        # A literal product of 3000 probabilities underflows to 0.0 for
        # both classes; in log space ham still clearly wins.
        result = score("meeting " * 3000, 1.0, scenario_model)
        assert math.isfinite(result.log_score_spam)
        assert math.isfinite(result.log_score_ham)
        assert result.label is Label.HAM

    def test_alpha_zero_unseen_token_rules_out_class(self, scenario_model):
        result = score("meeting", 0.0, scenario_model)
        assert result.log_score_spam == -math.inf
        assert result.label is Label.HAM

    def test_alpha_zero_both_impossible_is_spam(self, scenario_model):
        result = score("win meeting", 0.0, scenario_model)
        assert result.log_score_spam == -math.inf
        assert result.log_score_ham == -math.inf
        assert result.label is Label.SPAM
        assert result.spam_probability == 0.5

    def test_negative_alpha_raises(self, scenario_model):
        with pytest.raises(InvalidAlphaError):
            classify("win", -1.0, scenario_model)

    def test_model_unchanged_by_classification(self, scenario_model):
        before = dict(scenario_model.frequencies.counts)
        for text in ("win big", "new words here", ""):
            classify(text, 1.0, scenario_model)
        assert dict(scenario_model.frequencies.counts) == before
        assert "big" not in scenario_model.vocabulary


class TestClassificationResult:
    def test_probabilities_from_log_scores(self):
        result = ClassificationResult(Label.SPAM, math.log(0.09), math.log(0.01))
        assert result.spam_probability == pytest.approx(0.9)
        assert result.ham_probability == pytest.approx(0.1)
        assert result.margin == pytest.approx(0.8)
        assert not result.needs_review()

    def test_exact_tie_needs_review(self):
        result = ClassificationResult(Label.SPAM, -5.0, -5.0)
        assert result.spam_probability == 0.5
        assert result.margin == 0.0
        assert result.needs_review()

    def test_custom_review_threshold(self):
        result = ClassificationResult(Label.SPAM, math.log(0.6), math.log(0.4))
        assert result.needs_review(threshold=0.5)
        assert not result.needs_review(threshold=0.1)

    def test_very_negative_scores_stay_stable(self):
        result = ClassificationResult(Label.HAM, -10_000.0, -9_998.0)
        assert 0.0 < result.spam_probability < 0.5

    def test_to_dict(self, scenario_model):
        data = score("win big now", 1.0, scenario_model).to_dict()
        assert data["label"] == "spam"
        assert data["spam_probability"] + data["ham_probability"] == pytest.approx(1.0, abs=1e-3)
        assert 0.0 <= data["margin"] <= 1.0


class TestMostInformativeTokens:
    def test_spam_tokens_ranked_first(self, scenario_model):
        top = scenario_model.most_informative_tokens(Label.SPAM, alpha=1.0, top_n=3)
        assert top[0][0] == "win"
        assert top[0][1] == pytest.approx(math.log((3 / 18) / (1 / 20)), abs=1e-4)
        assert len(top) == 3

    def test_ham_tokens(self, scenario_model):
        top = scenario_model.most_informative_tokens(Label.HAM, top_n=1)
        assert top[0][0] == "meeting"

    def test_sorted_descending(self, scenario_model):
        ranked = scenario_model.most_informative_tokens(Label.SPAM, top_n=100)
        ratios = [r for _, r in ranked]
        assert ratios == sorted(ratios, reverse=True)
        assert len(ranked) == scenario_model.n_vocabulary

    def test_alpha_zero_rejected(self, scenario_model):
        with pytest.raises(InvalidAlphaError):
            scenario_model.most_informative_tokens(Label.SPAM, alpha=0.0)
