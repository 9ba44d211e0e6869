"""SMS Spam Classifier -- multinomial Naive Bayes for text messages."""

__version__ = "0.1.0"

from .classifier import (
    ClassificationResult,
    FrequencyTable,
    NaiveBayesModel,
    build_counts,
    build_vocabulary,
    classify,
    score,
    train,
    validate_alpha,
)
from .config import Settings, load_settings
from .dataset import (
    DatasetSplit,
    class_distribution,
    load_messages,
    messages_from_records,
    split_messages,
)
from .evaluation import (
    ConfusionCounts,
    EvaluationResult,
    best_alpha,
    confusion_counts,
    evaluate,
    sweep,
)
from .models import (
    DatasetError,
    DegenerateSplitError,
    EmptyTrainingSetError,
    InvalidAlphaError,
    Label,
    Message,
    SpamClassifierError,
    TokenCounts,
)
from .preprocessing import normalize, normalize_to_string
from .spam_filter import SpamFilter

__all__ = [
    # Data model
    "Label",
    "Message",
    "TokenCounts",
    # Preprocessing
    "normalize",
    "normalize_to_string",
    # Training and classification
    "build_vocabulary",
    "build_counts",
    "train",
    "classify",
    "score",
    "validate_alpha",
    "FrequencyTable",
    "NaiveBayesModel",
    "ClassificationResult",
    "SpamFilter",
    # Evaluation
    "evaluate",
    "sweep",
    "best_alpha",
    "confusion_counts",
    "ConfusionCounts",
    "EvaluationResult",
    # Datasets
    "load_messages",
    "messages_from_records",
    "split_messages",
    "class_distribution",
    "DatasetSplit",
    # Configuration
    "Settings",
    "load_settings",
    # Errors
    "SpamClassifierError",
    "InvalidAlphaError",
    "EmptyTrainingSetError",
    "DatasetError",
    "DegenerateSplitError",
]
