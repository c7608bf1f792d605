# Core components for sentiment classification

from .config import PipelineConfig, load_config, resolve_device, set_seed
from .errors import (
    ConfigError,
    CorruptArtifactError,
    GRUSentimentError,
    MissingTokenizerError,
    NoModelError,
    NotFittedError,
    NotReadyError,
    TrainingError,
    ValidationError,
)
from .metrics import (
    ConfusionCounts,
    accuracy_score,
    binary_confusion,
    classification_report,
    compute_all_metrics,
    f1_score,
    precision_score,
    recall_score,
)
from .tokenizer import STOPWORDS, Tokenizer, pad_sequences

__all__ = [
    "PipelineConfig",
    "load_config",
    "resolve_device",
    "set_seed",
    "GRUSentimentError",
    "ValidationError",
    "ConfigError",
    "NotFittedError",
    "NotReadyError",
    "TrainingError",
    "CorruptArtifactError",
    "MissingTokenizerError",
    "NoModelError",
    "ConfusionCounts",
    "accuracy_score",
    "binary_confusion",
    "precision_score",
    "recall_score",
    "f1_score",
    "compute_all_metrics",
    "classification_report",
    "STOPWORDS",
    "Tokenizer",
    "pad_sequences",
]
