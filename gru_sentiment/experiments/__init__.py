# Training, evaluation, inference and persistence

from .trainer import EpochResult, TrainingHistory, fit, iter_epochs
from .evaluator import EvaluationResult, evaluate
from .predictor import Prediction, SentimentPredictor, predict_many, predict_one
from .persistence import LoadedArtifact, load, load_artifact, save, save_artifact

__all__ = [
    "EpochResult",
    "TrainingHistory",
    "fit",
    "iter_epochs",
    "EvaluationResult",
    "evaluate",
    "Prediction",
    "SentimentPredictor",
    "predict_one",
    "predict_many",
    "LoadedArtifact",
    "load",
    "load_artifact",
    "save",
    "save_artifact",
]
