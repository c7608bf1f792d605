# Model implementation for sentiment classification

from .gru_sentiment import GRUSentimentNet, ModelSpec, create_model, release_model
from .model_owner import ModelOwner

__all__ = [
    "GRUSentimentNet",
    "ModelSpec",
    "create_model",
    "release_model",
    "ModelOwner",
]
