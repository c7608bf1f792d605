# predictor.py
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import torch

from ..core.tokenizer import Tokenizer
from ..models.gru_sentiment import require_live
from ..models.model_owner import ModelOwner
from .evaluator import predict_probabilities


@dataclass(frozen=True)
class Prediction:
    prob: float
    label: Optional[int]

    @property
    def sentiment(self) -> Optional[str]:
        if self.label is None:
            return None
        return "positive" if self.label == 1 else "negative"

    def to_dict(self):
        return {"prob": None if math.isnan(self.prob) else self.prob, "label": self.label}


EMPTY_PREDICTION = Prediction(prob=float("nan"), label=None)


def _is_blank(text) -> bool:
    return not isinstance(text, str) or not text.strip()


def predict_one(model, text: str, tokenizer: Tokenizer, threshold: float = 0.5) -> Prediction:
    """Classify a single review. Blank input is a no-op returning (nan, None)."""
    model = require_live(model)
    if _is_blank(text):
        return EMPTY_PREDICTION
    x = torch.from_numpy(tokenizer.texts_to_padded([text]))
    prob = float(predict_probabilities(model, x, batch_size=1)[0])
    return Prediction(prob=prob, label=1 if prob >= threshold else 0)


def predict_many(model, texts: Sequence[str], tokenizer: Tokenizer,
                 threshold: float = 0.5, batch_size: int = 256) -> List[Prediction]:
    """Batched predict_one; output order matches ``texts``."""
    model = require_live(model)
    keep = [i for i, t in enumerate(texts) if not _is_blank(t)]
    out = [EMPTY_PREDICTION] * len(texts)
    if not keep:
        return out
    x = torch.from_numpy(tokenizer.texts_to_padded([texts[i] for i in keep]))
    probs = predict_probabilities(model, x, batch_size=batch_size)
    for i, p in zip(keep, probs):
        p = float(p)
        out[i] = Prediction(prob=p, label=1 if p >= threshold else 0)
    return out


class SentimentPredictor:
    """
    Single-entry inference handle for callers that only have text.

    Reads the owner's current model at call time, so it keeps working after
    the owner swaps in a retrained or reloaded model.
    """

    def __init__(self, owner: ModelOwner, tokenizer: Tokenizer, threshold: float = 0.5):
        self.owner = owner
        self.tokenizer = tokenizer
        self.threshold = threshold

    def predict_one(self, text: str) -> Prediction:
        return predict_one(self.owner.get(), text, self.tokenizer, self.threshold)

    __call__ = predict_one
