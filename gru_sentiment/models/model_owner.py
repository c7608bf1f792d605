# model_owner.py
from typing import Any, Optional

from ..core.errors import NotReadyError
from .gru_sentiment import GRUSentimentNet, create_model, release_model


class ModelOwner:
    """
    Holds at most one live model.

    Building or installing a new model always releases the previous one
    first, so two generations never hold parameters at the same time.
    """

    def __init__(self, model: Optional[GRUSentimentNet] = None):
        self._model = model

    @property
    def has_model(self) -> bool:
        return self._model is not None and not self._model.released

    @property
    def model(self) -> GRUSentimentNet:
        if not self.has_model:
            raise NotReadyError("Model not created. Call create() or load an artifact first.")
        return self._model

    def get(self) -> Optional[GRUSentimentNet]:
        return self._model if self.has_model else None

    def create(self, vocab_size: int, seq_len: int, **params: Any) -> GRUSentimentNet:
        # old model goes first, even if the new one then fails to build
        self.release()
        self._model = create_model(vocab_size=vocab_size, seq_len=seq_len, **params)
        return self._model

    def replace(self, model: GRUSentimentNet) -> GRUSentimentNet:
        if model is self._model:
            return model
        old, self._model = self._model, model
        release_model(old)
        return model

    def release(self):
        old, self._model = self._model, None
        release_model(old)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
