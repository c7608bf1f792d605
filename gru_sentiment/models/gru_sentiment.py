# gru_sentiment.py
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import torch
import torch.nn as nn

from ..core.errors import ConfigError, NotReadyError


@dataclass(frozen=True)
class ModelSpec:
    vocab_size: int
    seq_len: int
    embed_dim: int = 64
    recurrent_units: int = 128
    dropout: float = 0.2
    bidirectional: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _check_spec(spec: ModelSpec):
    for name in ("vocab_size", "seq_len"):
        value = getattr(spec, name)
        if not value or int(value) <= 0:
            raise ConfigError("vocab_size and seq_len are required and must be positive.")
    if spec.embed_dim <= 0 or spec.recurrent_units <= 0:
        raise ConfigError("embed_dim and recurrent_units must be positive.")
    if not 0.0 <= spec.dropout < 1.0:
        raise ConfigError(f"dropout must be in [0, 1), got {spec.dropout}")


class GRUSentimentNet(nn.Module):
    """Embedding -> (Bi)GRU final hidden state -> Linear(1); logits out."""

    def __init__(self, spec: ModelSpec):
        super().__init__()
        _check_spec(spec)
        self.spec = spec
        self.released = False
        self.emb = nn.Embedding(spec.vocab_size, spec.embed_dim, padding_idx=0)
        self.drop = nn.Dropout(spec.dropout)
        self.gru = nn.GRU(
            input_size=spec.embed_dim,
            hidden_size=spec.recurrent_units,
            batch_first=True,
            bidirectional=spec.bidirectional,
        )
        self.head = nn.Linear(self.encoder_width, 1)
        self._init_weights()

    @property
    def encoder_width(self) -> int:
        return self.spec.recurrent_units * (2 if self.spec.bidirectional else 1)

    def _init_weights(self):
        nn.init.xavier_uniform_(self.emb.weight)
        with torch.no_grad():
            self.emb.weight[0].zero_()  # PAD
        for name, p in self.gru.named_parameters():
            if name.startswith("weight_ih"):
                nn.init.xavier_uniform_(p)
            elif name.startswith("weight_hh"):
                nn.init.xavier_normal_(p)
            else:
                nn.init.zeros_(p)
        nn.init.xavier_uniform_(self.head.weight)
        nn.init.zeros_(self.head.bias)

    def forward(self, x):
        emb = self.drop(self.emb(x))  # [B, T, E]
        _, h_n = self.gru(emb)        # [num_directions, B, H]
        if self.spec.bidirectional:
            h = torch.cat([h_n[-2], h_n[-1]], dim=-1)
        else:
            h = h_n[-1]
        return self.head(h).squeeze(-1)

    def predict_proba(self, x):
        return torch.sigmoid(self.forward(x))

    @property
    def device(self) -> torch.device:
        return next(self.parameters()).device

    def topology(self) -> Dict[str, Any]:
        """JSON-describable layer graph."""
        s = self.spec
        gru_cfg = {"units": s.recurrent_units, "return_sequences": False}
        return {
            "class_name": type(self).__name__,
            "config": s.to_dict(),
            "layers": [
                {"name": "emb", "type": "Embedding",
                 "input_shape": [None, s.seq_len], "output_shape": [None, s.seq_len, s.embed_dim],
                 "input_dim": s.vocab_size, "output_dim": s.embed_dim, "padding_idx": 0},
                {"name": "drop", "type": "Dropout", "rate": s.dropout},
                {"name": "gru",
                 "type": "Bidirectional" if s.bidirectional else "GRU",
                 "merge_mode": "concat" if s.bidirectional else None,
                 "layer": gru_cfg,
                 "output_shape": [None, self.encoder_width]},
                {"name": "head", "type": "Dense", "units": 1, "activation": "sigmoid",
                 "output_shape": [None, 1]},
            ],
        }


def create_model(
    vocab_size: int,
    seq_len: int,
    embed_dim: int = 64,
    recurrent_units: int = 128,
    dropout: float = 0.2,
    bidirectional: bool = True,
    device: Optional[torch.device] = None,
    seed: Optional[int] = None,
) -> GRUSentimentNet:
    if seed is not None:
        torch.manual_seed(seed)
    spec = ModelSpec(
        vocab_size=vocab_size,
        seq_len=seq_len,
        embed_dim=embed_dim,
        recurrent_units=recurrent_units,
        dropout=dropout,
        bidirectional=bidirectional,
    )
    _check_spec(spec)
    model = GRUSentimentNet(spec)
    if device is not None:
        model = model.to(device)
    return model


def make_optimizer(model: nn.Module) -> torch.optim.Optimizer:
    # library-default learning rate
    return torch.optim.Adam(model.parameters())


def make_loss() -> nn.Module:
    return nn.BCEWithLogitsLoss()


def release_model(model: Optional[GRUSentimentNet]):
    """Free a model's parameter storage; the module is unusable afterwards."""
    if model is None or getattr(model, "released", False):
        return
    on_cuda = any(p.is_cuda for p in model.parameters())
    with torch.no_grad():
        for p in model.parameters():
            p.data = torch.empty(0, dtype=p.dtype, device="cpu")
            p.grad = None
    model.released = True
    if on_cuda:
        torch.cuda.empty_cache()


def require_live(model: Optional[GRUSentimentNet]) -> GRUSentimentNet:
    if model is None or getattr(model, "released", False):
        raise NotReadyError("Model not created or loaded.")
    return model
