# config.py
"""
Pipeline configuration.

Defaults mirror the values the browser demo shipped with (sequence length 100,
20k vocabulary, 80/20 test split, 5 epochs of batch 64, 10% validation, a
bidirectional GRU of width 128 on 64-d embeddings).
"""
from __future__ import annotations

import json
import random
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import torch

from .errors import ConfigError


@dataclass
class PipelineConfig:
    # data
    seq_len: int = 100
    max_vocab: int = 20000
    remove_stopwords: bool = False
    test_split: float = 0.2
    # model
    embed_dim: int = 64
    recurrent_units: int = 128
    dropout: float = 0.2
    bidirectional: bool = True
    # training
    epochs: int = 5
    batch_size: int = 64
    validation_split: float = 0.1
    threshold: float = 0.5
    seed: int = 1337
    device: str = "auto"

    def __post_init__(self):
        if self.seq_len < 1:
            raise ConfigError(f"seq_len must be >= 1, got {self.seq_len}")
        if self.max_vocab < 2:
            raise ConfigError(f"max_vocab must be >= 2, got {self.max_vocab}")
        if not 0.0 <= self.test_split < 1.0:
            raise ConfigError(f"test_split must be in [0, 1), got {self.test_split}")
        if not 0.0 <= self.validation_split < 1.0:
            raise ConfigError(
                f"validation_split must be in [0, 1), got {self.validation_split}"
            )
        if self.epochs < 1 or self.batch_size < 1:
            raise ConfigError("epochs and batch_size must be positive")
        if not 0.0 <= self.dropout < 1.0:
            raise ConfigError(f"dropout must be in [0, 1), got {self.dropout}")

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {unknown}")
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def model_kwargs(self) -> Dict[str, Any]:
        return {
            "embed_dim": self.embed_dim,
            "recurrent_units": self.recurrent_units,
            "dropout": self.dropout,
            "bidirectional": self.bidirectional,
        }


# Named starting points, overridable key by key from the CLI.
PRESETS: Dict[str, Dict[str, Any]] = {
    "default": {},
    "fast": {
        "seq_len": 64,
        "max_vocab": 5000,
        "embed_dim": 32,
        "recurrent_units": 32,
        "epochs": 2,
        "batch_size": 128,
    },
}


def load_config(path: Optional[str | Path] = None, preset: str = "default",
                overrides: Optional[Dict[str, Any]] = None) -> PipelineConfig:
    """
    Build a PipelineConfig from a preset, an optional JSON file and overrides.

    Later sources win: preset < file < overrides. ``None`` override values are
    ignored so argparse defaults can be passed straight through.
    """
    if preset not in PRESETS:
        raise ConfigError(f"Unknown preset: {preset}")
    params: Dict[str, Any] = dict(PRESETS[preset])

    if path is not None:
        p = Path(path)
        try:
            with open(p, "r", encoding="utf-8") as f:
                file_params = json.load(f)
        except (OSError, json.JSONDecodeError) as err:
            raise ConfigError(f"Cannot read config {p}: {err}") from err
        if not isinstance(file_params, dict):
            raise ConfigError(f"Config {p} must contain a JSON object")
        params.update(file_params)

    if overrides:
        params.update({k: v for k, v in overrides.items() if v is not None})

    return PipelineConfig.from_dict(params)


def set_seed(seed: int = 1337):
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    torch.cuda.manual_seed_all(seed)


def resolve_device(name: str = "auto") -> torch.device:
    if name == "auto":
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    if name == "cuda":
        if not torch.cuda.is_available():
            raise ConfigError("CUDA requested but not available")
        return torch.device("cuda")
    if name == "cpu":
        return torch.device("cpu")
    raise ConfigError(f"Unknown device: {name}")
