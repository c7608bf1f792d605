#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Model + tokenizer artifact.

One JSON document carries everything needed to rebuild the classifier in a
fresh process:

    format / formatVersion   identifies the bundle
    modelTopology            layer graph and the ModelSpec hyperparameters
    weightSpecs              name, shape and dtype of each tensor, in order
    weightData               base64 of the concatenated little-endian float32 bytes
    savedAt                  ISO-8601 UTC timestamp
    tokenizerMeta            vocabulary, inverse vocabulary, seqLen,
                             removeStopwords, maxVocab
"""
from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import torch

from ..core.errors import (
    CorruptArtifactError,
    ConfigError,
    MissingTokenizerError,
    NoModelError,
    NotFittedError,
)
from ..core.tokenizer import Tokenizer
from ..models.gru_sentiment import GRUSentimentNet, ModelSpec
from ..models.model_owner import ModelOwner

FORMAT_NAME = "gru-sentiment"
FORMAT_VERSION = 1
_DTYPE = np.dtype("<f4")


@dataclass
class LoadedArtifact:
    model: GRUSentimentNet
    tokenizer: Tokenizer
    saved_at: Optional[str] = None

    @property
    def tokenizer_state(self) -> Dict[str, Any]:
        return self.tokenizer.to_state()


def _tokenizer_state(tokenizer_state: Union[Tokenizer, Dict[str, Any], None]) -> Dict[str, Any]:
    if tokenizer_state is None:
        raise MissingTokenizerError("Tokenizer metadata is required for saving.")
    if isinstance(tokenizer_state, Tokenizer):
        try:
            return tokenizer_state.to_state()
        except NotFittedError as err:
            raise MissingTokenizerError("Tokenizer is not fitted; nothing to save.") from err
    # round-trip through Tokenizer so only well-formed state is written
    return Tokenizer.from_state(tokenizer_state).to_state()


def _pack_weights(model: GRUSentimentNet):
    specs: List[Dict[str, Any]] = []
    chunks: List[bytes] = []
    for name, tensor in model.state_dict().items():
        arr = tensor.detach().cpu().numpy().astype(_DTYPE, copy=False)
        specs.append({"name": name, "shape": list(arr.shape), "dtype": "float32"})
        chunks.append(np.ascontiguousarray(arr).tobytes())
    return specs, b"".join(chunks)


def save(model: Optional[GRUSentimentNet], tokenizer_state) -> bytes:
    """Serialise a live model and its tokenizer into artifact bytes."""
    if model is None or getattr(model, "released", False):
        raise NoModelError("No model to save.")
    state = _tokenizer_state(tokenizer_state)

    weight_specs, weight_data = _pack_weights(model)
    bundle = {
        "format": FORMAT_NAME,
        "formatVersion": FORMAT_VERSION,
        "modelTopology": model.topology(),
        "weightSpecs": weight_specs,
        "weightData": base64.b64encode(weight_data).decode("ascii"),
        "savedAt": datetime.now(timezone.utc).isoformat(),
        "tokenizerMeta": state,
    }
    return json.dumps(bundle, ensure_ascii=False).encode("utf-8")


def _section(bundle: Dict[str, Any], key: str, kind):
    value = bundle.get(key)
    if not isinstance(value, kind) or not value:
        raise CorruptArtifactError(f"Artifact section '{key}' is missing or malformed.")
    return value


def _unpack_weights(weight_specs, weight_data: bytes) -> Dict[str, torch.Tensor]:
    tensors: Dict[str, torch.Tensor] = {}
    offset = 0
    for ws in weight_specs:
        try:
            name = str(ws["name"])
            shape = tuple(int(d) for d in ws["shape"])
        except (KeyError, TypeError, ValueError) as err:
            raise CorruptArtifactError(f"Malformed weight spec {ws!r}") from err
        if ws.get("dtype", "float32") != "float32":
            raise CorruptArtifactError(f"Unsupported dtype for {name}: {ws.get('dtype')}")
        count = int(np.prod(shape)) if shape else 1
        nbytes = count * _DTYPE.itemsize
        if offset + nbytes > len(weight_data):
            raise CorruptArtifactError(f"Weight data too short for {name}")
        arr = np.frombuffer(weight_data, dtype=_DTYPE, count=count, offset=offset).reshape(shape)
        tensors[name] = torch.from_numpy(arr.copy())
        offset += nbytes
    if offset != len(weight_data):
        raise CorruptArtifactError(
            f"Weight data has {len(weight_data) - offset} unexpected trailing bytes"
        )
    return tensors


def load(data: Union[bytes, str], owner: Optional[ModelOwner] = None,
         device: Optional[torch.device] = None) -> LoadedArtifact:
    """
    Rebuild model and tokenizer from artifact bytes.

    If ``owner`` is given, the loaded model replaces (and releases) the
    owner's current model.
    """
    try:
        bundle = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as err:
        raise CorruptArtifactError(f"Artifact is not valid JSON: {err}") from err
    if not isinstance(bundle, dict):
        raise CorruptArtifactError("Artifact must be a JSON object.")
    if bundle.get("format", FORMAT_NAME) != FORMAT_NAME:
        raise CorruptArtifactError(f"Unknown artifact format: {bundle.get('format')}")

    topology = _section(bundle, "modelTopology", dict)
    weight_specs = _section(bundle, "weightSpecs", list)
    encoded = _section(bundle, "weightData", str)
    tokenizer_meta = _section(bundle, "tokenizerMeta", dict)

    try:
        weight_data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise CorruptArtifactError("weightData is not valid base64") from err

    try:
        spec = ModelSpec(**topology["config"])
        model = GRUSentimentNet(spec)
    except (KeyError, TypeError, ConfigError) as err:
        raise CorruptArtifactError(f"Malformed model topology: {err}") from err

    tensors = _unpack_weights(weight_specs, weight_data)
    try:
        model.load_state_dict(tensors, strict=True)
    except RuntimeError as err:
        raise CorruptArtifactError(f"Weights do not match topology: {err}") from err

    tokenizer = Tokenizer.from_state(tokenizer_meta)
    if tokenizer.vocab_size > spec.vocab_size or tokenizer.seq_len != spec.seq_len:
        raise CorruptArtifactError("Tokenizer vocabulary/seqLen disagree with the model topology")

    if device is not None:
        model = model.to(device)
    model.eval()
    if owner is not None:
        owner.replace(model)
    return LoadedArtifact(model=model, tokenizer=tokenizer, saved_at=bundle.get("savedAt"))


def save_artifact(path: Union[str, Path], model: Optional[GRUSentimentNet], tokenizer_state) -> Path:
    p = Path(path)
    data = save(model, tokenizer_state)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)
    return p


def load_artifact(path: Union[str, Path], owner: Optional[ModelOwner] = None,
                  device: Optional[torch.device] = None) -> LoadedArtifact:
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as err:
        raise CorruptArtifactError(f"Cannot read artifact {p}: {err}") from err
    return load(data, owner=owner, device=device)
