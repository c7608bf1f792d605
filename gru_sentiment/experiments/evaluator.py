#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Test Set Evaluation for the GRU sentiment model
"""

from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np
import torch
from torch.utils.data import DataLoader, TensorDataset

from ..core.errors import ValidationError
from ..core.metrics import (
    ConfusionCounts,
    accuracy_score,
    binary_confusion,
    f1_from_precision_recall,
    precision_from_counts,
    recall_from_counts,
    threshold_probabilities,
)
from ..models.gru_sentiment import require_live


@dataclass
class EvaluationResult:
    loss: float
    accuracy: float
    y_true: List[int]
    y_pred: List[int]
    y_prob: List[float]
    confusion_matrix: ConfusionCounts
    precision: float
    recall: float
    f1: float

    def summary(self) -> Dict[str, Any]:
        """The metrics shown once per evaluation."""
        return {
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
            "confusionMatrix": self.confusion_matrix.to_dict(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loss": self.loss,
            **self.summary(),
            "yTrue": self.y_true,
            "yPred": self.y_pred,
            "yProb": self.y_prob,
        }


@torch.no_grad()
def predict_probabilities(model, x: torch.Tensor, batch_size: int = 256) -> np.ndarray:
    """Sigmoid outputs for every row of ``x``, in input order."""
    model = require_live(model)
    model.eval()
    device = model.device
    outs = []
    for (xb,) in DataLoader(TensorDataset(x), batch_size=batch_size, shuffle=False):
        xb = xb.to(device=device, dtype=torch.long)
        outs.append(model.predict_proba(xb).cpu().numpy())
    if not outs:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(outs).astype(np.float32)


def evaluate(model, test_x: torch.Tensor, test_y: torch.Tensor,
             threshold: float = 0.5, batch_size: int = 256) -> EvaluationResult:
    """
    Score a model on a held-out set.

    Args:
        model: Live GRUSentimentNet
        test_x: [N, seq_len] token ids
        test_y: [N] binary labels
        threshold: Probability at or above which a sample is predicted positive
        batch_size: Inference batch size

    Returns:
        EvaluationResult with loss, accuracy, per-sample outputs, confusion
        counts, precision, recall and F1
    """
    model = require_live(model)
    if test_x is None or test_y is None:
        raise ValidationError("Test tensors are missing (released dataset?)")
    if len(test_x) != len(test_y):
        raise ValidationError(f"test_x/test_y length mismatch: {len(test_x)} != {len(test_y)}")

    y_prob = predict_probabilities(model, test_x, batch_size=batch_size)
    y_true = test_y.detach().cpu().numpy().astype(int)
    y_pred = threshold_probabilities(y_prob, threshold)

    if len(y_prob):
        probs = torch.from_numpy(y_prob).double().clamp(1e-7, 1 - 1e-7)
        targets = torch.from_numpy(y_true).double()
        # clamped to keep log() finite
        loss = float(torch.nn.functional.binary_cross_entropy(probs, targets).item())
    else:
        loss = float("nan")

    cm = binary_confusion(y_true, y_pred)
    precision = precision_from_counts(cm)
    recall = recall_from_counts(cm)

    return EvaluationResult(
        loss=loss,
        accuracy=accuracy_score(y_true, y_pred),
        y_true=y_true.tolist(),
        y_pred=y_pred.tolist(),
        y_prob=y_prob.tolist(),
        confusion_matrix=cm,
        precision=precision,
        recall=recall,
        f1=f1_from_precision_recall(precision, recall),
    )
