#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Binary Classification Metrics

Implemented directly on numpy arrays:
- Accuracy
- Precision / Recall / F1 for the positive class
- Confusion counts (tp, tn, fp, fn)
- Text classification report

Every ratio with an empty denominator evaluates to 0.0 instead of NaN, so
callers always receive a number they can display.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import numpy as np


@dataclass(frozen=True)
class ConfusionCounts:
    tp: int = 0
    tn: int = 0
    fp: int = 0
    fn: int = 0

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_matrix(self) -> np.ndarray:
        """2x2 matrix, rows = actual (neg, pos), columns = predicted (neg, pos)."""
        return np.array([[self.tn, self.fp], [self.fn, self.tp]], dtype=int)


def _as_arrays(y_true, y_pred):
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")
    return y_true, y_pred


def binary_confusion(y_true, y_pred) -> ConfusionCounts:
    """
    Count outcomes by exact equality against 0/1.

    Args:
        y_true: Ground truth labels (0/1)
        y_pred: Predicted labels (0/1)

    Returns:
        ConfusionCounts
    """
    y_true, y_pred = _as_arrays(y_true, y_pred)
    tp = int(np.sum((y_true == 1) & (y_pred == 1)))
    tn = int(np.sum((y_true == 0) & (y_pred == 0)))
    fp = int(np.sum((y_true == 0) & (y_pred == 1)))
    fn = int(np.sum((y_true == 1) & (y_pred == 0)))
    return ConfusionCounts(tp=tp, tn=tn, fp=fp, fn=fn)


def accuracy_score(y_true, y_pred) -> float:
    y_true, y_pred = _as_arrays(y_true, y_pred)
    if len(y_true) == 0:
        return 0.0
    return float(np.sum(y_true == y_pred) / len(y_true))


def precision_from_counts(cm: ConfusionCounts) -> float:
    return 0.0 if cm.tp + cm.fp == 0 else cm.tp / (cm.tp + cm.fp)


def recall_from_counts(cm: ConfusionCounts) -> float:
    return 0.0 if cm.tp + cm.fn == 0 else cm.tp / (cm.tp + cm.fn)


def f1_from_precision_recall(precision: float, recall: float) -> float:
    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def precision_score(y_true, y_pred) -> float:
    """tp / (tp + fp), 0.0 when nothing was predicted positive."""
    return precision_from_counts(binary_confusion(y_true, y_pred))


def recall_score(y_true, y_pred) -> float:
    """tp / (tp + fn), 0.0 when there are no positive labels."""
    return recall_from_counts(binary_confusion(y_true, y_pred))


def f1_score(y_true, y_pred) -> float:
    cm = binary_confusion(y_true, y_pred)
    return f1_from_precision_recall(precision_from_counts(cm), recall_from_counts(cm))


def threshold_probabilities(y_prob, threshold: float = 0.5) -> np.ndarray:
    return (np.asarray(y_prob) >= threshold).astype(int)


def compute_all_metrics(y_true, y_pred) -> Dict[str, object]:
    """
    Compute all binary metrics at once.

    Returns:
        Dictionary with accuracy, precision, recall, f1 and confusion counts
    """
    cm = binary_confusion(y_true, y_pred)
    precision = precision_from_counts(cm)
    recall = recall_from_counts(cm)
    return {
        "accuracy": accuracy_score(y_true, y_pred),
        "precision": precision,
        "recall": recall,
        "f1": f1_from_precision_recall(precision, recall),
        "confusion_matrix": cm.to_dict(),
    }


def classification_report(
    y_true,
    y_pred,
    target_names: Optional[List[str]] = None,
    digits: int = 4,
) -> str:
    """
    Per-class precision/recall/F1 table for the two sentiment classes.

    Args:
        y_true: Ground truth labels
        y_pred: Predicted labels
        target_names: Names for (negative, positive)
        digits: Number of decimal places to show

    Returns:
        Formatted report string
    """
    if target_names is None:
        target_names = ["negative", "positive"]
    if len(target_names) != 2:
        raise ValueError("target_names must name exactly 2 classes")

    cm = binary_confusion(y_true, y_pred)
    # negative class seen as "positive" with the roles swapped
    neg = ConfusionCounts(tp=cm.tn, tn=cm.tp, fp=cm.fn, fn=cm.fp)
    rows = []
    for name, counts, support in ((target_names[0], neg, cm.tn + cm.fp),
                                  (target_names[1], cm, cm.tp + cm.fn)):
        p = precision_from_counts(counts)
        r = recall_from_counts(counts)
        rows.append((name, p, r, f1_from_precision_recall(p, r), support))

    width = max(max(len(n) for n in target_names), len("accuracy"))
    report = f"{'':>{width}} {'precision':>9} {'recall':>9} {'f1-score':>9} {'support':>9}\n\n"
    for name, p, r, f, s in rows:
        report += f"{name:>{width}} {p:>9.{digits}f} {r:>9.{digits}f} {f:>9.{digits}f} {s:>9}\n"
    report += "\n"
    report += f"{'accuracy':>{width}} {'':>9} {'':>9} {accuracy_score(y_true, y_pred):>9.{digits}f} {cm.total:>9}\n"
    return report
