#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Training loop for the GRU sentiment model.

``iter_epochs`` is a generator that yields one EpochResult per epoch; the
caller decides between epochs whether to keep going (closing the generator
stops training). ``fit`` drives it to completion and forwards each result to
an optional callback.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Callable, Iterator, List, Optional

import torch
from torch.utils.data import DataLoader, TensorDataset

from ..core.errors import NotReadyError, TrainingError, ValidationError
from ..models.gru_sentiment import make_loss, make_optimizer, require_live


@dataclass(frozen=True)
class EpochResult:
    epoch: int
    loss: float
    accuracy: float
    val_loss: Optional[float] = None
    val_accuracy: Optional[float] = None

    def to_dict(self):
        return {
            "epochIndex": self.epoch,
            "loss": self.loss,
            "accuracy": self.accuracy,
            "valLoss": self.val_loss,
            "valAccuracy": self.val_accuracy,
        }


@dataclass
class TrainingHistory:
    epochs: List[EpochResult] = field(default_factory=list)
    stopped_early: bool = False

    def __len__(self):
        return len(self.epochs)

    def as_columns(self):
        """Column-oriented view, e.g. {"loss": [...], "val_loss": [...]}."""
        cols = {k: [] for k in ("loss", "accuracy", "val_loss", "val_accuracy")}
        for r in self.epochs:
            d = asdict(r)
            for k in cols:
                cols[k].append(d[k])
        return cols

    def to_list(self):
        return [r.to_dict() for r in self.epochs]


def _check_inputs(train_x, train_y, epochs, batch_size, validation_split):
    if train_x is None or train_y is None:
        raise ValidationError("Training tensors are missing (released dataset?)")
    if train_x.dim() != 2:
        raise ValidationError(f"train_x must be 2-D [N, seq_len], got shape {tuple(train_x.shape)}")
    if train_y.dim() != 1:
        raise ValidationError(f"train_y must be 1-D [N], got shape {tuple(train_y.shape)}")
    if len(train_x) != len(train_y):
        raise ValidationError(f"train_x/train_y length mismatch: {len(train_x)} != {len(train_y)}")
    if epochs < 1 or batch_size < 1:
        raise ValidationError("epochs and batch_size must be positive")
    if not 0.0 <= validation_split < 1.0:
        raise ValidationError(f"validation_split must be in [0, 1), got {validation_split}")


def _split_validation(n: int, validation_split: float):
    # same rounding as Keras: the fit slice is floored, validation takes the rest
    n_fit = math.floor(n * (1.0 - validation_split))
    n_val = n - n_fit
    if n_fit < 1:
        raise ValidationError(f"No training rows left after reserving {n_val} for validation")
    return n_fit, n_val


@torch.no_grad()
def _score(model, x, y, lossf, batch_size: int):
    model.eval()
    total_loss, correct = 0.0, 0
    for xb, yb in DataLoader(TensorDataset(x, y), batch_size=batch_size, shuffle=False):
        logits = model(xb)
        total_loss += lossf(logits, yb).item() * len(xb)
        correct += int(((torch.sigmoid(logits) >= 0.5).float() == yb).sum().item())
    return total_loss / len(x), correct / len(x)


def iter_epochs(
    model,
    train_x: torch.Tensor,
    train_y: torch.Tensor,
    epochs: int = 5,
    batch_size: int = 64,
    validation_split: float = 0.1,
    seed: Optional[int] = None,
    on_batch_end: Optional[Callable[[int, float], None]] = None,
) -> Iterator[EpochResult]:
    """
    Train ``model`` in place, yielding after every epoch.

    The trailing ``validation_split`` fraction of rows is held out and scored
    after each epoch; the remaining rows are reshuffled every epoch and fed in
    mini-batches of ``batch_size``.
    """
    try:
        model = require_live(model)
    except NotReadyError:
        raise NotReadyError("Model not created. Call create() first.") from None
    _check_inputs(train_x, train_y, epochs, batch_size, validation_split)

    device = model.device
    x = train_x.to(device=device, dtype=torch.long)
    y = train_y.to(device=device, dtype=torch.float32)
    n_fit, n_val = _split_validation(len(x), validation_split)
    x_fit, y_fit = x[:n_fit], y[:n_fit]
    x_val, y_val = x[n_fit:], y[n_fit:]

    optim = make_optimizer(model)
    lossf = make_loss()
    gen = torch.Generator()
    gen.manual_seed(seed if seed is not None else torch.initial_seed())
    # a fresh permutation is drawn from gen each time the loader is iterated
    dl = DataLoader(TensorDataset(x_fit, y_fit), batch_size=batch_size, shuffle=True, generator=gen)

    for ep in range(epochs):
        model.train()
        total, correct = 0.0, 0
        try:
            for step, (xb, yb) in enumerate(dl):
                optim.zero_grad()
                logits = model(xb)
                loss = lossf(logits, yb)
                if not torch.isfinite(loss):
                    raise TrainingError(f"Non-finite loss at epoch {ep + 1}, batch {step + 1}")
                loss.backward()
                optim.step()
                total += loss.item() * len(xb)
                correct += int(((torch.sigmoid(logits.detach()) >= 0.5).float() == yb).sum().item())
                if on_batch_end is not None:
                    on_batch_end(step, loss.item())

            val_loss = val_acc = None
            if n_val > 0:
                val_loss, val_acc = _score(model, x_val, y_val, lossf, max(batch_size, 256))
                if not math.isfinite(val_loss):
                    raise TrainingError(f"Non-finite validation loss at epoch {ep + 1}")
        except (RuntimeError, IndexError, ValueError) as err:
            if isinstance(err, TrainingError):
                raise
            raise TrainingError(f"Training failed at epoch {ep + 1}: {err}") from err

        yield EpochResult(
            epoch=ep,
            loss=total / n_fit,
            accuracy=correct / n_fit,
            val_loss=val_loss,
            val_accuracy=val_acc,
        )


def _fmt(v):
    return "n/a" if v is None else f"{v:.4f}"


def fit(
    model,
    train_x: torch.Tensor,
    train_y: torch.Tensor,
    epochs: int = 5,
    batch_size: int = 64,
    validation_split: float = 0.1,
    on_epoch_end: Optional[Callable[[EpochResult], Optional[bool]]] = None,
    on_batch_end: Optional[Callable[[int, float], None]] = None,
    seed: Optional[int] = None,
    verbose: bool = True,
) -> TrainingHistory:
    """
    Run all epochs and return the per-epoch history.

    ``on_epoch_end`` is called synchronously after each epoch; returning
    ``False`` from it stops training before the next epoch starts.
    """
    history = TrainingHistory()
    epoch_iter = iter_epochs(
        model, train_x, train_y,
        epochs=epochs,
        batch_size=batch_size,
        validation_split=validation_split,
        seed=seed,
        on_batch_end=on_batch_end,
    )
    try:
        for result in epoch_iter:
            history.epochs.append(result)
            if verbose:
                print(
                    f"[train] epoch {result.epoch + 1}/{epochs} loss={result.loss:.4f} "
                    f"acc={result.accuracy:.4f} val_loss={_fmt(result.val_loss)} "
                    f"val_acc={_fmt(result.val_accuracy)}"
                )
            if on_epoch_end is not None and on_epoch_end(result) is False:
                history.stopped_early = True
                if verbose:
                    print(f"[train] stopped by caller after epoch {result.epoch + 1}")
                break
    finally:
        epoch_iter.close()
    return history
