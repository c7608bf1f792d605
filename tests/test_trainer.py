import math

import pytest
import torch

from gru_sentiment.core.errors import NotReadyError, TrainingError, ValidationError
from gru_sentiment.experiments.trainer import EpochResult, _split_validation, fit, iter_epochs
from gru_sentiment.models.gru_sentiment import create_model, release_model


def test_fit_returns_one_result_per_epoch(tiny_model, tiny_batch):
    x, y = tiny_batch
    seen = []
    history = fit(tiny_model, x, y, epochs=3, batch_size=8, validation_split=0.25,
                  on_epoch_end=seen.append, verbose=False, seed=0)
    assert len(history) == 3
    assert [r.epoch for r in history.epochs] == [0, 1, 2]
    assert seen == history.epochs
    for r in history.epochs:
        assert math.isfinite(r.loss) and 0.0 <= r.accuracy <= 1.0
        assert r.val_loss is not None and 0.0 <= r.val_accuracy <= 1.0


def test_epoch_event_shape():
    d = EpochResult(epoch=0, loss=0.5, accuracy=0.75, val_loss=0.6, val_accuracy=0.5).to_dict()
    assert d == {"epochIndex": 0, "loss": 0.5, "accuracy": 0.75, "valLoss": 0.6, "valAccuracy": 0.5}


def test_training_changes_parameters(tiny_model, tiny_batch):
    x, y = tiny_batch
    before = [p.detach().clone() for p in tiny_model.parameters()]
    fit(tiny_model, x, y, epochs=1, batch_size=8, verbose=False)
    assert any(not torch.equal(b, p) for b, p in zip(before, tiny_model.parameters()))


def test_no_validation_split(tiny_model, tiny_batch):
    x, y = tiny_batch
    history = fit(tiny_model, x, y, epochs=1, batch_size=8, validation_split=0.0, verbose=False)
    assert history.epochs[0].val_loss is None and history.epochs[0].val_accuracy is None


def test_callback_can_stop_training(tiny_model, tiny_batch):
    x, y = tiny_batch
    history = fit(tiny_model, x, y, epochs=5, batch_size=8, verbose=False,
                  on_epoch_end=lambda r: r.epoch < 1)
    assert len(history) == 2
    assert history.stopped_early


def test_generator_yields_between_epochs(tiny_model, tiny_batch):
    x, y = tiny_batch
    epochs = iter_epochs(tiny_model, x, y, epochs=4, batch_size=8)
    first = next(epochs)
    assert first.epoch == 0
    epochs.close()
    with pytest.raises(StopIteration):
        next(epochs)


def test_batch_hook(tiny_model, tiny_batch):
    x, y = tiny_batch
    calls = []
    fit(tiny_model, x, y, epochs=1, batch_size=8, validation_split=0.25, verbose=False,
        on_batch_end=lambda step, loss: calls.append(step))
    # 18 training rows in batches of 8
    assert calls == [0, 1, 2]


def test_history_columns(tiny_model, tiny_batch):
    x, y = tiny_batch
    history = fit(tiny_model, x, y, epochs=2, batch_size=8, verbose=False)
    cols = history.as_columns()
    assert len(cols["loss"]) == 2 and len(cols["val_accuracy"]) == 2
    assert history.to_list()[1]["epochIndex"] == 1


def test_requires_model(tiny_batch):
    x, y = tiny_batch
    with pytest.raises(NotReadyError):
        fit(None, x, y, verbose=False)


def test_released_model_is_not_ready(tiny_model, tiny_batch):
    x, y = tiny_batch
    release_model(tiny_model)
    with pytest.raises(NotReadyError):
        fit(tiny_model, x, y, verbose=False)


@pytest.mark.parametrize("kwargs", [
    {"epochs": 0},
    {"batch_size": 0},
    {"validation_split": 1.0},
])
def test_bad_hyperparameters(tiny_model, tiny_batch, kwargs):
    x, y = tiny_batch
    with pytest.raises(ValidationError):
        fit(tiny_model, x, y, verbose=False, **kwargs)


def test_length_mismatch(tiny_model, tiny_batch):
    x, y = tiny_batch
    with pytest.raises(ValidationError):
        fit(tiny_model, x, y[:-1], verbose=False)


def test_non_finite_loss(tiny_model, tiny_batch):
    x, y = tiny_batch
    with torch.no_grad():
        tiny_model.head.weight.fill_(float("nan"))
    with pytest.raises(TrainingError):
        fit(tiny_model, x, y, epochs=1, batch_size=8, verbose=False)


def test_out_of_vocab_ids_fail_as_training_error(tiny_model, tiny_batch):
    _, y = tiny_batch
    x = torch.full((24, 8), 999, dtype=torch.long)
    with pytest.raises(TrainingError):
        fit(tiny_model, x, y, epochs=1, batch_size=8, verbose=False)


def test_verbose_prints_progress(tiny_model, tiny_batch, capsys):
    x, y = tiny_batch
    fit(tiny_model, x, y, epochs=1, batch_size=8)
    assert "[train] epoch 1/1" in capsys.readouterr().out


def test_label_shape_mismatch(tiny_model, tiny_batch):
    x, y = tiny_batch
    with pytest.raises(ValidationError):
        fit(tiny_model, x, y.unsqueeze(1), epochs=1, batch_size=8, verbose=False)


@pytest.mark.parametrize("n, split, expected", [
    (18, 0.1, (16, 2)),
    (24, 0.25, (18, 6)),
    (10, 0.0, (10, 0)),
])
def test_validation_rows_follow_keras_rounding(n, split, expected):
    assert _split_validation(n, split) == expected


def test_same_seed_same_history(tiny_batch):
    x, y = tiny_batch
    runs = []
    for _ in range(2):
        model = create_model(vocab_size=30, seq_len=8, embed_dim=8, recurrent_units=8, seed=0)
        runs.append(fit(model, x, y, epochs=2, batch_size=8, verbose=False, seed=3).to_list())
    assert runs[0] == runs[1]
