import json

import pandas as pd
import pytest

from gru_sentiment.cli import main
from tests.conftest import make_corpus


@pytest.fixture
def reviews_csv(tmp_path):
    texts, labels = make_corpus(60)
    p = tmp_path / "reviews.csv"
    pd.DataFrame(
        {"review": texts, "sentiment": ["positive" if y else "negative" for y in labels]}
    ).to_csv(p, index=False)
    return p


def test_train_evaluate_predict(tmp_path, reviews_csv, capsys):
    model_path = tmp_path / "model.json"
    results = tmp_path / "results"
    rc = main([
        "train", "--csv", str(reviews_csv), "--out", str(model_path),
        "--results-dir", str(results), "--preset", "fast",
        "--epochs", "1", "--seq-len", "12", "--device", "cpu",
    ])
    assert rc == 0
    assert model_path.exists()
    summary = json.loads((results / "training_results.json").read_text(encoding="utf-8"))
    assert len(summary["history"]) == 1
    assert summary["counts"]["N"] == 60
    for name in ("training_history.png", "metrics_bar.png", "confusion_matrix.png", "test_samples.csv"):
        assert (results / name).exists()
    out = capsys.readouterr().out
    assert "[train] epoch 1/1" in out

    assert main(["evaluate", "--model", str(model_path), "--csv", str(reviews_csv), "--device", "cpu"]) == 0
    assert "Accuracy" in capsys.readouterr().out

    assert main(["predict", "--model", str(model_path), "--device", "cpu", "great food", ""]) == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]
    assert lines[0]["label"] in (0, 1)
    assert lines[1] == {"text": "", "prob": None, "label": None, "sentiment": None}


def test_errors_exit_non_zero(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")
    assert main(["predict", "--model", str(bad), "--device", "cpu", "hello"]) == 1
    assert "CorruptArtifactError" in capsys.readouterr().err


def test_prepare_reports_counts(reviews_csv, capsys):
    assert main(["prepare", "--csv", str(reviews_csv), "--seq-len", "12"]) == 0
    meta = json.loads(capsys.readouterr().out)
    assert (meta["N"], meta["nTrain"], meta["nTest"]) == (60, 48, 12)
    assert meta["seqLen"] == 12
    assert meta["balance"] == {"0": 30, "1": 30}
