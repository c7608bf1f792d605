# visualization.py
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


def plot_training_history(history, save_dir: Path) -> Path:
    """Loss on the left axis, accuracy on the right, one point per epoch."""
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)
    cols = history.as_columns()
    xs = [f"E{r.epoch + 1}" for r in history.epochs]

    fig, ax1 = plt.subplots(figsize=(7, 4.5))
    ax1.plot(xs, cols["loss"], marker="o", label="Loss")
    if any(v is not None for v in cols["val_loss"]):
        ax1.plot(xs, cols["val_loss"], marker="o", label="Val Loss")
    ax1.set_ylabel("Loss")

    ax2 = ax1.twinx()
    ax2.plot(xs, cols["accuracy"], marker="s", linestyle="--", color="tab:green", label="Accuracy")
    if any(v is not None for v in cols["val_accuracy"]):
        ax2.plot(xs, cols["val_accuracy"], marker="s", linestyle="--", color="tab:red",
                 label="Val Accuracy")
    ax2.set_ylim(0, 1)
    ax2.set_ylabel("Accuracy")

    h1, l1 = ax1.get_legend_handles_labels()
    h2, l2 = ax2.get_legend_handles_labels()
    ax1.legend(h1 + h2, l1 + l2, loc="lower center", ncol=4, bbox_to_anchor=(0.5, -0.28))
    plt.title("Training progress")
    plt.tight_layout()
    out = save_dir / "training_history.png"
    plt.savefig(out, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return out


def plot_metrics(result, save_dir: Path) -> Path:
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)
    names = ["Accuracy", "Precision", "Recall", "F1"]
    scores = [result.accuracy, result.precision, result.recall, result.f1]
    plt.figure(figsize=(6, 4))
    plt.bar(names, scores)
    plt.ylim(0, 1)
    plt.ylabel("Score")
    plt.title("Test set metrics")
    plt.tight_layout()
    out = save_dir / "metrics_bar.png"
    plt.savefig(out, dpi=200)
    plt.close()
    return out


def plot_confusion_matrix(result, save_dir: Path) -> Path:
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(4.5, 4))
    sns.heatmap(
        result.confusion_matrix.as_matrix(),
        annot=True,
        fmt="d",
        cmap="Blues",
        ax=ax,
        cbar=True,
        square=True,
    )
    ax.set_title("Confusion Matrix")
    ax.set_xlabel("Predicted")
    ax.set_ylabel("Actual")
    ax.set_xticklabels(["Negative", "Positive"])
    ax.set_yticklabels(["Negative", "Positive"])
    plt.tight_layout()
    out = save_dir / "confusion_matrix.png"
    plt.savefig(out, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return out


def export_samples_table(result, save_dir: Path, texts=None, limit: int = 400) -> Path:
    """Per-sample test outcomes as CSV (first ``limit`` rows)."""
    save_dir = Path(save_dir)
    save_dir.mkdir(parents=True, exist_ok=True)
    n = min(len(result.y_true), limit)
    df = pd.DataFrame(
        {
            "y_true": result.y_true[:n],
            "y_pred": result.y_pred[:n],
            "prob": result.y_prob[:n],
        }
    )
    df["correct"] = df["y_true"] == df["y_pred"]
    if texts is not None:
        df.insert(0, "text", [" ".join(str(t).split())[:120] for t in texts[:n]])
    out = save_dir / "test_samples.csv"
    df.to_csv(out, index=False)
    return out
