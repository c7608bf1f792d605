#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Command-line runner.

    gru-sentiment prepare  --csv reviews.csv [--seq-len 100 --test-split 0.2]
    gru-sentiment train    --csv reviews.csv --out model.json [--epochs 5 ...]
    gru-sentiment evaluate --model model.json --csv reviews.csv
    gru-sentiment predict  --model model.json "great food" "awful service"
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import torch

from .core.config import PRESETS, load_config, resolve_device, set_seed
from .core.errors import GRUSentimentError, ValidationError
from .core.metrics import classification_report
from .experiments.evaluator import evaluate
from .experiments.persistence import load_artifact, save_artifact
from .experiments.predictor import predict_many
from .experiments.trainer import fit
from .experiments.visualization import (
    export_samples_table,
    plot_confusion_matrix,
    plot_metrics,
    plot_training_history,
)
from .models.model_owner import ModelOwner
from .prepare_dataset import load_reviews_csv, prepare, summarize


def _banner(title: str):
    print("=" * 60)
    print(title)
    print("=" * 60)


def _print_metrics(res):
    print(f"  Loss:      {res.loss:.4f}")
    print(f"  Accuracy:  {res.accuracy:.4f}")
    print(f"  Precision: {res.precision:.4f}")
    print(f"  Recall:    {res.recall:.4f}")
    print(f"  F1-Score:  {res.f1:.4f}")
    cm = res.confusion_matrix
    print(f"  Confusion: TP={cm.tp} TN={cm.tn} FP={cm.fp} FN={cm.fn}")
    print()
    print(classification_report(res.y_true, res.y_pred))


def cmd_prepare(args: argparse.Namespace) -> int:
    texts, labels = load_reviews_csv(args.csv)
    meta = summarize(
        texts,
        labels,
        seq_len=args.seq_len,
        max_vocab=args.max_vocab,
        remove_stopwords=args.remove_stopwords,
        test_split=args.test_split,
        seed=args.seed,
    )
    print(json.dumps(meta, ensure_ascii=False, indent=2))
    return 0


def cmd_train(
args: argparse.Namespace) -> int:
    cfg = load_config(
        args.config,
        preset=args.preset,
        overrides={
            "seq_len": args.seq_len,
            "max_vocab": args.max_vocab,
            "remove_stopwords": True if args.remove_stopwords else None,
            "test_split": args.test_split,
            "embed_dim": args.embed_dim,
            "recurrent_units": args.recurrent_units,
            "dropout": args.dropout,
            "bidirectional": False if args.no_bidirectional else None,
            "epochs": args.epochs,
            "batch_size": args.batch_size,
            "validation_split": args.validation_split,
            "seed": args.seed,
            "device": args.device,
        },
    )
    set_seed(cfg.seed)
    device = resolve_device(cfg.device)
    print(f"[info] Device: {device}")

    _banner("STEP 1: Loading and Preparing Data")
    texts, labels = load_reviews_csv(args.csv)
    print(f"[data] rows={len(texts)}, positive={sum(labels)}, negative={len(labels) - sum(labels)}")

    owner = ModelOwner()
    ds = prepare(
        texts,
        labels,
        seq_len=cfg.seq_len,
        max_vocab=cfg.max_vocab,
        remove_stopwords=cfg.remove_stopwords,
        test_split=cfg.test_split,
        seed=cfg.seed,
    )
    try:
        c = ds.counts
        print(f"[data] N={c.n} train={c.n_train} test={c.n_test} "
              f"vocab={ds.tokenizer.vocab_size} seq_len={cfg.seq_len}")

        _banner("STEP 2: Training")
        model = owner.create(
            vocab_size=ds.tokenizer.vocab_size,
            seq_len=cfg.seq_len,
            device=device,
            seed=cfg.seed,
            **cfg.model_kwargs(),
        )
        history = fit(
            model,
            ds.train_x,
            ds.train_y,
            epochs=cfg.epochs,
            batch_size=cfg.batch_size,
            validation_split=cfg.validation_split,
            seed=cfg.seed,
        )

        _banner("STEP 3: Test Set Evaluation")
        res = evaluate(model, ds.test_x, ds.test_y, threshold=cfg.threshold)
        _print_metrics(res)

        out = save_artifact(args.out, model, ds.tokenizer)
        print(f"[info] Saved model artifact -> {out}")

        if args.results_dir is not None:
            rd = Path(args.results_dir)
            rd.mkdir(parents=True, exist_ok=True)
            with open(rd / "training_results.json", "w", encoding="utf-8") as f:
                json.dump(
                    {
                        "config": cfg.to_dict(),
                        "counts": c.to_dict(),
                        "history": history.to_list(),
                        "metrics": res.summary(),
                    },
                    f,
                    ensure_ascii=False,
                    indent=2,
                )
            plot_training_history(history, rd)
            plot_metrics(res, rd)
            plot_confusion_matrix(res, rd)
            export_samples_table(res, rd, texts=ds.test_texts)
            print(f"[info] Results written to {rd}")
    finally:
        ds.release()
        owner.release()
    return 0


def cmd_evaluate(args: argparse.Namespace) -> int:
    device = resolve_device(args.device)
    owner = ModelOwner()
    try:
        art = load_artifact(args.model, owner=owner, device=device)
        print(f"[info] Loaded {args.model} (saved {art.saved_at}), vocab={art.tokenizer.vocab_size}")
        texts, labels = load_reviews_csv(args.csv)
        if not texts:
            raise ValidationError(f"No labelled rows in {args.csv}")
        x = torch.from_numpy(art.tokenizer.texts_to_padded(texts))
        y = torch.tensor(labels, dtype=torch.float32)
        res = evaluate(owner.model, x, y, threshold=args.threshold)
        _banner(f"Evaluation on {len(texts)} rows")
        _print_metrics(res)
    finally:
        owner.release()
    return 0


def cmd_predict(args: argparse.Namespace) -> int:
    device = resolve_device(args.device)
    owner = ModelOwner()
    try:
        art = load_artifact(args.model, owner=owner, device=device)
        texts: List[str] = list(args.text) or [line.rstrip("\n") for line in sys.stdin]
        preds = predict_many(owner.model, texts, art.tokenizer, threshold=args.threshold)
        for t, p in zip(texts, preds):
            print(json.dumps({"text": t, **p.to_dict(), "sentiment": p.sentiment}, ensure_ascii=False))
    finally:
        owner.release()
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gru-sentiment", description="GRU review sentiment classifier")
    sub = ap.add_subparsers(dest="command", required=True)

    pp = sub.add_parser("prepare", help="Report split counts and vocabulary size for a review CSV")
    pp.add_argument("--csv", type=Path, required=True)
    pp.add_argument("--seq-len", type=int, default=100)
    pp.add_argument("--max-vocab", type=int, default=20000)
    pp.add_argument("--remove-stopwords", action="store_true")
    pp.add_argument("--test-split", type=float, default=0.2)
    pp.add_argument("--seed", type=int, default=1337)
    pp.set_defaults(func=cmd_prepare)

    tr = sub.add_parser("train", help="Train on a review CSV and save an artifact")
    tr.add_argument("--csv", type=Path, required=True, help="CSV with review + sentiment columns")
    tr.add_argument("--out", type=Path, default=Path("sentiment-model.json"))
    tr.add_argument("--results-dir", type=Path, default=None, help="Write history, metrics and charts here")
    tr.add_argument("--config", type=Path, default=None, help="JSON file of PipelineConfig fields")
    tr.add_argument("--preset", choices=sorted(PRESETS), default="default")
    tr.add_argument("--seq-len", type=int, default=None)
    tr.add_argument("--max-vocab", type=int, default=None)
    tr.add_argument("--remove-stopwords", action="store_true")
    tr.add_argument("--test-split", type=float, default=None)
    tr.add_argument("--embed-dim", type=int, default=None)
    tr.add_argument("--recurrent-units", type=int, default=None)
    tr.add_argument("--dropout", type=float, default=None)
    tr.add_argument("--no-bidirectional", action="store_true")
    tr.add_argument("--epochs", type=int, default=None)
    tr.add_argument("--batch-size", type=int, default=None)
    tr.add_argument("--validation-split", type=float, default=None)
    tr.add_argument("--seed", type=int, default=None)
    tr.add_argument("--device", choices=["auto", "cpu", "cuda"], default=None)
    tr.set_defaults(func=cmd_train)

    ev = sub.add_parser("evaluate", help="Score a saved artifact on a labelled CSV")
    ev.add_argument("--model", type=Path, required=True)
    ev.add_argument("--csv", type=Path, required=True)
    ev.add_argument("--threshold", type=float, default=0.5)
    ev.add_argument("--device", choices=["auto", "cpu", "cuda"], default="auto")
    ev.set_defaults(func=cmd_evaluate)

    pr = sub.add_parser("predict", help="Classify texts (arguments or stdin lines)")
    pr.add_argument("--model", type=Path, required=True)
    pr.add_argument("--threshold", type=float, default=0.5)
    pr.add_argument("--device", choices=["auto", "cpu", "cuda"], default="auto")
    pr.add_argument("text", nargs="*")
    pr.set_defaults(func=cmd_predict)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except GRUSentimentError as err:
        print(f"[error] {type(err).__name__}: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
