#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Prepare a labelled review corpus for training:
- Read a CSV of reviews (review/text column + positive/negative sentiment)
- Shuffle texts and labels in lock-step with a seeded, platform-independent PRNG
- Fit a fresh tokenizer, encode + pad every text
- Split positionally into train/test tensors

This module provides functions to prepare the dataset programmatically.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import torch

from .core.errors import ValidationError
from .core.tokenizer import Tokenizer

DEFAULT_SEED = 1337

TEXT_COLUMNS = ("review", "Review", "text", "Text")
LABEL_COLUMNS = ("sentiment", "Sentiment")
LABEL_MAP = {"positive": 1, "negative": 0}

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def mulberry32(seed: int = DEFAULT_SEED) -> Callable[[], float]:
    """
    32-bit mulberry generator returning floats in [0, 1).

    All arithmetic is masked to unsigned 32 bits, so the stream only depends
    on the seed.
    """
    state = seed & _MASK32

    def rand() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296

    return rand


def shuffle_in_unison(a: Sequence, b: Sequence, seed: int = DEFAULT_SEED) -> Tuple[list, list]:
    """Fisher-Yates over two parallel sequences; returns shuffled copies."""
    if len(a) != len(b):
        raise ValidationError("Sequences to shuffle must have the same length")
    a, b = list(a), list(b)
    rand = mulberry32(seed)
    for i in range(len(a) - 1, 0, -1):
        j = math.floor(rand() * (i + 1))
        a[i], a[j] = a[j], a[i]
        b[i], b[j] = b[j], b[i]
    return a, b


@dataclass(frozen=True)
class DatasetCounts:
    n: int
    n_train: int
    n_test: int

    def to_dict(self):
        return {"N": self.n, "nTrain": self.n_train, "nTest": self.n_test}


@dataclass
class PreparedDataset:
    train_x: Optional[torch.Tensor]
    train_y: Optional[torch.Tensor]
    test_x: Optional[torch.Tensor]
    test_y: Optional[torch.Tensor]
    tokenizer: Tokenizer
    counts: DatasetCounts
    test_texts: Optional[List[str]] = None

    @property
    def released(self) -> bool:
        return self.train_x is None

    def release(self):
        """Drop the tensors. Safe to call more than once."""
        self.train_x = self.train_y = self.test_x = self.test_y = None
        self.test_texts = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def _validate(texts: Sequence, labels: Sequence):
    if texts is None or labels is None or len(texts) == 0 or len(labels) == 0:
        raise ValidationError("Empty dataset after parsing.")
    if len(texts) != len(labels):
        raise ValidationError(
            f"Texts and labels length mismatch: {len(texts)} != {len(labels)}"
        )
    bad = [y for y in labels if y not in (0, 1)]
    if bad:
        raise ValidationError(f"Labels must be 0 or 1, got e.g. {bad[0]!r}")


def prepare(
    texts: Sequence[str],
    labels: Sequence[int],
    seq_len: int = 100,
    max_vocab: int = 20000,
    remove_stopwords: bool = False,
    test_split: float = 0.2,
    seed: int = DEFAULT_SEED,
) -> PreparedDataset:
    """
    Shuffle, tokenize, pad and split a labelled corpus.

    Args:
        texts: Raw review strings
        labels: Binary labels aligned with ``texts``
        seq_len: Fixed length of every encoded sample
        max_vocab: Vocabulary cap, including the PAD and OOV ids
        remove_stopwords: Drop English function words during normalisation
        test_split: Fraction of rows held out as the test partition
        seed: Shuffle seed

    Returns:
        PreparedDataset owning the train/test tensors and the fitted tokenizer
    """
    _validate(texts, labels)
    if not 0.0 <= test_split < 1.0:
        raise ValidationError(f"test_split must be in [0, 1), got {test_split}")

    texts, labels = shuffle_in_unison(texts, [int(y) for y in labels], seed=seed)

    tokenizer = Tokenizer(num_words=max_vocab, remove_stopwords=remove_stopwords, seq_len=seq_len)
    tokenizer.fit(texts)
    padded = tokenizer.texts_to_padded(texts)

    n = len(padded)
    n_test = max(1, math.floor(n * test_split))
    n_train = n - n_test

    y = np.asarray(labels, dtype=np.float32)
    return PreparedDataset(
        train_x=torch.from_numpy(padded[:n_train].copy()),
        train_y=torch.from_numpy(y[:n_train].copy()),
        test_x=torch.from_numpy(padded[n_train:].copy()),
        test_y=torch.from_numpy(y[n_train:].copy()),
        tokenizer=tokenizer,
        counts=DatasetCounts(n=n, n_train=n_train, n_test=n_test),
        test_texts=list(texts[n_train:]),
    )


def _pick_column(columns, candidates) -> Optional[str]:
    for c in candidates:
        if c in columns:
            return c
    return None


def load_reviews_csv(path: str | Path) -> Tuple[List[str], List[int]]:
    """
    Read a review CSV into parallel (texts, labels) lists.

    Rows whose sentiment is not positive/negative, or whose review is blank,
    are skipped.
    """
    src = Path(path)
    try:
        df = pd.read_csv(src, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as err:
        raise ValidationError(f"Cannot read CSV {src}: {err}") from err

    text_col = _pick_column(df.columns, TEXT_COLUMNS)
    label_col = _pick_column(df.columns, LABEL_COLUMNS)
    if text_col is None or label_col is None:
        raise ValidationError(
            f"CSV needs a review/text column and a sentiment column, got {list(df.columns)}"
        )

    df = df[[text_col, label_col]].rename(columns={text_col: "text", label_col: "sentiment"})
    df["label"] = df["sentiment"].map(lambda x: LABEL_MAP.get(str(x).strip().lower()))
    df = df[df["text"].astype(str) != ""].dropna(subset=["label"])

    return df["text"].astype(str).tolist(), df["label"].astype(int).tolist()


def summarize(texts, labels, seq_len: int = 100, max_vocab: int = 20000,
              remove_stopwords: bool = False, test_split: float = 0.2,
              seed: int = DEFAULT_SEED) -> dict:
    """Split counts, vocabulary size and label balance for a labelled corpus."""
    with prepare(
        texts,
        labels,
        seq_len=seq_len,
        max_vocab=max_vocab,
        remove_stopwords=remove_stopwords,
        test_split=test_split,
        seed=seed,
    ) as ds:
        return {
            **ds.counts.to_dict(),
            "vocabSize": ds.tokenizer.vocab_size,
            "seqLen": ds.tokenizer.seq_len,
            "balance": {str(k): int(v) for k, v in pd.Series(labels).value_counts().to_dict().items()},
        }


def main():
    """Print dataset counts and vocabulary size for a CSV."""
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--csv", required=True, help="Path to review CSV (review,sentiment)")
    parser.add_argument("--seq-len", type=int, default=100)
    parser.add_argument("--max-vocab", type=int, default=20000)
    parser.add_argument("--remove-stopwords", action="store_true")
    parser.add_argument("--test-split", type=float, default=0.2)
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)

    args = parser.parse_args()

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


if __name__ == "__main__":
    main()
