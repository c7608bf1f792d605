"""Shared fixtures: a small synthetic review corpus and tiny models."""
import random

import pytest
import torch

from gru_sentiment.models.gru_sentiment import create_model

POSITIVE = ["great", "delicious", "friendly", "amazing", "lovely", "excellent", "tasty", "cozy"]
NEGATIVE = ["terrible", "rude", "awful", "cold", "dirty", "slow", "bland", "noisy"]
FILLER = ["the", "food", "service", "place", "was", "staff", "and", "very", "really", "!"]


def make_corpus(n: int = 100, seed: int = 7):
    rng = random.Random(seed)
    texts, labels = [], []
    for i in range(n):
        label = i % 2
        words = POSITIVE if label == 1 else NEGATIVE
        toks = [rng.choice(FILLER) for _ in range(rng.randint(2, 6))]
        toks += [rng.choice(words) for _ in range(rng.randint(1, 3))]
        rng.shuffle(toks)
        texts.append(" ".join(toks).capitalize())
        labels.append(label)
    return texts, labels


@pytest.fixture
def corpus():
    return make_corpus()


@pytest.fixture
def tiny_model():
    return create_model(vocab_size=30, seq_len=8, embed_dim=8, recurrent_units=8, seed=0)


@pytest.fixture
def tiny_batch():
    g = torch.Generator().manual_seed(0)
    x = torch.randint(0, 30, (24, 8), generator=g)
    y = (torch.arange(24) % 2).float()
    return x, y
