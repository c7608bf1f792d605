"""
GRU review-sentiment classifier.

Turns raw review strings into a trained binary sentiment model and a
reproducible inference path.

Key modules:
- core.tokenizer: normalisation, bounded vocabulary, encoding, padding
- prepare_dataset: CSV ingestion, seeded shuffle, train/test tensors
- models: GRU network and the single-live-model owner
- experiments.trainer: epoch-by-epoch training
- experiments.evaluator: test metrics and confusion counts
- experiments.predictor: single-text inference
- experiments.persistence: model + tokenizer artifact
"""

__version__ = "0.1.0"
