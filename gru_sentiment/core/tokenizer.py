# tokenizer.py
"""
Word-level tokenizer with a bounded vocabulary.

- lowercasing + punctuation stripping (apostrophes survive)
- optional English stopword removal
- PAD id = 0, OOV id = 1, real tokens from 2 by descending frequency
- fixed-length right padding / tail truncation

The same class is used for a freshly fitted tokenizer and for one restored
from a saved artifact, so both encode identically.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import regex as re

from .errors import CorruptArtifactError, NotFittedError, ValidationError

PAD_TOKEN, OOV_TOKEN = "<PAD>", "<OOV>"
PAD_ID, OOV_ID = 0, 1

_STRIP_RE = re.compile(r"[^a-z0-9'\s]+")
_SPACE_RE = re.compile(r"\s+")

STOPWORDS = frozenset([
    "a", "an", "the", "and", "or", "if", "in", "on", "for", "to", "from",
    "is", "are", "was", "were", "be", "been", "being", "of", "with", "it",
    "this", "that", "these", "those", "at", "by", "as", "but", "what", "which",
    "who", "whom", "into", "out", "up", "down", "over", "under", "again", "further",
    "then", "once", "here", "there", "when", "where", "why", "how", "all", "any",
    "both", "each", "few", "more", "most", "other", "some", "such", "no", "nor",
    "not", "only", "own", "same", "so", "than", "too", "very", "can", "will", "just",
    "don", "should", "now", "i", "me", "my", "myself", "we", "our", "ours", "ourselves",
    "you", "your", "yours", "yourself", "yourselves", "he", "him", "his", "himself",
    "she", "her", "hers", "herself", "itself", "they", "them", "their", "theirs",
    "themselves", "do", "did", "does", "doing", "have", "has", "had", "having",
])


class Tokenizer:
    def __init__(self, num_words: int = 20000, remove_stopwords: bool = False,
                 seq_len: int = 100):
        if num_words < 2:
            raise ValidationError(f"num_words must be >= 2, got {num_words}")
        if seq_len < 1:
            raise ValidationError(f"seq_len must be >= 1, got {seq_len}")
        self.num_words = int(num_words)
        self.remove_stopwords = bool(remove_stopwords)
        self.seq_len = int(seq_len)
        self._reset()

    def _reset(self):
        self.word_index: Dict[str, int] = {PAD_TOKEN: PAD_ID, OOV_TOKEN: OOV_ID}
        self.index_word: Dict[int, str] = {PAD_ID: PAD_TOKEN, OOV_ID: OOV_TOKEN}
        self.vocab_size = 2
        self.fitted = False

    def __repr__(self):
        return (f"Tokenizer(num_words={self.num_words}, remove_stopwords={self.remove_stopwords}, "
                f"seq_len={self.seq_len}, vocab_size={self.vocab_size}, fitted={self.fitted})")

    # ---------- text ----------
    def normalize(self, text: Any) -> str:
        if not isinstance(text, str) or not text:
            return ""
        s = _STRIP_RE.sub(" ", text.lower())
        s = _SPACE_RE.sub(" ", s).strip()
        if not self.remove_stopwords:
            return s
        return " ".join(w for w in s.split(" ") if w and w not in STOPWORDS)

    def _words(self, text: Any) -> List[str]:
        norm = self.normalize(text)
        if not norm:
            return []
        return [w for w in norm.split(" ") if w]

    # ---------- vocab ----------
    def fit(self, texts: Iterable[Any]) -> "Tokenizer":
        """Build the vocabulary; any previous vocabulary is discarded."""
        self._reset()
        counter: Counter = Counter()
        for t in texts:
            counter.update(self._words(t))
        # Counter keeps first-seen order and sorted() is stable, so ties keep it too
        ranked = sorted(counter.items(), key=lambda kv: -kv[1])
        top = ranked[: max(0, self.num_words - 2)]
        for idx, (w, _) in enumerate(top, start=2):
            self.word_index[w] = idx
            self.index_word[idx] = w
        self.vocab_size = len(self.word_index)
        self.fitted = True
        return self

    # ---------- encoding ----------
    def encode(self, texts: Iterable[Any]) -> List[List[int]]:
        if not self.fitted:
            raise NotFittedError("Tokenizer not fitted. Call fit() first.")
        wi = self.word_index
        return [[wi.get(w, OOV_ID) for w in self._words(t)] for t in texts]

    def pad(self, sequences: Sequence[Sequence[int]], seq_len: Optional[int] = None) -> np.ndarray:
        seq_len = self.seq_len if seq_len is None else seq_len
        return pad_sequences(sequences, seq_len)

    def texts_to_padded(self, texts: Iterable[Any], seq_len: Optional[int] = None) -> np.ndarray:
        return self.pad(self.encode(texts), seq_len)

    def decode(self, ids: Iterable[int]) -> str:
        """Inverse lookup, skipping padding."""
        return " ".join(self.index_word.get(int(i), OOV_TOKEN) for i in ids if int(i) != PAD_ID)

    # ---------- state ----------
    def to_state(self) -> Dict[str, Any]:
        if not self.fitted:
            raise NotFittedError("Tokenizer not fitted; nothing to persist.")
        return {
            "wordIndex": dict(self.word_index),
            # JSON object keys are strings
            "indexWord": {str(i): w for i, w in self.index_word.items()},
            "vocabSize": self.vocab_size,
            "seqLen": self.seq_len,
            "removeStopwords": self.remove_stopwords,
            "maxVocab": self.num_words,
        }

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "Tokenizer":
        try:
            word_index = {str(w): int(i) for w, i in state["wordIndex"].items()}
            tok = cls(
                num_words=int(state["maxVocab"]),
                remove_stopwords=bool(state["removeStopwords"]),
                seq_len=int(state["seqLen"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as err:
            raise CorruptArtifactError(f"Malformed tokenizer state: {err}") from err

        if "indexWord" not in state:
            raise CorruptArtifactError("Tokenizer state lacks indexWord")

        if word_index.get(PAD_TOKEN) != PAD_ID or word_index.get(OOV_TOKEN) != OOV_ID:
            raise CorruptArtifactError("Tokenizer state lacks reserved PAD/OOV ids")
        if sorted(word_index.values()) != list(range(len(word_index))):
            raise CorruptArtifactError("Tokenizer ids are not contiguous")
        if int(state.get("vocabSize", len(word_index))) != len(word_index):
            raise CorruptArtifactError("Tokenizer vocabSize does not match wordIndex")

        tok.word_index = word_index
        # rebuilt from the forward map so the two can never disagree
        tok.index_word = {i: w for w, i in word_index.items()}
        tok.vocab_size = len(word_index)
        tok.fitted = True
        return tok


def pad_sequences(sequences: Sequence[Sequence[int]], seq_len: int, pad_id: int = PAD_ID) -> np.ndarray:
    """Truncate each sequence to its first ``seq_len`` ids, right-pad the rest."""
    if seq_len is None or int(seq_len) < 1:
        raise ValidationError(f"seq_len must be >= 1, got {seq_len}")
    seq_len = int(seq_len)
    out = np.full((len(sequences), seq_len), pad_id, dtype=np.int64)
    for i, s in enumerate(sequences):
        s = list(s)[:seq_len]
        out[i, : len(s)] = s
    return out
