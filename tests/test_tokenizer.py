import numpy as np
import pytest

from gru_sentiment.core.errors import CorruptArtifactError, NotFittedError, ValidationError
from gru_sentiment.core.tokenizer import OOV_ID, PAD_ID, STOPWORDS, Tokenizer, pad_sequences


class TestNormalize:
    def test_lowercases_and_strips_punctuation(self):
        tok = Tokenizer()
        assert tok.normalize("Great FOOD!!  Really,   great.") == "great food really great"

    def test_keeps_apostrophes_and_digits(self):
        assert Tokenizer().normalize("Don't go, 10/10") == "don't go 10 10"

    def test_non_string_and_empty(self):
        tok = Tokenizer()
        assert tok.normalize(None) == ""
        assert tok.normalize(42) == ""
        assert tok.normalize("") == ""
        assert tok.normalize("!!! ...") == ""

    def test_stopwords_removed_when_enabled(self):
        tok = Tokenizer(remove_stopwords=True)
        assert tok.normalize("The food was not good at all") == "food good"
        assert "the" in STOPWORDS

    @pytest.mark.parametrize("text", [
        "Hello,   World!!",
        "  The service was SLOW and the food cold...  ",
        "naïve café — 5 stars",
        "",
    ])
    @pytest.mark.parametrize("remove_stopwords", [False, True])
    def test_idempotent(self, text, remove_stopwords):
        tok = Tokenizer(remove_stopwords=remove_stopwords)
        once = tok.normalize(text)
        assert tok.normalize(once) == once


class TestFit:
    def test_ids_by_descending_frequency_ties_first_seen(self):
        tok = Tokenizer().fit(["b a a", "b c", "d"])
        # a:2 b:2 (b seen first) c:1 d:1
        assert tok.word_index["b"] == 2
        assert tok.word_index["a"] == 3
        assert tok.word_index["c"] == 4
        assert tok.word_index["d"] == 5
        assert tok.vocab_size == 6
        assert tok.index_word[2] == "b"

    def test_reserved_ids(self):
        tok = Tokenizer().fit(["x"])
        assert tok.word_index["<PAD>"] == PAD_ID == 0
        assert tok.word_index["<OOV>"] == OOV_ID == 1

    def test_vocab_cap(self):
        texts = ["t0 t1 t2 t3 t4 t5 t6 t7 t8 t9", "t0 t1 t2", "t0"]
        tok = Tokenizer(num_words=5).fit(texts)
        assert tok.vocab_size == 5
        assert set(tok.word_index) == {"<PAD>", "<OOV>", "t0", "t1", "t2"}

    def test_ids_contiguous(self, corpus):
        texts, _ = corpus
        tok = Tokenizer(num_words=50).fit(texts)
        assert sorted(tok.word_index.values()) == list(range(tok.vocab_size))

    def test_refit_discards_previous_vocab(self):
        tok = Tokenizer().fit(["alpha beta"])
        tok.fit(["gamma"])
        assert "alpha" not in tok.word_index
        assert tok.vocab_size == 3

    def test_blank_texts_ignored(self):
        tok = Tokenizer().fit(["", None, "!!!", "ok"])
        assert tok.vocab_size == 3


class TestEncodePad:
    def test_encode_before_fit(self):
        with pytest.raises(NotFittedError):
            Tokenizer().encode(["hello"])

    def test_case_and_punctuation_insensitive(self):
        tok = Tokenizer().fit(["Great food", "Terrible service", "great FOOD!!"])
        seqs = tok.encode(["Great food", "great FOOD!!"])
        assert seqs[0] == seqs[1]

    def test_oov_and_blank(self):
        tok = Tokenizer().fit(["good food"])
        assert tok.encode(["good pizza", "", "   "]) == [[tok.word_index["good"], OOV_ID], [], []]

    def test_pad_and_truncate(self):
        out = pad_sequences([[5, 6, 7], [1], []], 2)
        assert out.tolist() == [[5, 6], [1, 0], [0, 0]]
        assert out.dtype == np.int64

    @pytest.mark.parametrize("seq_len", [1, 3, 17, 100])
    def test_padded_length_always_seq_len(self, corpus, seq_len):
        texts, _ = corpus
        tok = Tokenizer().fit(texts)
        for t in texts[:10] + ["", "unknown words only"]:
            assert len(tok.pad(tok.encode([t]), seq_len)[0]) == seq_len

    def test_blank_text_keeps_row(self):
        tok = Tokenizer(seq_len=4).fit(["a b"])
        out = tok.texts_to_padded(["a", "", "b"])
        assert out.shape == (3, 4)
        assert out[1].tolist() == [0, 0, 0, 0]

    def test_seq_len_must_be_positive(self):
        with pytest.raises(ValidationError):
            pad_sequences([[1]], 0)


class TestState:
    def test_restored_tokenizer_encodes_identically(self, corpus):
        texts, _ = corpus
        tok = Tokenizer(num_words=20, remove_stopwords=True, seq_len=12).fit(texts)
        restored = Tokenizer.from_state(tok.to_state())
        probe = texts[:5] + ["The food was AMAZING, really!", "zzz"]
        assert restored.encode(probe) == tok.encode(probe)
        assert (restored.texts_to_padded(probe) == tok.texts_to_padded(probe)).all()
        assert restored.normalize(probe[-2]) == tok.normalize(probe[-2])
        assert restored.remove_stopwords and restored.seq_len == 12 and restored.num_words == 20

    def test_state_keys(self):
        state = Tokenizer().fit(["a"]).to_state()
        assert set(state) == {"wordIndex", "indexWord", "vocabSize", "seqLen", "removeStopwords", "maxVocab"}
        assert state["indexWord"]["2"] == "a"

    def test_unfitted_state(self):
        with pytest.raises(NotFittedError):
            Tokenizer().to_state()

    @pytest.mark.parametrize("mutate", [
        lambda s: s.pop("wordIndex"),
        lambda s: s.pop("indexWord"),
        lambda s: s.pop("seqLen"),
        lambda s: s["wordIndex"].pop("<PAD>"),
        lambda s: s["wordIndex"].update({"gap": 99}),
    ])
    def test_malformed_state(self, mutate):
        state = Tokenizer().fit(["a b c"]).to_state()
        mutate(state)
        with pytest.raises(CorruptArtifactError):
            Tokenizer.from_state(state)
