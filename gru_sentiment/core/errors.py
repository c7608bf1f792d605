# errors.py
"""
Exception hierarchy for the sentiment pipeline.

Every failure raised by the package derives from GRUSentimentError so callers
can catch the whole family at once. Input problems are also ValueErrors and
lifecycle problems are RuntimeErrors, matching what plain Python code would
raise for the same situation.
"""


class GRUSentimentError(Exception):
    """Base class for all package errors."""


class ValidationError(GRUSentimentError, ValueError):
    """Malformed or mismatched input data."""


class ConfigError(GRUSentimentError, ValueError):
    """Invalid architecture or pipeline hyperparameters."""


class NotFittedError(GRUSentimentError, RuntimeError):
    """Tokenizer used before fit()."""


class NotReadyError(GRUSentimentError, RuntimeError):
    """Model operation attempted without a live model."""


class TrainingError(GRUSentimentError, RuntimeError):
    """Numerical or shape failure while fitting."""


class PersistenceError(GRUSentimentError):
    """Base class for save/load failures."""


class NoModelError(PersistenceError, RuntimeError):
    pass


class MissingTokenizerError(PersistenceError, ValueError):
    pass


class CorruptArtifactError(PersistenceError, ValueError):
    pass
