"""Exception types shared by the engine and its collaborators."""


class TrendEngineError(Exception):
    """Base class for every error raised by the trend engine."""


class SourceUnavailableError(TrendEngineError):
    """A single external data fetch failed, timed out or returned junk."""


class GenerationError(TrendEngineError):
    """Text generation failed on every configured provider."""


class ClassificationError(TrendEngineError):
    """Text classification failed or returned an unusable payload."""
