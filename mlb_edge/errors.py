"""
Exception hierarchy for the MLB Edge scoring pipeline.

Everything except ConfigurationError on an empty catalog is contained at the
per-game boundary: one failing game never stops the rest of a batch.
"""


class MLBEdgeError(Exception):
    """Base class for all MLB Edge errors."""


class ConfigurationError(MLBEdgeError):
    """A required credential is missing, or the source catalog is empty."""


class FetchError(MLBEdgeError):
    """A provider call failed."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class SourceExhaustedError(FetchError):
    """A source and every fallback after it failed."""

    def __init__(self, source: str, tried: list[str]):
        super().__init__(source, f"all sources failed ({', '.join(tried)})")
        self.tried = tried


class MalformedInputError(MLBEdgeError, ValueError):
    """An input (a team record, a provider payload) does not match its expected format."""


class ScoringError(MLBEdgeError):
    """The primary scoring engine could not produce a prediction."""


class CriticalDataError(MLBEdgeError):
    """Too much critical data is missing to predict a game."""

    def __init__(self, game_id: int | str, missing_pct: float):
        super().__init__(
            f"Game {game_id}: {missing_pct:.0%} of critical data points missing"
        )
        self.game_id = game_id
        self.missing_pct = missing_pct
