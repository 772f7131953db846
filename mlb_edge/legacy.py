"""
Legacy scorer — coarse fallback predictions from records and moneylines.

Used for a game when the scoring engine fails or the data pipeline
collected nothing. Only the game's own fields are read: "W-L" records and
American moneylines.
"""

import logging
import re

import numpy as np

from mlb_edge.errors import MalformedInputError
from mlb_edge.models import Game, Prediction
from mlb_edge.odds import no_vig_probabilities
from mlb_edge.scoring import assign_tier

logger = logging.getLogger(__name__)

MODEL_VERSION = "legacy"

HOME_FIELD_BONUS = 0.05
AWAY_PENALTY = 0.025
MONEYLINE_WEIGHT = 2.0
TOTAL_LINES = (6.5, 7.5, 8.5)

_RECORD_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def parse_record(record: str) -> tuple[int, int]:
    """Parse a "W-L" record string into (wins, losses)."""
    match = _RECORD_RE.match(record or "")
    if not match:
        raise MalformedInputError(f"Invalid team record: {record!r}")
    return int(match.group(1)), int(match.group(2))


def record_win_fraction(record: str | None) -> float:
    """Win fraction for a record; 0.5 when absent, malformed, or 0-0."""
    if not record:
        return 0.5
    try:
        wins, losses = parse_record(record)
    except MalformedInputError as e:
        logger.debug("%s, defaulting to .500", e)
        return 0.5
    games = wins + losses
    if games == 0:
        return 0.5
    return wins / games


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


class LegacyScorer:
    """Record-and-moneyline fallback model."""

    def __init__(self, rng: np.random.Generator | None = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def win_probabilities(self, game: Game) -> tuple[float, float]:
        """Normalized (home, away) win probabilities."""
        home = _clamp(record_win_fraction(game.home_team_record) + HOME_FIELD_BONUS)
        away = _clamp(record_win_fraction(game.away_team_record) - AWAY_PENALTY)

        if game.home_team_moneyline is not None and game.away_team_moneyline is not None:
            home_implied, away_implied = no_vig_probabilities(
                game.home_team_moneyline, game.away_team_moneyline
            )
            home = (home + MONEYLINE_WEIGHT * home_implied) / (1 + MONEYLINE_WEIGHT)
            away = (away + MONEYLINE_WEIGHT * away_implied) / (1 + MONEYLINE_WEIGHT)

        total = home + away
        if total <= 0:
            return 0.5, 0.5
        return home / total, away / total

    @staticmethod
    def confidence(home_prob: float, away_prob: float) -> float:
        """0.5 for a coin flip, rising with the probability gap, capped at 1.0."""
        return min(1.0, 0.5 + 0.75 * abs(home_prob - away_prob))

    def score(self, game: Game) -> Prediction | None:
        """Score one game; returns None when the game has no id."""
        if game.id is None:
            logger.error("Skipping legacy prediction for %s: missing game id", game.matchup)
            return None

        home_prob, away_prob = self.win_probabilities(game)
        home_prob = round(home_prob, 4)
        away_prob = round(1.0 - home_prob, 4)
        confidence = round(self.confidence(home_prob, away_prob), 4)

        if home_prob > away_prob and game.home_team_moneyline is not None:
            recommended_bet = f"{game.home_team} ML"
            analysis = self._moneyline_analysis(game, "home", home_prob)
        elif away_prob > home_prob and game.away_team_moneyline is not None:
            recommended_bet = f"{game.away_team} ML"
            analysis = self._moneyline_analysis(game, "away", away_prob)
        else:
            line = float(self.rng.choice(TOTAL_LINES))
            side = "Over" if self.rng.random() < 0.5 else "Under"
            recommended_bet = f"{side} {line}"
            analysis = self._totals_analysis(game, line, side)

        logger.debug("Legacy prediction for game %s: %s", game.id, recommended_bet)
        return Prediction(
            game_id=game.id,
            home_team_win_probability=home_prob,
            away_team_win_probability=away_prob,
            recommended_bet=recommended_bet,
            confidence_level=confidence,
            analysis=analysis,
            tier=assign_tier(confidence),
            is_value_bet=self._is_underdog_pick(game, home_prob, away_prob),
            model_version=MODEL_VERSION,
        )

    def score_games(self, games: list[Game]) -> list[Prediction]:
        """Score a batch; games without an id are skipped."""
        predictions = [p for p in (self.score(g) for g in games) if p is not None]
        logger.info("Generated %d legacy predictions from %d games", len(predictions), len(games))
        return predictions

    # ── Helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _is_underdog_pick(game: Game, home_prob: float, away_prob: float) -> bool:
        """We favor a side the market prices as an underdog."""
        if home_prob > away_prob:
            return game.home_team_moneyline is not None and game.home_team_moneyline > 0
        if away_prob > home_prob:
            return game.away_team_moneyline is not None and game.away_team_moneyline > 0
        return False

    @staticmethod
    def _moneyline_analysis(game: Game, side: str, prob: float) -> str:
        team = game.home_team if side == "home" else game.away_team
        opponent = game.away_team if side == "home" else game.home_team
        price = game.home_team_moneyline if side == "home" else game.away_team_moneyline
        parts = [f"{team} project to beat {opponent} with a {prob:.0%} win probability."]

        if game.home_team_record and game.away_team_record:
            parts.append(
                f"{game.home_team} ({game.home_team_record}) host "
                f"{game.away_team} ({game.away_team_record})."
            )
        if side == "home":
            parts.append(f"Home-field advantage works in {team}'s favor.")
        if price is not None and price > 0:
            parts.append(
                f"The current moneyline of {price:+d} for {team} presents value, "
                f"as our model rates them above the odds."
            )
        elif price is not None:
            parts.append(f"The market agrees, pricing {team} at {price:+d}.")
        return " ".join(parts)

    @staticmethod
    def _totals_analysis(game: Game, line: float, side: str) -> str:
        parts = [
            f"Records and odds give no clear edge between {game.away_team} and {game.home_team}.",
        ]
        if side == "Over":
            parts.append(f"We lean toward a higher-scoring game, making the OVER {line} our play.")
        else:
            parts.append(f"We expect a lower-scoring contest, favoring the UNDER {line}.")
        return " ".join(parts)
