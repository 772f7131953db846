"""
Scoring Engine — heuristic win-probability and total-runs model.

Turns a ProcessedGameData aggregate into a Prediction:
  1. Home win percentage from a fixed home-field prior plus odds,
     weather, and batting adjustments, clamped to [35, 85]
  2. Total runs from league average, weather, and team run rates,
     with a small random jitter, clamped to [5, 13]
  3. A value-bet flag when our favored side beats the market by >5 points

All adjustments are in percentage points on the home side; the away
side is always 100 minus home.
"""

import logging

import numpy as np

from mlb_edge.errors import ScoringError
from mlb_edge.models import Game, Moneyline, Prediction, ProcessedGameData
from mlb_edge.odds import american_to_implied_prob
from mlb_edge.planner import ShortfallSeverity

logger = logging.getLogger(__name__)

MODEL_VERSION = "engine"

HOME_BASE_PCT = 52.0
HOME_FAVORED_BONUS = 10.0
# Applied toward away; larger than the home bonus
AWAY_FAVORED_BONUS = 15.0
RAIN_PENALTY = 2.0
WIND_BONUS = 2.0
WIND_THRESHOLD_MPH = 10.0
BATTING_EDGE = 5.0
MIN_PCT = 35.0
MAX_PCT = 85.0

LEAGUE_AVG_RUNS = 8.5
HOT_TEMP_F = 80.0
COLD_TEMP_F = 60.0
HOT_RUNS = 0.7
COLD_RUNS = -0.5
WIND_OUT_RUNS = 0.8
WIND_IN_RUNS = -0.6
MIN_TOTAL_RUNS = 5.0
MAX_TOTAL_RUNS = 13.0
DEFAULT_JITTER = 0.75

VALUE_EDGE_PCT = 5.0
MAJOR_SHORTFALL_FACTOR = 0.85


def assign_tier(confidence: float) -> str:
    """Map confidence to the access tier that gets the full analysis."""
    if confidence >= 0.85:
        return "elite"
    if confidence >= 0.70:
        return "pro"
    return "basic"


def odds_favorite(moneyline: Moneyline) -> str | None:
    """'home' or 'away' when the market favors a side, None otherwise."""
    if not moneyline.is_complete:
        return None
    home = american_to_implied_prob(moneyline.home)
    away = american_to_implied_prob(moneyline.away)
    if home > away:
        return "home"
    if away > home:
        return "away"
    return None


class ScoringEngine:
    """Primary prediction path."""

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        jitter: float = DEFAULT_JITTER,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.jitter = jitter

    # ── Win probability ───────────────────────────────────────────────

    def win_percentages(self, data: ProcessedGameData) -> tuple[float, float]:
        """Home and away win percentages (0-100), home clamped to [35, 85]."""
        home_pct = HOME_BASE_PCT

        favorite = odds_favorite(data.betting_odds.moneyline)
        if favorite == "home":
            home_pct += HOME_FAVORED_BONUS
        elif favorite == "away":
            home_pct -= AWAY_FAVORED_BONUS

        weather = data.game_info.weather
        if weather.is_rain:
            home_pct -= RAIN_PENALTY
        if weather.wind_mph is not None and weather.wind_mph > WIND_THRESHOLD_MPH:
            home_pct += WIND_BONUS

        home_avg = data.team_stats.home.batting.avg
        away_avg = data.team_stats.away.batting.avg
        if home_avg is not None and away_avg is not None and home_avg != away_avg:
            home_pct += BATTING_EDGE if home_avg > away_avg else -BATTING_EDGE

        home_pct = min(max(home_pct, MIN_PCT), MAX_PCT)
        return home_pct, 100.0 - home_pct

    # ── Total runs ────────────────────────────────────────────────────

    def projected_runs(self, data: ProcessedGameData) -> float:
        """Total runs before jitter and clamping."""
        total = LEAGUE_AVG_RUNS
        weather = data.game_info.weather

        if weather.temp_f is not None:
            if weather.temp_f > HOT_TEMP_F:
                total += HOT_RUNS
            elif weather.temp_f < COLD_TEMP_F:
                total += COLD_RUNS

        if weather.wind_mph is not None and weather.wind_mph > WIND_THRESHOLD_MPH:
            if weather.wind_effect == "out":
                total += WIND_OUT_RUNS
            elif weather.wind_effect == "in":
                total += WIND_IN_RUNS

        home, away = data.team_stats.home, data.team_stats.away
        rates = (
            home.batting.runs_per_game,
            away.batting.runs_per_game,
            home.pitching.runs_allowed_per_game,
            away.pitching.runs_allowed_per_game,
        )
        if all(r is not None for r in rates):
            home_scored, away_scored, home_allowed, away_allowed = rates
            projected_home = (home_scored + away_allowed) / 2
            projected_away = (away_scored + home_allowed) / 2
            total = projected_home + projected_away

        return total

    def total_runs(self, data: ProcessedGameData) -> float:
        total = self.projected_runs(data)
        if self.jitter:
            total += float(self.rng.uniform(-self.jitter, self.jitter))
        total = min(max(total, MIN_TOTAL_RUNS), MAX_TOTAL_RUNS)
        return round(total, 1)

    # ── Value ─────────────────────────────────────────────────────────

    @staticmethod
    def is_value_bet(home_pct: float, away_pct: float, moneyline: Moneyline) -> bool:
        """Our favored side beats its odds-implied probability by >5 points."""
        favored_home = home_pct >= away_pct
        price = moneyline.home if favored_home else moneyline.away
        if price is None:
            return False
        implied_pct = american_to_implied_prob(price) * 100
        ours = home_pct if favored_home else away_pct
        return ours > implied_pct + VALUE_EDGE_PCT

    # ── Prediction ────────────────────────────────────────────────────

    def score(
        self,
        game: Game,
        data: ProcessedGameData,
        severity: ShortfallSeverity = ShortfallSeverity.NONE,
    ) -> Prediction:
        """Score one game. Any failure surfaces as ScoringError."""
        try:
            return self._score(game, data, severity)
        except ScoringError:
            raise
        except Exception as e:
            raise ScoringError(f"Scoring failed for game {game.id}: {e}") from e

    def _score(self, game: Game, data: ProcessedGameData, severity: ShortfallSeverity) -> Prediction:
        if game.id is None:
            raise ScoringError(f"Game {game.matchup} has no id")

        home_pct, away_pct = self.win_percentages(data)
        total = self.total_runs(data)
        value = self.is_value_bet(home_pct, away_pct, data.betting_odds.moneyline)

        home_prob = round(home_pct / 100.0, 4)
        away_prob = round(1.0 - home_prob, 4)

        confidence = max(home_prob, away_prob)
        if severity.downgrades_confidence:
            confidence *= MAJOR_SHORTFALL_FACTOR
        confidence = round(min(max(confidence, 0.0), 1.0), 4)

        favored_team = game.home_team if home_pct >= away_pct else game.away_team
        prediction = Prediction(
            game_id=game.id,
            home_team_win_probability=home_prob,
            away_team_win_probability=away_prob,
            predicted_total_runs=total,
            recommended_bet=f"{favored_team} ML",
            confidence_level=confidence,
            analysis=self._build_analysis(game, data, home_pct, total, value, severity),
            tier=assign_tier(confidence),
            is_value_bet=value,
            model_version=MODEL_VERSION,
        )
        logger.debug(
            "Scored game %s: home %.1f%%, total %.1f, value=%s",
            game.id, home_pct, total, value,
        )
        return prediction

    def _build_analysis(
        self,
        game: Game,
        data: ProcessedGameData,
        home_pct: float,
        total: float,
        value: bool,
        severity: ShortfallSeverity,
    ) -> str:
        """Generate a human-readable explanation of the prediction."""
        parts: list[str] = []
        home_favored = home_pct >= 50.0
        favored = game.home_team if home_favored else game.away_team
        underdog = game.away_team if home_favored else game.home_team
        pct = home_pct if home_favored else 100.0 - home_pct

        parts.append(f"{favored} are favored over {underdog} with a {pct:.0f}% win probability.")

        favorite = odds_favorite(data.betting_odds.moneyline)
        if favorite:
            market_team = game.home_team if favorite == "home" else game.away_team
            parts.append(f"The betting market also leans toward {market_team}.")

        home_avg = data.team_stats.home.batting.avg
        away_avg = data.team_stats.away.batting.avg
        if home_avg is not None and away_avg is not None and home_avg != away_avg:
            better = game.home_team if home_avg > away_avg else game.away_team
            parts.append(
                f"{better} hold the edge at the plate "
                f"({max(home_avg, away_avg):.3f} vs {min(home_avg, away_avg):.3f} team batting average)."
            )

        weather = data.game_info.weather
        if weather.is_rain:
            parts.append("Rain in the forecast could affect play.")
        if weather.wind_mph is not None and weather.wind_mph > WIND_THRESHOLD_MPH:
            if weather.wind_effect == "out":
                parts.append(f"Wind blowing out at {weather.wind_mph:.0f} mph should help hitters.")
            elif weather.wind_effect == "in":
                parts.append(f"Wind blowing in at {weather.wind_mph:.0f} mph should favor pitchers.")
            else:
                parts.append(f"Expect a breezy {weather.wind_mph:.0f} mph wind.")
        if weather.temp_f is not None and weather.temp_f > HOT_TEMP_F:
            parts.append(f"Warm conditions ({weather.temp_f:.0f}°F) tend to carry the ball.")
        elif weather.temp_f is not None and weather.temp_f < COLD_TEMP_F:
            parts.append(f"Cool conditions ({weather.temp_f:.0f}°F) tend to suppress scoring.")

        parts.append(f"Projected total: {total:.1f} runs.")

        if value:
            market = data.betting_odds.moneyline
            price = market.home if home_favored else market.away
            parts.append(
                f"At {price:+d}, {favored} offer value: our model rates them well above "
                f"the market's implied probability."
            )

        if severity.downgrades_confidence:
            parts.append("Some data sources were unavailable, so confidence has been lowered.")
        elif severity is ShortfallSeverity.MINOR:
            parts.append("A few data points were filled from fallback sources.")

        return " ".join(parts)
