"""Tests for mlb_edge.scoring — the primary heuristic engine."""

from unittest.mock import patch

import numpy as np
import pytest

from mlb_edge.errors import ScoringError
from mlb_edge.models import (
    BattingStats,
    Moneyline,
    PitchingStats,
    TeamStats,
    Weather,
)
from mlb_edge.planner import ShortfallSeverity
from mlb_edge.scoring import ScoringEngine, assign_tier, odds_favorite


@pytest.fixture
def engine():
    """Engine with jitter disabled for exact totals."""
    return ScoringEngine(jitter=0)


class TestAssignTier:

    @pytest.mark.parametrize(
        "confidence,tier",
        [(0.95, "elite"), (0.85, "elite"), (0.849, "pro"), (0.70, "pro"), (0.69, "basic"), (0.5, "basic")],
    )
    def test_boundaries(self, confidence, tier):
        assert assign_tier(confidence) == tier


class TestOddsFavorite:

    def test_home_favorite(self):
        assert odds_favorite(Moneyline(home=-150, away=130)) == "home"

    def test_away_favorite(self):
        assert odds_favorite(Moneyline(home=140, away=-160)) == "away"

    def test_pick_em(self):
        assert odds_favorite(Moneyline(home=-110, away=-110)) is None

    def test_missing_side(self):
        assert odds_favorite(Moneyline(home=-150)) is None


class TestWinPercentages:
    """Home-field prior plus odds, weather and batting adjustments."""

    def test_base_prior(self, engine, minimal_data):
        assert engine.win_percentages(minimal_data) == (52.0, 48.0)

    def test_full_data(self, engine, processed_data):
        # 52 + 10 (home favored) + 5 (batting edge)
        assert engine.win_percentages(processed_data) == (67.0, 33.0)

    def test_away_favored_by_odds(self, engine, minimal_data):
        minimal_data.betting_odds.moneyline = Moneyline(home=140, away=-160)
        home, away = engine.win_percentages(minimal_data)
        assert home == 37.0
        assert away == 63.0

    def test_rain_penalty(self, engine, minimal_data):
        minimal_data.game_info.weather = Weather(condition="Light Rain")
        assert engine.win_percentages(minimal_data)[0] == 50.0

    def test_precipitation_counts_as_rain(self, engine, minimal_data):
        minimal_data.game_info.weather = Weather(condition="Cloudy", precipitation=0.2)
        assert engine.win_percentages(minimal_data)[0] == 50.0

    def test_wind_bonus_only_above_threshold(self, engine, minimal_data):
        minimal_data.game_info.weather = Weather(wind_mph=10)
        assert engine.win_percentages(minimal_data)[0] == 52.0
        minimal_data.game_info.weather = Weather(wind_mph=14)
        assert engine.win_percentages(minimal_data)[0] == 54.0

    def test_away_batting_edge(self, engine, minimal_data):
        minimal_data.team_stats.home = TeamStats(batting=BattingStats(avg=0.240))
        minimal_data.team_stats.away = TeamStats(batting=BattingStats(avg=0.260))
        assert engine.win_percentages(minimal_data)[0] == 47.0

    def test_equal_batting_no_edge(self, engine, minimal_data):
        minimal_data.team_stats.home = TeamStats(batting=BattingStats(avg=0.250))
        minimal_data.team_stats.away = TeamStats(batting=BattingStats(avg=0.250))
        assert engine.win_percentages(minimal_data)[0] == 52.0

    def test_clamped_at_floor(self, engine, minimal_data):
        # 52 - 15 - 2 - 5 = 30 → 35
        minimal_data.betting_odds.moneyline = Moneyline(home=200, away=-240)
        minimal_data.game_info.weather = Weather(condition="Rain")
        minimal_data.team_stats.home = TeamStats(batting=BattingStats(avg=0.220))
        minimal_data.team_stats.away = TeamStats(batting=BattingStats(avg=0.270))
        assert engine.win_percentages(minimal_data) == (35.0, 65.0)


class TestTotalRuns:

    def test_league_average(self, engine, minimal_data):
        assert engine.total_runs(minimal_data) == 8.5

    @pytest.mark.parametrize("temp,expected", [(85, 9.2), (55, 8.0), (70, 8.5), (80, 8.5)])
    def test_temperature(self, engine, minimal_data, temp, expected):
        minimal_data.game_info.weather = Weather(temp_f=temp)
        assert engine.total_runs(minimal_data) == expected

    def test_wind_out(self, engine, minimal_data):
        minimal_data.game_info.weather = Weather(wind_mph=15, wind_direction="out to CF")
        assert engine.total_runs(minimal_data) == 9.3

    def test_wind_in(self, engine, minimal_data):
        minimal_data.game_info.weather = Weather(wind_mph=15, wind_direction="in from LF")
        assert engine.total_runs(minimal_data) == 7.9

    def test_light_wind_ignored(self, engine, minimal_data):
        minimal_data.game_info.weather = Weather(wind_mph=8, wind_direction="out to RF")
        assert engine.total_runs(minimal_data) == 8.5

    def test_team_stats_projection(self, engine, processed_data):
        # (4.9 + 4.4) / 2 + (4.5 + 4.0) / 2
        assert engine.total_runs(processed_data) == 8.9

    def test_team_stats_override_weather(self, engine, processed_data):
        processed_data.game_info.weather = Weather(temp_f=90, wind_mph=20, wind_direction="out")
        assert engine.total_runs(processed_data) == 8.9

    def test_clamped_high(self, engine, minimal_data):
        minimal_data.team_stats.home = TeamStats(
            batting=BattingStats(runs_per_game=9.0), pitching=PitchingStats(runs_allowed_per_game=9.0)
        )
        minimal_data.team_stats.away = TeamStats(
            batting=BattingStats(runs_per_game=9.0), pitching=PitchingStats(runs_allowed_per_game=9.0)
        )
        assert engine.total_runs(minimal_data) == 13.0

    def test_clamped_low(self, engine, minimal_data):
        minimal_data.team_stats.home = TeamStats(
            batting=BattingStats(runs_per_game=1.0), pitching=PitchingStats(runs_allowed_per_game=1.5)
        )
        minimal_data.team_stats.away = TeamStats(
            batting=BattingStats(runs_per_game=1.0), pitching=PitchingStats(runs_allowed_per_game=1.5)
        )
        assert engine.total_runs(minimal_data) == 5.0

    def test_jitter_stays_within_bounds(self, minimal_data):
        engine = ScoringEngine(rng=np.random.default_rng(7))
        for _ in range(200):
            total = engine.total_runs(minimal_data)
            assert 7.75 <= total <= 9.25

    def test_seeded_rng_is_reproducible(self, processed_data):
        a = ScoringEngine(rng=np.random.default_rng(42))
        b = ScoringEngine(rng=np.random.default_rng(42))
        assert [a.total_runs(processed_data) for _ in range(5)] == [
            b.total_runs(processed_data) for _ in range(5)
        ]


class TestValueBet:

    def test_edge_above_five_points(self):
        # implied 60%, ours 67%
        assert ScoringEngine.is_value_bet(67.0, 33.0, Moneyline(home=-150, away=130))

    def test_edge_at_five_points_is_not_value(self):
        assert not ScoringEngine.is_value_bet(65.0, 35.0, Moneyline(home=-150, away=130))

    def test_away_side(self):
        # away +130 implies ~43.5%
        assert ScoringEngine.is_value_bet(45.0, 55.0, Moneyline(home=-150, away=130))

    def test_no_price(self):
        assert not ScoringEngine.is_value_bet(70.0, 30.0, Moneyline())


class TestScore:
    """Tests for ScoringEngine.score."""

    def test_prediction_fields(self, engine, sample_game, processed_data):
        p = engine.score(sample_game, processed_data)
        assert p.game_id == 1
        assert p.home_team_win_probability == pytest.approx(0.67)
        assert p.away_team_win_probability == pytest.approx(0.33)
        assert p.predicted_total_runs == 8.9
        assert p.recommended_bet == "New York Yankees ML"
        assert p.confidence_level == pytest.approx(0.67)
        assert p.tier == "basic"
        assert p.is_value_bet is True
        assert p.model_version == "engine"

    def test_probabilities_sum_to_one(self, engine, sample_game, minimal_data):
        p = engine.score(sample_game, minimal_data)
        assert p.home_team_win_probability + p.away_team_win_probability == pytest.approx(1.0, abs=1e-6)

    def test_away_favored_recommendation(self, engine, sample_game, minimal_data):
        minimal_data.betting_odds.moneyline = Moneyline(home=140, away=-160)
        p = engine.score(sample_game, minimal_data)
        assert p.recommended_bet == "Boston Red Sox ML"
        assert p.favored_side == "away"

    def test_major_shortfall_lowers_confidence(self, engine, sample_game, processed_data):
        p = engine.score(sample_game, processed_data, ShortfallSeverity.MAJOR)
        assert p.confidence_level == pytest.approx(0.67 * 0.85, abs=1e-4)
        assert "confidence has been lowered" in p.analysis

    def test_minor_shortfall_is_annotated(self, engine, sample_game, processed_data):
        p = engine.score(sample_game, processed_data, ShortfallSeverity.MINOR)
        assert p.confidence_level == pytest.approx(0.67)
        assert "fallback sources" in p.analysis

    def test_analysis_mentions_branches(self, engine, sample_game, processed_data):
        processed_data.game_info.weather = Weather(condition="Rain", temp_f=85, wind_mph=15, wind_direction="out")
        p = engine.score(sample_game, processed_data)
        assert "New York Yankees are favored" in p.analysis
        assert "Rain" in p.analysis
        assert "blowing out" in p.analysis
        assert "offer value" in p.analysis

    def test_missing_game_id(self, engine, sample_game, processed_data):
        game = sample_game.model_copy(update={"id": None})
        with pytest.raises(ScoringError):
            engine.score(game, processed_data)

    def test_internal_error_wrapped(self, engine, sample_game, processed_data):
        with patch.object(engine, "win_percentages", side_effect=ZeroDivisionError("boom")):
            with pytest.raises(ScoringError, match="boom"):
                engine.score(sample_game, processed_data)
