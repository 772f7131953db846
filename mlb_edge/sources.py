"""
Source catalog — the registry of external MLB data providers.

A catalog is an immutable value built once at startup and passed to the
planner and collector. Lookups are filters, so an unknown category simply
yields an empty list.
"""

import logging
from collections.abc import Iterable, Iterator

from mlb_edge.models import DataCategory, DataSource, Priority

logger = logging.getLogger(__name__)


class SourceCatalog:
    """Read-only collection of DataSource and DataCategory definitions."""

    def __init__(
        self,
        sources: Iterable[DataSource],
        categories: Iterable[DataCategory] = (),
    ):
        self._sources: tuple[DataSource, ...] = tuple(sources)
        self._by_name: dict[str, DataSource] = {s.name: s for s in self._sources}
        if len(self._by_name) != len(self._sources):
            raise ValueError("Data source names must be unique")
        self._categories: tuple[DataCategory, ...] = tuple(categories)

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[DataSource]:
        return iter(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def sources(self) -> tuple[DataSource, ...]:
        return self._sources

    @property
    def categories(self) -> tuple[DataCategory, ...]:
        return self._categories

    def get(self, name: str) -> DataSource | None:
        return self._by_name.get(name)

    def sources_by_category(self, data_type: str) -> list[DataSource]:
        """All sources tagged with ``data_type``, in declaration order."""
        return [s for s in self._sources if s.provides(data_type)]

    def sources_for(self, *data_types: str) -> list[DataSource]:
        """Union of several tags, first occurrence wins, duplicates dropped."""
        seen: set[str] = set()
        result: list[DataSource] = []
        for data_type in data_types:
            for source in self.sources_by_category(data_type):
                if source.name not in seen:
                    seen.add(source.name)
                    result.append(source)
        return result

    def high_priority_sources(self) -> list[DataSource]:
        return [s for s in self._sources if s.priority == Priority.HIGH]

    def category(self, name: str) -> DataCategory | None:
        for category in self._categories:
            if category.name == name:
                return category
        return None

    def category_for_source(self, source_name: str) -> str | None:
        """Name of the first category that lists ``source_name``."""
        for category in self._categories:
            if source_name in category.source_names:
                return category.name
        return None

    # ── Planning views ────────────────────────────────────────────────

    def collection_schedule(self) -> dict[str, dict]:
        """Sources grouped by how often they should be polled."""
        return {
            "realtime": {
                "sources": self.sources_for("odds", "games"),
                "interval": "5 minutes",
                "priority": "critical",
            },
            "hourly": {
                "sources": self.sources_for("weather", "injuries"),
                "interval": "1 hour",
                "priority": "high",
            },
            "daily": {
                "sources": self.sources_for("statistics", "news"),
                "interval": "24 hours",
                "priority": "medium",
            },
            "weekly": {
                "sources": self.sources_for("historical", "projections"),
                "interval": "7 days",
                "priority": "low",
            },
        }

    def prediction_factor_sources(self) -> dict[str, list[DataSource]]:
        """Candidate sources for each factor the scoring model considers."""
        def named(data_type: str, name: str) -> list[DataSource]:
            return [s for s in self.sources_by_category(data_type) if name in s.name]

        return {
            "starting_pitching": self.sources_for("pitch-analysis") + named("advanced-metrics", "FanGraphs"),
            "bullpen_strength": named("advanced-metrics", "FanGraphs") + named("statistics", "Baseball Reference"),
            "batting_effectiveness": self.sources_for("advanced-metrics", "exit-velocity"),
            "defense_quality": self.sources_for("advanced-metrics"),
            "home_field_advantage": self.sources_for("statistics", "historical"),
            "weather_impact": self.sources_for("weather") + named("historical", "Baseball Reference"),
            "injuries": self.sources_for("injuries", "news"),
            "recent_form": self.sources_for("statistics", "historical"),
            "rest_and_schedule": self.sources_for("schedules", "news"),
            "head_to_head": self.sources_for("historical", "statistics"),
            "market_movement": self.sources_for("odds", "betting-trends"),
        }


# ═══════════════════════════════════════════════════════════════════════
# Default catalog
# ═══════════════════════════════════════════════════════════════════════

def _source(name, url, data_types, priority, frequency="daily", *,
            api_key_required=False, api_endpoint=None, description=""):
    return DataSource(
        name=name,
        url=url,
        api_endpoint=api_endpoint,
        api_key_required=api_key_required,
        data_types=tuple(data_types),
        update_frequency=frequency,
        description=description,
        priority=priority,
    )


DEFAULT_SOURCES: tuple[DataSource, ...] = (
    # Primary: core statistics and game information
    _source("MLB Stats API", "https://statsapi.mlb.com/api",
            ["games", "players", "teams", "standings", "schedules"], Priority.HIGH, "real-time",
            api_endpoint="/v1",
            description="Official MLB statistics API for game, team, and player data"),
    _source("Baseball Reference", "https://www.baseball-reference.com",
            ["historical", "statistics", "players", "teams"], Priority.HIGH,
            description="Historical baseball statistics with advanced metrics"),
    _source("FanGraphs", "https://www.fangraphs.com",
            ["advanced-metrics", "projections", "analytics"], Priority.HIGH,
            description="Advanced analytics and projections"),
    _source("Statcast", "https://baseballsavant.mlb.com",
            ["pitch-tracking", "exit-velocity", "launch-angle", "sprint-speed"], Priority.HIGH,
            description="Ball and player tracking data"),
    # Secondary: supplemental information
    _source("Rotoworld", "https://www.rotoworld.com/baseball/mlb",
            ["news", "injuries", "transactions"], Priority.MEDIUM, "hourly",
            description="Injury, lineup, and transaction news"),
    _source("Weather.gov", "https://api.weather.gov",
            ["weather", "forecast"], Priority.MEDIUM, "hourly",
            description="Forecasts for game locations"),
    _source("ESPN MLB", "https://www.espn.com/mlb",
            ["news", "analysis", "insider-info"], Priority.MEDIUM,
            description="News and expert analysis"),
    _source("The Athletic", "https://theathletic.com/mlb",
            ["news", "analysis", "insider-info"], Priority.MEDIUM,
            api_key_required=True,
            description="In-depth reporting from baseball insiders"),
    # Advanced analytics
    _source("Baseball Prospectus", "https://www.baseballprospectus.com",
            ["PECOTA", "DRA", "advanced-analytics"], Priority.HIGH,
            api_key_required=True,
            description="PECOTA projections and DRA pitching metrics"),
    _source("Brooks Baseball", "https://www.brooksbaseball.net",
            ["pitch-analysis", "pitch-movement", "release-points"], Priority.MEDIUM,
            description="Pitch movement, velocity, and release points"),
    _source("Crunchtimebaseball", "https://www.crunchtimebaseball.com",
            ["fantasy", "projections", "rankings"], Priority.LOW, "weekly",
            description="Fantasy projections and rankings"),
    # Betting markets
    _source("Odds API", "https://api.the-odds-api.com",
            ["odds", "lines", "betting-markets"], Priority.HIGH, "real-time",
            api_key_required=True, api_endpoint="/v4/sports/baseball_mlb/odds",
            description="Aggregated odds from multiple sportsbooks"),
    _source("Action Network", "https://www.actionnetwork.com/mlb",
            ["betting-trends", "public-betting", "expert-picks"], Priority.MEDIUM,
            description="Public betting percentages and handicapper picks"),
    _source("Covers", "https://www.covers.com/mlb",
            ["consensus-picks", "line-movements", "betting-analysis"], Priority.MEDIUM,
            description="Consensus picks and line movements"),
)

# (name, description, importance, source tags, data points)
DEFAULT_CATEGORY_SPECS: tuple[tuple[str, str, str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("game_data", "Teams, schedules, venues, officials", "baseline", ("games",),
     ("game_date", "start_time", "venue", "home_team", "away_team",
      "umpire_crew", "series_info", "broadcast_info")),
    ("team_performance", "Team statistics and performance metrics", "high", ("teams", "statistics"),
     ("record", "home_record", "away_record", "last_10_games", "streak",
      "runs_scored", "runs_allowed", "team_batting_avg", "team_era",
      "bullpen_era", "defensive_efficiency", "run_differential")),
    ("player_performance", "Individual player statistics", "high", ("players", "statistics"),
     ("player_name", "position", "batting_avg", "obp", "slg", "ops", "wrc_plus",
      "war", "era", "whip", "fip", "k_per_9", "bb_per_9", "hr_per_9")),
    ("advanced_metrics", "Advanced and predictive measures", "critical", ("advanced-metrics",),
     ("expected_batting_avg", "hard_hit_percentage", "barrel_rate", "exit_velocity",
      "launch_angle", "spin_rate", "pitch_movement", "chase_rate", "zone_contact",
      "defensive_runs_saved", "framing_runs", "sprint_speed")),
    ("matchup_history", "Historical performance in specific matchups", "medium", ("historical",),
     ("head_to_head_record", "pitcher_vs_team", "batter_vs_pitcher",
      "home_vs_away_history", "division_game_record", "series_record")),
    ("environmental_factors", "Weather and stadium conditions", "medium", ("weather",),
     ("temperature", "humidity", "wind_speed", "wind_direction", "precipitation",
      "dome_or_outdoor", "field_conditions", "park_factors", "altitude")),
    ("situational_factors", "Rest, travel, and lineup context", "medium", ("news", "analysis"),
     ("travel_schedule", "rest_days", "day_or_night_game", "doubleheader",
      "team_morale", "recent_lineup_changes", "playoff_implications")),
    ("injury_status", "Current injuries and their impact", "high", ("injuries",),
     ("injured_players", "injury_type", "expected_return", "injury_impact",
      "replacement_player_quality", "cumulative_war_lost")),
    ("betting_market", "Odds, line movements, and market sentiment", "high", ("odds", "betting-markets"),
     ("moneyline", "run_line", "total", "first_5_innings_line", "opening_line",
      "line_movement", "public_betting_percentage", "sharp_money_indicators")),
)


def build_catalog(
    sources: Iterable[DataSource],
    category_specs: Iterable[tuple] = DEFAULT_CATEGORY_SPECS,
) -> SourceCatalog:
    """Build a catalog whose categories resolve their tags against ``sources``."""
    sources = tuple(sources)
    index = SourceCatalog(sources)
    categories = [
        DataCategory(
            name=name,
            description=description,
            importance=importance,
            sources=tuple(index.sources_for(*tags)),
            data_points=data_points,
        )
        for name, description, importance, tags, data_points in category_specs
    ]
    catalog = SourceCatalog(sources, categories)
    logger.debug(
        "Built source catalog: %d sources, %d categories",
        len(catalog),
        len(catalog.categories),
    )
    return catalog


def default_catalog() -> SourceCatalog:
    return build_catalog(DEFAULT_SOURCES)
