"""
Pydantic models for MLB Edge.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _now() -> str:
    return datetime.now(UTC).isoformat()


# ═══════════════════════════════════════════════════════════════════════
# Source catalog
# ═══════════════════════════════════════════════════════════════════════

class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DataSource(BaseModel):
    """An external provider of one or more categories of baseball data."""
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    api_endpoint: str | None = None
    api_key_required: bool = False
    data_types: tuple[str, ...] = ()
    update_frequency: str = "daily"
    description: str = ""
    priority: Priority = Priority.MEDIUM

    def provides(self, data_type: str) -> bool:
        return data_type in self.data_types


class DataCategory(BaseModel):
    """A semantic grouping of data points and the sources that can fill it."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    importance: str = "medium"  # "baseline", "critical", "high", "medium"
    sources: tuple[DataSource, ...] = ()
    data_points: tuple[str, ...] = ()

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self.sources]


# ═══════════════════════════════════════════════════════════════════════
# Games & predictions
# ═══════════════════════════════════════════════════════════════════════

class Game(BaseModel):
    """A scheduled MLB game as held by the game store."""
    id: int | None = None
    mlb_id: str
    home_team: str
    away_team: str
    home_team_abbreviation: str
    away_team_abbreviation: str
    home_team_record: str | None = None  # "W-L"
    away_team_record: str | None = None
    home_team_moneyline: int | None = None  # American odds
    away_team_moneyline: int | None = None
    start_time: str
    status: str = "scheduled"
    game_date: str  # YYYY-MM-DD

    @field_validator("home_team_moneyline", "away_team_moneyline")
    @classmethod
    def zero_price_is_no_price(cls, price: int | None) -> int | None:
        # 0 means no line posted
        return price or None

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"


class Prediction(BaseModel):
    """The engine's output record for one game."""
    id: int | None = None
    game_id: int
    home_team_win_probability: float = Field(ge=0.0, le=1.0)
    away_team_win_probability: float = Field(ge=0.0, le=1.0)
    predicted_total_runs: float | None = Field(default=None, ge=5.0, le=13.0)
    recommended_bet: str
    confidence_level: float = Field(ge=0.0, le=1.0)
    analysis: str = ""
    tier: str = "basic"  # "basic", "pro", "elite"
    is_value_bet: bool = False
    model_version: str = "engine"  # "engine" or "legacy"
    created_at: str = Field(default_factory=_now)

    @model_validator(mode="after")
    def _probabilities_sum_to_one(self) -> "Prediction":
        total = self.home_team_win_probability + self.away_team_win_probability
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"win probabilities sum to {total}, expected 1.0")
        return self

    @property
    def favored_side(self) -> str:
        return "home" if self.home_team_win_probability >= self.away_team_win_probability else "away"


# ═══════════════════════════════════════════════════════════════════════
# Collected & processed data
# ═══════════════════════════════════════════════════════════════════════

class RawResponse(BaseModel):
    """Envelope returned by a provider fetch."""
    source: str
    endpoint: str = ""
    timestamp: str = Field(default_factory=_now)
    data: Any = None
    status: str = "success"


class CollectedDatum(BaseModel):
    """One (game, source) fetch result. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    game_id: int | str
    date: str
    home_team: str
    away_team: str
    data: dict[str, Any] = Field(default_factory=dict)
    collected_at: str = Field(default_factory=_now)
    source: str
    category: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)


class Weather(BaseModel):
    condition: str = ""
    temp_f: float | None = None
    wind_mph: float | None = None
    wind_direction: str = ""  # compass ("SW") or relative ("out to CF", "in from LF")
    precipitation: float = 0.0
    humidity: float | None = None

    @property
    def is_rain(self) -> bool:
        return "rain" in self.condition.lower() or self.precipitation > 0

    @property
    def wind_effect(self) -> str | None:
        """'out' when blowing out toward the outfield, 'in' when blowing in."""
        direction = self.wind_direction.lower().split()
        if "out" in direction:
            return "out"
        if "in" in direction:
            return "in"
        return None


class GameInfo(BaseModel):
    game_id: int | str
    date: str
    home_team: str
    away_team: str
    venue: str = ""
    start_time: str = ""
    weather: Weather = Field(default_factory=Weather)


class BattingStats(BaseModel):
    avg: float | None = None
    obp: float | None = None
    slug: float | None = None
    ops: float | None = None
    hr: int | None = None
    runs_per_game: float | None = None


class PitchingStats(BaseModel):
    era: float | None = None
    whip: float | None = None
    strikeouts: int | None = None
    walks: int | None = None
    hr_allowed: int | None = None
    runs_allowed_per_game: float | None = None


class FieldingStats(BaseModel):
    errors: int | None = None
    fielding_pct: float | None = None
    defensive_runs_saved: int | None = None


class TeamStats(BaseModel):
    batting: BattingStats = Field(default_factory=BattingStats)
    pitching: PitchingStats = Field(default_factory=PitchingStats)
    fielding: FieldingStats = Field(default_factory=FieldingStats)


class TeamStatsPair(BaseModel):
    home: TeamStats = Field(default_factory=TeamStats)
    away: TeamStats = Field(default_factory=TeamStats)


class MatchupRecord(BaseModel):
    home_wins: int = 0
    away_wins: int = 0


class MatchupHistory(BaseModel):
    overall: MatchupRecord = Field(default_factory=MatchupRecord)
    last_ten_games: MatchupRecord = Field(default_factory=MatchupRecord)
    this_year_games: MatchupRecord = Field(default_factory=MatchupRecord)


class StartingPitcher(BaseModel):
    name: str = ""
    stats: dict[str, float] = Field(default_factory=dict)


class PitchingMatchup(BaseModel):
    home: StartingPitcher = Field(default_factory=StartingPitcher)
    away: StartingPitcher = Field(default_factory=StartingPitcher)


class Moneyline(BaseModel):
    home: int | None = None
    away: int | None = None

    @field_validator("home", "away")
    @classmethod
    def zero_price_is_no_price(cls, price: int | None) -> int | None:
        return price or None

    @property
    def is_complete(self) -> bool:
        return self.home is not None and self.away is not None


class BettingOdds(BaseModel):
    moneyline: Moneyline = Field(default_factory=Moneyline)
    runline: dict[str, Any] = Field(default_factory=dict)
    total: dict[str, Any] = Field(default_factory=dict)
    movements: dict[str, Any] = Field(default_factory=dict)


class SituationalFactors(BaseModel):
    home_rest_days: int = 0
    away_rest_days: int = 0
    home_travel: str = ""
    away_travel: str = ""
    home_injury_impact: float = 0.0  # 0-1
    away_injury_impact: float = 0.0


class DataConfidence(BaseModel):
    overall: float = 0.0
    by_category: dict[str, float] = Field(default_factory=dict)


class ProcessedGameData(BaseModel):
    """Normalized per-game aggregate fed into scoring."""
    game_info: GameInfo
    team_stats: TeamStatsPair = Field(default_factory=TeamStatsPair)
    matchup_history: MatchupHistory = Field(default_factory=MatchupHistory)
    starting_pitchers: PitchingMatchup = Field(default_factory=PitchingMatchup)
    betting_odds: BettingOdds = Field(default_factory=BettingOdds)
    situational_factors: SituationalFactors = Field(default_factory=SituationalFactors)
    data_confidence: DataConfidence = Field(default_factory=DataConfidence)


# ═══════════════════════════════════════════════════════════════════════
# Pipeline reporting
# ═══════════════════════════════════════════════════════════════════════

class SourceStatus(BaseModel):
    """Result of an access check against one source."""
    source: str
    status: str  # "available", "warning", "error"
    reason: str | None = None
    critical: bool = True


class PipelineResult(BaseModel):
    """Result of one prediction pipeline run."""
    games_processed: int = 0
    predictions_created: int = 0
    engine_predictions: int = 0
    legacy_predictions: int = 0
    skipped: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=_now)


class SystemStatus(BaseModel):
    system_status: str = "operational"
    last_update: str = Field(default_factory=_now)
    total_sources: int = 0
    high_priority_sources: int = 0
    operational_sources: int = 0
    data_categories: int = 0
    last_run: PipelineResult | None = None


class DataQualityReport(BaseModel):
    game_id: int | str
    completeness: float  # 0-1 share of critical data points present
    severity: str
    issues: list[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=_now)
