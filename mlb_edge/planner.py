"""
Collection planner — decides what to fetch for a game and how to fall back.

The planner performs no I/O. It turns a SourceCatalog into a per-game
CollectionPlan: which sources to query for which categories, the order of
the collection workflow, the fallback chain for each primary source, and
the retry / error-escalation policy the fetcher follows.
"""

import logging
from collections.abc import Iterable, Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mlb_edge.models import DataSource
from mlb_edge.sources import SourceCatalog

logger = logging.getLogger(__name__)

DEFAULT_FALLBACKS: dict[str, tuple[str, ...]] = {
    "MLB Stats API": ("Baseball Reference", "ESPN MLB"),
    "Baseball Reference": ("FanGraphs", "MLB Stats API"),
    "FanGraphs": ("Baseball Reference", "MLB Stats API"),
    "Statcast": ("FanGraphs", "Baseball Reference"),
}

# Share of critical data points missing at which each severity starts
CRITICAL_THRESHOLD = 0.25
MAJOR_THRESHOLD = 0.10


class ShortfallSeverity(str, Enum):
    NONE = "none"
    MINOR = "minor"        # <10% missing
    MAJOR = "major"        # 10-25% missing
    CRITICAL = "critical"  # >25% missing

    @property
    def action(self) -> str:
        return _SHORTFALL_ACTIONS[self]

    @property
    def aborts(self) -> bool:
        return self is ShortfallSeverity.CRITICAL

    @property
    def downgrades_confidence(self) -> bool:
        return self is ShortfallSeverity.MAJOR


_SHORTFALL_ACTIONS = {
    ShortfallSeverity.NONE: "Proceed",
    ShortfallSeverity.MINOR: "Use fallback sources or interpolation, note in prediction",
    ShortfallSeverity.MAJOR: "Use fallback sources, flag prediction as lower confidence",
    ShortfallSeverity.CRITICAL: "Abort prediction for affected game",
}


def classify_shortfall(expected: int, missing: int) -> ShortfallSeverity:
    """Classify how badly a fetch fell short of its critical data points."""
    if expected <= 0 or missing <= 0:
        return ShortfallSeverity.NONE
    ratio = missing / expected
    if ratio > CRITICAL_THRESHOLD:
        return ShortfallSeverity.CRITICAL
    if ratio >= MAJOR_THRESHOLD:
        return ShortfallSeverity.MAJOR
    return ShortfallSeverity.MINOR


class RetryPolicy(BaseModel):
    """Per-source retry schedule used before moving to the next fallback."""
    model_config = ConfigDict(frozen=True)

    max_retries: int = 3
    base_delay: float = 30.0  # seconds
    exponential_backoff: bool = True

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        if self.exponential_backoff:
            return self.base_delay * (2 ** attempt)
        return self.base_delay

    def delays(self) -> list[float]:
        """Delays between the ``max_retries`` attempts on one source."""
        return [self.delay_for(i) for i in range(max(self.max_retries - 1, 0))]


class WorkflowStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    tasks: tuple[str, ...] = ()


WORKFLOW_STEPS: tuple[WorkflowStep, ...] = (
    WorkflowStep(name="fetch_schedule", description="Get the day's MLB schedule",
                 tasks=("Pull games from MLB Stats API", "Verify game statuses")),
    WorkflowStep(name="collect_team_data", description="Team standings, batting and pitching statistics",
                 tasks=("Pull standings and records", "Get team batting and pitching statistics",
                        "Collect park factors and home/away splits")),
    WorkflowStep(name="collect_player_data", description="Probable pitchers and key batters",
                 tasks=("Identify probable pitchers", "Pull pitcher statistics",
                        "Collect key batter statistics")),
    WorkflowStep(name="collect_weather", description="Game-time weather at each stadium",
                 tasks=("Pull forecasts per stadium", "Assess wind and temperature effects")),
    WorkflowStep(name="collect_injuries", description="Injury reports and lineup news",
                 tasks=("Check injury reports and IL status", "Estimate injury impact")),
    WorkflowStep(name="collect_news", description="Late-breaking news and analysis",
                 tasks=("Extract team-specific developments",)),
    WorkflowStep(name="collect_betting_market", description="Odds, lines, and movement",
                 tasks=("Pull current odds", "Track line movements")),
    WorkflowStep(name="process_data", description="Normalize and merge data by game",
                 tasks=("Normalize formats across sources", "Handle missing values",
                        "Merge data by game ID")),
    WorkflowStep(name="feature_engineering", description="Turn processed data into model inputs",
                 tasks=("Derive matchup features", "Construct situational features")),
)

# Categories fetched for every game (time before first pitch → data types)
GAME_DAY_REFRESH: dict[str, tuple[str, ...]] = {
    "12 hours before": ("historical", "advanced-metrics", "projections"),
    "6 hours before": ("weather", "injuries", "news"),
    "2 hours before": ("lineups", "odds", "betting-trends"),
    "30 minutes before": ("weather", "lineups", "odds", "betting-trends"),
}


class CollectionPlan(BaseModel):
    """Everything the collector needs to gather data for one game."""
    game_id: int | str
    data_sources: list[DataSource]
    categories: dict[str, list[DataSource]]
    collection_steps: list[WorkflowStep]
    fallbacks: dict[str, list[str]]
    retry_policy: RetryPolicy
    refresh_strategy: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    def source_named(self, name: str) -> DataSource | None:
        for source in self.data_sources:
            if source.name == name:
                return source
        return None


class CollectionPlanner:
    """Builds per-game collection plans from an explicit catalog."""

    def __init__(
        self,
        catalog: SourceCatalog,
        fallbacks: Mapping[str, Iterable[str]] | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.catalog = catalog
        self.fallbacks: dict[str, tuple[str, ...]] = {
            name: tuple(chain)
            for name, chain in (DEFAULT_FALLBACKS if fallbacks is None else fallbacks).items()
        }
        self.retry_policy = retry_policy or RetryPolicy()

    def plan_for_game(self, game_id: int | str) -> CollectionPlan:
        plan = CollectionPlan(
            game_id=game_id,
            data_sources=self.catalog.high_priority_sources(),
            categories={c.name: list(c.sources) for c in self.catalog.categories},
            collection_steps=list(WORKFLOW_STEPS),
            fallbacks={
                name: self.fallback_chain(name)
                for name in self.fallbacks
                if name in self.catalog
            },
            retry_policy=self.retry_policy,
            refresh_strategy=dict(GAME_DAY_REFRESH),
        )
        logger.debug(
            "Plan for game %s: %d sources, %d categories",
            game_id,
            len(plan.data_sources),
            len(plan.categories),
        )
        return plan

    def fallback_chain(self, source_name: str) -> list[str]:
        """Configured fallbacks for a source, restricted to catalog members."""
        return [name for name in self.fallbacks.get(source_name, ()) if name in self.catalog]

    def source_order(self, source_name: str) -> list[str]:
        """The source itself followed by its fallbacks."""
        return [source_name, *[n for n in self.fallback_chain(source_name) if n != source_name]]

    def next_source(self, source_name: str, exhausted: Iterable[str] = ()) -> DataSource | None:
        """First fallback that is in the catalog and not already exhausted."""
        exhausted = set(exhausted)
        for name in self.fallback_chain(source_name):
            if name not in exhausted:
                return self.catalog.get(name)
        return None

    def fetch_targets(self, plan: CollectionPlan) -> list[tuple[DataSource, str]]:
        """Flatten a plan into (source, category) pairs, high-priority sources only."""
        planned = {s.name for s in plan.data_sources}
        return [
            (source, category)
            for category, sources in plan.categories.items()
            for source in sources
            if source.name in planned
        ]
