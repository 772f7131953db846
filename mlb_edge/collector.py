"""
Game data collection and normalization.

Collects raw provider payloads for one game according to its
CollectionPlan, then folds the resulting CollectedDatum records into a
single ProcessedGameData aggregate for the scoring engine.
"""

import logging
from collections.abc import Callable
from typing import Any

from mlb_edge.errors import FetchError
from mlb_edge.fetcher import ProviderClient
from mlb_edge.models import (
    BattingStats,
    BettingOdds,
    CollectedDatum,
    DataSource,
    FieldingStats,
    Game,
    GameInfo,
    Moneyline,
    PitchingStats,
    ProcessedGameData,
    StartingPitcher,
    TeamStats,
    Weather,
)
from mlb_edge.planner import CollectionPlan, CollectionPlanner, ShortfallSeverity, classify_shortfall
from mlb_edge.sources import SourceCatalog

logger = logging.getLogger(__name__)

# Confidence assigned to each category's data at collection time
CATEGORY_CONFIDENCE: dict[str, float] = {
    "game_data": 0.95,
    "team_performance": 0.9,
    "environmental_factors": 0.85,  # forecasts drift before first pitch
    "betting_market": 0.9,
    "injury_status": 0.8,
}

# Injury status → weight toward a team's impact score
INJURY_WEIGHTS: dict[str, float] = {
    "out": 1.0,
    "injured reserve": 1.0,
    "il": 1.0,
    "doubtful": 0.8,
    "questionable": 0.4,
    "day-to-day": 0.3,
    "probable": 0.1,
}


def collection_steps(game: Game) -> list[tuple[str, str, dict[str, str]]]:
    """(category, endpoint, params) fetched for every game."""
    return [
        ("game_data", f"/v1/game/{game.mlb_id}", {}),
        ("team_performance", f"/teams/{game.home_team_abbreviation}", {}),
        ("team_performance", f"/teams/{game.away_team_abbreviation}", {}),
        ("environmental_factors", "/forecast/stadium", {"team": game.home_team_abbreviation}),
        ("betting_market", "/v4/sports/baseball_mlb/odds", {"eventIds": game.mlb_id}),
        ("injury_status", "/injuries", {"teams": f"{game.home_team_abbreviation},{game.away_team_abbreviation}"}),
    ]


def primary_sources(plan: CollectionPlan, planner: CollectionPlanner) -> dict[str, DataSource]:
    """
    First source to try for each planned category.

    A high-priority source from the plan's fetch targets wins; a category
    with none falls back to its first listed source.
    """
    primaries: dict[str, DataSource] = {}
    for source, category in planner.fetch_targets(plan):
        primaries.setdefault(category, source)
    for category, sources in plan.categories.items():
        if sources:
            primaries.setdefault(category, sources[0])
    return primaries


async def collect_game_data(
    game: Game,
    plan: CollectionPlan,
    planner: CollectionPlanner,
    client: ProviderClient,
) -> list[CollectedDatum]:
    """
    Fetch every planned category for a game.

    A category whose sources are all exhausted is logged and skipped; the
    shortfall is judged later from the processed data.
    """
    logger.info("Starting data collection for game %s (%s)", game.id, game.matchup)
    collected: list[CollectedDatum] = []
    team_payloads: dict[str, Any] = {}
    team_source = ""

    primaries = primary_sources(plan, planner)

    for category, endpoint, params in collection_steps(game):
        source = primaries.get(category)
        if source is None:
            logger.warning("No source planned for %s", category)
            continue

        logger.debug("Collecting %s via %s", category, " -> ".join(planner.source_order(source.name)))
        try:
            response = await client.fetch_with_fallback(planner, source, endpoint, params)
        except FetchError as e:
            logger.warning("Could not collect %s for game %s: %s", category, game.id, e)
            continue

        if category == "team_performance":
            side = "home" if endpoint.endswith(f"/{game.home_team_abbreviation}") else "away"
            team_payloads[f"{side}_team_stats"] = response.data
            team_source = response.source
            if len(team_payloads) < 2:
                continue
            data = dict(team_payloads)
            source = team_source
        else:
            data = response.data if isinstance(response.data, dict) else {"items": response.data}
            source = response.source

        collected.append(
            CollectedDatum(
                game_id=game.id if game.id is not None else game.mlb_id,
                date=game.game_date,
                home_team=game.home_team_abbreviation,
                away_team=game.away_team_abbreviation,
                data=data,
                source=source,
                category=category,
                confidence=CATEGORY_CONFIDENCE.get(category, 0.75),
            )
        )

    # One team's stats is better than none
    if len(team_payloads) == 1:
        collected.append(
            CollectedDatum(
                game_id=game.id if game.id is not None else game.mlb_id,
                date=game.game_date,
                home_team=game.home_team_abbreviation,
                away_team=game.away_team_abbreviation,
                data=dict(team_payloads),
                source=team_source,
                category="team_performance",
                confidence=CATEGORY_CONFIDENCE["team_performance"] / 2,
            )
        )

    logger.info("Collected data from %d sources for game %s", len(collected), game.id)
    return collected


# ═══════════════════════════════════════════════════════════════════════
# Normalization
# ═══════════════════════════════════════════════════════════════════════

def process_game_data(
    collected: list[CollectedDatum],
    catalog: SourceCatalog | None = None,
) -> ProcessedGameData:
    """Fold collected data for one game into a ProcessedGameData record."""
    if not collected:
        raise ValueError("No data available to process")

    first = collected[0]
    processed = ProcessedGameData(
        game_info=GameInfo(
            game_id=first.game_id,
            date=first.date,
            home_team=first.home_team,
            away_team=first.away_team,
        )
    )
    logger.debug("Processing data for game %s: %s @ %s", first.game_id, first.away_team, first.home_team)

    for datum in collected:
        data = datum.data

        if "games" in data:
            _apply_game_payload(processed, data["games"])
        if "home_team_stats" in data or "away_team_stats" in data:
            if data.get("home_team_stats") is not None:
                processed.team_stats.home = _team_stats_from(data["home_team_stats"])
            if data.get("away_team_stats") is not None:
                processed.team_stats.away = _team_stats_from(data["away_team_stats"])
        if "forecast" in data:
            processed.game_info.weather = _weather_from((data["forecast"] or {}).get("gameTime") or {})
        if "odds" in data:
            processed.betting_odds = _odds_from(data["odds"])
        if "injuries" in data:
            _apply_injuries(processed, data["injuries"], datum.home_team, datum.away_team)

        category = datum.category
        if category is None and catalog is not None:
            category = catalog.category_for_source(datum.source)
        if category:
            processed.data_confidence.by_category[category] = datum.confidence

    values = list(processed.data_confidence.by_category.values())
    if values:
        processed.data_confidence.overall = sum(values) / len(values)

    logger.info(
        "Processed game %s with overall confidence %.2f",
        first.game_id,
        processed.data_confidence.overall,
    )
    return processed


def _apply_game_payload(processed: ProcessedGameData, games: list[dict]):
    if not games:
        return
    game = games[0]
    processed.game_info.venue = (game.get("venue") or {}).get("name", "")
    processed.game_info.start_time = game.get("gameTime", "")
    if game.get("weather") and processed.game_info.weather.temp_f is None:
        processed.game_info.weather = _weather_from(game["weather"])

    rest = game.get("restDays") or {}
    processed.situational_factors.home_rest_days = int(rest.get("home", 0))
    processed.situational_factors.away_rest_days = int(rest.get("away", 0))
    travel = game.get("travel") or {}
    processed.situational_factors.home_travel = travel.get("home", "")
    processed.situational_factors.away_travel = travel.get("away", "")

    pitchers = game.get("probablePitchers") or {}
    for side in ("home", "away"):
        pitcher = pitchers.get(side)
        if pitcher:
            setattr(
                processed.starting_pitchers,
                side,
                StartingPitcher(name=pitcher.get("name", ""), stats=pitcher.get("stats") or {}),
            )


def _team_stats_from(payload: dict) -> TeamStats:
    """Accept either a bare team entry or a {"teams": [...]} listing."""
    if "teams" in payload:
        teams = payload["teams"] or [{}]
        payload = teams[0] or {}
    stats = payload.get("stats") or payload
    return TeamStats(
        batting=BattingStats.model_validate(stats.get("batting") or {}),
        pitching=PitchingStats.model_validate(stats.get("pitching") or {}),
        fielding=FieldingStats.model_validate(stats.get("fielding") or {}),
    )


def _weather_from(payload: dict) -> Weather:
    return Weather(
        condition=payload.get("condition", ""),
        temp_f=payload.get("tempF"),
        wind_mph=payload.get("windMph"),
        wind_direction=payload.get("windDirection", ""),
        precipitation=payload.get("precipitation") or 0.0,
        humidity=payload.get("humidity"),
    )


def _odds_from(payload: dict) -> BettingOdds:
    moneyline = payload.get("moneyline") or {}
    return BettingOdds(
        moneyline=Moneyline(home=moneyline.get("home"), away=moneyline.get("away")),
        runline=payload.get("runline") or {},
        total=payload.get("total") or {},
        movements=payload.get("movement") or {},
    )


def injury_impact(players: list[dict]) -> float:
    """0-1 injury impact score. Five or more players out saturates it."""
    score = sum(
        INJURY_WEIGHTS.get(str(p.get("status", "")).lower(), 0.4)
        for p in players
    )
    return min(score / 5.0, 1.0)


def _apply_injuries(processed: ProcessedGameData, teams: list[dict], home: str, away: str):
    for team in teams:
        abbreviation = team.get("abbreviation", "")
        impact = injury_impact(team.get("players") or [])
        if abbreviation == home:
            processed.situational_factors.home_injury_impact = impact
        elif abbreviation == away:
            processed.situational_factors.away_injury_impact = impact


# ═══════════════════════════════════════════════════════════════════════
# Shortfall assessment
# ═══════════════════════════════════════════════════════════════════════

CRITICAL_DATA_POINTS: dict[str, Callable[[ProcessedGameData], Any]] = {
    "venue": lambda d: d.game_info.venue or None,
    "start_time": lambda d: d.game_info.start_time or None,
    "temperature": lambda d: d.game_info.weather.temp_f,
    "home_batting_avg": lambda d: d.team_stats.home.batting.avg,
    "away_batting_avg": lambda d: d.team_stats.away.batting.avg,
    "home_runs_scored": lambda d: d.team_stats.home.batting.runs_per_game,
    "away_runs_scored": lambda d: d.team_stats.away.batting.runs_per_game,
    "home_runs_allowed": lambda d: d.team_stats.home.pitching.runs_allowed_per_game,
    "away_runs_allowed": lambda d: d.team_stats.away.pitching.runs_allowed_per_game,
    "home_moneyline": lambda d: d.betting_odds.moneyline.home,
    "away_moneyline": lambda d: d.betting_odds.moneyline.away,
}


def missing_data_points(processed: ProcessedGameData) -> list[str]:
    return [name for name, read in CRITICAL_DATA_POINTS.items() if read(processed) is None]


def assess_shortfall(processed: ProcessedGameData) -> tuple[ShortfallSeverity, list[str]]:
    """Classify how much critical data is missing from a processed game."""
    missing = missing_data_points(processed)
    severity = classify_shortfall(len(CRITICAL_DATA_POINTS), len(missing))
    if missing:
        logger.info(
            "Game %s missing %d/%d critical data points (%s): %s",
            processed.game_info.game_id,
            len(missing),
            len(CRITICAL_DATA_POINTS),
            severity.value,
            severity.action,
        )
    return severity, missing
