"""Shared fixtures for the MLB Edge test suite."""

import pytest

from mlb_edge.models import (
    BattingStats,
    BettingOdds,
    CollectedDatum,
    DataCategory,
    DataSource,
    Game,
    GameInfo,
    Moneyline,
    PitchingStats,
    Priority,
    ProcessedGameData,
    TeamStats,
    TeamStatsPair,
    Weather,
)
from mlb_edge.sources import SourceCatalog, default_catalog


# ── Catalogs ──────────────────────────────────────────────────────────

@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def small_catalog():
    """Three sources, two categories, one key-requiring source."""
    stats = DataSource(
        name="Stats Feed", url="https://stats.example.com",
        data_types=("games", "statistics"), priority=Priority.HIGH,
    )
    backup = DataSource(
        name="Backup Feed", url="https://backup.example.com",
        data_types=("statistics",), priority=Priority.MEDIUM,
    )
    odds = DataSource(
        name="Odds API", url="https://odds.example.com",
        data_types=("odds",), priority=Priority.HIGH, api_key_required=True,
    )
    return SourceCatalog(
        [stats, backup, odds],
        [
            DataCategory(name="team_performance", sources=(stats, backup)),
            DataCategory(name="betting_market", sources=(odds,)),
        ],
    )


# ── Games ─────────────────────────────────────────────────────────────

@pytest.fixture
def sample_game():
    return Game(
        id=1,
        mlb_id="746001",
        home_team="New York Yankees",
        away_team="Boston Red Sox",
        home_team_abbreviation="NYY",
        away_team_abbreviation="BOS",
        home_team_record="62-48",
        away_team_record="58-53",
        home_team_moneyline=-150,
        away_team_moneyline=130,
        start_time="2026-07-04T23:05:00Z",
        game_date="2026-07-04",
    )


@pytest.fixture
def bare_game():
    """A game with no records and no odds."""
    return Game(
        id=2,
        mlb_id="746002",
        home_team="Chicago Cubs",
        away_team="St. Louis Cardinals",
        home_team_abbreviation="CHC",
        away_team_abbreviation="STL",
        start_time="2026-07-04T18:20:00Z",
        game_date="2026-07-04",
    )


# ── Processed data ────────────────────────────────────────────────────

@pytest.fixture
def processed_data():
    """Complete data: home favored by odds and batting, calm 72°F day."""
    return ProcessedGameData(
        game_info=GameInfo(
            game_id=1,
            date="2026-07-04",
            home_team="NYY",
            away_team="BOS",
            venue="Yankee Stadium",
            start_time="7:05 PM",
            weather=Weather(condition="Clear", temp_f=72, wind_mph=5, wind_direction="L to R"),
        ),
        team_stats=TeamStatsPair(
            home=TeamStats(
                batting=BattingStats(avg=0.265, runs_per_game=4.9),
                pitching=PitchingStats(era=3.70, runs_allowed_per_game=4.0),
            ),
            away=TeamStats(
                batting=BattingStats(avg=0.248, runs_per_game=4.5),
                pitching=PitchingStats(era=4.10, runs_allowed_per_game=4.4),
            ),
        ),
        betting_odds=BettingOdds(moneyline=Moneyline(home=-150, away=130)),
    )


@pytest.fixture
def minimal_data():
    """Only game identity, nothing the scoring adjustments read."""
    return ProcessedGameData(
        game_info=GameInfo(game_id=1, date="2026-07-04", home_team="NYY", away_team="BOS"),
    )


# ── Raw provider payloads ─────────────────────────────────────────────

@pytest.fixture
def game_payload():
    return {
        "games": [
            {
                "venue": {"name": "Yankee Stadium"},
                "gameTime": "7:05 PM",
                "restDays": {"home": 1, "away": 0},
                "travel": {"home": "none", "away": "short"},
                "probablePitchers": {
                    "home": {"name": "Gerrit Cole", "stats": {"era": 3.1}},
                    "away": {"name": "Brayan Bello", "stats": {"era": 4.2}},
                },
            }
        ]
    }


@pytest.fixture
def collected_data(game_payload):
    def datum(data, source, category, confidence):
        return CollectedDatum(
            game_id=1, date="2026-07-04", home_team="NYY", away_team="BOS",
            data=data, source=source, category=category, confidence=confidence,
        )

    return [
        datum(game_payload, "MLB Stats API", "game_data", 0.95),
        datum(
            {
                "home_team_stats": {"stats": {
                    "batting": {"avg": 0.265, "runs_per_game": 4.9},
                    "pitching": {"era": 3.7, "runs_allowed_per_game": 4.0},
                }},
                "away_team_stats": {"teams": [{"stats": {
                    "batting": {"avg": 0.248, "runs_per_game": 4.5},
                    "pitching": {"era": 4.1, "runs_allowed_per_game": 4.4},
                }}]},
            },
            "MLB Stats API", "team_performance", 0.9,
        ),
        datum(
            {"forecast": {"gameTime": {
                "condition": "Clear", "tempF": 84, "windMph": 12,
                "windDirection": "out to CF", "humidity": 40,
            }}},
            "Weather.gov", "environmental_factors", 0.85,
        ),
        datum(
            {"odds": {
                "moneyline": {"home": -150, "away": 130},
                "runline": {"home": -1.5},
                "total": {"line": 8.5},
                "movement": {"open": -140},
            }},
            "Odds API", "betting_market", 0.9,
        ),
        datum(
            {"injuries": [
                {"abbreviation": "NYY", "players": [{"status": "Out"}]},
                {"abbreviation": "BOS", "players": [{"status": "Questionable"}, {"status": "Out"}]},
            ]},
            "Rotoworld", "injury_status", 0.8,
        ),
    ]
