"""Tests for mlb_edge.planner — collection plans, fallbacks and retry policy."""

import pytest

from mlb_edge.planner import (
    GAME_DAY_REFRESH,
    WORKFLOW_STEPS,
    CollectionPlanner,
    RetryPolicy,
    ShortfallSeverity,
    classify_shortfall,
)
from mlb_edge.sources import SourceCatalog, default_catalog


class TestPlanForGame:
    """Tests for CollectionPlanner.plan_for_game."""

    def test_plan_uses_high_priority_sources(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(746001)
        assert plan.game_id == 746001
        assert {s.name for s in plan.data_sources} == {
            s.name for s in catalog.high_priority_sources()
        }

    def test_plan_lists_every_category(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(1)
        assert set(plan.categories) == {c.name for c in catalog.categories}

    def test_workflow_steps_in_order(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(1)
        names = [step.name for step in plan.collection_steps]
        assert len(names) == len(WORKFLOW_STEPS) == 9
        assert names[0] == "fetch_schedule"
        assert names[-1] == "feature_engineering"

    def test_default_retry_policy(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(1)
        assert plan.retry_policy.max_retries == 3
        assert plan.retry_policy.base_delay == 30
        assert plan.retry_policy.exponential_backoff is True

    def test_refresh_strategy(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(1)
        assert plan.refresh_strategy == GAME_DAY_REFRESH
        assert "odds" in plan.refresh_strategy["30 minutes before"]

    def test_fallback_map(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(1)
        assert plan.fallbacks["Baseball Reference"] == ["FanGraphs", "MLB Stats API"]
        assert plan.fallbacks["MLB Stats API"] == ["Baseball Reference", "ESPN MLB"]

    def test_source_named(self, catalog):
        plan = CollectionPlanner(catalog).plan_for_game(1)
        assert plan.source_named("Statcast").url == "https://baseballsavant.mlb.com"
        assert plan.source_named("Covers") is None

    def test_empty_catalog_plan(self):
        plan = CollectionPlanner(SourceCatalog([])).plan_for_game(1)
        assert plan.data_sources == []
        assert plan.categories == {}
        assert plan.fallbacks == {}


class TestFallbacks:
    """Fallback chain resolution."""

    def test_source_order(self, catalog):
        planner = CollectionPlanner(catalog)
        assert planner.source_order("Baseball Reference") == [
            "Baseball Reference", "FanGraphs", "MLB Stats API",
        ]

    def test_source_without_fallbacks(self, catalog):
        planner = CollectionPlanner(catalog)
        assert planner.fallback_chain("Covers") == []
        assert planner.source_order("Covers") == ["Covers"]

    def test_fallbacks_limited_to_catalog(self):
        sources = [s for s in default_catalog() if s.name != "FanGraphs"]
        planner = CollectionPlanner(SourceCatalog(sources))
        assert planner.fallback_chain("Baseball Reference") == ["MLB Stats API"]

    def test_next_source_skips_exhausted(self, catalog):
        planner = CollectionPlanner(catalog)
        assert planner.next_source("Baseball Reference").name == "FanGraphs"
        nxt = planner.next_source("Baseball Reference", exhausted=["Baseball Reference", "FanGraphs"])
        assert nxt.name == "MLB Stats API"
        assert planner.next_source(
            "Baseball Reference",
            exhausted=["Baseball Reference", "FanGraphs", "MLB Stats API"],
        ) is None

    def test_custom_fallbacks(self, small_catalog):
        planner = CollectionPlanner(small_catalog, fallbacks={"Stats Feed": ["Backup Feed", "Ghost"]})
        assert planner.fallback_chain("Stats Feed") == ["Backup Feed"]
        assert planner.fallback_chain("Baseball Reference") == []

    def test_fetch_targets(self, small_catalog):
        planner = CollectionPlanner(small_catalog)
        targets = planner.fetch_targets(planner.plan_for_game(1))
        assert [(s.name, c) for s, c in targets] == [
            ("Stats Feed", "team_performance"),
            ("Odds API", "betting_market"),
        ]


class TestRetryPolicy:

    def test_exponential_delays(self):
        policy = RetryPolicy()
        assert policy.delay_for(0) == 30
        assert policy.delay_for(1) == 60
        assert policy.delay_for(2) == 120
        assert policy.delays() == [30, 60]

    def test_linear_delays(self):
        policy = RetryPolicy(max_retries=4, base_delay=5, exponential_backoff=False)
        assert policy.delays() == [5, 5, 5]

    def test_single_attempt_has_no_delays(self):
        assert RetryPolicy(max_retries=1).delays() == []


class TestClassifyShortfall:
    """Severity bands: <10% minor, 10-25% major, >25% critical."""

    @pytest.mark.parametrize(
        "expected,missing,severity",
        [
            (20, 0, ShortfallSeverity.NONE),
            (20, 1, ShortfallSeverity.MINOR),
            (20, 2, ShortfallSeverity.MAJOR),
            (20, 5, ShortfallSeverity.MAJOR),
            (20, 6, ShortfallSeverity.CRITICAL),
            (11, 3, ShortfallSeverity.CRITICAL),
            (0, 0, ShortfallSeverity.NONE),
        ],
    )
    def test_bands(self, expected, missing, severity):
        assert classify_shortfall(expected, missing) is severity

    def test_severity_actions(self):
        assert ShortfallSeverity.CRITICAL.aborts
        assert not ShortfallSeverity.MAJOR.aborts
        assert ShortfallSeverity.MAJOR.downgrades_confidence
        assert not ShortfallSeverity.MINOR.downgrades_confidence
        assert ShortfallSeverity.CRITICAL.action == "Abort prediction for affected game"
