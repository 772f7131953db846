"""
Prediction pipeline — collects data, scores games, and stores predictions.

Each game is handled independently: a game that fails (missing critical
data, a scoring error, a storage error) is logged and recorded in the run
result, and every other game in the batch still gets its turn.
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import numpy as np

from mlb_edge.collector import (
    CRITICAL_DATA_POINTS,
    assess_shortfall,
    collect_game_data,
    process_game_data,
)
from mlb_edge.config import Settings, settings, validate_credentials
from mlb_edge.database import SQLiteGameStore
from mlb_edge.errors import ConfigurationError, CriticalDataError, MalformedInputError, ScoringError
from mlb_edge.fetcher import ProviderClient
from mlb_edge.legacy import LegacyScorer
from mlb_edge.models import (
    DataQualityReport,
    Game,
    PipelineResult,
    Prediction,
    ProcessedGameData,
    SourceStatus,
    SystemStatus,
)
from mlb_edge.planner import CollectionPlanner, RetryPolicy, ShortfallSeverity
from mlb_edge.scoring import ScoringEngine
from mlb_edge.sources import SourceCatalog, default_catalog

logger = logging.getLogger(__name__)


class PredictionPipeline:
    """Runs the collect → process → score → store workflow for a set of games."""

    def __init__(
        self,
        catalog: SourceCatalog,
        store: SQLiteGameStore,
        client: ProviderClient | None = None,
        planner: CollectionPlanner | None = None,
        engine: ScoringEngine | None = None,
        legacy: LegacyScorer | None = None,
        config: Settings | None = None,
    ):
        self.config = config or settings
        self.catalog = catalog
        self.store = store
        self.client = client or ProviderClient(self.config)
        self.planner = planner or CollectionPlanner(catalog)
        self.engine = engine or ScoringEngine()
        self.legacy = legacy or LegacyScorer()

        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = {}
        self._last_result: PipelineResult | None = None
        self._task: asyncio.Task | None = None

    async def close(self):
        self.stop_scheduler()
        await self.client.close()

    @asynccontextmanager
    async def _game_lock(self, game_id: int):
        """Hold the game's lock; the lock is dropped once nobody holds or awaits it."""
        lock = self._locks.setdefault(game_id, asyncio.Lock())
        self._lock_users[game_id] = self._lock_users.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[game_id] -= 1
            if not self._lock_users[game_id]:
                del self._lock_users[game_id]
                del self._locks[game_id]

    # ── Single game ───────────────────────────────────────────────────

    async def predict_game(self, game: Game) -> Prediction | None:
        """
        Produce a prediction for one game.

        Falls back to the legacy scorer whenever the engine path cannot
        produce a prediction short of a critical shortfall. Raises CriticalDataError when too much critical data is missing.
        Returns None for a game without an id.
        """
        if game.id is None:
            logger.error("Skipping %s: missing game id", game.matchup)
            return None

        async with self._game_lock(game.id):
            try:
                processed = await self._collect(game)
            except MalformedInputError as e:
                logger.warning("%s, falling back to legacy scorer", e)
                return self.legacy.score(game)
            if processed is None:
                logger.warning("No data collected for game %s, using legacy scorer", game.id)
                return self.legacy.score(game)

            severity, missing = assess_shortfall(processed)
            if severity.aborts:
                raise CriticalDataError(game.id, len(missing) / len(CRITICAL_DATA_POINTS))

            try:
                return self.engine.score(game, processed, severity)
            except ScoringError as e:
                logger.warning("%s, falling back to legacy scorer", e)
                return self.legacy.score(game)

    async def _collect(self, game: Game) -> ProcessedGameData | None:
        plan = self.planner.plan_for_game(game.id)
        collected = await collect_game_data(game, plan, self.planner, self.client)
        if not collected:
            return None
        try:
            processed = process_game_data(collected, self.catalog)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedInputError(f"Unusable provider data for game {game.id}: {e}") from e
        _backfill_from_game(processed, game)
        return processed

    # ── Batches ───────────────────────────────────────────────────────

    async def run(self, games: list[Game]) -> tuple[list[Prediction], PipelineResult]:
        """Score a batch of games concurrently with per-game isolation."""
        result = PipelineResult(games_processed=len(games))
        semaphore = asyncio.Semaphore(max(self.config.MAX_CONCURRENT_GAMES, 1))

        async def isolated(game: Game) -> Prediction | None:
            async with semaphore:
                try:
                    prediction = await self.predict_game(game)
                except CriticalDataError as e:
                    logger.error("Aborting prediction: %s", e)
                    result.skipped.append(str(game.id))
                    result.errors.append(str(e))
                    return None
                except Exception as e:
                    logger.error("Error predicting game %s: %s", game.id, e)
                    result.skipped.append(str(game.id))
                    result.errors.append(f"Game {game.id}: {e}")
                    return None
                if prediction is None:
                    result.skipped.append(game.mlb_id)
                return prediction

        outcomes = await asyncio.gather(*(isolated(g) for g in games))
        predictions = [p for p in outcomes if p is not None]

        result.engine_predictions = sum(1 for p in predictions if p.model_version == "engine")
        result.legacy_predictions = sum(1 for p in predictions if p.model_version == "legacy")
        logger.info(
            "Generated %d predictions from %d games (%d engine, %d legacy)",
            len(predictions),
            len(games),
            result.engine_predictions,
            result.legacy_predictions,
        )
        return predictions, result

    async def run_daily_workflow(self, date: str | None = None) -> PipelineResult:
        """Score and store predictions for every game on ``date`` (default today)."""
        date = date or datetime.now(UTC).date().isoformat()
        games = self.store.get_games_by_date(date)
        if not games:
            logger.info("No games scheduled for %s", date)
        else:
            logger.info("Processing %d games scheduled for %s", len(games), date)

        predictions, result = await self.run(games)

        for prediction in predictions:
            try:
                self.store.upsert_prediction(prediction)
                result.predictions_created += 1
                logger.debug("Saved prediction for game %s", prediction.game_id)
            except sqlite3.Error as e:
                logger.error("Error saving prediction for game %s: %s", prediction.game_id, e)
                result.errors.append(f"Save failed for game {prediction.game_id}: {e}")

        self._last_result = result
        logger.info(
            "Daily workflow complete: %d predictions saved, %d games skipped",
            result.predictions_created,
            len(result.skipped),
        )
        return result

    async def trigger_game_update(self, game_id: int) -> Prediction:
        """Re-score one game and replace its stored prediction."""
        logger.info("Manually triggered update for game %s", game_id)
        game = self.store.get_game(game_id)
        if game is None:
            raise LookupError(f"Game with ID {game_id} not found")

        prediction = await self.predict_game(game)
        if prediction is None:
            raise ScoringError(f"Failed to generate prediction for game {game_id}")

        if self.store.get_prediction_by_game_id(game_id) is not None:
            logger.info("Replacing existing prediction for game %s", game_id)
        saved = self.store.upsert_prediction(prediction)
        logger.info(
            "Updated prediction saved for game %s (confidence %.2f)",
            game_id,
            saved.confidence_level,
        )
        return saved

    # ── Status ────────────────────────────────────────────────────────

    def verify_source_access(self) -> list[SourceStatus]:
        """Check credentials for every high-priority source."""
        statuses: list[SourceStatus] = []
        for source in self.catalog.high_priority_sources():
            try:
                self.client.check_credentials(source)
            except ConfigurationError as e:
                logger.warning("%s", e)
                statuses.append(SourceStatus(source=source.name, status="warning", reason=str(e)))
                continue
            statuses.append(SourceStatus(source=source.name, status="available"))

        unavailable = [s.source for s in statuses if s.critical and s.status != "available"]
        if unavailable:
            logger.error("Critical data sources unavailable: %s", ", ".join(unavailable))
        return statuses

    def system_status(self) -> SystemStatus:
        statuses = self.verify_source_access()
        high_priority = {s.source for s in statuses}
        degraded = {s.source for s in statuses if s.status != "available"}
        return SystemStatus(
            system_status="degraded" if degraded else "operational",
            total_sources=len(self.catalog),
            high_priority_sources=len(high_priority),
            operational_sources=len(self.catalog) - len(degraded),
            data_categories=len(self.catalog.categories),
            last_run=self._last_result,
        )

    def get_last_result(self) -> PipelineResult | None:
        return self._last_result

    async def data_quality_check(self, game: Game) -> DataQualityReport:
        """Collect a game's data and report how complete it is."""
        game_ref = game.id if game.id is not None else game.mlb_id
        processed = await self._collect(game)
        if processed is None:
            return DataQualityReport(
                game_id=game_ref,
                completeness=0.0,
                severity=ShortfallSeverity.CRITICAL.value,
                issues=["No data collected"],
            )

        severity, missing = assess_shortfall(processed)
        return DataQualityReport(
            game_id=game_ref,
            completeness=round(1 - len(missing) / len(CRITICAL_DATA_POINTS), 4),
            severity=severity.value,
            issues=[f"Missing {name}" for name in missing],
        )

    # ── Scheduler ─────────────────────────────────────────────────────

    async def _scheduler_loop(self):
        """Background loop that runs the daily workflow on an interval."""
        while True:
            try:
                await self.run_daily_workflow()
            except Exception as e:
                logger.error("Scheduler error: %s", e)
            await asyncio.sleep(self.config.REFRESH_INTERVAL)

    def start_scheduler(self):
        """Start the background workflow scheduler if interval > 0."""
        if self.config.REFRESH_INTERVAL > 0:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._scheduler_loop())
            logger.info("Scheduler started – running every %ds", self.config.REFRESH_INTERVAL)
        else:
            logger.info("Scheduler disabled (interval=0)")

    def stop_scheduler(self):
        if self._task:
            self._task.cancel()
            self._task = None


def _backfill_from_game(processed: ProcessedGameData, game: Game):
    """Use the stored game's moneylines when the odds feed had none."""
    moneyline = processed.betting_odds.moneyline
    if moneyline.home is None and game.home_team_moneyline is not None:
        moneyline.home = game.home_team_moneyline
    if moneyline.away is None and game.away_team_moneyline is not None:
        moneyline.away = game.away_team_moneyline


def build_pipeline(
    config: Settings | None = None,
    catalog: SourceCatalog | None = None,
    store: SQLiteGameStore | None = None,
) -> PredictionPipeline:
    """Wire up a pipeline from settings. Raises ConfigurationError on an empty catalog."""
    config = config or settings
    catalog = catalog if catalog is not None else default_catalog()
    validate_credentials(catalog, config)

    planner = CollectionPlanner(
        catalog,
        retry_policy=RetryPolicy(
            max_retries=config.MAX_RETRIES,
            base_delay=config.RETRY_BASE_DELAY,
        ),
    )
    engine_seed, legacy_seed = np.random.SeedSequence(config.RANDOM_SEED).spawn(2)
    return PredictionPipeline(
        catalog=catalog,
        store=store or SQLiteGameStore(config.DB_PATH),
        client=ProviderClient(config),
        planner=planner,
        engine=ScoringEngine(rng=np.random.default_rng(engine_seed)),
        legacy=LegacyScorer(rng=np.random.default_rng(legacy_seed)),
        config=config,
    )
