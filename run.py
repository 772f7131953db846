"""
Entry point for MLB Edge.

Run with:
    python run.py                    # score and store today's games
    python run.py --date 2026-07-04  # score a specific date
    python run.py --game-id 12       # re-score a single game
    python run.py --loop             # keep running on REFRESH_INTERVAL
"""

import argparse
import asyncio
import logging

from mlb_edge.config import configure_logging, settings
from mlb_edge.pipeline import build_pipeline

logger = logging.getLogger("mlb_edge")


async def main(args: argparse.Namespace):
    pipeline = build_pipeline(settings)
    pipeline.store.init_db()
    pipeline.verify_source_access()

    try:
        if args.game_id is not None:
            prediction = await pipeline.trigger_game_update(args.game_id)
            logger.info("%s (confidence %.2f)", prediction.recommended_bet, prediction.confidence_level)
        elif args.loop:
            pipeline.start_scheduler()
            await asyncio.Event().wait()
        else:
            result = await pipeline.run_daily_workflow(args.date)
            for error in result.errors:
                logger.warning(error)
    finally:
        await pipeline.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="MLB Edge prediction pipeline")
    parser.add_argument("--date", help="Game date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--game-id", type=int, help="Re-score one stored game")
    parser.add_argument("--loop", action="store_true", help="Run the daily workflow on a schedule")
    configure_logging()
    asyncio.run(main(parser.parse_args()))
