"""
Timer loop for the digest job.

Runs the pipeline on wall-clock aligned ticks (every N minutes) and optionally
once at startup. Each run executes in a worker thread so SIGINT/SIGTERM can stop
the loop between runs; runs never overlap.
"""

import asyncio
import logging
import signal
from contextlib import suppress
from datetime import datetime, timedelta

from completion.factory import ProviderSelector
from config import Settings
from digest.composer import DigestComposer
from digest.pipeline import PipelineRunner
from models import PipelineRunResult
from slack_client.client import SlackClient

logger = logging.getLogger(__name__)


def build_runner(settings: Settings) -> PipelineRunner:
    """Wire the pipeline from settings, leaf collaborators first."""
    platform = SlackClient(settings.slack_bot_token)
    provider = ProviderSelector(settings).select()
    composer = DigestComposer(provider)
    return PipelineRunner(
        platform,
        composer,
        tolerate_missing_users=settings.tolerate_missing_users,
    )


def seconds_until_next_tick(now: datetime, interval_minutes: int) -> float:
    """Seconds until the next multiple of ``interval_minutes`` past midnight."""
    if interval_minutes < 1:
        raise ValueError("interval_minutes must be at least 1")
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = (now - midnight).total_seconds()
    interval = interval_minutes * 60
    return interval - (elapsed % interval)


def run_once(runner: PipelineRunner) -> PipelineRunResult:
    """Execute one run and log how it went."""
    result = runner.run()
    if result.ok:
        logger.info(result.summary())
    else:
        logger.error(result.summary())
    return result


async def serve(
    runner: PipelineRunner, interval_minutes: int, run_on_startup: bool = True
) -> None:
    """Run the digest job on schedule until SIGINT/SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    logger.info(f"Digest scheduler started (every {interval_minutes} min)")

    if run_on_startup:
        await _run_in_thread(runner)

    while not stop.is_set():
        delay = seconds_until_next_tick(datetime.now(), interval_minutes)
        next_run = datetime.now() + timedelta(seconds=delay)
        logger.info(f"Next timer schedule at: {next_run:%Y-%m-%d %H:%M:%S}")
        try:
            await asyncio.wait_for(stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            await _run_in_thread(runner)

    logger.info("Digest scheduler stopped")


async def _run_in_thread(runner: PipelineRunner) -> None:
    try:
        await asyncio.to_thread(run_once, runner)
    except Exception as e:
        logger.error(f"Unexpected error in digest run: {e}")


def run_forever(settings: Settings) -> None:
    """Synchronous wrapper to call from CLI."""
    runner = build_runner(settings)
    asyncio.run(
        serve(
            runner,
            interval_minutes=settings.interval_minutes,
            run_on_startup=settings.run_on_startup,
        )
    )
