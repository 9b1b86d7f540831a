#!/usr/bin/env python3
"""
GA tracking checker.

Visits every configured URL in its own headless browser, replays the
configured actions, captures Google Analytics beacons and checks them
against the expected events. Results go to results.csv as each URL
finishes and to results.json at the end.
"""

import argparse
import asyncio
import sys
from typing import Callable, List, Optional

from playwright.async_api import async_playwright

from config import RunSettings, load_run_settings
from config_loader import ConfigLoader
from models import SessionOutcome
from progress_server import ProgressBroadcaster
from reporter import ResultReporter
from run_logger import set_debug_mode, unified_logger
from scheduler import run_pool
from session import SessionOrchestrator


class SessionFailedError(RuntimeError):
    """Raised when stopOnError is set and a session fails."""

    def __init__(self, outcome: SessionOutcome):
        self.outcome = outcome
        super().__init__(f"Session failed for {outcome.url} while {outcome.state}: {outcome.error}")


async def run_checks(settings: RunSettings, playwright_factory: Callable = async_playwright,
                     reporter: Optional[ResultReporter] = None,
                     broadcaster: Optional[ProgressBroadcaster] = None,
                     logger=unified_logger) -> List[SessionOutcome]:
    """Run every URL through the check pipeline and persist the outcomes."""
    if reporter is None:
        reporter = ResultReporter(settings.csv_path, settings.json_path, settings.clear_csv, logger=logger)
    reporter.prepare()

    logger.log_info(f"🎯 Checking {len(settings.urls)} URL(s), {len(settings.events_to_check)} expected event(s), "
                    f"concurrency {settings.concurrency_limit}")

    async with playwright_factory() as playwright:
        browser_type = playwright.chromium

        async def run_test(url: str) -> SessionOutcome:
            outcome = await SessionOrchestrator(url, browser_type, settings, logger=logger).run()
            if outcome.ok:
                logger.log_info(f"✅ Results for {url}: DONE "
                                f"({outcome.result.passed}/{len(outcome.result.event_results)} events set up correctly)")
            else:
                logger.log_info(f"❌ Results for {url}: FAILED")
            await reporter.append(outcome)
            if broadcaster is not None:
                await broadcaster.publish_outcome(outcome)
            return outcome

        pool = run_pool(settings.concurrency_limit, settings.urls, run_test)
        try:
            async for outcome in pool:
                if settings.stop_on_error and not outcome.ok:
                    raise SessionFailedError(outcome)
        finally:
            await pool.aclose()
            reporter.write_aggregate()

    return list(reporter.outcomes)


def summarize(outcomes: List[SessionOutcome], logger=unified_logger) -> int:
    """Print a run summary and return the process exit code."""
    succeeded = [outcome for outcome in outcomes if outcome.ok]
    failed = [outcome for outcome in outcomes if not outcome.ok]
    passed = sum(outcome.result.passed for outcome in succeeded)
    total = sum(len(outcome.result.event_results) for outcome in succeeded)

    logger.log_info("-" * 50)
    logger.log_info(f"URLs: {len(succeeded)} completed, {len(failed)} failed")
    logger.log_info(f"Events: {passed}/{total} set up correctly")
    for outcome in failed:
        logger.log_info(f"  ❌ {outcome.url} ({outcome.state}): {outcome.error}")
    return 1 if failed else 0


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Check Google Analytics tracking events on a list of pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python check_tracking.py
  python check_tracking.py --config my-config.json --concurrency 4
  python check_tracking.py -c config.json --no-headless --debug
        """
    )
    parser.add_argument('--config', '-c', type=str, default=None,
                        help='Path to config.json (default: config.json next to this script)')
    parser.add_argument('--headless', dest='headless', action='store_true', default=None,
                        help='Run the browser headless')
    parser.add_argument('--no-headless', dest='headless', action='store_false', default=None,
                        help='Show the browser window')
    parser.add_argument('--concurrency', '-n', type=int, default=None,
                        help='Maximum number of simultaneous browser sessions')
    parser.add_argument('--clear-csv', dest='clear_csv', action='store_true', default=None,
                        help='Recreate the CSV file before the run')
    parser.add_argument('--csv', dest='csv_path', type=str, default=None, help='CSV output path')
    parser.add_argument('--json', dest='json_path', type=str, default=None, help='JSON output path')
    parser.add_argument('--stop-on-error', dest='stop_on_error', action='store_true', default=None,
                        help='Abort the whole run when one URL fails')
    parser.add_argument('--debug', dest='debug_mode', action='store_true', default=None,
                        help='Enable debug output')
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_arguments(argv)
    try:
        loader = ConfigLoader(args.config)
        settings = load_run_settings(
            loader,
            headless=args.headless,
            concurrency_limit=args.concurrency,
            clear_csv=args.clear_csv,
            csv_path=args.csv_path,
            json_path=args.json_path,
            stop_on_error=args.stop_on_error,
            debug_mode=args.debug_mode,
        )
    except (FileNotFoundError, ValueError) as e:
        unified_logger.log_error(str(e))
        return 2

    set_debug_mode(settings.debug_mode)

    broadcaster = None
    if settings.websocket_enabled:
        broadcaster = ProgressBroadcaster(settings.websocket_host, settings.websocket_port)
        await broadcaster.start()

    try:
        outcomes = await run_checks(settings, broadcaster=broadcaster)
    except SessionFailedError as e:
        unified_logger.log_error(str(e))
        return 1
    finally:
        if broadcaster is not None:
            await broadcaster.stop()

    return summarize(outcomes)


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
