"""Main entry point for the ChuLicense application.

Handles command-line argument parsing and dispatches execution to the
requested module (run, serve, or list).
"""

import argparse
import asyncio
from datetime import datetime
import sys

from loguru import logger

from fazuh.chulicense.config import Config
from fazuh.chulicense.error import ChuLicenseError


async def main() -> int:
    """Async entry point.

    Parses arguments, initializes configuration and logging, and runs the
    selected module. Returns the process exit code.
    """
    parser = argparse.ArgumentParser(description="Chula License Portal auto-borrower")
    parser.add_argument(
        "module",
        choices=["run", "serve", "list"],
        help="Run one flow now (run), run the built-in scheduler (serve), or list flows (list).",
    )
    parser.add_argument(
        "flow",
        nargs="?",
        help="Flow name for `run`, e.g. adobe or zoom.",
    )
    parser.add_argument(
        "--flows-file",
        type=str,
        help="Path to the flows YAML/JSON file. Defaults to FLOWS_FILE or flows.yaml.",
    )
    args = parser.parse_args()

    conf = Config()
    if args.flows_file:
        conf.flows_file = args.flows_file

    logger.add("log/{time}.log", rotation="1 day")

    from fazuh.chulicense.model import load_flows
    from fazuh.chulicense.module.scheduler import Scheduler

    try:
        flows = load_flows(conf.flows_file)
        scheduler = Scheduler(flows, conf)

        if args.module == "run":
            if not args.flow:
                parser.error("run requires a flow name")
            flow = next((f for f in flows if f.name == args.flow), None)
            if flow is None:
                logger.error(
                    f"Unknown flow: {args.flow}. Available: {', '.join(f.name for f in flows)}"
                )
                return 2
            return 0 if await scheduler.run_flow(flow) else 1

        elif args.module == "serve":
            await scheduler.start()

        elif args.module == "list":
            now = datetime.now(conf.tz)
            next_runs = scheduler.next_runs(now)
            for flow in flows:
                print(f"{flow!r} next: {next_runs[flow.name].isoformat()}")

    except ChuLicenseError as e:
        logger.error(e)
        return 2

    return 0


def main_sync():
    """Synchronous wrapper for the async main function."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    main_sync()
