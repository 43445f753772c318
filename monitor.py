"""
Console runner: scans the latest blocks for NFT mint bursts and posts alerts.

Reads configuration from the environment (and a local .env file). Run with:
    python monitor.py            # every 6 minutes until interrupted
    python monitor.py --once     # a single invocation
"""

from __future__ import annotations

import argparse
import logging
import time

from dotenv import load_dotenv

from mintalert.chain import UpstreamFetchError
from mintalert.config import ConfigurationError, load_config
from mintalert.run import configure_logging, run_once
from mintalert.state import StateStoreError


INTERVAL_SECONDS = 360

log = logging.getLogger("monitor")


def run_safely() -> bool:
    try:
        config = load_config()
    except ConfigurationError as e:
        log.error("[config] %s", e)
        return False
    configure_logging(config.log_level)
    try:
        result = run_once(config)
    except (UpstreamFetchError, StateStoreError) as e:
        log.error("[scan] run aborted: %s", e)
        return False
    except Exception:  # anything else: log it, keep looping
        log.exception("[scan] run failed")
        return False
    if result.announced:
        log.info("[scan] Announced: %s", ", ".join(result.announced))
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="NFT mint alert runner")
    parser.add_argument("--once", action="store_true", help="run a single scan and exit")
    parser.add_argument("--interval", type=int, default=INTERVAL_SECONDS, help="seconds between scans")
    args = parser.parse_args(argv)

    load_dotenv()
    configure_logging()

    if args.once:
        return 0 if run_safely() else 1

    log.info("Starting monitor: interval=%ss", args.interval)
    try:
        while True:
            run_safely()
            time.sleep(args.interval)
    except KeyboardInterrupt:
        log.info("Stopped.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
