"""Entrypoint.

Usage:
  python -m platypus_dashboard.app.main api       # run FastAPI server
  python -m platypus_dashboard.app.main report    # print a text dashboard from a running API
"""

from __future__ import annotations

import argparse
import asyncio

import uvicorn

from platypus_dashboard.infrastructure.logging.logging import configure_logging
from platypus_dashboard.infrastructure.utils.config import get_config


def main() -> None:
    parser = argparse.ArgumentParser("platypus-dashboard")
    parser.add_argument("command", choices=["api", "report"], help="What to run")
    args = parser.parse_args()

    config = get_config()
    configure_logging(config.log_level)

    if args.command == "api":
        uvicorn.run(
            "platypus_dashboard.controllers.api_controller:app",
            host=config.api.host,
            port=config.api.port,
            reload=False,
        )
        return

    if args.command == "report":
        from platypus_dashboard.app.report import run_report
        raise SystemExit(asyncio.run(run_report(config)))


if __name__ == "__main__":
    main()
