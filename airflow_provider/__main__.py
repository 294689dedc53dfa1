"""
Run the Airflow provider plugin.

Usage:
    python -m airflow_provider            # serve the host over stdin/stdout
    python -m airflow_provider --debug    # serve on a local TCP port for debugger attach

Logs go to stderr; stdout carries the protocol. The level comes from
``AIRFLOW_PROVIDER_LOG_LEVEL`` (default WARNING, DEBUG with --debug).
"""
from __future__ import annotations

import argparse
import logging.config
import os
import sys

from .server import PluginServer

LOG_LEVEL_ENVVAR = "AIRFLOW_PROVIDER_LOG_LEVEL"


def logging_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "plain",
            },
        },
        "loggers": {
            "airflow_provider": {"handlers": ["stderr"], "level": level, "propagate": False},
            "urllib3": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
        },
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airflow-provider",
        description="Serve Airflow variables, connections, DAGs, DAG runs, pools, roles and users to an orchestration host.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="set to true to run the provider with support for debuggers; "
             "serves on a local TCP port and prints the reattach address",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    default_level = "DEBUG" if args.debug else "WARNING"
    level = os.environ.get(LOG_LEVEL_ENVVAR, default_level).upper()
    logging.config.dictConfig(logging_config(level))

    server = PluginServer()
    if args.debug:
        server.serve_debug(sys.stdout)
    else:
        server.serve_stdio(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
