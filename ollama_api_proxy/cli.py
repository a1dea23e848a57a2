"""Command-line entry point: read the configuration and serve."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from .app import create_app, run
from .config import Config, ConfigError, load_config

logger = logging.getLogger(__name__)

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


def init_config(env_file: str | None = None) -> Config:
    """Set up logging, load the .env file if present, and read the configuration."""
    logging.basicConfig(stream=sys.stdout, format="time=%(asctime)s level=%(levelname)s msg=%(message)s")
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    load_dotenv(env_file or ".env")

    try:
        config = load_config()
    except ConfigError as exc:
        logger.error("Failed to load configuration: %s", exc)
        raise

    level = _LEVELS.get(config.log_level.lower())
    if level is None:
        logger.error("Invalid log level %s", config.log_level)
        raise ConfigError(f"invalid log level {config.log_level!r}")
    root.setLevel(level)
    return config


def main(argv: Sequence[str] | None = None) -> int:
    """Start the proxy server; return the exit status."""
    parser = argparse.ArgumentParser(prog="ollama-api-proxy")
    parser.add_argument("--env-file", default=".env")
    args = parser.parse_args(argv)
    try:
        config = init_config(args.env_file)
        run(create_app(config), config)
    except (ConfigError, RuntimeError):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())