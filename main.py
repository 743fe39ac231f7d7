#!/usr/bin/env python3
"""Main entry point for the Cue Sync Server.

Usage:
    # Cue server plus static front-end listener
    python main.py --config config/settings.yaml --mode serve

    # Cue server only
    python main.py --config config/settings.yaml --mode api
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

import uvicorn

from cuesync.config import AppConfig

DEFAULT_CONFIG_PATH = "config/settings.yaml"


def setup_logging(level: str = "INFO"):
    """Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def load_config(path: Optional[str]) -> AppConfig:
    """Load configuration, falling back to defaults.

    An explicitly given path must exist. Without one, the default path is
    used when present and built-in defaults otherwise.
    """
    if path is not None:
        return AppConfig.from_yaml(path)
    try:
        return AppConfig.from_yaml(DEFAULT_CONFIG_PATH)
    except FileNotFoundError:
        return AppConfig()


def build_servers(config: AppConfig, mode: str) -> list:
    """Create uvicorn servers for the selected mode.

    Args:
        config: Application configuration.
        mode: 'serve' for cue server and static listener, 'api' for the
            cue server alone.

    Returns:
        List of uvicorn.Server instances.
    """
    from cuesync.api.app import create_app, create_static_app

    servers = [
        uvicorn.Server(
            uvicorn.Config(
                create_app(config=config),
                host=config.server.host,
                port=config.server.port,
                log_config=None,
            )
        )
    ]

    if mode == "serve" and config.static.enabled:
        servers.append(
            uvicorn.Server(
                uvicorn.Config(
                    create_static_app(config),
                    host=config.static.host,
                    port=config.static.port,
                    log_config=None,
                )
            )
        )
    return servers


async def run_servers(config: AppConfig, mode: str):
    """Run all listeners on one event loop until they exit.

    Args:
        config: Application configuration.
        mode: Run mode (see build_servers).
    """
    logger = logging.getLogger(__name__)
    servers = build_servers(config, mode)

    logger.info(f"Cue server listening on {config.server.host}:{config.server.port}")
    if len(servers) > 1:
        logger.info(
            f"Front-end served from '{config.static.directory}' "
            f"at http://localhost:{config.static.port}"
        )

    await asyncio.gather(*(server.serve() for server in servers))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Cue Sync Server - synchronized AR effect cues over WebSocket"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["serve", "api"],
        default="serve",
        help="Run mode: 'serve' for cue server and front-end, 'api' for cue server only",
    )
    args = parser.parse_args()

    # Load configuration using unified AppConfig
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.app.log_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting Cue Sync Server in {args.mode} mode")
    logger.info(f"Configuration: {config._config_path or 'defaults'}")

    try:
        asyncio.run(run_servers(config, args.mode))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
