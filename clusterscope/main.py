#!/usr/bin/env python3
"""
clusterscope read API server

Entry point: load config, configure logging, run uvicorn.
"""

import argparse
import logging

import uvicorn

from .core.config import load_config
from .core.server import create_app


def main():
    """Main entry point for the clusterscope server."""
    parser = argparse.ArgumentParser(description="clusterscope read API")
    parser.add_argument("-c", "--config", help="Path to YAML config (default: $CLUSTERSCOPE_CONFIG or config.yaml)")
    args = parser.parse_args()

    config = load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(config)

    uvicorn.run(app, host=config.host, port=config.port, reload=False, access_log=False)


if __name__ == "__main__":
    main()
