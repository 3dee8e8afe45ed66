#!/usr/bin/env python3
"""
clusterscope Server Configuration Management

Policy:
- config file: explicit -c/--config path, else $CLUSTERSCOPE_CONFIG, else ./config.yaml
- a missing file means defaults (development: local SQLite file)
- database_url is a playhouse.db_url URL (sqlite:///path.db, postgresql://user@host/db)
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger("clusterscope.server")

DEFAULT_CONFIG_PATH = "config.yaml"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"
    # Storage
    database_url: str = "sqlite:///clusterscope.db"
    create_tables: bool = False       # only for development databases
    # Per-request bound on a single store call
    query_timeout_seconds: float = Field(30.0, gt=0)


def load_config_from(path: str) -> ServerConfig:
    """Load server configuration from YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return ServerConfig(**data)


def load_config(path: Optional[str] = None) -> ServerConfig:
    """Resolve the config file to use; fall back to defaults when none exists."""
    candidate = path or os.environ.get("CLUSTERSCOPE_CONFIG") or DEFAULT_CONFIG_PATH
    if Path(candidate).exists():
        logger.info(f"Loading configuration from: {candidate}")
        return load_config_from(candidate)
    if path:
        raise FileNotFoundError(f"config file not found: {path}")
    logger.info("Using default configuration")
    return ServerConfig()
