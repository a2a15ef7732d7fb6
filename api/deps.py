"""
Module 09D - API Dependencies

Dependency injection for the API.
Provides the runtime config, artifact store, optional ledger and builder.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from fastapi import Request

from builder.commitment import CommitmentBuilder
from core.config.runtime import RuntimeConfig
from ledger.ledger import ReleaseLedger
from store.artifacts import ArtifactStore

logger = logging.getLogger(__name__)


def _load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from config file, then overlay environment variables.

    Search order for config file:
      1. ./escrow.json
      2. ./.escrow.json
      3. ~/.config/escrow/config.json

    Environment variables ALWAYS override config file values.
    The .env file is loaded automatically by core.config.runtime on import.
    """
    search_paths = [
        Path.cwd() / "escrow.json",
        Path.cwd() / ".escrow.json",
        Path.home() / ".config" / "escrow" / "config.json",
    ]

    config: RuntimeConfig | None = None

    for path in search_paths:
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                logger.info(f"Loaded config from {path}")
                config = RuntimeConfig.from_dict(data)
                break
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to parse {path}: {e}")

    if config is None:
        # No config file found, start with defaults
        config = RuntimeConfig()

    return config.with_env_overrides()


def get_config(request: Request) -> RuntimeConfig:
    return request.app.state.config


def get_store(request: Request) -> ArtifactStore:
    return request.app.state.store


def get_ledger(request: Request) -> Optional[ReleaseLedger]:
    return request.app.state.ledger


def get_builder(request: Request) -> CommitmentBuilder:
    """
    Builder bound to the app's store.

    The fee rate follows the attached ledger when there is one, else the
    configured ledger fee rate.
    """
    store = get_store(request)
    ledger = get_ledger(request)
    if ledger is not None:
        return CommitmentBuilder(store, fee_source=lambda: ledger.fee_rate)
    return CommitmentBuilder(store, fee_source=get_config(request).ledger.fee_rate)
