"""
Module 09C - CLI Configuration

Configuration management for the escrow CLI.
Supports environment variables and configuration files.

The CLI reads the same escrow.json the API uses; only the keys the CLI
needs are picked out of it.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


# Environment variable prefix
ENV_PREFIX = "ESCROW_"

DEFAULT_CONFIG_NAME = "escrow.json"


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    # Builder settings
    fee_rate: int = 100  # basis points
    artifact_dir: str = "deposits"

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Output
    default_output_format: str = "human"  # "human" or "json"


def load_config_from_env(config: CLIConfig | None = None) -> CLIConfig:
    """Apply environment variables on top of config (or defaults)."""
    config = config or CLIConfig()

    if os.getenv(f"{ENV_PREFIX}FEE_RATE"):
        config.fee_rate = int(os.getenv(f"{ENV_PREFIX}FEE_RATE", "100"))
    if os.getenv(f"{ENV_PREFIX}ARTIFACT_DIR"):
        config.artifact_dir = os.getenv(f"{ENV_PREFIX}ARTIFACT_DIR", "deposits")

    # Logging
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO")
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = os.getenv(f"{ENV_PREFIX}LOG_FILE")

    return config


def load_config_from_file(path: Path) -> CLIConfig:
    """Load configuration from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    config = CLIConfig()
    config.fee_rate = data.get("ledger", {}).get("fee_rate", config.fee_rate)
    config.artifact_dir = data.get("store", {}).get("artifact_dir", config.artifact_dir)
    config.log_level = data.get("log_level", config.log_level)
    config.log_file = data.get("log_file", config.log_file)
    return config


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to config file

    Returns:
        Merged configuration
    """
    config = CLIConfig()

    if config_path is not None:
        if config_path.exists():
            config = load_config_from_file(config_path)
    else:
        default_paths = [
            Path.cwd() / DEFAULT_CONFIG_NAME,
            Path.cwd() / f".{DEFAULT_CONFIG_NAME}",
            Path.home() / ".config" / "escrow" / "config.json",
        ]
        for default_path in default_paths:
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    return load_config_from_env(config)


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "ledger": {
    "owner": "0x0000000000000000000000000000000000000001",
    "admin": "0x0000000000000000000000000000000000000002",
    "fee_rate": 100,
    "fee_recipient": null
  },
  "watcher": {
    "poll_interval_s": 12.0,
    "caller": null
  },
  "store": {
    "artifact_dir": "deposits"
  },
  "api": {
    "host": "0.0.0.0",
    "port": 3000
  },
  "log_level": "INFO"
}
"""
