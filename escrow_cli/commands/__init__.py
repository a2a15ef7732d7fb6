"""
CLI command modules.
"""

from escrow_cli.commands import build, verify

__all__ = ["build", "verify"]
