"""
Module 09C - Escrow CLI

Command-line interface for building and checking release commitments.

Usage:
    python -m escrow_cli build request.json
    python -m escrow_cli verify <root> --store ./deposits
    python -m escrow_cli config --init
"""

__version__ = "0.1.0"
