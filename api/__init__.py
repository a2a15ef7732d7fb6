"""
Module 09D - Minimal API (FastAPI)

HTTP API for the escrow builder:
- POST /deposits - Build and store a commitment
- GET /deposits/{root} - Fetch a stored commitment
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
