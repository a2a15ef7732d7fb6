"""
Module 09D - FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.deps import _load_runtime_config
from api.errors import (
    APIError,
    api_error_handler,
    escrow_error_handler,
    generic_error_handler,
    validation_error_handler,
)
from api.routes import deposits, health
from core.config.runtime import RuntimeConfig
from core.schemas.errors import EscrowException
from ledger.ledger import ReleaseLedger
from ledger.transfers import InMemoryTransfers
from store.artifacts import ArtifactStore
from watcher.daemon import Watcher

logger = logging.getLogger(__name__)


def _resolve_log_level(config: RuntimeConfig) -> int:
    return getattr(logging, (config.log_level or "INFO").upper(), logging.INFO)


def build_ledger(config: RuntimeConfig) -> Optional[ReleaseLedger]:
    """
    Build an in-process ledger from config.ledger.

    Returns None unless both owner and admin are configured.
    """
    ledger_config = config.ledger
    if not (ledger_config.owner and ledger_config.admin):
        return None
    return ReleaseLedger(
        ledger_config.owner,
        ledger_config.admin,
        transfers=InMemoryTransfers(),
        fee_rate=ledger_config.fee_rate,
        fee_recipient=ledger_config.fee_recipient,
    )


def start_watcher(app: FastAPI) -> Optional[threading.Thread]:
    """
    Start the watcher loop for the app's ledger on a background thread.

    Nothing is started without a ledger or a watcher caller.
    """
    config: RuntimeConfig = app.state.config
    ledger: Optional[ReleaseLedger] = app.state.ledger
    caller = config.watcher_caller
    if ledger is None or not caller:
        logger.info("Watcher disabled (no ledger or caller configured)")
        return None

    watcher = Watcher(
        ledger,
        app.state.store,
        caller=caller,
        poll_interval=config.watcher.poll_interval_s,
    )
    thread = threading.Thread(target=watcher.run_forever, name="escrow-watcher", daemon=True)
    app.state.watcher = watcher
    app.state.watcher_thread = thread
    thread.start()
    return thread


def stop_watcher(app: FastAPI, timeout: Optional[float] = None) -> None:
    """Request a stop and wait for the current cycle to finish."""
    watcher: Optional[Watcher] = app.state.watcher
    thread: Optional[threading.Thread] = app.state.watcher_thread
    if watcher is None:
        return
    watcher.stop()
    if thread is not None:
        thread.join(timeout)
        if thread.is_alive():
            logger.warning(f"Watcher did not stop within {timeout}s")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    start_watcher(app)
    try:
        yield
    finally:
        stop_watcher(app, timeout=app.state.config.watcher.poll_interval_s + 5)


def create_app(
    ledger: Optional[ReleaseLedger] = None,
    store: Optional[ArtifactStore] = None,
    config: Optional[RuntimeConfig] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        ledger: Ledger settled by the watcher and followed by the builder
            for its fee rate; built from config.ledger when omitted
        store: Artifact store; defaults to config.store.artifact_dir
        config: Runtime config; defaults to escrow.json + environment
    """
    config = config or _load_runtime_config()

    logging.basicConfig(
        level=_resolve_log_level(config),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Merkle Escrow API",
        description="""
HTTP API for building merkle release commitments.

## Endpoints

- **POST /deposits** - Build and store a commitment for a wallet list
- **GET /deposits/{root}** - Fetch a stored commitment artifact
- **GET /health** - Health check
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.store = store or ArtifactStore(Path(config.store.artifact_dir))
    app.state.ledger = ledger if ledger is not None else build_ledger(config)
    app.state.watcher = None
    app.state.watcher_thread = None

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(EscrowException, escrow_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(deposits.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=app.state.config.api.host, port=app.state.config.api.port)
