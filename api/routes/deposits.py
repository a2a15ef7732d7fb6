"""
Module 09D - Deposits Route

Build a commitment from a wallet list and serve stored artifacts.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from api.deps import get_builder, get_store
from api.errors import InvalidRequestError
from api.models.requests import DepositRequest
from api.models.responses import DepositResponse
from builder.commitment import CommitmentBuilder
from core.crypto.hashing import is_account
from core.schemas.errors import NotFoundException
from store.artifacts import ArtifactStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deposits", tags=["deposits"])


@router.post("", response_model=DepositResponse, response_model_by_alias=True)
async def create_deposit(
    request: DepositRequest,
    builder: CommitmentBuilder = Depends(get_builder),
) -> DepositResponse:
    """
    Build and persist a commitment for the requested wallets.

    The response carries the root (depositId) and the gross amount the
    depositor must register with the ledger (depositAmount).
    """
    if not is_account(request.user_address):
        raise InvalidRequestError(
            "Invalid user address",
            details={"userAddress": request.user_address},
        )
    if not request.wallets:
        raise InvalidRequestError("Recipients array is required")

    logger.info(f"Deposit request from {request.user_address} with {len(request.wallets)} wallet(s)")
    artifact = builder.build(request.to_recipients())

    return DepositResponse(
        deposit_id=artifact.root,
        deposit_amount=artifact.total_gross_amount,
        net_amount=artifact.total_net_amount,
        fee_rate=artifact.fee_rate,
    )


@router.get("/{root}")
async def get_deposit(
    root: str,
    store: ArtifactStore = Depends(get_store),
) -> dict[str, Any]:
    """Return the stored artifact for root."""
    if not store.exists(root):
        raise NotFoundException(f"No artifact for root {root}", details={"root": root})
    return store.load(root).model_dump(by_alias=True)
