"""
Shared helpers for API routes.
"""

import logging
from typing import Optional

from fastapi import HTTPException

from ..canvas.errors import LedgerError
from ..canvas.ledger import CanvasLedger
from ..services.indexer_client import IndexerClient

logger = logging.getLogger(__name__)

CALLER_HEADER = "X-Caller"


def require_ledger(ledger: Optional[CanvasLedger]) -> CanvasLedger:
    if not ledger:
        raise HTTPException(status_code=500, detail="Ledger not initialized")
    return ledger


def ledger_http_error(error: LedgerError) -> HTTPException:
    """Map a ledger rejection to an HTTP error carrying its kind and category."""
    logger.debug(f"[API] Rejected: {error.kind} ({error.message})")
    return HTTPException(status_code=error.status_code, detail=error.to_dict())


async def push_events(ledger: CanvasLedger, indexer_client: Optional[IndexerClient]) -> None:
    """Forward newly committed events to the indexer, if one is configured."""
    if indexer_client is None:
        return
    await indexer_client.publish(ledger.events.since(indexer_client.last_delivered))
