"""
Indexer Client for Canvas Ledger
================================

HTTP client that pushes ledger observations to an external indexer.

Pushing is best effort: the indexer can always backfill from
GET /api/events, so delivery failures are logged and not raised.
"""

import asyncio
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field

from ..models.event_models import LedgerEvent, event_payload

logger = logging.getLogger(__name__)


class IndexerPushResult(BaseModel):
    """Outcome of one push."""
    success: bool
    delivered: int = 0
    last_sequence: int = 0
    error: Optional[str] = None
    events: List[dict] = Field(default_factory=list)


class IndexerClient:
    """Posts batches of events to {base_url}/events."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None
        # Highest sequence the indexer acknowledged
        self.last_delivered = 0
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"}
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def publish(self, events: List[LedgerEvent]) -> IndexerPushResult:
        """
        Send events the indexer has not acknowledged yet.

        Args:
            events: Observations in sequence order

        Returns:
            IndexerPushResult describing what was delivered
        """
        async with self._lock:
            return await self._publish(events)

    async def _publish(self, events: List[LedgerEvent]) -> IndexerPushResult:
        pending = [e for e in events if e.sequence > self.last_delivered]
        if not pending:
            return IndexerPushResult(success=True, last_sequence=self.last_delivered)

        payload = [event_payload(e) for e in pending]
        client = await self._get_client()
        try:
            response = await client.post(f"{self.base_url}/events", json={"events": payload})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"[INDEXER] Push of {len(pending)} event(s) failed (non-fatal): {e}")
            return IndexerPushResult(
                success=False,
                last_sequence=self.last_delivered,
                error=str(e),
            )

        self.last_delivered = pending[-1].sequence
        logger.debug(f"[INDEXER] Delivered {len(pending)} event(s) up to #{self.last_delivered}")
        return IndexerPushResult(
            success=True,
            delivered=len(pending),
            last_sequence=self.last_delivered,
            events=payload,
        )
