"""Per-shipment serialization of ledger appends."""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ShipmentLocks:
    """One ``asyncio.Lock`` per shipment id.

    Shared by every TrackingLedger in the process so that appends to the same
    shipment commit one at a time, in the order their timestamps were taken.
    """

    def __init__(self):
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._waiters: defaultdict[int, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, shipment_id: int) -> AsyncIterator[None]:
        self._waiters[shipment_id] += 1
        try:
            async with self._locks[shipment_id]:
                yield
        finally:
            self._waiters[shipment_id] -= 1
            if not self._waiters[shipment_id]:
                del self._waiters[shipment_id]
                del self._locks[shipment_id]

    def active(self) -> int:
        """Number of shipments with an append running or waiting."""
        return len(self._locks)
