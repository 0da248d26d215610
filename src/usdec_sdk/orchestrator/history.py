"""Bounded history of transactions submitted during a session."""

from collections import deque
from typing import Deque, List, Optional

from ..mint.types import TransactionRecord, TxKind


class TransactionHistory:
    """Most recent ``limit`` transactions; the oldest is evicted first."""

    def __init__(self, limit: int = 10):
        if limit < 1:
            raise ValueError(f"Invalid history limit: {limit}")
        self._records: Deque[TransactionRecord] = deque(maxlen=limit)

    def add(self, record: TransactionRecord) -> None:
        self._records.append(record)

    def recent(self) -> List[TransactionRecord]:
        """Records, newest first."""
        return list(reversed(self._records))

    def find(self, tx_hash: str) -> Optional[TransactionRecord]:
        for record in self._records:
            if record.hash.lower() == tx_hash.lower():
                return record
        return None

    def latest(self, kind: Optional[TxKind] = None) -> Optional[TransactionRecord]:
        for record in reversed(self._records):
            if kind is None or record.kind == kind:
                return record
        return None

    def pending(self) -> List[TransactionRecord]:
        return [record for record in self._records if record.status == "pending"]

    def __len__(self) -> int:
        return len(self._records)
