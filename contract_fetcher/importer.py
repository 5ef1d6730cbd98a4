"""Batched upserts that tolerate per-record failures."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from .config import DEFAULT_BATCH_SIZE
from .db import ContractStore
from .errors import RecordImportError
from .models import ContractRecord


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ImportOutcome:
    record: ContractRecord
    error: Optional[RecordImportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchImporter:
    """Buffers records and upserts them ``batch_size`` at a time.

    Call :meth:`flush` once more at the end of a run to write the remainder.
    """

    def __init__(
        self,
        store: ContractStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        *,
        on_outcome: Optional[Callable[[ImportOutcome], None]] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._store = store
        self._batch_size = batch_size
        self._on_outcome = on_outcome
        self._pending: list[ContractRecord] = []
        self.total_imported = 0
        self.total_failed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def add(self, record: ContractRecord) -> int:
        """Queue a record; returns how many were imported if this filled a batch."""
        self._pending.append(record)
        if len(self._pending) >= self._batch_size:
            return self.flush()
        return 0

    def flush(self) -> int:
        if not self._pending:
            return 0
        batch, self._pending = self._pending, []
        return self.import_batch(batch)

    def import_batch(self, records: Iterable[ContractRecord]) -> int:
        outcomes = self.import_outcomes(records)
        imported = sum(1 for outcome in outcomes if outcome.ok)
        self.total_imported += imported
        self.total_failed += len(outcomes) - imported
        logger.info("Imported batch: %s of %s contracts", imported, len(outcomes))
        return imported

    def import_outcomes(self, records: Iterable[ContractRecord]) -> list[ImportOutcome]:
        outcomes: list[ImportOutcome] = []
        for record in records:
            try:
                self._store.upsert(record)
            except (SQLAlchemyError, OverflowError, ValueError) as exc:
                # sqlite3 raises OverflowError for integers it cannot bind.
                error = RecordImportError(record.chain_id, record.address, exc)
                logger.info("%s", error)
                outcome = ImportOutcome(record=record, error=error)
            else:
                logger.debug("Imported %s (%s)", record.name, record.address)
                outcome = ImportOutcome(record=record)
            outcomes.append(outcome)
            if self._on_outcome is not None:
                self._on_outcome(outcome)
        return outcomes
