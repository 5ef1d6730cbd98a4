"""High-level orchestration of the fetch, classify and sink workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from . import csv_store
from .errors import FetchError
from .explorer import MetadataClient
from .importer import BatchImporter
from .models import AddressEntry, ContractRecord


logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    READING_ADDRESSES = "reading_addresses"
    FETCHING = "fetching"
    SINKING = "sinking"
    BATCHING = "batching"
    DONE = "done"


# Sinking and batching are alternative final stages of the same run.
_STAGE_ORDER = {
    PipelineState.IDLE: 0,
    PipelineState.READING_ADDRESSES: 1,
    PipelineState.FETCHING: 2,
    PipelineState.SINKING: 3,
    PipelineState.BATCHING: 3,
    PipelineState.DONE: 4,
}


@dataclass(slots=True)
class FetchOutcome:
    entry: AddressEntry
    record: Optional[ContractRecord] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(slots=True)
class RunSummary:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    sunk: int = 0
    import_failed: int = 0

    def describe(self) -> str:
        text = f"attempted={self.attempted} succeeded={self.succeeded} failed={self.failed}"
        if self.import_failed:
            text += f" import_failed={self.import_failed}"
        return text


class ContractPipeline:
    """Runs one pass over an address list. Instances are single-use."""

    def __init__(
        self,
        client: MetadataClient,
        *,
        on_fetch: Optional[Callable[[FetchOutcome], None]] = None,
    ) -> None:
        self._client = client
        self._on_fetch = on_fetch
        self._state = PipelineState.IDLE

    @property
    def state(self) -> PipelineState:
        return self._state

    def run_to_file(
        self,
        source: Iterable[AddressEntry],
        output: str | Path,
        *,
        append: bool = False,
    ) -> RunSummary:
        summary = RunSummary()
        entries = self._read(source)
        buffer = list(self._fetch_each(entries, summary))

        self._advance(PipelineState.SINKING)
        if append:
            summary.sunk = csv_store.append_records(buffer, output)
        else:
            summary.sunk = csv_store.write_records(buffer, output)

        self._advance(PipelineState.DONE)
        logger.info("Run complete: %s written=%s", summary.describe(), summary.sunk)
        return summary

    def run_to_store(self, source: Iterable[AddressEntry], importer: BatchImporter) -> RunSummary:
        summary = RunSummary()
        entries = self._read(source)
        for record in self._fetch_each(entries, summary):
            importer.add(record)

        self._advance(PipelineState.BATCHING)
        importer.flush()
        summary.sunk = importer.total_imported
        summary.import_failed = importer.total_failed

        self._advance(PipelineState.DONE)
        logger.info("Run complete: %s imported=%s", summary.describe(), summary.sunk)
        return summary

    def _read(self, source: Iterable[AddressEntry]) -> list[AddressEntry]:
        self._advance(PipelineState.READING_ADDRESSES)
        entries = list(source)
        logger.info("Found %s addresses to fetch", len(entries))
        return entries

    def _fetch_each(self, entries: list[AddressEntry], summary: RunSummary) -> Iterator[ContractRecord]:
        self._advance(PipelineState.FETCHING)
        for entry in entries:
            summary.attempted += 1
            try:
                record = self._client.fetch(entry.address, entry.chain_id, entry.protocol)
            except FetchError as exc:
                summary.failed += 1
                logger.info("Fetch failed for %s: %s", entry.address, exc)
                self._notify(FetchOutcome(entry=entry, error=exc))
                continue
            summary.succeeded += 1
            self._notify(FetchOutcome(entry=entry, record=record))
            yield record

    def _notify(self, outcome: FetchOutcome) -> None:
        if self._on_fetch is not None:
            self._on_fetch(outcome)

    def _advance(self, target: PipelineState) -> None:
        if _STAGE_ORDER[target] <= _STAGE_ORDER[self._state]:
            raise RuntimeError(f"Cannot move pipeline from {self._state.name} to {target.name}")
        self._state = target


def import_records(records: Iterable[ContractRecord], importer: BatchImporter) -> RunSummary:
    """Upsert already-fetched records, e.g. rows read back from a contracts file."""
    summary = RunSummary()
    for record in records:
        summary.attempted += 1
        importer.add(record)
    importer.flush()
    summary.sunk = summary.succeeded = importer.total_imported
    summary.failed = summary.import_failed = importer.total_failed
    return summary
