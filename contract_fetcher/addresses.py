"""Readers that turn address lists into :class:`AddressEntry` values."""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .errors import SetupError
from .models import AddressEntry, parse_chain_id


logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
_METADATA_DEFAULT_CHAIN_ID = 1


def parse_line(line: str) -> Optional[AddressEntry]:
    """Parse one ``address,chain_id[,protocol]`` line, or return ``None``."""
    content = line.split(COMMENT_MARKER, 1)[0].strip()
    if not content:
        return None

    parts = [part.strip() for part in content.split(",")]
    if len(parts) < 2:
        return None
    chain_id = parse_chain_id(parts[1])
    if chain_id is None:
        return None

    protocol = parts[2] if len(parts) > 2 and parts[2] else None
    return AddressEntry(address=parts[0], chain_id=chain_id, protocol=protocol)


def parse_addresses(lines: Iterable[str]) -> Iterator[AddressEntry]:
    """Yield the valid entries of a curated list; everything else is dropped."""
    for line in lines:
        entry = parse_line(line)
        if entry is not None:
            yield entry


def _read_text(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SetupError(f"Cannot read input file {path}: {exc}") from exc


def read_address_file(path: str | Path) -> list[AddressEntry]:
    entries = list(parse_addresses(_read_text(path).splitlines()))
    logger.info("Parsed %s addresses from %s", len(entries), path)
    return entries


def read_metadata_csv(path: str | Path) -> list[AddressEntry]:
    """Collect fetch targets from a previously exported metadata CSV.

    Rows whose address does not look like ``0x...`` are skipped. An
    unparseable ``chain_id`` falls back to mainnet.
    """
    reader = csv.DictReader(io.StringIO(_read_text(path), newline=""))
    if reader.fieldnames is None or "address" not in reader.fieldnames:
        raise SetupError(f"{path} has no 'address' column")

    entries: list[AddressEntry] = []
    for row in reader:
        address = (row.get("address") or "").strip()
        if not address.startswith("0x"):
            continue
        chain_id = parse_chain_id(row.get("chain_id") or "")
        if chain_id is None:
            chain_id = _METADATA_DEFAULT_CHAIN_ID
        protocol = (row.get("protocol") or "").strip() or None
        entries.append(AddressEntry(address=address, chain_id=chain_id, protocol=protocol))

    logger.info("Collected %s addresses from metadata file %s", len(entries), path)
    return entries
