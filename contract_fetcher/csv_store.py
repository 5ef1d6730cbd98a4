"""CSV persistence for contract records."""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, Optional

from .classifier import detect_proxy
from .errors import SetupError
from .models import CONTRACT_FIELDS, ContractRecord, parse_chain_id


logger = logging.getLogger(__name__)

# Verified sources routinely exceed the csv module's default field limit.
csv.field_size_limit(2**31 - 1)


def record_to_row(record: ContractRecord) -> dict[str, str]:
    row: dict[str, str] = {}
    for name in CONTRACT_FIELDS:
        value = getattr(record, name)
        if value is None:
            row[name] = ""
        elif isinstance(value, bool):
            row[name] = "true" if value else "false"
        else:
            row[name] = str(value)
    return row


def row_to_record(row: dict[str, Optional[str]]) -> ContractRecord:
    """Build a record from a CSV row.

    The address is lower-cased and ``is_proxy`` is derived from
    ``implementation_address``, so rows written by other tools still key
    and classify the same way as freshly fetched records.
    """

    def text(name: str) -> str:
        return row.get(name) or ""

    def optional(name: str) -> Optional[str]:
        return row.get(name) or None

    chain_id = parse_chain_id(text("chain_id"))
    if chain_id is None:
        raise ValueError(f"invalid chain_id {text('chain_id')!r}")
    is_proxy, implementation = detect_proxy(optional("implementation_address"))

    return ContractRecord(
        address=text("address").strip().lower(),
        chain=text("chain"),
        chain_id=chain_id,
        name=text("name"),
        symbol=optional("symbol"),
        source_code=text("source_code"),
        abi=text("abi"),
        is_proxy=is_proxy,
        implementation_address=implementation,
        protocol=optional("protocol"),
        contract_type=optional("contract_type"),
        version=optional("version"),
    )


def write_records(records: Iterable[ContractRecord], path: str | Path) -> int:
    """Overwrite ``path`` with a header row followed by one row per record."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with target.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CONTRACT_FIELDS)
        writer.writeheader()
        for record in records:
            writer.writerow(record_to_row(record))
            count += 1
    logger.info("Wrote %s contracts to %s", count, target)
    return count


def append_records(records: Iterable[ContractRecord], path: str | Path) -> int:
    """Append records through a single handle.

    The header is only written into a new or empty file.
    """
    target = Path(path)
    needs_header = not target.exists() or target.stat().st_size == 0
    target.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with target.open("a", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CONTRACT_FIELDS)
        if needs_header:
            writer.writeheader()
        for record in records:
            writer.writerow(record_to_row(record))
            count += 1
    logger.info("Appended %s contracts to %s", count, target)
    return count


def append_record(record: ContractRecord, path: str | Path) -> None:
    append_records([record], path)


def read_records(path: str | Path) -> list[ContractRecord]:
    source = Path(path)
    try:
        handle = source.open("r", newline="", encoding="utf-8")
    except OSError as exc:
        raise SetupError(f"Cannot read contracts file {source}: {exc}") from exc

    records: list[ContractRecord] = []
    with handle:
        try:
            reader = csv.DictReader(handle)
            missing = set(CONTRACT_FIELDS) - set(reader.fieldnames or ())
            if missing:
                raise SetupError(f"{source} is missing columns: {', '.join(sorted(missing))}")
            for row in reader:
                try:
                    records.append(row_to_record(row))
                except ValueError as exc:
                    raise SetupError(f"{source}:{reader.line_num}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise SetupError(f"Cannot read contracts file {source}: {exc}") from exc
    return records


def has_data(path: str | Path) -> bool:
    source = Path(path)
    if not source.is_file():
        return False
    with source.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle)
        next(reader, None)
        return next(reader, None) is not None
