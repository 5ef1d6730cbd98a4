"""Data carried between the fetch, classify and sink stages."""
from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Optional


# Chain ids are stored in a 32-bit signed INTEGER column.
CHAIN_ID_MIN = -(2**31)
CHAIN_ID_MAX = 2**31 - 1

_SIGNED_INT = re.compile(r"[+-]?\d+")


def parse_chain_id(raw: str) -> Optional[int]:
    """Return the chain id in ``raw``, or ``None`` if it is not a 32-bit integer."""
    text = raw.strip()
    if not _SIGNED_INT.fullmatch(text):
        return None
    value = int(text)
    if not CHAIN_ID_MIN <= value <= CHAIN_ID_MAX:
        return None
    return value


@dataclass(slots=True, frozen=True)
class AddressEntry:
    address: str
    chain_id: int
    protocol: Optional[str] = None


@dataclass(slots=True)
class ContractRecord:
    """One fetched and classified contract.

    ``is_proxy`` is true exactly when ``implementation_address`` is set.
    ``symbol`` and ``version`` are never filled in by the fetch step.
    """

    address: str
    chain: str
    chain_id: int
    name: str
    symbol: Optional[str]
    source_code: str
    abi: str
    is_proxy: bool
    implementation_address: Optional[str]
    protocol: Optional[str]
    contract_type: Optional[str]
    version: Optional[str]


CONTRACT_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(ContractRecord))
