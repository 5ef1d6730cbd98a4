"""Pure derivations applied to every fetched contract."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ContractType(str, Enum):
    PROXY = "Proxy"
    ROUTER = "Router"
    FACTORY = "Factory"
    POOL = "Pool"
    VAULT = "Vault"
    TOKEN = "Token"


# Checked in order, first hit wins.
_NAME_KEYWORDS: tuple[tuple[str, ContractType], ...] = (
    ("proxy", ContractType.PROXY),
    ("router", ContractType.ROUTER),
    ("factory", ContractType.FACTORY),
    ("pool", ContractType.POOL),
    ("vault", ContractType.VAULT),
    ("token", ContractType.TOKEN),
)

CHAIN_NAMES: dict[int, str] = {
    1: "ethereum",
    10: "optimism",
    42161: "arbitrum",
    8453: "base",
    137: "polygon",
}

# Explorers report a bare "0x" when a proxy slot is empty.
_EMPTY_IMPLEMENTATION = "0x"


def classify(contract_name: str) -> Optional[ContractType]:
    """Guess the contract kind from keywords in its verified name."""
    lowered = (contract_name or "").lower()
    for keyword, contract_type in _NAME_KEYWORDS:
        if keyword in lowered:
            return contract_type
    return None


def chain_id_to_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"chain_{chain_id}")


def detect_proxy(implementation: Optional[str]) -> tuple[bool, Optional[str]]:
    """Return ``(is_proxy, implementation_address)`` for a raw implementation field."""
    value = (implementation or "").strip()
    if not value or value == _EMPTY_IMPLEMENTATION:
        return False, None
    return True, value
